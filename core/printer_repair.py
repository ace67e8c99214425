"""
Best-effort printer repair.

Re-enables a printer queue and makes it accept jobs again:

    cupsenable <name>
    cupsaccept <name>

Both steps always run, in that order. Failures are logged and swallowed;
enable_printer() never raises. Running it on a healthy printer is a
no-op at the spooler level. No locking is attempted against concurrent
manual administration of the queue.
"""

from __future__ import annotations

import threading
import time
from typing import Optional

from .commands import CommandRunner
from logging_config import get_logger


logger = get_logger(__name__)

ENABLE_COMMAND = "cupsenable"
ACCEPT_COMMAND = "cupsaccept"


class PrinterRepair:
    """Runs cupsenable/cupsaccept for a printer through a CommandRunner."""

    def __init__(self, runner: CommandRunner):
        self._runner = runner

    def enable_printer(self, name: str, cancel_event: Optional[threading.Event] = None) -> None:
        """
        Enable a printer and make it accept jobs.

        Args:
            name: Spooler destination name
            cancel_event: Optional event that aborts the running step
        """
        start = time.monotonic()
        logger.info(f"Attempting to enable printer {name}")

        enabled = self._run_step(ENABLE_COMMAND, name, cancel_event)
        accepting = self._run_step(ACCEPT_COMMAND, name, cancel_event)

        duration_ms = (time.monotonic() - start) * 1000
        if enabled and accepting:
            logger.info(f"Enabled printer {name} ({duration_ms:.0f}ms)")
        else:
            logger.warning(
                f"Printer {name} repair incomplete: enable={'ok' if enabled else 'failed'}, "
                f"accept={'ok' if accepting else 'failed'} ({duration_ms:.0f}ms)"
            )

    def _run_step(self, command: str, name: str, cancel_event: Optional[threading.Event]) -> bool:
        """Run one repair command. Returns True on exit code 0."""
        try:
            result = self._runner.run([command, name], cancel_event=cancel_event)
        except Exception as e:
            logger.warning(f"{command} failed for printer {name}: {e}")
            return False

        if not result.ok:
            logger.warning(
                f"{command} exited with error for printer {name}: "
                f"code={result.returncode}, error={result.stderr.strip()!r}"
            )
            return False

        logger.debug(f"{command} succeeded for printer {name}")
        return True
