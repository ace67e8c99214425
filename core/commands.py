"""
Cancellable execution of OS print tools.

Every interaction with the print spooler (lpstat, lp, cupsenable,
cupsaccept) goes through CommandRunner. Commands are always built as a
discrete argument list and run without a shell, so printer names and
media strings taken from spooler output can never be interpreted as
shell syntax.

CANCELLATION:
    run() waits for the child in short slices and checks the caller's
    threading.Event between slices. When the event is set the child is
    killed and reaped before CommandCancelledError is raised.

Usage:
    runner = CommandRunner(default_timeout=30.0)
    result = runner.run(["lpstat", "-p", "-d"], cancel_event=stop_event)
    if not result.ok:
        logger.warning(f"lpstat exited with code {result.returncode}")
"""

from __future__ import annotations

import subprocess
import threading
import time
from dataclasses import dataclass
from typing import List, Optional, Sequence

from .exceptions import CommandCancelledError, CommandNotFoundError, CommandTimeoutError
from logging_config import get_logger


logger = get_logger(__name__)


@dataclass(frozen=True)
class CommandResult:
    """Captured outcome of one finished command."""

    args: List[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""
    duration_ms: float = 0.0

    @property
    def ok(self) -> bool:
        """True if the command exited with status 0."""
        return self.returncode == 0


class CommandRunner:
    """
    Runs a command to completion, honouring a timeout and a cancel event.

    A single instance is shared by discovery, repair and submission; it
    holds no per-call state and is safe to use from any thread.
    """

    def __init__(self, default_timeout: Optional[float] = 30.0, poll_interval: float = 0.1):
        """
        Args:
            default_timeout: Seconds before a command is killed (None = no limit)
            poll_interval: Seconds between cancel-event checks
        """
        self._default_timeout = default_timeout
        self._poll_interval = poll_interval

    @property
    def default_timeout(self) -> Optional[float]:
        return self._default_timeout

    def run(
        self,
        args: Sequence[str],
        cancel_event: Optional[threading.Event] = None,
        timeout: Optional[float] = None
    ) -> CommandResult:
        """
        Run a command and capture its output.

        Args:
            args: Executable followed by its arguments, one string each
            cancel_event: Optional event; setting it kills the command
            timeout: Seconds before the command is killed (default: runner default)

        Returns:
            CommandResult with exit code, stdout and stderr

        Raises:
            CommandNotFoundError: Executable missing
            CommandTimeoutError: Timeout elapsed
            CommandCancelledError: cancel_event was set
        """
        argv = [str(arg) for arg in args]
        if timeout is None:
            timeout = self._default_timeout

        if cancel_event is not None and cancel_event.is_set():
            raise CommandCancelledError(argv)

        logger.debug(f"Executing command: {argv}")
        start = time.monotonic()

        try:
            process = subprocess.Popen(
                argv,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
            )
        except FileNotFoundError as e:
            raise CommandNotFoundError(argv) from e

        while True:
            try:
                stdout, stderr = process.communicate(timeout=self._poll_interval)
                break
            except subprocess.TimeoutExpired:
                pass

            if cancel_event is not None and cancel_event.is_set():
                self._kill(process)
                logger.debug(f"Command cancelled: {argv[0]}")
                raise CommandCancelledError(argv)

            if timeout is not None and time.monotonic() - start > timeout:
                self._kill(process)
                logger.warning(f"Command timed out after {timeout:.1f}s: {argv[0]}")
                raise CommandTimeoutError(argv, timeout)

        duration_ms = (time.monotonic() - start) * 1000
        logger.debug(f"Command {argv[0]} exited with code {process.returncode} in {duration_ms:.0f}ms")

        return CommandResult(
            args=argv,
            returncode=process.returncode,
            stdout=stdout or "",
            stderr=stderr or "",
            duration_ms=duration_ms,
        )

    @staticmethod
    def _kill(process: subprocess.Popen) -> None:
        """Kill the child and reap it so no zombie or open pipe is left behind."""
        process.kill()
        try:
            process.communicate(timeout=5.0)
        except subprocess.TimeoutExpired:
            logger.warning(f"Process {process.pid} did not exit after kill")
