"""
Print submission to a locally attached USB/Bluetooth printer.

Flow for one print_image() call:
    1. Discover printers (live, no cache) and keep the eligible ones
       (USB or Bluetooth transport)
    2. Pick the system default among them, else the first one listed
    3. Stage the image bytes to a uniquely named temp file
    4. Run lp with a discrete argument list (never a shell string)
    5. Parse the spooler job id from lp's stdout
    6. Delete the staged file, whatever happened

Errors (NoEligiblePrinterError, SpoolerRejectedError, SpoolerUnavailableError,
PrintCancelledError) propagate to the caller. Nothing is retried.
"""

from __future__ import annotations

import os
import re
import tempfile
import threading
import time
import uuid
from pathlib import Path
from typing import List, Optional, Sequence

from core.commands import CommandRunner
from core.exceptions import (
    CommandCancelledError,
    CommandError,
    NoEligiblePrinterError,
    PrintCancelledError,
    SpoolerRejectedError,
    SpoolerUnavailableError,
)
from core.printer_discovery import PrinterDiscovery
from models.printer import PrinterInfo, PrintOptions, PrintResult
from logging_config import get_logger


logger = get_logger(__name__)

PRINT_COMMAND = "lp"
JOB_ID_RE = re.compile(r"request id is .+-(\d+)")


def select_printer(printers: Sequence[PrinterInfo]) -> Optional[PrinterInfo]:
    """
    Choose the printer for a job.

    Only USB/Bluetooth printers are eligible. The system default wins if
    it is eligible; otherwise the first eligible printer in lpstat order.

    Returns:
        The selected printer, or None if none is eligible
    """
    eligible = [p for p in printers if p.is_usb]
    if not eligible:
        return None
    for printer in eligible:
        if printer.is_default:
            return printer
    return eligible[0]


def build_print_command(printer_name: str, file_path: str, options: PrintOptions) -> List[str]:
    """
    Build the lp argument list.

    Example:
        ["lp", "-d", "Phomemo_PM2", "-n", "2", "-o", "fit-to-page",
         "-o", "media=w50h30", "/tmp/print-a1b2c3d4-....png"]
    """
    args = [PRINT_COMMAND, "-d", printer_name]

    if options.copies > 1:
        args.extend(["-n", str(options.copies)])

    if options.fit_to_page:
        args.extend(["-o", "fit-to-page"])

    if options.media:
        args.extend(["-o", f"media={options.media}"])

    args.append(file_path)
    return args


def parse_job_id(stdout: str) -> str:
    """
    Extract the spooler job number from lp output.

    "request id is Phomemo_PM2-42 (1 file(s))" -> "42". Falls back to the
    trimmed output when the pattern is absent.
    """
    match = JOB_ID_RE.search(stdout)
    if match:
        return match.group(1)
    return stdout.strip()


class PrintService:
    """
    Submits images to the spooler.

    Holds no state between calls; every submission re-reads printer
    state through discovery.
    """

    def __init__(
        self,
        discovery: PrinterDiscovery,
        runner: CommandRunner,
        staging_dir: Optional[str] = None
    ):
        """
        Args:
            discovery: Printer discovery (shared with the watchdog)
            runner: Command runner used for lp
            staging_dir: Directory for staged files (default: OS temp dir)
        """
        self._discovery = discovery
        self._runner = runner
        self._staging_dir = staging_dir or tempfile.gettempdir()

    @property
    def staging_dir(self) -> str:
        return self._staging_dir

    def print_image(
        self,
        image_bytes: bytes,
        options: Optional[PrintOptions] = None,
        cancel_event: Optional[threading.Event] = None,
        request_id: Optional[str] = None
    ) -> PrintResult:
        """
        Print an image on the selected printer.

        Args:
            image_bytes: Image data (PNG)
            options: lp options (default: fit to page, 1 copy)
            cancel_event: Optional event; setting it aborts the job
            request_id: Correlation id used in logs and the staged file name

        Returns:
            PrintResult with printer name and spooler job id

        Raises:
            NoEligiblePrinterError: No USB/Bluetooth printer found
            SpoolerRejectedError: lp exited non-zero
            SpoolerUnavailableError: lp missing or timed out
            PrintCancelledError: cancel_event was set
        """
        options = options or PrintOptions()
        request_id = request_id or uuid.uuid4().hex[:8]
        start = time.monotonic()

        logger.info(
            f"[{request_id}] Starting print job: {len(image_bytes)} bytes, copies={options.copies}, "
            f"fit_to_page={options.fit_to_page}, media={options.media or 'default'}"
        )

        if cancel_event is not None and cancel_event.is_set():
            raise PrintCancelledError()

        printers = self._discovery.discover_printers(cancel_event=cancel_event)

        # Discovery swallows cancellation and returns an empty list
        if cancel_event is not None and cancel_event.is_set():
            raise PrintCancelledError()

        printer = select_printer(printers)

        if printer is None:
            available = [f"{p.name}({p.transport_uri})" for p in printers]
            logger.error(f"[{request_id}] No eligible printers found. Available: {', '.join(available) or 'none'}")
            raise NoEligiblePrinterError(available)

        logger.info(
            f"[{request_id}] Selected printer {printer.name}: uri={printer.transport_uri}, "
            f"default={printer.is_default}, status={printer.status!r}"
        )

        staged_file = self._stage_file(image_bytes, request_id)
        try:
            args = build_print_command(printer.name, str(staged_file), options)
            logger.debug(f"[{request_id}] Executing print command: {args}")

            try:
                result = self._runner.run(args, cancel_event=cancel_event)
            except CommandCancelledError as e:
                logger.warning(f"[{request_id}] Print job cancelled while lp was running")
                raise PrintCancelledError(printer.name) from e
            except CommandError as e:
                logger.error(f"[{request_id}] Print command could not run: {e.message}")
                raise SpoolerUnavailableError(printer.name, e.message) from e

            if not result.ok:
                logger.error(
                    f"[{request_id}] Print command failed: code={result.returncode}, "
                    f"error={result.stderr.strip()!r} ({result.duration_ms:.0f}ms)"
                )
                raise SpoolerRejectedError(printer.name, result.returncode, result.stderr)

            job_id = parse_job_id(result.stdout)

        finally:
            self._remove_staged_file(staged_file, request_id)

        duration_ms = (time.monotonic() - start) * 1000
        logger.info(
            f"[{request_id}] Print job submitted to {printer.name}: job_id={job_id} ({duration_ms:.0f}ms)"
        )
        return PrintResult(printer_name=printer.name, job_id=job_id)

    def _stage_file(self, image_bytes: bytes, request_id: str) -> Path:
        """Write the image to a collision-resistant file name in the staging dir."""
        staged_file = Path(self._staging_dir) / f"print-{request_id}-{uuid.uuid4().hex}.png"
        logger.debug(f"[{request_id}] Writing image to {staged_file}")
        try:
            staged_file.write_bytes(image_bytes)
        except OSError:
            # A partial write may have left the file behind
            self._remove_staged_file(staged_file, request_id)
            raise
        return staged_file

    @staticmethod
    def _remove_staged_file(staged_file: Path, request_id: str) -> None:
        """Delete the staged file; failures are logged, never raised."""
        try:
            os.remove(staged_file)
            logger.debug(f"[{request_id}] Deleted staged file {staged_file}")
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"[{request_id}] Failed to delete staged file {staged_file}: {e}")
