"""
Printer discovery from CUPS command-line output.

Discovery runs two commands on every call (no caching):

    lpstat -p -d   printer lines and the system default destination
    lpstat -v      device URI for each printer

and turns their text into PrinterInfo records. The parsing rules live in
parse_printers() so they can be swapped if the lpstat output changes.

FAIL SOFT:
    discover_printers() never raises. A missing lpstat, a timeout, a
    cancellation or any parse problem yields an empty (or partial) list
    and a log line. Callers treat "no printers" the same way whatever
    the cause.

Example output handled:
    printer Phomemo_PM2 is idle.  enabled since Mon 19 Oct 2026 10:00:00
    system default destination: Phomemo_PM2
    device for Phomemo_PM2: usb://Phomemo/PM2?serial=123
"""

from __future__ import annotations

import re
import threading
import time
from typing import List, Optional

from .commands import CommandRunner
from models.printer import PrinterInfo
from logging_config import get_logger


logger = get_logger(__name__)

LIST_PRINTERS_COMMAND = ["lpstat", "-p", "-d"]
LIST_DEVICES_COMMAND = ["lpstat", "-v"]

DEFAULT_DESTINATION_RE = re.compile(r"system default destination: (.+)")
PRINTER_LINE_RE = re.compile(r"^printer (.+?) (.+)$")
DEVICE_LINE_RE = re.compile(r"device for (.+?): (.+)")


def parse_default_destination(status_output: str) -> str:
    """Return the system default destination name, or "" if none is set."""
    match = DEFAULT_DESTINATION_RE.search(status_output)
    return match.group(1).strip() if match else ""


def find_device_uri(printer_name: str, device_lines: List[str]) -> str:
    """
    Find the device URI for a printer in lpstat -v lines.

    A line whose "device for <name>:" matches the printer exactly wins;
    otherwise the first line mentioning the name is used.

    Returns:
        The URI, or "" if no device line matches.
    """
    candidates = []
    for line in device_lines:
        if printer_name not in line:
            continue
        match = DEVICE_LINE_RE.search(line)
        if not match:
            continue
        if match.group(1) == printer_name:
            return match.group(2).strip()
        candidates.append(match.group(2).strip())

    return candidates[0] if candidates else ""


def parse_printers(status_output: str, device_output: str) -> List[PrinterInfo]:
    """
    Parse lpstat output into PrinterInfo records.

    Args:
        status_output: stdout of "lpstat -p -d"
        device_output: stdout of "lpstat -v"

    Returns:
        One PrinterInfo per "printer <name> <status>" line, in lpstat order.
        Lines that don't match are skipped.
    """
    default_name = parse_default_destination(status_output)
    device_lines = [line for line in device_output.splitlines() if line.strip()]

    printers: List[PrinterInfo] = []
    for line in status_output.splitlines():
        match = PRINTER_LINE_RE.match(line.strip())
        if not match:
            continue

        name = match.group(1)
        status = match.group(2).strip()
        uri = find_device_uri(name, device_lines)

        printers.append(PrinterInfo.from_lpstat(name, status, uri, default_name))

    return printers


class PrinterDiscovery:
    """
    Discovers printers by running lpstat through a CommandRunner.

    Stateless apart from the runner; one instance is shared by the print
    service and the watchdog.
    """

    def __init__(self, runner: CommandRunner):
        self._runner = runner

    def discover_printers(self, cancel_event: Optional[threading.Event] = None) -> List[PrinterInfo]:
        """
        List printers known to the spooler.

        Args:
            cancel_event: Optional event that aborts the lpstat calls

        Returns:
            List of PrinterInfo (empty on any failure)
        """
        start = time.monotonic()
        logger.debug("Starting printer discovery")

        try:
            status_result = self._runner.run(LIST_PRINTERS_COMMAND, cancel_event=cancel_event)
            if not status_result.ok:
                logger.warning(
                    f"lpstat -p -d exited with code {status_result.returncode}: "
                    f"{status_result.stderr.strip()}"
                )

            device_result = self._runner.run(LIST_DEVICES_COMMAND, cancel_event=cancel_event)
            if not device_result.ok:
                logger.warning(
                    f"lpstat -v exited with code {device_result.returncode}: "
                    f"{device_result.stderr.strip()}"
                )

            printers = parse_printers(status_result.stdout, device_result.stdout)

        except Exception as e:
            duration_ms = (time.monotonic() - start) * 1000
            logger.error(f"Failed to get printers after {duration_ms:.0f}ms: {e}")
            return []

        for printer in printers:
            logger.debug(
                f"Discovered printer {printer.name}: uri={printer.transport_uri or '-'}, "
                f"type={printer.connection_type}, usb={printer.is_usb}, "
                f"default={printer.is_default}, status={printer.status!r}"
            )

        duration_ms = (time.monotonic() - start) * 1000
        eligible = sum(1 for p in printers if p.is_usb)
        bluetooth = sum(1 for p in printers if p.connection_type == "Bluetooth")
        defaults = sum(1 for p in printers if p.is_default)
        # DEBUG: the watchdog runs discovery every second
        logger.debug(
            f"Printer discovery completed: {len(printers)} printers, {eligible} eligible, "
            f"{bluetooth} bluetooth, {defaults} default ({duration_ms:.0f}ms)"
        )

        return printers
