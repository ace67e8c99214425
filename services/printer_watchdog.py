"""
Printer watchdog with a background polling thread.

CUPS disables or pauses a queue when a USB/Bluetooth printer is unplugged,
powered off or runs out of paper, and the queue stays that way after the
printer comes back. The watchdog polls the spooler every second and
re-enables any eligible printer reported as disabled or paused.

Loop states:
    Idle       waiting out the poll interval (starts here)
    Checking   running discovery and evaluating eligible printers
    Repairing  running cupsenable/cupsaccept for flagged printers
    Stopped    after stop(); the only terminal state

THREAD ISOLATION:
    - The watchdog shares only the stateless discovery and repair objects
      with the print path; it never caches printer state
    - No locks: the spooler itself serializes administrative changes

Usage:
    # At app startup
    watchdog = PrinterWatchdog(discovery, repair)
    watchdog.start()

    # At app shutdown
    watchdog.stop()
"""

from __future__ import annotations

import threading
from typing import Optional

from core.printer_discovery import PrinterDiscovery
from core.printer_repair import PrinterRepair
from logging_config import get_logger, set_thread_name


logger = get_logger(__name__)

POLL_INTERVAL_SECONDS = 1.0
SUMMARY_EVERY_CHECKS = 60
THREAD_NAME = "PrinterWatchdog"


class PrinterWatchdog:
    """
    Background service that keeps eligible printers enabled.

    Attributes:
        poll_interval_seconds: Time between checks (1 second)
        is_running: Whether the background thread is active
        check_count: Number of checks performed since start
    """

    def __init__(
        self,
        discovery: PrinterDiscovery,
        repair: PrinterRepair,
        poll_interval_seconds: float = POLL_INTERVAL_SECONDS,
        summary_every: int = SUMMARY_EVERY_CHECKS
    ):
        self._discovery = discovery
        self._repair = repair
        self._poll_interval = poll_interval_seconds
        self._summary_every = summary_every

        # Thread control
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._is_running = False

        self._check_count = 0
        self._consecutive_failures = 0

    @property
    def is_running(self) -> bool:
        """Whether the background thread is active."""
        return self._is_running

    @property
    def poll_interval_seconds(self) -> float:
        return self._poll_interval

    @property
    def check_count(self) -> int:
        return self._check_count

    def start(self) -> None:
        """
        Start the background polling thread.

        Safe to call multiple times - only starts if not already running.
        """
        if self._is_running:
            logger.debug("Printer watchdog already running")
            return

        logger.info("Starting printer watchdog")

        # A fresh event per run: a thread that outlived stop() keeps its own,
        # already-set event and cannot be revived by this start()
        self._stop_event = threading.Event()
        self._thread = threading.Thread(
            target=self._watch_loop,
            args=(self._stop_event,),
            name=THREAD_NAME,
            daemon=True
        )
        self._is_running = True
        self._thread.start()

    def stop(self, timeout: float = 5.0) -> None:
        """
        Signal the thread to stop and wait for it.

        The stop event also cancels any lpstat/cupsenable call in flight.
        Safe to call multiple times.
        """
        if not self._is_running:
            return

        logger.info("Stopping printer watchdog...")
        self._stop_event.set()

        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=timeout)

            if self._thread.is_alive():
                logger.warning("Printer watchdog thread did not stop cleanly")

        self._is_running = False
        self._thread = None

        logger.info("Printer watchdog stopped")

    def run_cycle(self, stop_event: Optional[threading.Event] = None) -> int:
        """
        Perform one check: discover, then repair each disabled/paused printer.

        Runs in the calling thread. Exceptions from discovery or repair
        propagate; the loop catches them.

        Args:
            stop_event: Cancel event for this pass (default: current run's)

        Returns:
            Number of printers a repair was attempted on
        """
        stop_event = stop_event or self._stop_event
        self._check_count += 1
        check = self._check_count

        printers = self._discovery.discover_printers(cancel_event=stop_event)
        eligible = [p for p in printers if p.is_usb]

        repairs = 0
        for printer in eligible:
            if stop_event.is_set():
                break
            if not printer.needs_repair:
                continue

            logger.warning(
                f"Printer requires attention: {printer.name}, status={printer.status!r}, "
                f"disabled={printer.is_disabled}, paused={printer.is_paused}, check={check}"
            )
            self._repair.enable_printer(printer.name, cancel_event=stop_event)
            repairs += 1

        if check % self._summary_every == 0:
            healthy = sum(1 for p in eligible if not p.needs_repair)
            logger.info(
                f"Printer watchdog status: {len(eligible)} eligible printers, "
                f"{healthy} healthy, check={check}"
            )

        return repairs

    def _watch_loop(self, stop_event: threading.Event) -> None:
        """
        Background thread main loop.

        Waits first, then checks; runs until the stop event is set.
        """
        set_thread_name(THREAD_NAME)
        logger.info("Printer watchdog started")

        try:
            while not stop_event.is_set():
                if stop_event.wait(timeout=self._poll_interval):
                    break

                try:
                    self.run_cycle(stop_event)
                    self._record_success()
                except Exception as e:
                    self._record_failure(e)
        finally:
            if self._thread is threading.current_thread():
                self._is_running = False
            logger.info("Printer watchdog loop exiting")

    def _record_success(self) -> None:
        if self._consecutive_failures > 0:
            logger.info(f"Printer watchdog recovered after {self._consecutive_failures} failed checks")
        self._consecutive_failures = 0

    def _record_failure(self, error: Exception) -> None:
        """Log a failed check with escalating severity, then throttle."""
        self._consecutive_failures += 1
        failures = self._consecutive_failures

        if failures == 1:
            logger.warning(f"Error in printer watchdog (check {self._check_count}): {error}")
        elif failures <= 3:
            logger.error(f"Printer watchdog check failed ({failures} consecutive): {error}")
        elif failures % 5 == 0:
            logger.error(f"Printer watchdog still failing ({failures} consecutive): {error}")
