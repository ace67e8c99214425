"""
Fire-and-forget print jobs with thread-per-job architecture.

After an image is generated the request handler returns it immediately
and hands the bytes to this service. Each print gets its own thread and
its own cancel event, so a slow or failing printer never delays or fails
the HTTP response.

THREAD ISOLATION:
    - Each job thread calls PrintService.print_image() independently
    - Job threads do NOT share state with each other or with the watchdog
    - PrintJobResultStore is the ONLY channel back to the main thread

Failure policy:
    Every exception raised by a print is caught in the job thread, logged
    and recorded as a FAILED (or CANCELLED) result. Nothing is retried:
    printing is best-effort, the image has already been delivered.

Usage:
    # At app startup
    print_job_service = PrintJobService(print_service)

    # After generating an image (request thread)
    job_id = print_job_service.submit(image_bytes, request_id=request_id)

    # Status polling
    result = print_job_service.get_result(job_id)

    # At app shutdown
    print_job_service.shutdown()
"""

from __future__ import annotations

import threading
import uuid
from collections import OrderedDict
from datetime import datetime, timezone
from typing import Dict, Optional

from core.exceptions import PrintCancelledError, PrintSubmissionError
from models.print_job import PrintJobResult
from models.printer import PrintOptions
from services.print_service import PrintService
from logging_config import get_logger, get_print_logger, set_thread_name


logger = get_logger(__name__)

DEFAULT_MAX_RESULTS = 200


class PrintJobResultStore:
    """
    Thread-safe, bounded storage for print job results.

    Job threads WRITE results here; the main thread READS them. Reads do
    not remove results so status can be polled repeatedly. When full,
    the oldest result is evicted.
    """

    def __init__(self, max_results: int = DEFAULT_MAX_RESULTS):
        self._results: "OrderedDict[str, PrintJobResult]" = OrderedDict()
        self._max_results = max_results
        self._lock = threading.Lock()

    def put_result(self, result: PrintJobResult) -> None:
        """Store a job result (called by job thread)."""
        with self._lock:
            self._results[result.job_id] = result
            self._results.move_to_end(result.job_id)
            while len(self._results) > self._max_results:
                evicted_id, _ = self._results.popitem(last=False)
                logger.debug(f"Evicted result for print job {evicted_id[:8]}")

    def get_result(self, job_id: str) -> Optional[PrintJobResult]:
        """Return the result for a job, or None if not finished or unknown."""
        with self._lock:
            return self._results.get(job_id)

    def __len__(self) -> int:
        with self._lock:
            return len(self._results)

    def clear(self) -> int:
        """
        Remove all stored results.

        Returns:
            Number of results removed
        """
        with self._lock:
            count = len(self._results)
            self._results.clear()
            logger.info(f"Cleared {count} print job results from store")
            return count


class PrintJobService:
    """
    Runs each print in its own daemon thread.

    Attributes:
        result_store: PrintJobResultStore for reading job results
    """

    def __init__(self, print_service: PrintService, max_results: int = DEFAULT_MAX_RESULTS):
        self._print_service = print_service
        self._result_store = PrintJobResultStore(max_results)

        # Active job threads and their cancel events
        self._active_threads: Dict[str, threading.Thread] = {}
        self._cancel_events: Dict[str, threading.Event] = {}
        self._threads_lock = threading.Lock()

        logger.info("PrintJobService initialized")

    @property
    def result_store(self) -> PrintJobResultStore:
        return self._result_store

    def submit(
        self,
        image_bytes: bytes,
        options: Optional[PrintOptions] = None,
        request_id: Optional[str] = None,
        job_id: Optional[str] = None
    ) -> str:
        """
        Start a background print and return immediately.

        Args:
            image_bytes: Image to print
            options: lp options (default: fit to page)
            request_id: HTTP request id for log correlation
            job_id: Optional job id (generated if not provided)

        Returns:
            job_id for status polling
        """
        if job_id is None:
            job_id = uuid.uuid4().hex
        options = options or PrintOptions(fit_to_page=True)
        request_id = request_id or job_id[:8]

        logger.info(f"[{request_id}] Starting print job {job_id[:8]} in background ({len(image_bytes)} bytes)")

        cancel_event = threading.Event()
        thread = threading.Thread(
            target=self._job_thread_main,
            args=(job_id, image_bytes, options, request_id, cancel_event),
            name=f"Print-{job_id[:8]}",
            daemon=True
        )

        with self._threads_lock:
            self._active_threads[job_id] = thread
            self._cancel_events[job_id] = cancel_event

        thread.start()
        return job_id

    def get_result(self, job_id: str) -> Optional[PrintJobResult]:
        """Return the finished result, or None if still printing or unknown."""
        return self._result_store.get_result(job_id)

    def is_job_pending(self, job_id: str) -> bool:
        """True if the job has been submitted and has not finished yet."""
        with self._threads_lock:
            return job_id in self._active_threads

    def cancel(self, job_id: str) -> bool:
        """
        Request cancellation of a running print.

        The job's lp process is killed if running and its staged file is
        still removed.

        Returns:
            True if the job was running and has been signalled
        """
        with self._threads_lock:
            cancel_event = self._cancel_events.get(job_id)

        if cancel_event is None:
            return False

        logger.info(f"Cancelling print job {job_id[:8]}")
        cancel_event.set()
        return True

    def shutdown(self, timeout_per_thread: float = 5.0) -> None:
        """
        Cancel all active print jobs and wait for their threads.

        Args:
            timeout_per_thread: Max seconds to wait per thread
        """
        with self._threads_lock:
            active = list(self._active_threads.items())
            for cancel_event in self._cancel_events.values():
                cancel_event.set()

        if not active:
            logger.info("No active print jobs to wait for")
            return

        logger.info(f"Waiting for {len(active)} print jobs to stop...")

        for job_id, thread in active:
            if thread.is_alive():
                thread.join(timeout=timeout_per_thread)
                if thread.is_alive():
                    logger.warning(f"Print job thread {job_id[:8]} did not stop in time")

        logger.info("Print job service shutdown complete")

    def _job_thread_main(
        self,
        job_id: str,
        image_bytes: bytes,
        options: PrintOptions,
        request_id: str,
        cancel_event: threading.Event
    ) -> None:
        """Print in this thread and record the outcome; never raises."""
        set_thread_name(f"Print-{job_id[:8]}")
        job_logger = get_print_logger(job_id)
        submitted_at = datetime.now(timezone.utc)

        job_logger.info(f"[{request_id}] Print job thread starting")

        try:
            print_result = self._print_service.print_image(
                image_bytes,
                options,
                cancel_event=cancel_event,
                request_id=request_id,
            )
            result = PrintJobResult.create_completed(job_id, print_result, submitted_at, request_id)
            job_logger.info(
                f"[{request_id}] Background print completed on {print_result.printer_name}, "
                f"spooler job {print_result.job_id}"
            )

        except PrintCancelledError:
            job_logger.info(f"[{request_id}] Background print cancelled")
            result = PrintJobResult.create_cancelled(job_id, submitted_at, request_id)

        except PrintSubmissionError as e:
            job_logger.warning(f"[{request_id}] Background print failed, but image was generated: {e}")
            result = PrintJobResult.create_failed(
                job_id, e.message, submitted_at, request_id, printer_name=e.printer_name or ""
            )

        except Exception as e:
            job_logger.error(f"[{request_id}] Background print failed unexpectedly: {e}", exc_info=True)
            result = PrintJobResult.create_failed(job_id, str(e), submitted_at, request_id)

        # Store before untracking so the job is never neither pending nor finished
        self._result_store.put_result(result)

        with self._threads_lock:
            self._active_threads.pop(job_id, None)
            self._cancel_events.pop(job_id, None)

        job_logger.info(f"[{request_id}] Print job thread exiting")
