"""
Background print job models.

A print job is the fire-and-forget print that follows a successful image
generation. Its outcome is recorded here by the print thread and can be
read back by the status endpoint; it never affects the HTTP response that
returned the image.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from .printer import PrintResult


class PrintJobStatus(Enum):
    """
    Status of a background print job.

    Lifecycle:
        PRINTING -> (COMPLETED | FAILED | CANCELLED)

    PRINTING is only reported by the status endpoint while the job's thread
    is running; stored results always carry one of the final states.
    """

    PRINTING = "printing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class PrintJobResult:
    """
    Result of a background print job.

    Written once by the print thread when the job finishes; read by the
    main thread through PrintJobService.get_result().
    """

    job_id: str
    """Print job identifier (UUID hex)."""

    status: PrintJobStatus
    """Final status."""

    request_id: str = ""
    """Id of the HTTP request that produced the image, for log correlation."""

    submitted_at: datetime = field(default_factory=_utc_now)
    finished_at: Optional[datetime] = None

    printer_name: str = ""
    """Printer used (empty if none was selected)."""

    spooler_job_id: str = ""
    """Job id reported by lp."""

    error: str = ""
    """Failure description for FAILED/CANCELLED jobs."""

    @classmethod
    def create_completed(
        cls,
        job_id: str,
        print_result: PrintResult,
        submitted_at: datetime,
        request_id: str = ""
    ) -> "PrintJobResult":
        return cls(
            job_id=job_id,
            status=PrintJobStatus.COMPLETED,
            request_id=request_id,
            submitted_at=submitted_at,
            finished_at=_utc_now(),
            printer_name=print_result.printer_name,
            spooler_job_id=print_result.job_id,
        )

    @classmethod
    def create_failed(
        cls,
        job_id: str,
        error_message: str,
        submitted_at: datetime,
        request_id: str = "",
        printer_name: str = ""
    ) -> "PrintJobResult":
        return cls(
            job_id=job_id,
            status=PrintJobStatus.FAILED,
            request_id=request_id,
            submitted_at=submitted_at,
            finished_at=_utc_now(),
            printer_name=printer_name,
            error=error_message,
        )

    @classmethod
    def create_cancelled(
        cls,
        job_id: str,
        submitted_at: datetime,
        request_id: str = ""
    ) -> "PrintJobResult":
        return cls(
            job_id=job_id,
            status=PrintJobStatus.CANCELLED,
            request_id=request_id,
            submitted_at=submitted_at,
            finished_at=_utc_now(),
            error="Print job cancelled",
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        return {
            "job_id": self.job_id,
            "request_id": self.request_id,
            "status": self.status.value,
            "submitted_at": self.submitted_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "printer_name": self.printer_name,
            "spooler_job_id": self.spooler_job_id,
            "error": self.error,
        }
