"""
Printer data models.

These models are value objects passed between discovery, submission and
the watchdog. They are rebuilt from live spooler output on every call and
never cached, so the spooler stays the only source of truth.

Thread Safety:
    - All models are frozen dataclasses (immutable)
    - Safe to hand to any thread without locks
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional


# Transports, in matching priority order. Bluetooth printers are treated
# like USB printers: both are local and eligible for direct printing.
CONNECTION_TYPES = (
    ("usb", "USB"),
    ("bluetooth", "Bluetooth"),
    ("ipp", "IPP"),
    ("socket", "Network"),
)
ELIGIBLE_TRANSPORTS = ("usb", "bluetooth")


def classify_connection(uri: str) -> str:
    """
    Classify a device URI by case-insensitive substring match.

    Args:
        uri: Device URI from lpstat -v (may be empty)

    Returns:
        "USB", "Bluetooth", "IPP", "Network" or "unknown"
    """
    lowered = uri.lower()
    for token, label in CONNECTION_TYPES:
        if token in lowered:
            return label
    return "unknown"


def is_usb_uri(uri: str) -> bool:
    """True if the URI names a USB or Bluetooth transport."""
    lowered = uri.lower()
    return any(token in lowered for token in ELIGIBLE_TRANSPORTS)


@dataclass(frozen=True)
class PrinterInfo:
    """
    One printer as reported by the spooler.

    status is free text from lpstat; only the substrings "disabled" and
    "paused" are interpreted.
    """

    name: str
    """Spooler destination name."""

    transport_uri: str = ""
    """Device URI (usb://, bluetooth://, ipp://, socket://...); empty if unknown."""

    status: str = ""
    """Status text following the printer name on the lpstat -p line."""

    is_default: bool = False
    """True if this is the system default destination."""

    is_usb: bool = False
    """True if the URI is a USB or Bluetooth transport."""

    @classmethod
    def from_lpstat(cls, name: str, status: str, uri: str, default_name: str) -> "PrinterInfo":
        """Build a record, deriving is_default and is_usb."""
        return cls(
            name=name,
            transport_uri=uri,
            status=status,
            is_default=bool(default_name) and name == default_name,
            is_usb=is_usb_uri(uri),
        )

    @property
    def connection_type(self) -> str:
        return classify_connection(self.transport_uri)

    @property
    def is_disabled(self) -> bool:
        return "disabled" in self.status.lower()

    @property
    def is_paused(self) -> bool:
        return "paused" in self.status.lower()

    @property
    def needs_repair(self) -> bool:
        """True if the queue is disabled or paused (either or both)."""
        return self.is_disabled or self.is_paused

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        return {
            "name": self.name,
            "uri": self.transport_uri,
            "status": self.status,
            "isDefault": self.is_default,
            "isUSB": self.is_usb,
            "connectionType": self.connection_type,
        }


@dataclass(frozen=True)
class PrintOptions:
    """Per-submission lp options."""

    fit_to_page: bool = True
    copies: int = 1
    media: Optional[str] = None
    """Media size/stock name passed as -o media=...; None uses the spooler default."""

    def __post_init__(self):
        if isinstance(self.copies, bool) or not isinstance(self.copies, int) or self.copies < 1:
            raise ValueError(f"copies must be a positive integer, got {self.copies!r}")


@dataclass(frozen=True)
class PrintResult:
    """Outcome of a job accepted by the spooler."""

    printer_name: str
    job_id: str
    """Spooler job number, or the raw trimmed lp output if no number was found."""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "printerName": self.printer_name,
            "jobId": self.job_id,
        }
