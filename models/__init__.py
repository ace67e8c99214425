"""
Data models for Sticker Dream.

- PrinterInfo / PrintOptions / PrintResult: frozen value objects built
  from live spooler output
- PrintJobResult / PrintJobStatus: outcome of a background print job
"""

from .printer import PrinterInfo, PrintOptions, PrintResult, classify_connection, is_usb_uri
from .print_job import PrintJobResult, PrintJobStatus

__all__ = [
    # Printer models
    "PrinterInfo",
    "PrintOptions",
    "PrintResult",
    "classify_connection",
    "is_usb_uri",
    # Print job models
    "PrintJobResult",
    "PrintJobStatus",
]
