"""
Services layer for Sticker Dream.

- PrintService: print submission (discover, select, stage, lp)
- PrinterWatchdog: background thread that re-enables disabled printers
- PrintJobService: fire-and-forget print threads and result store

Thread Model:
    Main Thread (Flask)
    ├── PrinterWatchdog thread (1-second poll loop)
    └── PrintJobService threads (one per print)
"""

from .print_service import PrintService
from .printer_watchdog import PrinterWatchdog
from .print_job_service import PrintJobService, PrintJobResultStore

__all__ = [
    "PrintService",
    "PrinterWatchdog",
    "PrintJobService",
    "PrintJobResultStore",
]
