"""
Core module for Sticker Dream.

Contains fundamental infrastructure components:
- exceptions: Custom exception hierarchy
- commands: Cancellable subprocess execution for CUPS tools
- printer_discovery: lpstat parsing into PrinterInfo records
- printer_repair: cupsenable/cupsaccept
- image_client: Imagen API client
"""

from .exceptions import (
    StickerDreamError,
    ConfigurationError,
    ImageGenerationError,
    CommandError,
    CommandNotFoundError,
    CommandTimeoutError,
    CommandCancelledError,
    PrintSubmissionError,
    NoEligiblePrinterError,
    SpoolerRejectedError,
    PrintCancelledError,
    SpoolerUnavailableError,
)
from .commands import CommandRunner, CommandResult
from .printer_discovery import PrinterDiscovery, parse_printers
from .printer_repair import PrinterRepair
from .image_client import ImageGenerationClient

__all__ = [
    "StickerDreamError",
    "ConfigurationError",
    "ImageGenerationError",
    "CommandError",
    "CommandNotFoundError",
    "CommandTimeoutError",
    "CommandCancelledError",
    "PrintSubmissionError",
    "NoEligiblePrinterError",
    "SpoolerRejectedError",
    "PrintCancelledError",
    "SpoolerUnavailableError",
    "CommandRunner",
    "CommandResult",
    "PrinterDiscovery",
    "parse_printers",
    "PrinterRepair",
    "ImageGenerationClient",
]
