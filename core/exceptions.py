"""
Custom exceptions for Sticker Dream.

Exception Hierarchy:
    StickerDreamError (base)
    ├── ConfigurationError       - Required setting missing (startup failure)
    ├── ImageGenerationError     - Image API call failed (HTTP 500 to caller)
    ├── CommandError             - OS print tool could not be run to completion
    │   ├── CommandNotFoundError
    │   ├── CommandTimeoutError
    │   └── CommandCancelledError
    └── PrintSubmissionError     - Print job failed (background, logged only)
        ├── NoEligiblePrinterError - No USB/Bluetooth printer discovered
        ├── SpoolerRejectedError   - lp exited non-zero
        └── PrintCancelledError    - Print job cancelled before completion

Usage:
    Startup errors (ConfigurationError) cause the app to fail fast.
    Print errors never reach the HTTP caller; the print job thread logs them.
"""

from typing import Optional, Dict, Any, Sequence


class StickerDreamError(Exception):
    """
    Base exception for all Sticker Dream errors.

    Callers can catch every application-specific error with a single
    except clause.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """
        Initialize the exception.

        Args:
            message: Human-readable error message
            details: Optional dictionary with additional context for debugging
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


# =============================================================================
# STARTUP ERRORS
# =============================================================================

class ConfigurationError(StickerDreamError):
    """
    A required configuration value is missing or invalid.

    This is a FATAL error raised from create_app(); the server does not start.
    """

    def __init__(self, setting: str, message: Optional[str] = None):
        message = message or f"{setting} configuration is required"
        details = {
            "setting": setting,
            "resolution": f"Set {setting} in the environment or in .env",
        }
        super().__init__(message, details)
        self.setting = setting


# =============================================================================
# IMAGE GENERATION
# =============================================================================

class ImageGenerationError(StickerDreamError):
    """
    The image generation API call failed.

    Raised for transport errors, non-2xx responses and responses without
    image data. The request handler turns this into a 500 response.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None
    ):
        details = {}
        if status_code is not None:
            details["status_code"] = status_code
        if response_body:
            details["response_body"] = response_body[:500]
        super().__init__(message, details)
        self.status_code = status_code
        self.response_body = response_body


# =============================================================================
# OS COMMAND EXECUTION
# =============================================================================

class CommandError(StickerDreamError):
    """Base class for failures to run an OS print tool to completion."""

    def __init__(
        self,
        message: str,
        args: Optional[Sequence[str]] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        error_details = details or {}
        if args:
            error_details["command"] = list(args)
        super().__init__(message, error_details)
        self.command = list(args) if args else []


class CommandNotFoundError(CommandError):
    """The executable is not installed or not on PATH (e.g. CUPS missing)."""

    def __init__(self, args: Sequence[str]):
        super().__init__(f"Command not found: {args[0]}", args)


class CommandTimeoutError(CommandError):
    """The command did not exit within its timeout and was killed."""

    def __init__(self, args: Sequence[str], timeout_seconds: float):
        super().__init__(
            f"Command {args[0]} timed out after {timeout_seconds:.1f}s",
            args,
            {"timeout_seconds": timeout_seconds},
        )
        self.timeout_seconds = timeout_seconds


class CommandCancelledError(CommandError):
    """The caller's cancel event was set while the command was running."""

    def __init__(self, args: Sequence[str]):
        super().__init__(f"Command {args[0]} cancelled", args)


# =============================================================================
# PRINT SUBMISSION
# =============================================================================

class PrintSubmissionError(StickerDreamError):
    """
    Base class for print submission failures.

    These propagate up to the print job thread, which logs them. They are
    never retried and never surfaced to the HTTP caller.
    """

    def __init__(
        self,
        message: str,
        printer_name: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        error_details = details or {}
        if printer_name:
            error_details["printer_name"] = printer_name
        super().__init__(message, error_details)
        self.printer_name = printer_name


class NoEligiblePrinterError(PrintSubmissionError):
    """
    No USB or Bluetooth printer was discovered.

    Raised both when no printer is attached and when the discovery tools
    failed; the two cases are indistinguishable to the caller.
    """

    def __init__(self, available: Optional[Sequence[str]] = None):
        details = {
            "available_printers": list(available or []),
            "resolution": "Attach a USB or Bluetooth printer and add it to CUPS",
        }
        super().__init__("No eligible printer found", details=details)


class SpoolerRejectedError(PrintSubmissionError):
    """The print spooler rejected the job (lp exited non-zero)."""

    def __init__(self, printer_name: str, returncode: int, stderr: str):
        message = f"Print failed: {stderr.strip() or f'lp exited with code {returncode}'}"
        super().__init__(message, printer_name, {"returncode": returncode})
        self.returncode = returncode
        self.stderr = stderr


class PrintCancelledError(PrintSubmissionError):
    """The print job was cancelled before lp finished."""

    def __init__(self, printer_name: Optional[str] = None):
        super().__init__("Print job cancelled", printer_name)


class SpoolerUnavailableError(PrintSubmissionError):
    """lp could not be run to completion (missing or timed out)."""

    def __init__(self, printer_name: str, reason: str):
        super().__init__(f"Print failed: {reason}", printer_name)
