"""
Sticker Dream - Flask Application Entry Point.

This is a slim app factory that:
1. Validates configuration (fail-fast on missing GEMINI_API_KEY)
2. Builds the printer stack (command runner, discovery, repair, print service)
3. Starts the printer watchdog (separate thread)
4. Creates the print job service (thread-per-print)
5. Registers route blueprints, request logging and error handlers

ARCHITECTURE:
    Main Thread
    ├── Flask request handling
    │   └── POST /api/generate -> Imagen API -> image returned to caller
    └── Cleanup on shutdown

    PrinterWatchdog Thread (background)
    └── 1-second poll loop: lpstat -> cupsenable/cupsaccept

    Print Threads (one per generated image)
    └── lpstat -> lp, staged temp file always removed

NO SHARED STATE between the watchdog and print threads beyond the CUPS
spooler itself; both re-read live printer state on every decision.
"""

from __future__ import annotations

import atexit
import logging
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from logging_config import setup_logging, get_logger
from core.commands import CommandRunner
from core.exceptions import ConfigurationError
from core.image_client import ImageGenerationClient
from core.printer_discovery import PrinterDiscovery
from core.printer_repair import PrinterRepair
from core.request_logging import register_request_logging
from services.print_service import PrintService
from services.print_job_service import PrintJobService
from services.printer_watchdog import PrinterWatchdog
from routes import register_blueprints


logger = get_logger(__name__)


def create_app(config_object: str = "config.Config", image_client: Optional[ImageGenerationClient] = None) -> Flask:
    """
    Application factory - creates and configures Flask app.

    Args:
        config_object: Import path of the config class to load
        image_client: Optional pre-built image client (tests inject a stub)

    Returns:
        Configured Flask application

    Raises:
        ConfigurationError: If GEMINI_API_KEY is not configured
    """
    # .env next to app.py takes precedence over the shell environment
    env_file = Path(__file__).parent / ".env"
    load_dotenv(env_file if env_file.exists() else None, override=True)

    app = Flask(__name__)
    app.config.from_object(config_object)

    # Configure logging
    log_level = logging.DEBUG if app.config.get("DEBUG") else logging.INFO
    enable_file_logging = app.config.get("ENVIRONMENT") == "production"

    root_logger = setup_logging(
        log_level=log_level,
        enable_file_logging=enable_file_logging
    )

    app.logger.handlers = root_logger.handlers
    app.logger.setLevel(log_level)

    logger.info(f"Starting Sticker Dream in {app.config.get('ENVIRONMENT')} mode")

    # =========================================================================
    # CONFIGURATION CHECK (FAIL-FAST)
    # =========================================================================

    if image_client is None:
        api_key = app.config.get("GEMINI_API_KEY")
        if not api_key:
            error = ConfigurationError("GEMINI_API_KEY")
            logger.error(f"FATAL: Cannot start application - {error}")
            raise error

        image_client = ImageGenerationClient(
            api_key=api_key,
            base_url=app.config["GEMINI_BASE_URL"],
            model=app.config["GEMINI_IMAGE_MODEL"],
            timeout_seconds=app.config["IMAGE_REQUEST_TIMEOUT_SECONDS"],
        )

    app.config["IMAGE_CLIENT"] = image_client

    # =========================================================================
    # PRINTER STACK
    # =========================================================================

    runner = CommandRunner(default_timeout=app.config["PRINT_COMMAND_TIMEOUT_SECONDS"])
    discovery = PrinterDiscovery(runner)
    repair = PrinterRepair(runner)
    print_service = PrintService(discovery, runner, staging_dir=app.config.get("PRINT_STAGING_DIR"))

    app.config["PRINTER_DISCOVERY"] = discovery
    app.config["PRINT_SERVICE"] = print_service

    # Print job service (one thread per print)
    print_job_service = PrintJobService(print_service)
    app.config["PRINT_JOB_SERVICE"] = print_job_service

    # Watchdog (background thread)
    watchdog = PrinterWatchdog(discovery, repair)
    app.config["PRINTER_WATCHDOG"] = watchdog
    if app.config.get("PRINTER_WATCHDOG_ENABLED", True):
        watchdog.start()
        logger.info("Printer watchdog started")
    else:
        logger.info("Printer watchdog disabled by configuration")

    # =========================================================================
    # CLEANUP REGISTRATION
    # =========================================================================

    def cleanup():
        """Cleanup on application shutdown."""
        logger.info("Shutting down...")

        watchdog.stop()
        print_job_service.shutdown()

        logger.info("Shutdown complete")

    # Test apps are built many times per process; they call the cleanup
    # from app.extensions themselves
    if not app.config.get("TESTING"):
        atexit.register(cleanup)
    app.extensions["sticker_dream_cleanup"] = cleanup

    # =========================================================================
    # ROUTES AND HOOKS
    # =========================================================================

    register_request_logging(app)
    register_blueprints(app)

    # =========================================================================
    # ERROR HANDLERS
    # =========================================================================

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        return jsonify({"error": e.description or e.name}), e.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(e):
        logger.error(f"500 error: {e}", exc_info=True)
        return jsonify({"error": "An unexpected error occurred"}), 500

    logger.info("Application initialized successfully")
    return app


if __name__ == "__main__":
    app = create_app()
    debug_mode = os.environ.get("FLASK_DEBUG", "1") == "1"
    # The reloader would start a second watchdog in the child process
    app.run(debug=debug_mode, use_reloader=False)
