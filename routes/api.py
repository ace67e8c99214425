"""
API routes.

Handles:
- /health - Health check endpoint
- /api/printers - Live printer discovery
- /api/print-jobs/<job_id> - Background print job status
"""

from flask import (
    Blueprint,
    current_app,
    jsonify,
)

from models.print_job import PrintJobStatus
from logging_config import get_logger


logger = get_logger(__name__)

api_bp = Blueprint("api", __name__)


@api_bp.route("/health", methods=["GET"])
def health():
    """Health check endpoint."""
    watchdog = current_app.config.get("PRINTER_WATCHDOG")
    return jsonify({
        "status": "ok",
        "watchdog_running": bool(watchdog and watchdog.is_running),
    })


@api_bp.route("/api/printers", methods=["GET"])
def list_printers():
    """
    List printers as the spooler reports them right now.

    Runs discovery on every call; an empty list also covers the case
    where the CUPS tools are unavailable.
    """
    discovery = current_app.config["PRINTER_DISCOVERY"]
    printers = discovery.discover_printers()
    return jsonify({"printers": [p.to_dict() for p in printers]})


@api_bp.route("/api/print-jobs/<job_id>", methods=["GET"])
def print_job_status(job_id: str):
    """
    Poll the status of a background print job.

    Returns the final result once the print thread has finished.
    """
    print_job_service = current_app.config["PRINT_JOB_SERVICE"]

    result = print_job_service.get_result(job_id)
    if result is not None:
        return jsonify(result.to_dict())

    if print_job_service.is_job_pending(job_id):
        return jsonify({"job_id": job_id, "status": PrintJobStatus.PRINTING.value})

    return jsonify({"error": "Print job not found"}), 404
