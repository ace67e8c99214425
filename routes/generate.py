"""
Image generation route.

POST /api/generate {"prompt": "..."}

    400 {"error": "Prompt is required"}   empty/missing prompt, nothing generated
    200 image/png                        image bytes; printing starts in background
    500 {"error": "<message>"}            image generation failed

The print job is started only after the image exists and never changes
the response: print failures are logged by the print job thread.
"""

import time

from flask import (
    Blueprint,
    Response,
    current_app,
    g,
    jsonify,
    request,
)

from models.printer import PrintOptions
from logging_config import get_logger


logger = get_logger(__name__)

generate_bp = Blueprint("generate", __name__)

PROMPT_REQUIRED = "Prompt is required"


def _clean_prompt(text, max_length: int = None) -> str:
    """
    Trim the prompt and cap its length.

    The prompt is plain text for the image API and is never rendered, so
    characters such as "&" and "<" are kept as typed. Non-string values are
    treated as empty.
    """
    if not isinstance(text, str):
        return ""

    text = text.strip()

    if max_length and len(text) > max_length:
        text = text[:max_length]

    return text


@generate_bp.route("/api/generate", methods=["POST"])
def generate():
    """Generate an image for a prompt, return it, and print it in the background."""
    request_id = g.get("request_id", "-")
    start = time.monotonic()

    data = request.get_json(silent=True)
    raw_prompt = data.get("prompt") if isinstance(data, dict) else None
    prompt = _clean_prompt(raw_prompt, current_app.config.get("MAX_PROMPT_LENGTH"))

    logger.info(
        f"[{request_id}] Received image generation request from {request.remote_addr}: "
        f"prompt_length={len(prompt)}"
    )

    if not prompt:
        logger.warning(f"[{request_id}] Invalid request - prompt is empty")
        return jsonify({"error": PROMPT_REQUIRED}), 400

    image_client = current_app.config["IMAGE_CLIENT"]
    print_job_service = current_app.config["PRINT_JOB_SERVICE"]

    try:
        image_bytes = image_client.generate_image(prompt)
    except Exception as e:
        duration_ms = (time.monotonic() - start) * 1000
        logger.error(f"[{request_id}] Image generation request failed after {duration_ms:.0f}ms: {e}")
        message = getattr(e, "message", None) or str(e)
        return jsonify({"error": message}), 500

    logger.info(f"[{request_id}] Image generated successfully: {len(image_bytes)} bytes")

    response = Response(image_bytes, status=200, mimetype="image/png")

    try:
        print_job_id = print_job_service.submit(
            image_bytes,
            PrintOptions(fit_to_page=True),
            request_id=request_id,
        )
        response.headers["X-Print-Job-Id"] = print_job_id
    except Exception as e:
        # Printing is best-effort; never let it fail the image response
        logger.warning(f"[{request_id}] Could not start background print: {e}")

    duration_ms = (time.monotonic() - start) * 1000
    logger.info(f"[{request_id}] Image generation request completed in {duration_ms:.0f}ms")
    return response
