"""
Request logging hooks.

Every request gets a short request id (also echoed in the X-Request-Id
response header and available to views as g.request_id) and two log
lines: one when it starts, one with status and duration when it ends.
Slow requests log a warning; 5xx responses log an error.
"""

from __future__ import annotations

import time
import uuid

from flask import Flask, g, request

from logging_config import get_logger


logger = get_logger(__name__)

SLOW_REQUEST_MS = 5000


def register_request_logging(app: Flask) -> None:
    """Attach before/after request hooks to the app."""

    @app.before_request
    def _start_request_log():
        g.request_id = uuid.uuid4().hex[:8]
        g.request_start = time.monotonic()
        logger.info(
            f"[{g.request_id}] HTTP request started: {request.method} {request.path} "
            f"from {request.remote_addr or 'unknown'}, agent={request.user_agent.string!r}"
        )

    @app.after_request
    def _finish_request_log(response):
        request_id = g.get("request_id", "-")
        start = g.get("request_start")
        duration_ms = (time.monotonic() - start) * 1000 if start is not None else 0.0

        response.headers["X-Request-Id"] = request_id
        logger.info(
            f"[{request_id}] HTTP request completed: {request.method} {request.path} "
            f"-> {response.status_code} ({duration_ms:.0f}ms)"
        )

        if duration_ms > SLOW_REQUEST_MS:
            logger.warning(
                f"[{request_id}] Slow HTTP request detected: {request.method} {request.path} "
                f"({duration_ms:.0f}ms)"
            )

        if response.status_code >= 500:
            logger.error(
                f"[{request_id}] HTTP request returned server error: {request.method} "
                f"{request.path} -> {response.status_code}"
            )

        return response
