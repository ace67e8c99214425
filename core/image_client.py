"""
Client for the Google Imagen image generation API.

One call per prompt: the prompt is wrapped in a colouring-page
instruction, posted to the generateImages endpoint, and the first
returned image is base64-decoded to PNG bytes.

Usage:
    client = ImageGenerationClient(api_key=config["GEMINI_API_KEY"])
    png_bytes = client.generate_image("a dragon eating pizza")

The API key travels in the x-goog-api-key header and is never logged.
"""

from __future__ import annotations

import base64
import binascii
import time
import uuid
from typing import Any, Dict, Optional

import requests

from .exceptions import ImageGenerationError
from logging_config import get_logger


logger = get_logger(__name__)

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com"
DEFAULT_MODEL = "imagen-4.0-generate-001"
DEFAULT_ASPECT_RATIO = "9:16"

PROMPT_TEMPLATE = (
    "A black and white kids coloring page.\n"
    "<image-description>\n"
    "{prompt}\n"
    "</image-description>\n"
    "{prompt}"
)


def build_prompt(prompt: str) -> str:
    """Wrap the user's prompt in the colouring-page instruction."""
    return PROMPT_TEMPLATE.format(prompt=prompt)


class ImageGenerationClient:
    """
    Thin wrapper around the Imagen generateImages REST endpoint.

    A requests.Session is reused across calls; pass one in to share a
    connection pool or to stub the transport in tests.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        model: str = DEFAULT_MODEL,
        timeout_seconds: float = 120.0,
        session: Optional[requests.Session] = None
    ):
        if not api_key:
            raise ValueError("api_key is required")

        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._model = model
        self._timeout = timeout_seconds
        self._session = session or requests.Session()

    @property
    def model(self) -> str:
        return self._model

    @property
    def endpoint(self) -> str:
        return f"{self._base_url}/v1beta/models/{self._model}:generateImages"

    def generate_image(self, prompt: str) -> bytes:
        """
        Generate one image for a prompt.

        Args:
            prompt: User prompt (already trimmed and length-capped)

        Returns:
            Decoded image bytes (PNG)

        Raises:
            ImageGenerationError: Transport error, non-2xx response, or no image data
        """
        request_id = uuid.uuid4().hex[:8]
        start = time.monotonic()

        logger.info(
            f"[{request_id}] Starting image generation: model={self._model}, "
            f"prompt_length={len(prompt)}"
        )

        payload = self._build_payload(prompt)

        try:
            response = self._session.post(
                self.endpoint,
                headers={"x-goog-api-key": self._api_key},
                json=payload,
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            duration_ms = (time.monotonic() - start) * 1000
            # The exception text embeds the request URL, so only its type is reported
            reason = type(e).__name__
            logger.error(f"[{request_id}] HTTP error during image generation after {duration_ms:.0f}ms: {reason}")
            raise ImageGenerationError(f"Image generation request failed: {reason}") from e

        api_duration_ms = (time.monotonic() - start) * 1000
        logger.info(
            f"[{request_id}] Image API responded {response.status_code} in {api_duration_ms:.0f}ms"
        )

        if not response.ok:
            logger.error(f"[{request_id}] Image API returned error {response.status_code}: {response.text[:500]}")
            raise ImageGenerationError(
                f"Image generation failed with status {response.status_code}",
                status_code=response.status_code,
                response_body=response.text,
            )

        image_bytes = self._extract_image(response, request_id)

        total_ms = (time.monotonic() - start) * 1000
        logger.info(
            f"[{request_id}] Image generation completed: {len(image_bytes)} bytes in {total_ms:.0f}ms"
        )
        return image_bytes

    def _build_payload(self, prompt: str) -> Dict[str, Any]:
        return {
            "prompt": build_prompt(prompt),
            "config": {
                "numberOfImages": 1,
                "aspectRatio": DEFAULT_ASPECT_RATIO,
            },
        }

    def _extract_image(self, response: requests.Response, request_id: str) -> bytes:
        """Decode the first generated image from the response body."""
        try:
            body = response.json()
        except ValueError as e:
            logger.error(f"[{request_id}] Image API returned invalid JSON")
            raise ImageGenerationError("Image API returned invalid JSON") from e

        images = body.get("generatedImages") if isinstance(body, dict) else None
        if not images:
            logger.error(f"[{request_id}] No images generated in response")
            raise ImageGenerationError("No images were generated")

        encoded = images[0].get("imageBytes") if isinstance(images[0], dict) else None
        if not encoded:
            logger.error(f"[{request_id}] Image bytes are empty in response")
            raise ImageGenerationError("Image bytes are empty")

        try:
            return base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError) as e:
            logger.error(f"[{request_id}] Image bytes are not valid base64")
            raise ImageGenerationError("Image bytes are not valid base64") from e
