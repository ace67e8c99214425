"""
Unit tests for the Imagen API client.

The requests.Session is mocked; no network access.
"""

import base64
import logging

import pytest
import requests
from unittest.mock import MagicMock

from core.exceptions import ImageGenerationError
from core.image_client import ImageGenerationClient, build_prompt


PNG_BYTES = b"\x89PNG\r\n\x1a\nfake-image"


def _response(status_code=200, json_body=None, text=""):
    response = MagicMock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    response.text = text
    if isinstance(json_body, Exception):
        response.json.side_effect = json_body
    else:
        response.json.return_value = json_body
    return response


@pytest.fixture
def session():
    mock_session = MagicMock()
    mock_session.post.return_value = _response(json_body={
        "generatedImages": [{"imageBytes": base64.b64encode(PNG_BYTES).decode("ascii")}]
    })
    return mock_session


@pytest.fixture
def client(session):
    return ImageGenerationClient(api_key="secret-key", session=session, timeout_seconds=5.0)


class TestImageGenerationClient:
    """Test request construction and response handling."""

    def test_returns_decoded_image(self, client):
        assert client.generate_image("a dragon eating pizza") == PNG_BYTES

    def test_request_shape(self, client, session):
        client.generate_image("a dragon")

        call = session.post.call_args
        assert call.args[0] == (
            "https://generativelanguage.googleapis.com/v1beta/models/"
            "imagen-4.0-generate-001:generateImages"
        )
        assert call.kwargs["headers"] == {"x-goog-api-key": "secret-key"}
        assert "params" not in call.kwargs
        assert call.kwargs["timeout"] == 5.0
        payload = call.kwargs["json"]
        assert payload["config"] == {"numberOfImages": 1, "aspectRatio": "9:16"}
        assert payload["prompt"] == build_prompt("a dragon")

    def test_prompt_wrapping(self):
        prompt = build_prompt("a cat")

        assert prompt.startswith("A black and white kids coloring page.\n")
        assert "<image-description>\na cat\n</image-description>" in prompt
        assert prompt.endswith("\na cat")

    def test_http_error_status(self, client, session):
        session.post.return_value = _response(status_code=403, text='{"error": "forbidden"}')

        with pytest.raises(ImageGenerationError) as exc_info:
            client.generate_image("a dragon")

        assert exc_info.value.status_code == 403

    def test_network_error_does_not_leak_api_key(self, client, session, caplog):
        """Connection errors quote the request URL; none of it may reach logs or callers."""
        session.post.side_effect = requests.ConnectionError(
            "HTTPSConnectionPool(host='generativelanguage.googleapis.com', port=443): "
            "Max retries exceeded with url: /v1beta/models/imagen-4.0-generate-001:generateImages"
            "?key=secret-key"
        )

        app_logger = logging.getLogger("sticker_dream")
        original_propagate = app_logger.propagate
        app_logger.propagate = False
        app_logger.addHandler(caplog.handler)
        try:
            with caplog.at_level(logging.DEBUG, logger="sticker_dream"):
                with pytest.raises(ImageGenerationError) as exc_info:
                    client.generate_image("a dragon")
        finally:
            app_logger.removeHandler(caplog.handler)
            app_logger.propagate = original_propagate

        assert exc_info.value.message == "Image generation request failed: ConnectionError"
        assert "secret-key" not in str(exc_info.value)
        assert caplog.records
        assert all("secret-key" not in r.getMessage() for r in caplog.records)

    @pytest.mark.parametrize("body, message", [
        ({"generatedImages": []}, "No images were generated"),
        ({}, "No images were generated"),
        ({"generatedImages": [{"imageBytes": ""}]}, "Image bytes are empty"),
        ({"generatedImages": [{"imageBytes": "not base64!!"}]}, "Image bytes are not valid base64"),
    ])
    def test_bad_response_bodies(self, client, session, body, message):
        session.post.return_value = _response(json_body=body)

        with pytest.raises(ImageGenerationError) as exc_info:
            client.generate_image("a dragon")

        assert exc_info.value.message == message

    def test_invalid_json(self, client, session):
        session.post.return_value = _response(json_body=ValueError("bad json"))

        with pytest.raises(ImageGenerationError):
            client.generate_image("a dragon")

    def test_api_key_required(self):
        with pytest.raises(ValueError):
            ImageGenerationClient(api_key="")

    def test_custom_model_and_base_url(self, session):
        client = ImageGenerationClient(
            api_key="k", base_url="https://example.test/", model="imagen-x", session=session
        )

        client.generate_image("a dragon")

        assert session.post.call_args.args[0] == "https://example.test/v1beta/models/imagen-x:generateImages"
