"""
Route tests using the Flask test client.

The image client and print job service are mocked; nothing reaches the
network or the spooler.
"""

import pytest
import requests
from unittest.mock import MagicMock

from app import create_app
from config import TestingConfig
from core.exceptions import ConfigurationError, ImageGenerationError
from core.image_client import ImageGenerationClient
from models.print_job import PrintJobResult, PrintJobStatus
from models.printer import PrinterInfo, PrintOptions, PrintResult


PNG_BYTES = b"\x89PNG\r\n\x1a\nfake-image"


# Fixtures

@pytest.fixture
def image_client():
    client = MagicMock()
    client.generate_image.return_value = PNG_BYTES
    return client


@pytest.fixture
def print_job_service():
    service = MagicMock()
    service.submit.return_value = "job-123"
    service.get_result.return_value = None
    service.is_job_pending.return_value = False
    return service


@pytest.fixture
def app(image_client, print_job_service):
    app = create_app("config.TestingConfig", image_client=image_client)
    app.config["PRINT_JOB_SERVICE"] = print_job_service
    return app


@pytest.fixture
def client(app):
    return app.test_client()


class TestGenerateValidation:
    """Empty prompts are rejected before anything is generated or printed."""

    @pytest.mark.parametrize("body", [
        {"prompt": ""},
        {"prompt": "   "},
        {"prompt": None},
        {"prompt": 42},
        {},
    ])
    def test_empty_prompt_rejected(self, client, image_client, print_job_service, body):
        response = client.post("/api/generate", json=body)

        assert response.status_code == 400
        assert response.get_json() == {"error": "Prompt is required"}
        image_client.generate_image.assert_not_called()
        print_job_service.submit.assert_not_called()

    def test_non_json_body_rejected(self, client, image_client):
        response = client.post("/api/generate", data="prompt=cat", content_type="text/plain")

        assert response.status_code == 400
        image_client.generate_image.assert_not_called()


class TestGenerate:
    """Test the generate-then-print flow."""

    def test_returns_image_and_starts_print(self, client, image_client, print_job_service):
        response = client.post("/api/generate", json={"prompt": "a dragon eating pizza"})

        assert response.status_code == 200
        assert response.mimetype == "image/png"
        assert response.data == PNG_BYTES
        assert response.headers["X-Print-Job-Id"] == "job-123"

        image_client.generate_image.assert_called_once_with("a dragon eating pizza")
        print_job_service.submit.assert_called_once()
        call = print_job_service.submit.call_args
        assert call.args[0] == PNG_BYTES
        assert call.args[1] == PrintOptions(fit_to_page=True)

    @pytest.mark.parametrize("prompt", [
        "cats & dogs < 3 cows",
        "<dragon>",
        "a \"quoted\" robot > a toaster",
    ])
    def test_prompt_sent_as_typed(self, client, image_client, prompt):
        response = client.post("/api/generate", json={"prompt": prompt})

        assert response.status_code == 200
        image_client.generate_image.assert_called_once_with(prompt)

    def test_prompt_is_trimmed(self, client, image_client):
        client.post("/api/generate", json={"prompt": "  a cat\n  "})

        image_client.generate_image.assert_called_once_with("a cat")

    def test_prompt_truncated(self, app, client, image_client):
        limit = app.config["MAX_PROMPT_LENGTH"]

        client.post("/api/generate", json={"prompt": "x" * (limit + 50)})

        assert len(image_client.generate_image.call_args.args[0]) == limit

    def test_generation_failure(self, client, image_client, print_job_service):
        image_client.generate_image.side_effect = ImageGenerationError("No images were generated")

        response = client.post("/api/generate", json={"prompt": "a dragon"})

        assert response.status_code == 500
        assert response.get_json() == {"error": "No images were generated"}
        print_job_service.submit.assert_not_called()

    def test_generation_error_body_has_no_api_key(self, print_job_service):
        session = MagicMock()
        session.post.side_effect = requests.ConnectionError(
            "Max retries exceeded with url: /v1beta/models/imagen:generateImages?key=test-api-key"
        )
        app = create_app(
            "config.TestingConfig",
            image_client=ImageGenerationClient(api_key="test-api-key", session=session),
        )
        app.config["PRINT_JOB_SERVICE"] = print_job_service

        response = app.test_client().post("/api/generate", json={"prompt": "a dragon"})

        assert response.status_code == 500
        assert "test-api-key" not in response.get_data(as_text=True)
        print_job_service.submit.assert_not_called()

    def test_print_submit_failure_does_not_affect_response(self, client, print_job_service):
        print_job_service.submit.side_effect = RuntimeError("thread limit")

        response = client.post("/api/generate", json={"prompt": "a dragon"})

        assert response.status_code == 200
        assert response.data == PNG_BYTES
        assert "X-Print-Job-Id" not in response.headers

    def test_request_id_header(self, client):
        response = client.post("/api/generate", json={"prompt": "a dragon"})

        assert len(response.headers["X-Request-Id"]) == 8


class TestApiRoutes:
    """Test health, printer listing and print job status."""

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.get_json() == {"status": "ok", "watchdog_running": False}

    def test_list_printers(self, app, client):
        discovery = MagicMock()
        discovery.discover_printers.return_value = [
            PrinterInfo(
                name="Phomemo_PM2",
                transport_uri="usb://Phomemo/PM2",
                status="is idle.  enabled since Mon",
                is_default=True,
                is_usb=True,
            ),
        ]
        app.config["PRINTER_DISCOVERY"] = discovery

        response = client.get("/api/printers")

        assert response.status_code == 200
        printers = response.get_json()["printers"]
        assert len(printers) == 1
        assert printers[0]["name"] == "Phomemo_PM2"
        assert printers[0]["isDefault"] is True
        assert printers[0]["isUSB"] is True
        assert printers[0]["connectionType"] == "USB"

    def test_print_job_completed(self, client, print_job_service):
        from datetime import datetime, timezone

        print_job_service.get_result.return_value = PrintJobResult.create_completed(
            "job-123", PrintResult("Phomemo_PM2", "42"), submitted_at=datetime.now(timezone.utc)
        )

        response = client.get("/api/print-jobs/job-123")

        assert response.status_code == 200
        data = response.get_json()
        assert data["status"] == PrintJobStatus.COMPLETED.value
        assert data["printer_name"] == "Phomemo_PM2"

    def test_print_job_pending(self, client, print_job_service):
        print_job_service.is_job_pending.return_value = True

        response = client.get("/api/print-jobs/job-123")

        assert response.status_code == 200
        assert response.get_json() == {"job_id": "job-123", "status": PrintJobStatus.PRINTING.value}

    def test_print_job_not_found(self, client):
        response = client.get("/api/print-jobs/nope")

        assert response.status_code == 404
        assert response.get_json() == {"error": "Print job not found"}

    def test_unknown_route_returns_json(self, client):
        response = client.get("/does-not-exist")

        assert response.status_code == 404
        assert "error" in response.get_json()


class TestCreateApp:
    """Test app factory configuration checks."""

    def test_missing_api_key_fails_fast(self):
        class NoKeyConfig(TestingConfig):
            GEMINI_API_KEY = ""

        with pytest.raises(ConfigurationError):
            create_app(NoKeyConfig)

    def test_watchdog_not_started_in_testing(self, app):
        assert app.config["PRINTER_WATCHDOG"].is_running is False

    def test_exit_hook_registered_only_outside_testing(self, image_client, monkeypatch):
        registered = []
        monkeypatch.setattr("app.atexit.register", registered.append)

        class LiveConfig(TestingConfig):
            TESTING = False

        testing_app = create_app("config.TestingConfig", image_client=image_client)
        assert registered == []

        live_app = create_app(LiveConfig, image_client=image_client)
        assert registered == [live_app.extensions["sticker_dream_cleanup"]]
        assert "sticker_dream_cleanup" in testing_app.extensions
