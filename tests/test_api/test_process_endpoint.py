"""
Tests for POST /process: authentication, validation and job submission.

The Telegram bot is mocked at the lifespan boundary; the job runner on
app.state is replaced with a mock so no job actually runs.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient

AUTH = {"Authorization": "Bearer test-api-key"}
VALID_BODY = {
    "url": "https://www.youtube.com/watch?v=dQw4w9WgXcQ",
    "userId": 42,
    "chatId": 4242,
}


def _mock_telegram_bot():
    bot = MagicMock()
    bot.initialize = AsyncMock()
    bot.shutdown = AsyncMock()
    bot.initialized = True
    bot.bot = MagicMock()
    return bot


def _close_coroutine(coro, name=None):
    coro.close()
    return None


@pytest.fixture
def app_client():
    with (
        patch("src.main.TelegramBot", return_value=_mock_telegram_bot()),
        patch("src.main.create_tracked_task", side_effect=_close_coroutine),
    ):
        from src.main import app

        with TestClient(app, raise_server_exceptions=False) as c:
            runner = MagicMock()
            runner.active_jobs = 0
            app.state.job_runner = runner
            yield c, runner


@pytest.fixture
def client(app_client):
    return app_client[0]


@pytest.fixture
def runner(app_client):
    return app_client[1]


class TestProcessAuth:
    def test_missing_header_401(self, client, runner):
        response = client.post("/process", json=VALID_BODY)

        assert response.status_code == 401
        assert response.json()["error"] == "Unauthorized: Missing or invalid API key"
        runner.submit.assert_not_called()

    def test_non_bearer_header_401(self, client, runner):
        response = client.post(
            "/process", json=VALID_BODY, headers={"Authorization": "Basic dXNlcjpwYXNz"}
        )

        assert response.status_code == 401
        assert response.json()["error"] == "Unauthorized: Missing or invalid API key"

    def test_wrong_key_401(self, client, runner):
        response = client.post(
            "/process", json=VALID_BODY, headers={"Authorization": "Bearer nope"}
        )

        assert response.status_code == 401
        assert response.json()["error"] == "Unauthorized: Invalid API key"
        runner.submit.assert_not_called()

    def test_auth_checked_before_runner_availability(self, client):
        from src.main import app

        app.state.job_runner = None
        response = client.post("/process", json=VALID_BODY)

        assert response.status_code == 401


class TestProcessValidation:
    def test_missing_url_400(self, client, runner):
        body = {k: v for k, v in VALID_BODY.items() if k != "url"}

        response = client.post("/process", json=body, headers=AUTH)

        assert response.status_code == 400
        assert response.json()["error"] == "Missing required fields"
        runner.submit.assert_not_called()

    def test_blank_url_400(self, client, runner):
        response = client.post("/process", json={**VALID_BODY, "url": "   "}, headers=AUTH)
        assert response.status_code == 400

    def test_missing_chat_id_400(self, client, runner):
        body = {k: v for k, v in VALID_BODY.items() if k != "chatId"}

        response = client.post("/process", json=body, headers=AUTH)

        assert response.status_code == 400

    def test_invalid_json_400(self, client, runner):
        response = client.post(
            "/process",
            content=b"{not json",
            headers={**AUTH, "Content-Type": "application/json"},
        )

        assert response.status_code == 400
        runner.submit.assert_not_called()

    def test_non_object_body_400(self, client, runner):
        response = client.post("/process", json=["https://x.com/a.mp4"], headers=AUTH)
        assert response.status_code == 400

    def test_wrong_type_400(self, client, runner):
        response = client.post(
            "/process", json={**VALID_BODY, "chatId": "not-a-number"}, headers=AUTH
        )

        assert response.status_code == 400
        assert "chatId" in response.json()["error"]


class TestProcessAccepted:
    def test_returns_202_and_submits(self, client, runner):
        response = client.post("/process", json=VALID_BODY, headers=AUTH)

        assert response.status_code == 202
        assert response.json() == {
            "status": "processing",
            "message": "File processing started",
        }
        runner.submit.assert_called_once()

    def test_job_context_fields(self, client, runner):
        client.post(
            "/process",
            json={**VALID_BODY, "customName": "  song.mp3  "},
            headers=AUTH,
        )

        context = runner.submit.call_args.args[0]
        assert context.source_url == VALID_BODY["url"]
        assert context.user_id == 42
        assert context.chat_id == 4242
        assert context.custom_name == "song.mp3"
        assert context.platform == "youtube"
        assert context.backup_channel_id == -100123456

    def test_direct_platform_default(self, client, runner):
        client.post(
            "/process", json={**VALID_BODY, "url": "https://x.com/f.zip"}, headers=AUTH
        )

        assert runner.submit.call_args.args[0].platform == "direct"

    def test_runner_unavailable_503(self, client):
        from src.main import app

        app.state.job_runner = None
        response = client.post("/process", json=VALID_BODY, headers=AUTH)

        assert response.status_code == 503

    def test_response_has_request_id_header(self, client, runner):
        response = client.post(
            "/process", json=VALID_BODY, headers={**AUTH, "X-Request-ID": "req-123"}
        )

        assert response.headers["X-Request-ID"] == "req-123"
