"""Tests for logging setup and the relay logging helpers."""

import logging
import logging.handlers

import pytest

from src.utils.logging import (
    RELAY_LOGGER_NAME,
    RelayLogContext,
    RequestContext,
    setup_logging,
)


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    relay_handlers = list(logging.getLogger(RELAY_LOGGER_NAME).handlers)
    yield
    for h in root.handlers:
        if h not in handlers:
            h.close()
    root.handlers[:] = handlers
    root.setLevel(level)
    relay_logger = logging.getLogger(RELAY_LOGGER_NAME)
    for h in relay_logger.handlers:
        if h not in relay_handlers:
            h.close()
    relay_logger.handlers[:] = relay_handlers


class TestSetupLogging:
    def test_console_only(self, restore_root_logger, tmp_path):
        setup_logging("DEBUG", log_to_file=False, logs_dir=str(tmp_path / "logs"))

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert not (tmp_path / "logs").exists()

    def test_file_handlers(self, restore_root_logger, tmp_path):
        logs_dir = tmp_path / "logs"

        setup_logging("INFO", log_to_file=True, logs_dir=str(logs_dir))

        root_files = {
            h.baseFilename
            for h in logging.getLogger().handlers
            if isinstance(h, logging.handlers.RotatingFileHandler)
        }
        assert root_files == {str(logs_dir / "app.log"), str(logs_dir / "errors.log")}
        relay_files = {
            h.baseFilename
            for h in logging.getLogger(RELAY_LOGGER_NAME).handlers
            if isinstance(h, logging.handlers.RotatingFileHandler)
        }
        assert str(logs_dir / "relay.log") in relay_files

    def test_unknown_level_falls_back_to_info(self, restore_root_logger, tmp_path):
        setup_logging("CHATTY", log_to_file=False)
        assert logging.getLogger().level == logging.INFO


class TestRequestContext:
    def test_set_get_clear(self):
        RequestContext.clear()
        RequestContext.set(request_id="req-1", job_id="job-1")

        assert RequestContext.get() == {"request_id": "req-1", "job_id": "job-1"}

        RequestContext.clear()
        assert RequestContext.get() == {}


class TestRelayLogContext:
    def test_does_not_swallow_errors(self):
        with pytest.raises(ValueError):
            with RelayLogContext("upload_part", part=1, parts=3):
                raise ValueError("boom")

    def test_records_start_time(self):
        with RelayLogContext("upload", name="x.mp4") as ctx:
            assert ctx.start_time is not None

    @pytest.mark.asyncio
    async def test_async_usage(self):
        async with RelayLogContext("download", url="https://x.com") as ctx:
            assert ctx.operation == "download"
