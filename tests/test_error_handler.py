"""
Unit tests for the error handler module.

Tests the centralized error reporting including:
- Logging at the level chosen by severity
- Per-context error counts
- Global convenience functions
"""

import logging

import pytest

import voicerelay.handlers.error_handler as error_handler_module
from voicerelay.handlers.error_handler import (
    ErrorContext,
    ErrorHandler,
    ErrorSeverity,
    get_error_handler,
    handle_error,
)


@pytest.fixture
def handler():
    return ErrorHandler(logger=logging.getLogger("voicerelay.test_errors"))


@pytest.fixture
def fresh_global_handler(monkeypatch):
    monkeypatch.setattr(error_handler_module, "_global_error_handler", None)
    yield


class TestErrorHandler:
    @pytest.mark.asyncio
    async def test_logs_at_severity_level(self, handler, caplog):
        with caplog.at_level(logging.DEBUG, logger="voicerelay.test_errors"):
            await handler.handle_error(
                RuntimeError("boom"),
                context=ErrorContext.PLAYBACK,
                severity=ErrorSeverity.HIGH,
                operation="render_buffer",
            )
        record = caplog.records[-1]
        assert record.levelno == logging.ERROR
        assert "playback (render_buffer): boom" in record.getMessage()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "severity, level",
        [
            (ErrorSeverity.LOW, logging.DEBUG),
            (ErrorSeverity.MEDIUM, logging.WARNING),
            (ErrorSeverity.CRITICAL, logging.CRITICAL),
        ],
    )
    async def test_severity_to_level(self, handler, caplog, severity, level):
        with caplog.at_level(logging.DEBUG, logger="voicerelay.test_errors"):
            await handler.handle_error(ValueError("x"), ErrorContext.RELAY, severity)
        assert caplog.records[-1].levelno == level

    @pytest.mark.asyncio
    async def test_metadata_appended_to_message(self, handler, caplog):
        with caplog.at_level(logging.DEBUG, logger="voicerelay.test_errors"):
            await handler.handle_error(
                KeyError("name"),
                ErrorContext.FUNCTION,
                operation="function_call",
                function_name="get_current_weather",
            )
        assert "[function_name=get_current_weather]" in caplog.records[-1].getMessage()

    @pytest.mark.asyncio
    async def test_statistics(self, handler):
        await handler.handle_error(ValueError("a"), ErrorContext.PLAYBACK)
        await handler.handle_error(ValueError("b"), ErrorContext.PLAYBACK)
        await handler.handle_error(ValueError("c"), ErrorContext.CHANNEL)

        assert handler.get_error_stats() == {
            "error_counts": {"channel": 1, "playback": 2},
            "total_errors": 3,
        }

    def test_statistics_start_empty(self, handler):
        assert handler.get_error_stats() == {"error_counts": {}, "total_errors": 0}


class TestGlobalFunctions:
    def test_get_error_handler_is_singleton(self, fresh_global_handler):
        assert get_error_handler() is get_error_handler()

    @pytest.mark.asyncio
    async def test_handle_error_uses_global_handler(self, fresh_global_handler):
        await handle_error(ValueError("missing"), ErrorContext.CONFIG)

        assert get_error_handler().get_error_stats()["error_counts"] == {"config": 1}
