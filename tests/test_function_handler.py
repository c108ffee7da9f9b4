"""
Unit tests for the function call handler.

Tests the tool-call round trip: registry lookup, execution of sync and async
functions, and the function_call_output / response.create messages sent back.
"""

import json
from unittest.mock import AsyncMock, patch

import pytest

from voicerelay.handlers.function_handler import FunctionHandler, get_current_weather
from voicerelay.models.tool_models import GetCurrentWeatherTool, get_relay_tools


def call_event(name="get_current_weather", arguments='{"location": "Paris, France", "unit": "celsius"}'):
    return {
        "type": "response.function_call_arguments.done",
        "event_id": "event_1",
        "response_id": "resp_1",
        "item_id": "item_1",
        "output_index": 0,
        "call_id": "call_123",
        "name": name,
        "arguments": arguments,
    }


@pytest.fixture
def send():
    return AsyncMock(return_value=True)


@pytest.fixture
def handler(send):
    handler = FunctionHandler(send, modalities=["text", "audio"])
    handler.register_function("echo", lambda arguments: {"echo": arguments})
    return handler


def sent_wire(send):
    return [call.args[0].to_wire() for call in send.await_args_list]


class TestGetCurrentWeather:
    @pytest.mark.asyncio
    async def test_celsius(self):
        result = await get_current_weather({"location": "Paris", "unit": "celsius"}, delay=0)
        assert result == {
            "location": "Paris",
            "temperature": 22,
            "unit": "celsius",
            "condition": "Sunny",
        }

    @pytest.mark.asyncio
    async def test_fahrenheit(self):
        result = await get_current_weather({"location": "Austin", "unit": "fahrenheit"}, delay=0)
        assert result["temperature"] == 72


class TestRegistry:
    def test_register_default_functions(self, send):
        handler = FunctionHandler(send)
        handler.register_default_functions()
        assert "get_current_weather" in handler.function_registry

    def test_default_modalities(self, send):
        assert FunctionHandler(send).modalities == ["text", "audio"]


class TestHandleFunctionCall:
    @pytest.mark.asyncio
    async def test_sync_function_result_sent_back(self, handler, send):
        result = await handler.handle_function_call_arguments_done(
            call_event(name="echo", arguments='{"x": 1}')
        )

        assert result == {"echo": {"x": 1}}
        messages = sent_wire(send)
        assert messages[0] == {
            "type": "conversation.item.create",
            "item": {
                "type": "function_call_output",
                "call_id": "call_123",
                "output": json.dumps({"echo": {"x": 1}}),
            },
        }
        assert messages[1] == {
            "type": "response.create",
            "response": {"modalities": ["text", "audio"]},
        }

    @pytest.mark.asyncio
    async def test_async_weather_function(self, send):
        handler = FunctionHandler(send)
        handler.register_default_functions()

        with patch("voicerelay.handlers.function_handler.asyncio.sleep", new=AsyncMock()):
            result = await handler.handle_function_call_arguments_done(call_event())

        assert result["location"] == "Paris, France"
        output = json.loads(sent_wire(send)[0]["item"]["output"])
        assert output["temperature"] == 22

    @pytest.mark.asyncio
    async def test_unknown_function_reports_error_output(self, handler, send):
        result = await handler.handle_function_call_arguments_done(call_event(name="launch_rocket"))

        assert result is None
        output = json.loads(sent_wire(send)[0]["item"]["output"])
        assert "Unknown function" in output["error"]
        assert sent_wire(send)[1]["type"] == "response.create"

    @pytest.mark.asyncio
    async def test_invalid_arguments_report_error_output(self, handler, send):
        result = await handler.handle_function_call_arguments_done(
            call_event(name="echo", arguments="{not json")
        )

        assert result is None
        output = json.loads(sent_wire(send)[0]["item"]["output"])
        assert output == {"error": "Invalid function arguments"}

    @pytest.mark.asyncio
    async def test_failing_function_reports_error_output(self, handler, send):
        def explode(arguments):
            raise RuntimeError("service unavailable")

        handler.register_function("explode", explode)

        result = await handler.handle_function_call_arguments_done(call_event(name="explode"))

        assert result is None
        output = json.loads(sent_wire(send)[0]["item"]["output"])
        assert output == {"error": "service unavailable"}

    @pytest.mark.asyncio
    async def test_empty_arguments_become_empty_dict(self, handler):
        result = await handler.handle_function_call_arguments_done(call_event(name="echo", arguments=""))
        assert result == {"echo": {}}


class TestToolModels:
    def test_weather_tool_schema(self):
        tool = GetCurrentWeatherTool().model_dump()
        assert tool["type"] == "function"
        assert tool["name"] == "get_current_weather"
        assert tool["parameters"]["required"] == ["location", "unit"]
        assert tool["parameters"]["properties"]["unit"]["enum"] == ["celsius", "fahrenheit"]
        # unset optional fields are left out of the schema
        assert "default" not in tool["parameters"]["properties"]["location"]

    def test_relay_tools(self):
        assert [tool["name"] for tool in get_relay_tools()] == ["get_current_weather"]
