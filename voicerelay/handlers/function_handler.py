"""
Function call handling for the relay.

When the model decides to call a tool it streams the arguments and finishes
with a ``response.function_call_arguments.done`` event. The handler looks the
function up in its registry, runs it (sync or async), sends the result back as
a ``function_call_output`` conversation item and asks for a new response so
the model can speak the answer.
"""

import asyncio
import json
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from voicerelay.handlers.error_handler import ErrorContext, ErrorSeverity, handle_error
from voicerelay.models.openai_api import (
    ConversationItemCreateEvent,
    ConversationItemParam,
    OutboundMessage,
    ResponseCreateEvent,
    ResponseCreateOptions,
    ResponseFunctionCallArgumentsDoneEvent,
)
from voicerelay.models.tool_models import TemperatureUnit

logger = logging.getLogger(__name__)

SendCallable = Callable[[OutboundMessage], Awaitable[bool]]


async def get_current_weather(arguments: Dict[str, Any], delay: float = 1.0) -> Dict[str, Any]:
    """Mock weather lookup; a real deployment would call a weather API."""
    location = arguments.get("location", "unknown")
    unit = arguments.get("unit", TemperatureUnit.CELSIUS.value)
    logger.info(f"Getting weather for {location} in {unit}")

    # Simulate an API call delay
    await asyncio.sleep(delay)
    return {
        "location": location,
        "temperature": 22 if unit == TemperatureUnit.CELSIUS.value else 72,
        "unit": unit,
        "condition": "Sunny",
    }


class FunctionHandler:
    """
    Registry and executor for model tool calls.

    Attributes:
        function_registry: Function name to callable (sync or async)
        send: Coroutine used to send messages back over the channel
        modalities: Modalities requested for the follow-up response
    """

    def __init__(self, send: SendCallable, modalities: Optional[list] = None):
        self.send = send
        self.modalities = modalities or ["text", "audio"]
        self.function_registry: Dict[str, Callable[[Dict[str, Any]], Any]] = {}

    def register_function(self, name: str, func: Callable[[Dict[str, Any]], Any]) -> None:
        self.function_registry[name] = func
        logger.info(f"Registered function: {name}")

    def register_default_functions(self) -> None:
        self.register_function("get_current_weather", get_current_weather)

    async def handle_function_call_arguments_done(self, data: Dict[str, Any]) -> Optional[Any]:
        """Execute the completed call and send its output back.

        Returns:
            The function result, or None if the call could not be executed
        """
        event = ResponseFunctionCallArgumentsDoneEvent(**data)
        name = event.name or ""

        func = self.function_registry.get(name)
        if func is None:
            logger.warning(f"Received call for unknown function: {name!r}")
            await self._send_output(event.call_id, {"error": f"Unknown function: {name}"})
            return None

        try:
            arguments = json.loads(event.arguments) if event.arguments else {}
        except json.JSONDecodeError as e:
            await handle_error(
                e,
                context=ErrorContext.FUNCTION,
                severity=ErrorSeverity.MEDIUM,
                operation="parse_arguments",
                function_name=name,
            )
            await self._send_output(event.call_id, {"error": "Invalid function arguments"})
            return None

        try:
            result = func(arguments)
            if asyncio.iscoroutine(result):
                result = await result
        except Exception as e:
            await handle_error(
                e,
                context=ErrorContext.FUNCTION,
                severity=ErrorSeverity.MEDIUM,
                operation="execute_function",
                function_name=name,
            )
            await self._send_output(event.call_id, {"error": str(e)})
            return None

        logger.info(f"Function {name} returned: {result}")
        await self._send_output(event.call_id, result)
        return result

    async def _send_output(self, call_id: str, output: Any) -> None:
        await self.send(
            ConversationItemCreateEvent(
                item=ConversationItemParam(
                    type="function_call_output",
                    call_id=call_id,
                    output=json.dumps(output),
                )
            )
        )
        await self.send(
            ResponseCreateEvent(response=ResponseCreateOptions(modalities=self.modalities))
        )
