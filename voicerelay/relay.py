"""
Relay controller: microphone to Realtime API, Realtime API to speaker.

The controller owns the session state machine

    DISCONNECTED -> CONNECTING -> STREAMING -> CLOSED

and the accumulated response buffer. Capture events and inbound messages are
both handled on the event loop, each handler running to completion before the
next event is processed, so the buffer is never touched concurrently.
"""

import asyncio
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional

from pydantic import ValidationError

from voicerelay.audio.capture import AudioChunk, MicrophoneCapture, SilenceDetected
from voicerelay.audio.codec import decode_concatenated, encode_chunk
from voicerelay.audio.playback import SpeakerPlayback
from voicerelay.channel import RealtimeChannel
from voicerelay.config.models import RelayConfig
from voicerelay.exceptions import ChannelError, DeviceError
from voicerelay.handlers.error_handler import ErrorContext, ErrorSeverity, handle_error
from voicerelay.handlers.function_handler import FunctionHandler
from voicerelay.models.openai_api import (
    ConversationItemContentParam,
    ConversationItemCreateEvent,
    ConversationItemParam,
    ErrorEvent,
    InputAudioBufferAppendEvent,
    InputAudioBufferCommitEvent,
    MessageRole,
    ResponseAudioDeltaEvent,
    ResponseContentPartAddedEvent,
    ResponseCreateEvent,
    ResponseCreateOptions,
    ServerEventType,
    SessionConfig,
    SessionUpdateEvent,
)
from voicerelay.models.tool_models import get_relay_tools

logger = logging.getLogger(__name__)


class RelayState(str, Enum):
    """Lifecycle of a relay session."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    STREAMING = "streaming"
    CLOSED = "closed"


class ResponseBuffer:
    """Inbound base64 fragments of one response turn, in arrival order."""

    def __init__(self):
        self.fragments: List[str] = []

    def append(self, fragment: str) -> None:
        self.fragments.append(fragment)

    def join(self) -> str:
        return "".join(self.fragments)

    def clear(self) -> None:
        self.fragments.clear()

    def is_empty(self) -> bool:
        return not self.fragments

    def __len__(self) -> int:
        return len(self.fragments)


class RelayController:
    """
    Orchestrates one relay session.

    Attributes:
        channel: Connection to the realtime service
        capture: Microphone capture source
        playback: Speaker playback sink
        relay_config: Session initialization settings
        function_handler: Optional tool-call executor
        state: Current RelayState
        response_buffer: The open accumulation for the current turn
    """

    def __init__(
        self,
        channel: RealtimeChannel,
        capture: MicrophoneCapture,
        playback: SpeakerPlayback,
        relay_config: Optional[RelayConfig] = None,
        function_handler: Optional[FunctionHandler] = None,
    ):
        self.channel = channel
        self.capture = capture
        self.playback = playback
        self.relay_config = relay_config or RelayConfig()
        self.function_handler = function_handler

        self.state = RelayState.DISCONNECTED
        self.response_buffer = ResponseBuffer()
        self._capture_task: Optional[asyncio.Task] = None

        self.chunks_sent = 0
        self.commits_sent = 0
        self.fragments_received = 0
        self.turns_completed = 0
        self.server_errors = 0

        self._message_handlers: Dict[str, Callable[[Dict[str, Any]], Awaitable[None]]] = {
            ServerEventType.RESPONSE_AUDIO_DELTA.value: self._on_audio_delta,
            ServerEventType.RESPONSE_AUDIO_DONE.value: self._on_turn_done,
            ServerEventType.RESPONSE_CONTENT_PART_ADDED.value: self._on_content_part_added,
            ServerEventType.RESPONSE_CONTENT_PART_DONE.value: self._on_turn_done,
            ServerEventType.RESPONSE_FUNCTION_CALL_ARGUMENTS_DONE.value: self._on_function_call,
            ServerEventType.ERROR.value: self._on_server_error,
        }

        channel.on_message = self.handle_message
        channel.on_close = self.handle_close
        channel.on_error = self.handle_channel_error

    async def run(self) -> None:
        """Connect, stream until the channel closes, then clean up.

        Raises:
            AuthError / ChannelError: The connection could not be opened
            DeviceError: The microphone could not be started
        """
        self.state = RelayState.CONNECTING
        try:
            await self.channel.connect()
        except ChannelError:
            self.state = RelayState.CLOSED
            raise

        reason = "channel finished"
        try:
            await self.on_open()
            await self.channel.run()
        except DeviceError:
            reason = "capture device unavailable"
            raise
        except asyncio.CancelledError:
            reason = "cancelled"
            raise
        finally:
            await self.channel.close()
            await self._shutdown(reason)

    async def on_open(self) -> None:
        """Send the session initialization and start relaying microphone audio."""
        logger.info("Connected to OpenAI Realtime API.")
        self.state = RelayState.STREAMING

        for message in self.build_init_messages():
            await self.channel.send(message)

        self.capture.start()
        self.playback.start()
        self._capture_task = asyncio.create_task(self._pump_capture())

    def build_init_messages(self) -> list:
        """Messages sent once the channel opens, in order."""
        config = self.relay_config
        messages: list = []

        if self.function_handler is not None and config.enable_tools:
            messages.append(
                SessionUpdateEvent(
                    session=SessionConfig(tools=get_relay_tools(), tool_choice="auto")
                )
            )

        if config.init_mode == "conversation_item":
            messages.append(
                ConversationItemCreateEvent(
                    item=ConversationItemParam(
                        type="message",
                        role=MessageRole.SYSTEM,
                        content=[
                            ConversationItemContentParam(
                                type="input_text", text=config.instructions
                            )
                        ],
                    )
                )
            )
        else:
            messages.append(
                ResponseCreateEvent(
                    response=ResponseCreateOptions(
                        modalities=config.modalities,
                        instructions=config.instructions,
                        voice=config.voice,
                    )
                )
            )
        return messages

    async def _pump_capture(self) -> None:
        try:
            async for event in self.capture.events():
                if self.state is not RelayState.STREAMING:
                    break
                if isinstance(event, AudioChunk):
                    await self.handle_chunk(event.data)
                elif isinstance(event, SilenceDetected):
                    await self.handle_silence()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            await handle_error(
                e,
                context=ErrorContext.CAPTURE,
                severity=ErrorSeverity.HIGH,
                operation="capture_pump",
            )

    async def handle_chunk(self, data: bytes) -> bool:
        """Forward one captured chunk. Empty chunks are never sent."""
        if self.state is not RelayState.STREAMING or not data:
            return False

        logger.debug(f"Sending audio data chunk to server ({len(data)} bytes)")
        sent = await self.channel.send(InputAudioBufferAppendEvent(audio=encode_chunk(data)))
        if sent:
            self.chunks_sent += 1
        return sent

    async def handle_silence(self) -> bool:
        """Mark the end of the user's utterance."""
        if self.state is not RelayState.STREAMING:
            return False

        logger.info("Committing audio buffer after silence...")
        sent = await self.channel.send(InputAudioBufferCommitEvent())
        if sent:
            self.commits_sent += 1
        return sent

    async def handle_message(self, message: Dict[str, Any]) -> None:
        """Process one inbound message; called in arrival order."""
        if self.state is RelayState.CLOSED:
            return

        message_type = message.get("type", "")
        handler = self._message_handlers.get(message_type)
        if handler is None:
            logger.debug(f"Received message: {message_type or message}")
            return
        await handler(message)

    async def _on_audio_delta(self, message: Dict[str, Any]) -> None:
        try:
            event = ResponseAudioDeltaEvent(**message)
        except ValidationError as e:
            logger.warning(f"Malformed audio delta ignored: {e}")
            return
        if not event.delta:
            return
        logger.debug("Received audio delta, accumulating audio...")
        self.response_buffer.append(event.delta)
        self.fragments_received += 1

    async def _on_content_part_added(self, message: Dict[str, Any]) -> None:
        try:
            event = ResponseContentPartAddedEvent(**message)
        except ValidationError as e:
            logger.warning(f"Malformed content part ignored: {e}")
            return
        if event.part.type != "audio":
            return
        if not event.part.audio:
            logger.debug("Audio content part carries no audio data")
            return
        logger.debug("Received audio content part, accumulating audio...")
        self.response_buffer.append(event.part.audio)
        self.fragments_received += 1

    async def _on_turn_done(self, message: Dict[str, Any]) -> None:
        if self.response_buffer.is_empty():
            logger.debug(f"{message.get('type')} with no accumulated audio")
            return

        logger.info("Received complete audio response, preparing to play...")
        turn = self.response_buffer
        self.response_buffer = ResponseBuffer()

        try:
            audio = decode_concatenated(turn.join())
        except ValueError as e:
            turn.clear()
            await handle_error(
                e,
                context=ErrorContext.RELAY,
                severity=ErrorSeverity.MEDIUM,
                operation="decode_response_audio",
            )
            return

        self.turns_completed += 1
        if not self.playback.play(audio, on_done=turn.clear):
            turn.clear()

    async def _on_function_call(self, message: Dict[str, Any]) -> None:
        if self.function_handler is None:
            logger.warning(f"Function call received but no handler configured: {message.get('name')}")
            return
        try:
            await self.function_handler.handle_function_call_arguments_done(message)
        except Exception as e:
            await handle_error(
                e,
                context=ErrorContext.FUNCTION,
                severity=ErrorSeverity.MEDIUM,
                operation="function_call",
                function_name=message.get("name"),
            )

    async def _on_server_error(self, message: Dict[str, Any]) -> None:
        try:
            error = ErrorEvent(**message).error
        except ValidationError as e:
            logger.warning(f"Malformed error event: {e}")
            error = {}
        logger.error(
            f"Realtime API error: {error.get('type', 'unknown')} - {error.get('message', error)}"
        )
        self.server_errors += 1

    async def handle_close(self, code: Optional[int], reason: str) -> None:
        await self._shutdown(f"channel closed (code={code}, reason={reason!r})")

    async def handle_channel_error(self, error: Exception) -> None:
        await handle_error(
            error,
            context=ErrorContext.CHANNEL,
            severity=ErrorSeverity.HIGH,
            operation="channel",
        )
        await self._shutdown("channel error")

    async def _shutdown(self, reason: str) -> None:
        """Enter CLOSED: discard the open turn and stop capture and playback."""
        if self.state is RelayState.CLOSED:
            return
        self.state = RelayState.CLOSED
        logger.info(f"Relay closing: {reason}")

        if not self.response_buffer.is_empty():
            logger.warning(
                f"Discarding {len(self.response_buffer)} unplayed audio fragment(s)"
            )
            self.response_buffer.clear()

        self.capture.stop()
        if self._capture_task is not None and self._capture_task is not asyncio.current_task():
            try:
                await asyncio.wait_for(self._capture_task, timeout=2.0)
            except asyncio.TimeoutError:
                self._capture_task.cancel()
            self._capture_task = None

        await self.playback.close()

    def get_statistics(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "chunks_sent": self.chunks_sent,
            "commits_sent": self.commits_sent,
            "fragments_received": self.fragments_received,
            "turns_completed": self.turns_completed,
            "server_errors": self.server_errors,
            "open_fragments": len(self.response_buffer),
            "playback": self.playback.get_statistics(),
        }
