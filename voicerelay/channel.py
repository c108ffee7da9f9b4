"""
WebSocket channel to the OpenAI Realtime API.

This module owns the single duplex connection a relay session uses:

- connect with bearer authentication and an optional bounded backoff on the
  initial attempt (an established session is never reconnected)
- fire-and-forget JSON sends
- a receive loop that hands decoded messages to ``on_message`` strictly one at
  a time, in arrival order
- terminal ``on_error`` / ``on_close`` notifications
"""

import asyncio
import json
import logging
from typing import Any, Awaitable, Callable, Dict, Iterator, Optional, Union

import websockets
from websockets.exceptions import (
    ConnectionClosed,
    ConnectionClosedOK,
    InvalidStatus,
    WebSocketException,
)

from voicerelay.config.models import OpenAIConfig, RetryConfig
from voicerelay.exceptions import AuthError, ChannelClosed, ChannelError
from voicerelay.handlers.error_handler import ErrorContext, ErrorSeverity, handle_error
from voicerelay.models.openai_api import ClientEvent, OutboundMessage

logger = logging.getLogger(__name__)

MessageHandler = Callable[[Dict[str, Any]], Union[None, Awaitable[None]]]
CloseHandler = Callable[[Optional[int], str], Union[None, Awaitable[None]]]
ErrorHandlerCallback = Callable[[Exception], Union[None, Awaitable[None]]]

AUTH_FAILURE_STATUS_CODES = (401, 403)


class RetryPolicy:
    """Bounded exponential backoff for the initial connect.

    Attributes:
        max_retries: Additional attempts after the first one (0 disables retry)
        base_delay: Delay before the first retry, in seconds
        max_delay: Upper bound for any single delay
    """

    def __init__(self, max_retries: int = 0, base_delay: float = 1.0, max_delay: float = 30.0):
        self.max_retries = max(0, max_retries)
        self.base_delay = base_delay
        self.max_delay = max_delay

    @classmethod
    def from_config(cls, config: RetryConfig) -> "RetryPolicy":
        return cls(config.max_retries, config.base_delay, config.max_delay)

    def delays(self) -> Iterator[float]:
        """Delay before each retry, doubling up to ``max_delay``."""
        for attempt in range(self.max_retries):
            yield min(self.base_delay * (2 ** attempt), self.max_delay)


class RealtimeChannel:
    """
    One session's connection to the realtime service.

    Attributes:
        url: WebSocket endpoint
        on_message: Handler for each decoded inbound message
        on_close: Called once when the connection ends, with code and reason
        on_error: Called once when the connection fails abnormally
        messages_sent: Count of frames sent
        messages_received: Count of frames received
    """

    def __init__(
        self,
        url: str,
        headers: Dict[str, str],
        open_timeout: float = 30.0,
        retry_policy: Optional[RetryPolicy] = None,
    ):
        self.url = url
        self._headers = headers
        self.open_timeout = open_timeout
        self.retry_policy = retry_policy or RetryPolicy()

        self.websocket: Optional[Any] = None
        self.on_message: Optional[MessageHandler] = None
        self.on_close: Optional[CloseHandler] = None
        self.on_error: Optional[ErrorHandlerCallback] = None

        self._closed = False
        self._close_notified = False
        self._error_notified = False

        self.messages_sent = 0
        self.messages_received = 0

    @classmethod
    def from_config(
        cls, openai_config: OpenAIConfig, retry_config: Optional[RetryConfig] = None
    ) -> "RealtimeChannel":
        return cls(
            url=openai_config.get_websocket_url(),
            headers=openai_config.get_headers(),
            open_timeout=openai_config.timeout,
            retry_policy=RetryPolicy.from_config(retry_config) if retry_config else None,
        )

    @property
    def is_open(self) -> bool:
        return self.websocket is not None and not self._closed

    async def connect(self) -> "RealtimeChannel":
        """Open the connection, retrying network failures per the retry policy.

        Raises:
            AuthError: The service rejected the credentials (never retried)
            ChannelError: The connection could not be established
        """
        delays = self.retry_policy.delays()
        attempt = 1
        while True:
            try:
                self.websocket = await self._open()
                logger.info(f"Connected to OpenAI Realtime API (attempt {attempt})")
                return self
            except AuthError:
                raise
            except ChannelError as e:
                delay = next(delays, None)
                if delay is None:
                    raise
                logger.warning(
                    f"Connection attempt {attempt} failed: {e}; retrying in {delay:.1f}s"
                )
                await asyncio.sleep(delay)
                attempt += 1

    async def _open(self) -> Any:
        logger.info(f"Connecting to {self.url}")
        try:
            return await websockets.connect(
                self.url,
                additional_headers=self._headers,
                open_timeout=self.open_timeout,
                max_size=None,
            )
        except InvalidStatus as e:
            status = e.response.status_code
            if status in AUTH_FAILURE_STATUS_CODES:
                raise AuthError(
                    f"Realtime API rejected credentials (HTTP {status})", status_code=status
                ) from e
            raise ChannelError(f"Realtime API refused connection (HTTP {status})") from e
        except (OSError, asyncio.TimeoutError, WebSocketException) as e:
            raise ChannelError(f"Failed to connect to {self.url}: {e}") from e

    async def send(self, message: OutboundMessage) -> bool:
        """Serialize and send one message. Returns False if it was not sent."""
        if not self.is_open:
            logger.error("Cannot send message: channel is not open")
            return False

        payload = message.to_wire() if isinstance(message, ClientEvent) else message
        try:
            await self.websocket.send(json.dumps(payload))
        except ConnectionClosed as e:
            logger.warning(f"Dropped {payload.get('type', 'unknown')}: connection closed ({e})")
            return False
        except Exception as e:
            await handle_error(
                e,
                context=ErrorContext.CHANNEL,
                severity=ErrorSeverity.HIGH,
                operation="websocket_send",
                message_type=payload.get("type", "unknown"),
            )
            return False

        self.messages_sent += 1
        logger.debug(f"Sent message: {payload.get('type', 'unknown')}")
        return True

    async def run(self) -> None:
        """Receive until the connection ends, dispatching messages in order."""
        if self.websocket is None:
            raise ChannelError("Channel is not connected")

        code: Optional[int] = None
        reason = ""
        try:
            async for frame in self.websocket:
                self.messages_received += 1
                message = self._decode(frame)
                if message is None:
                    continue
                await self._dispatch(message)
                if self._closed:
                    break
            code, reason = self._close_info()
        except ConnectionClosedOK as e:
            code, reason = self._close_details(e)
        except ConnectionClosed as e:
            code, reason = self._close_details(e)
            await self._notify_error(ChannelClosed(code, reason))
        except Exception as e:
            await self._notify_error(ChannelError(f"Receive loop failed: {e}"))
        finally:
            self._closed = True
            await self._notify_close(code, reason)

    def _decode(self, frame: Union[str, bytes]) -> Optional[Dict[str, Any]]:
        try:
            message = json.loads(frame)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.error(f"Failed to parse message as JSON: {e}")
            return None
        if not isinstance(message, dict):
            logger.error(f"Ignoring non-object message: {type(message).__name__}")
            return None
        return message

    async def _dispatch(self, message: Dict[str, Any]) -> None:
        if self.on_message is None:
            return
        try:
            result = self.on_message(message)
            if asyncio.iscoroutine(result):
                await result
        except Exception as e:
            await handle_error(
                e,
                context=ErrorContext.CHANNEL,
                severity=ErrorSeverity.HIGH,
                operation="message_handler",
                message_type=message.get("type", "unknown"),
            )

    def _close_info(self) -> tuple:
        ws = self.websocket
        return getattr(ws, "close_code", None), getattr(ws, "close_reason", "") or ""

    @staticmethod
    def _close_details(exc: ConnectionClosed) -> tuple:
        frame = exc.rcvd or exc.sent
        if frame is None:
            return None, ""
        return frame.code, frame.reason

    async def _notify_error(self, error: Exception) -> None:
        if self._error_notified:
            return
        self._error_notified = True
        logger.error(f"WebSocket error: {error}")
        if self.on_error is not None:
            result = self.on_error(error)
            if asyncio.iscoroutine(result):
                await result

    async def _notify_close(self, code: Optional[int], reason: str) -> None:
        if self._close_notified:
            return
        self._close_notified = True
        logger.info(f"WebSocket connection closed: {code} - {reason}")
        if self.on_close is not None:
            result = self.on_close(code, reason)
            if asyncio.iscoroutine(result):
                await result

    async def close(self) -> None:
        """Close the connection. ``run()`` then finishes with ``on_close``."""
        self._closed = True
        if self.websocket is None:
            return
        try:
            await self.websocket.close()
        except Exception as e:
            logger.warning(f"Error closing WebSocket: {e}")
