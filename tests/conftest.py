import asyncio
import json
import logging
import os
from typing import Any, Dict, List, Optional

import pytest

from voicerelay.config.models import AudioConfig, CaptureConfig, PlaybackConfig, RelayConfig

"""
Pytest configuration file for the voicerelay test suite.

This file contains fixtures that are shared across multiple test files.
"""


@pytest.fixture(autouse=True)
def reset_logging():
    """Reset logging configuration before each test"""
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    logging.basicConfig(level=logging.NOTSET)
    relay_logger = logging.getLogger("voicerelay")
    for handler in relay_logger.handlers[:]:
        relay_logger.removeHandler(handler)
    relay_logger.propagate = True
    yield


@pytest.fixture(autouse=True)
def skip_integration_when_no_api_key(request):
    if request.node.get_closest_marker("integration") and not os.environ.get("OPENAI_API_KEY"):
        pytest.skip("Skipping integration tests: OPENAI_API_KEY not set")


class FakeWebSocket:
    """In-memory stand-in for a websockets client connection.

    Frames queued with ``feed`` are delivered by async iteration; ``finish``
    ends the stream the way a normal close does.
    """

    def __init__(self, frames: Optional[List[Any]] = None):
        self.sent: List[str] = []
        self.close_code: Optional[int] = None
        self.close_reason = ""
        self.closed = False
        self._frames: asyncio.Queue = asyncio.Queue()
        for frame in frames or []:
            self.feed(frame)

    def feed(self, frame: Any) -> None:
        if isinstance(frame, dict):
            frame = json.dumps(frame)
        self._frames.put_nowait(frame)

    def finish(self, code: int = 1000, reason: str = "") -> None:
        self._frames.put_nowait(StopAsyncIteration((code, reason)))

    def raise_on_receive(self, exc: Exception) -> None:
        self._frames.put_nowait(exc)

    async def send(self, message: str) -> None:
        self.sent.append(message)

    async def close(self) -> None:
        if not self.closed:
            self.closed = True
            self.finish(1000, "")

    def __aiter__(self):
        return self

    async def __anext__(self):
        frame = await self._frames.get()
        if isinstance(frame, StopAsyncIteration):
            self.close_code, self.close_reason = frame.args[0]
            raise StopAsyncIteration
        if isinstance(frame, BaseException):
            raise frame
        return frame

    def sent_messages(self) -> List[Dict[str, Any]]:
        return [json.loads(message) for message in self.sent]

    def sent_types(self) -> List[str]:
        return [message["type"] for message in self.sent_messages()]


@pytest.fixture
def fake_websocket():
    return FakeWebSocket()


@pytest.fixture
def audio_config():
    return AudioConfig(sample_rate=24000, channels=1, bits_per_sample=16, chunk_frames=240)


@pytest.fixture
def capture_config():
    return CaptureConfig(silence_timeout_ms=30, silence_threshold=0.01)


@pytest.fixture
def playback_config():
    return PlaybackConfig(queue_size=4)


@pytest.fixture
def relay_config():
    return RelayConfig(instructions="Test instructions", enable_tools=False)
