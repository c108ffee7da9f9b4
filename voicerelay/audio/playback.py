"""
Speaker playback sink.

Buffers handed to ``play()`` are rendered one at a time by a single worker
task. Rendering blocks on the output device, so it runs in the default
executor; the completion callback is invoked back on the event loop.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Tuple, Union

import numpy as np

from voicerelay.audio import load_sounddevice
from voicerelay.config.models import AudioConfig, PlaybackConfig
from voicerelay.exceptions import DeviceError, PlaybackError
from voicerelay.handlers.error_handler import ErrorContext, ErrorSeverity, handle_error

logger = logging.getLogger(__name__)

DoneCallback = Callable[[], Union[None, Awaitable[None]]]
Renderer = Callable[[bytes], None]


class SpeakerPlayback:
    """
    Single-consumer playback queue in front of the output device.

    Attributes:
        audio_config: Shared audio format (must match capture)
        playback_config: Queue size and output device
        buffers_played: Number of buffers rendered successfully
        bytes_played: Total bytes rendered successfully
    """

    def __init__(
        self,
        audio_config: AudioConfig,
        playback_config: PlaybackConfig,
        renderer: Optional[Renderer] = None,
    ):
        self.audio_config = audio_config
        self.playback_config = playback_config
        self._renderer = renderer or self._render

        self._queue: Optional[asyncio.Queue] = None
        self._worker_task: Optional[asyncio.Task] = None
        self._closed = False

        self.buffers_played = 0
        self.bytes_played = 0
        self.buffers_failed = 0

    def start(self) -> None:
        """Start the playback worker. Must be called from the running loop."""
        if self._worker_task is not None:
            return
        self._queue = asyncio.Queue(maxsize=self.playback_config.queue_size)
        self._worker_task = asyncio.create_task(self._worker())
        logger.debug("Playback worker started")

    def play(self, buffer: bytes, on_done: Optional[DoneCallback] = None) -> bool:
        """Queue a buffer for rendering.

        Args:
            buffer: Raw PCM bytes in the shared audio format
            on_done: Called exactly once after the buffer finished draining

        Returns:
            bool: False if the sink is closed or the queue is full
        """
        if self._closed:
            logger.warning("Cannot queue audio: playback closed")
            return False

        self.start()
        assert self._queue is not None

        try:
            self._queue.put_nowait((buffer, on_done))
        except asyncio.QueueFull:
            logger.warning("Playback queue full, dropping audio buffer")
            return False

        logger.debug(f"Queued {len(buffer)} bytes for playback (pending: {self._queue.qsize()})")
        return True

    @property
    def pending(self) -> int:
        return self._queue.qsize() if self._queue is not None else 0

    async def _worker(self) -> None:
        assert self._queue is not None
        loop = asyncio.get_running_loop()

        while True:
            item: Tuple[bytes, Optional[DoneCallback]] = await self._queue.get()
            buffer, on_done = item
            try:
                await loop.run_in_executor(None, self._renderer, buffer)
            except Exception as e:
                self.buffers_failed += 1
                if not isinstance(e, (PlaybackError, DeviceError)):
                    e = PlaybackError(f"Error playing audio: {e}")
                await handle_error(
                    e,
                    context=ErrorContext.PLAYBACK,
                    severity=ErrorSeverity.MEDIUM,
                    operation="render_buffer",
                    size=len(buffer),
                )
            else:
                self.buffers_played += 1
                self.bytes_played += len(buffer)
                logger.info(f"Audio played: {len(buffer)} bytes")
                await self._notify_done(on_done)
            finally:
                self._queue.task_done()

    async def _notify_done(self, on_done: Optional[DoneCallback]) -> None:
        if on_done is None:
            return
        try:
            result = on_done()
            if asyncio.iscoroutine(result):
                await result
        except Exception as e:
            await handle_error(
                e,
                context=ErrorContext.PLAYBACK,
                severity=ErrorSeverity.MEDIUM,
                operation="playback_done_callback",
            )

    def _render(self, buffer: bytes) -> None:
        """Write a whole buffer to the output device, blocking until drained."""
        sd = load_sounddevice()

        frame_bytes = self.audio_config.bytes_per_frame
        usable = len(buffer) - (len(buffer) % frame_bytes)
        if usable != len(buffer):
            logger.warning(f"Dropping {len(buffer) - usable} trailing bytes of a partial frame")
        if usable == 0:
            return

        samples = np.frombuffer(buffer[:usable], dtype=self.audio_config.dtype)
        samples = samples.reshape(-1, self.audio_config.channels)

        try:
            with sd.OutputStream(
                samplerate=self.audio_config.sample_rate,
                channels=self.audio_config.channels,
                dtype=self.audio_config.dtype,
                device=self.playback_config.device,
            ) as stream:
                stream.write(samples)
        except Exception as e:
            raise PlaybackError(f"Error playing audio: {e}") from e

    async def close(self) -> None:
        """Stop the worker and drop anything still queued."""
        if self._closed:
            return
        self._closed = True

        if self._queue is not None:
            dropped = 0
            while not self._queue.empty():
                self._queue.get_nowait()
                self._queue.task_done()
                dropped += 1
            if dropped:
                logger.info(f"Dropped {dropped} pending playback buffer(s)")

        if self._worker_task is not None:
            self._worker_task.cancel()
            try:
                await self._worker_task
            except asyncio.CancelledError:
                pass
            self._worker_task = None

        logger.info("Playback stopped")

    def get_statistics(self) -> dict:
        return {
            "buffers_played": self.buffers_played,
            "bytes_played": self.bytes_played,
            "buffers_failed": self.buffers_failed,
            "pending": self.pending,
        }
