"""
Microphone capture source.

Wraps a sounddevice input stream. The PortAudio callback runs on its own
thread, so every block is handed to the asyncio loop with
``call_soon_threadsafe`` and consumed in capture order through ``events()``.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, AsyncIterator, Optional, Union

import numpy as np

from voicerelay.audio import load_sounddevice
from voicerelay.audio.silence import SilenceDetector
from voicerelay.config.models import AudioConfig, CaptureConfig
from voicerelay.exceptions import DeviceError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AudioChunk:
    """One block of raw PCM captured from the microphone."""

    data: bytes


@dataclass(frozen=True)
class SilenceDetected:
    """The input stayed below the silence threshold for the configured duration."""

    silent_ms: float = 0.0


CaptureEvent = Union[AudioChunk, SilenceDetected]

_STOP = object()


class MicrophoneCapture:
    """
    Continuous microphone capture producing chunks and silence events.

    A capture source is single use: once started it cannot be started again,
    and ``events()`` ends for good after ``stop()``.
    """

    def __init__(self, audio_config: AudioConfig, capture_config: CaptureConfig):
        self.audio_config = audio_config
        self.capture_config = capture_config
        self.detector = SilenceDetector(
            threshold=capture_config.silence_threshold,
            timeout_ms=capture_config.silence_timeout_ms,
            sample_rate=audio_config.sample_rate,
            bits_per_sample=audio_config.bits_per_sample,
        )

        self.stream: Optional[Any] = None
        self._queue: Optional[asyncio.Queue] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._started = False
        self._stopped = False

        self.chunks_captured = 0
        self.bytes_captured = 0

    @property
    def running(self) -> bool:
        return self._started and not self._stopped

    def start(self) -> None:
        """Open the input device and begin capturing.

        Must be called from within the running event loop.

        Raises:
            DeviceError: The device is missing, cannot be opened, or the
                source was already started once.
        """
        if self._started:
            raise DeviceError("Capture source cannot be restarted")
        self._started = True

        sd = load_sounddevice()
        self._loop = asyncio.get_running_loop()
        self._queue = asyncio.Queue()

        try:
            self.stream = sd.InputStream(
                samplerate=self.audio_config.sample_rate,
                channels=self.audio_config.channels,
                dtype=self.audio_config.dtype,
                blocksize=self.audio_config.chunk_frames,
                device=self.capture_config.device,
                callback=self._on_block,
            )
            self.stream.start()
        except Exception as e:
            self._stopped = True
            self.stream = None
            raise DeviceError(f"Failed to open microphone: {e}") from e

        logger.info(
            f"Microphone started streaming: {self.audio_config.sample_rate}Hz, "
            f"{self.audio_config.channels} channel(s), {self.audio_config.encoding}"
        )

    def _on_block(self, indata: np.ndarray, frames: int, time_info: Any, status: Any) -> None:
        """PortAudio callback; runs on the audio thread."""
        if status:
            logger.warning(f"Recording status: {status}")

        data = indata.tobytes()
        silence = self.detector.process(indata)

        self._publish(AudioChunk(data))
        if silence:
            self._publish(SilenceDetected(self.detector.silent_ms))

    def _publish(self, event: Any) -> None:
        if self._loop is None or self._queue is None:
            return
        try:
            self._loop.call_soon_threadsafe(self._queue.put_nowait, event)
        except RuntimeError:
            # loop already closed during shutdown
            logger.debug("Dropping capture event after event loop closed")

    async def events(self) -> AsyncIterator[CaptureEvent]:
        """Yield captured chunks and silence events in capture order."""
        if self._queue is None:
            raise DeviceError("Capture source has not been started")

        while True:
            event = await self._queue.get()
            if event is _STOP:
                return
            if isinstance(event, AudioChunk):
                self.chunks_captured += 1
                self.bytes_captured += len(event.data)
            yield event

    def stop(self) -> None:
        """Close the input stream and end ``events()``."""
        if self._stopped:
            return
        self._stopped = True

        if self.stream is not None:
            try:
                self.stream.stop()
                self.stream.close()
            except Exception as e:
                logger.warning(f"Error closing microphone stream: {e}")
            self.stream = None

        if self._queue is not None:
            self._queue.put_nowait(_STOP)

        logger.info("Microphone stopped")
