"""
Configuration models for the voicerelay application.

This module defines dataclasses for the different configuration domains,
providing type safety and validation for all relay settings.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional

from voicerelay.config.constants import (
    DEFAULT_BITS_PER_SAMPLE,
    DEFAULT_CHANNELS,
    DEFAULT_CHUNK_FRAMES,
    DEFAULT_CONNECT_MAX_RETRIES,
    DEFAULT_CONNECT_RETRY_BASE_DELAY,
    DEFAULT_CONNECT_RETRY_MAX_DELAY,
    DEFAULT_ENCODING,
    DEFAULT_INIT_MODE,
    DEFAULT_INSTRUCTIONS,
    DEFAULT_MODALITIES,
    DEFAULT_OPENAI_BASE_URL,
    DEFAULT_OPENAI_MODEL,
    DEFAULT_OPENAI_TIMEOUT,
    DEFAULT_PLAYBACK_QUEUE_SIZE,
    DEFAULT_SAMPLE_RATE,
    DEFAULT_SILENCE_THRESHOLD,
    DEFAULT_SILENCE_TIMEOUT_MS,
    INIT_MODES,
    SUPPORTED_BITS_PER_SAMPLE,
    SUPPORTED_ENCODINGS,
)


class LogLevel(Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


@dataclass
class OpenAIConfig:
    """OpenAI Realtime API configuration."""

    api_key: Optional[str] = None
    model: str = DEFAULT_OPENAI_MODEL
    base_url: str = DEFAULT_OPENAI_BASE_URL
    timeout: int = DEFAULT_OPENAI_TIMEOUT

    def get_websocket_url(self) -> str:
        """Get the OpenAI Realtime API WebSocket URL."""
        return f"{self.base_url}/v1/realtime?model={self.model}"

    def get_headers(self) -> Dict[str, str]:
        """Get headers for OpenAI API authentication."""
        if not self.api_key:
            raise ValueError("OpenAI API key is required")
        return {
            "Authorization": f"Bearer {self.api_key}",
            "OpenAI-Beta": "realtime=v1",
        }


@dataclass
class AudioConfig:
    """Audio format shared by microphone capture and speaker playback.

    Capture and playback must agree on these values, otherwise responses are
    rendered at the wrong pitch and speed.
    """

    sample_rate: int = DEFAULT_SAMPLE_RATE
    channels: int = DEFAULT_CHANNELS
    bits_per_sample: int = DEFAULT_BITS_PER_SAMPLE
    encoding: str = DEFAULT_ENCODING
    chunk_frames: int = DEFAULT_CHUNK_FRAMES

    @property
    def dtype(self) -> str:
        """numpy/sounddevice sample type for this format."""
        return f"int{self.bits_per_sample}"

    @property
    def bytes_per_frame(self) -> int:
        return self.channels * self.bits_per_sample // 8


@dataclass
class CaptureConfig:
    """Microphone capture settings."""

    silence_timeout_ms: int = DEFAULT_SILENCE_TIMEOUT_MS
    silence_threshold: float = DEFAULT_SILENCE_THRESHOLD
    device: Optional[str] = None


@dataclass
class PlaybackConfig:
    """Speaker playback settings."""

    queue_size: int = DEFAULT_PLAYBACK_QUEUE_SIZE
    device: Optional[str] = None


@dataclass
class RelayConfig:
    """Session initialization settings for the relay."""

    init_mode: str = DEFAULT_INIT_MODE
    instructions: str = DEFAULT_INSTRUCTIONS
    modalities: List[str] = field(default_factory=lambda: list(DEFAULT_MODALITIES))
    voice: Optional[str] = None
    enable_tools: bool = True


@dataclass
class RetryConfig:
    """Backoff policy for the initial channel connect."""

    max_retries: int = DEFAULT_CONNECT_MAX_RETRIES
    base_delay: float = DEFAULT_CONNECT_RETRY_BASE_DELAY
    max_delay: float = DEFAULT_CONNECT_RETRY_MAX_DELAY


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: LogLevel = LogLevel.INFO
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    log_dir: Path = field(default_factory=lambda: Path("logs"))
    log_filename: str = "voicerelay.log"
    max_log_size: int = 10 * 1024 * 1024  # 10MB
    backup_count: int = 5
    console_output: bool = True
    file_output: bool = True


@dataclass
class ApplicationConfig:
    """Master application configuration containing all domain configs."""

    openai: OpenAIConfig = field(default_factory=OpenAIConfig)
    audio: AudioConfig = field(default_factory=AudioConfig)
    capture: CaptureConfig = field(default_factory=CaptureConfig)
    playback: PlaybackConfig = field(default_factory=PlaybackConfig)
    relay: RelayConfig = field(default_factory=RelayConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def validate(self) -> List[str]:
        """Validate configuration and return list of errors.

        A missing API key is not reported here; the CLI checks it separately so
        it can exit before any connection is attempted.
        """
        errors = []

        if self.audio.sample_rate <= 0:
            errors.append("Audio sample rate must be positive")

        if self.audio.channels <= 0:
            errors.append("Audio channel count must be positive")

        if self.audio.bits_per_sample not in SUPPORTED_BITS_PER_SAMPLE:
            errors.append(
                f"Unsupported bits per sample {self.audio.bits_per_sample}; "
                f"supported: {', '.join(str(b) for b in SUPPORTED_BITS_PER_SAMPLE)}"
            )

        if self.audio.encoding not in SUPPORTED_ENCODINGS:
            errors.append(f"Unsupported audio encoding '{self.audio.encoding}'")

        if self.audio.chunk_frames <= 0:
            errors.append("Audio chunk size must be positive")

        if self.capture.silence_threshold < 0 or self.capture.silence_threshold > 1:
            errors.append("Silence threshold must be between 0 and 1")

        if self.capture.silence_timeout_ms <= 0:
            errors.append("Silence timeout must be positive")

        if self.playback.queue_size <= 0:
            errors.append("Playback queue size must be positive")

        unknown_modalities = [m for m in self.relay.modalities if m not in ("text", "audio")]
        if unknown_modalities:
            errors.append(f"Unknown modalities: {', '.join(unknown_modalities)}")

        if self.relay.init_mode not in INIT_MODES:
            errors.append(
                f"Unknown init mode '{self.relay.init_mode}'; expected one of {', '.join(INIT_MODES)}"
            )

        if self.retry.max_retries < 0:
            errors.append("Connect max retries cannot be negative")

        return errors
