"""
Environment variable loader for voicerelay configuration.

This module handles loading configuration from environment variables,
with type conversion, validation, and fallback to defaults.

Environment variables must be explicitly loaded using load_env_file() before
accessing any configuration functions.
"""

import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Type, TypeVar, cast, get_origin

from dotenv import load_dotenv

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
)
from voicerelay.config.models import (
    ApplicationConfig,
    AudioConfig,
    CaptureConfig,
    LoggingConfig,
    LogLevel,
    OpenAIConfig,
    PlaybackConfig,
    RelayConfig,
    RetryConfig,
)

# Track if environment variables have been loaded
_env_loaded = False


def load_env_file(env_file: Optional[str] = None) -> None:
    """Load environment variables from a .env file.

    This function must be called before accessing any configuration functions.
    Variables already present in the process environment take precedence.

    Args:
        env_file: Path to the .env file. If None, uses default behavior.
    """
    global _env_loaded
    if env_file:
        load_dotenv(env_file)
    else:
        load_dotenv()
    _env_loaded = True


def _check_env_loaded() -> None:
    """Check if environment variables have been loaded, raise error if not."""
    if not _env_loaded:
        raise RuntimeError(
            "Environment variables not loaded. Call load_env_file() before accessing configuration."
        )


T = TypeVar("T")


def safe_convert(value: Optional[str], target_type: Type[T], default: T) -> T:
    """Safely convert environment variable string to target type."""
    if value is None:
        return default

    try:
        if target_type == bool:
            return cast(T, value.strip().lower() in ("true", "1", "yes"))
        elif target_type == int:
            return cast(T, int(value))
        elif target_type == float:
            return cast(T, float(value))
        elif target_type == str:
            return cast(T, value)
        elif target_type == Path:
            return cast(T, Path(value))
        elif get_origin(target_type) == list:
            items = [item.strip() for item in value.split(",") if item.strip()]
            return cast(T, items if items else default)
        else:
            return default
    except (ValueError, TypeError):
        return default


def safe_string_or_none(value: Optional[str]) -> Optional[str]:
    """Convert environment variable to string or None if empty."""
    if value is None or value.strip() == "":
        return None
    return value.strip()


def load_openai_config() -> OpenAIConfig:
    """Load OpenAI configuration from environment variables."""
    _check_env_loaded()

    return OpenAIConfig(
        api_key=safe_string_or_none(os.getenv("OPENAI_API_KEY")),
        model=os.getenv("OPENAI_MODEL", DEFAULT_OPENAI_MODEL),
        base_url=os.getenv("OPENAI_API_BASE_URL", DEFAULT_OPENAI_BASE_URL),
        timeout=safe_convert(os.getenv("OPENAI_TIMEOUT"), int, DEFAULT_OPENAI_TIMEOUT),
    )


def load_audio_config() -> AudioConfig:
    """Load the shared capture/playback audio format."""
    _check_env_loaded()

    return AudioConfig(
        sample_rate=safe_convert(os.getenv("AUDIO_SAMPLE_RATE"), int, DEFAULT_SAMPLE_RATE),
        channels=safe_convert(os.getenv("AUDIO_CHANNELS"), int, DEFAULT_CHANNELS),
        bits_per_sample=safe_convert(
            os.getenv("AUDIO_BITS_PER_SAMPLE"), int, DEFAULT_BITS_PER_SAMPLE
        ),
        encoding=os.getenv("AUDIO_ENCODING", DEFAULT_ENCODING),
        chunk_frames=safe_convert(os.getenv("AUDIO_CHUNK_FRAMES"), int, DEFAULT_CHUNK_FRAMES),
    )


def load_capture_config() -> CaptureConfig:
    """Load microphone capture configuration from environment variables."""
    _check_env_loaded()

    return CaptureConfig(
        silence_timeout_ms=safe_convert(
            os.getenv("SILENCE_TIMEOUT_MS"), int, DEFAULT_SILENCE_TIMEOUT_MS
        ),
        silence_threshold=safe_convert(
            os.getenv("SILENCE_THRESHOLD"), float, DEFAULT_SILENCE_THRESHOLD
        ),
        device=safe_string_or_none(os.getenv("CAPTURE_DEVICE")),
    )


def load_playback_config() -> PlaybackConfig:
    """Load speaker playback configuration from environment variables."""
    _check_env_loaded()

    return PlaybackConfig(
        queue_size=safe_convert(
            os.getenv("PLAYBACK_QUEUE_SIZE"), int, DEFAULT_PLAYBACK_QUEUE_SIZE
        ),
        device=safe_string_or_none(os.getenv("PLAYBACK_DEVICE")),
    )


def load_relay_config() -> RelayConfig:
    """Load session initialization settings from environment variables."""
    _check_env_loaded()

    return RelayConfig(
        init_mode=os.getenv("RELAY_INIT_MODE", DEFAULT_INIT_MODE).strip().lower(),
        instructions=os.getenv("RELAY_INSTRUCTIONS", DEFAULT_INSTRUCTIONS),
        modalities=safe_convert(
            os.getenv("RELAY_MODALITIES"), List[str], list(DEFAULT_MODALITIES)
        ),
        voice=safe_string_or_none(os.getenv("RELAY_VOICE")),
        enable_tools=safe_convert(os.getenv("RELAY_ENABLE_TOOLS"), bool, True),
    )


def load_retry_config() -> RetryConfig:
    """Load the connect retry policy from environment variables."""
    _check_env_loaded()

    return RetryConfig(
        max_retries=safe_convert(
            os.getenv("CONNECT_MAX_RETRIES"), int, DEFAULT_CONNECT_MAX_RETRIES
        ),
        base_delay=safe_convert(
            os.getenv("CONNECT_RETRY_BASE_DELAY"), float, DEFAULT_CONNECT_RETRY_BASE_DELAY
        ),
        max_delay=safe_convert(
            os.getenv("CONNECT_RETRY_MAX_DELAY"), float, DEFAULT_CONNECT_RETRY_MAX_DELAY
        ),
    )


def load_logging_config() -> LoggingConfig:
    """Load logging configuration from environment variables."""
    _check_env_loaded()

    log_level_str = os.getenv("LOG_LEVEL", "INFO").upper()
    log_level = LogLevel.INFO
    try:
        log_level = LogLevel(log_level_str)
    except ValueError:
        pass

    return LoggingConfig(
        level=log_level,
        format=os.getenv(
            "LOG_FORMAT", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        ),
        log_dir=Path(os.getenv("LOG_DIR", "logs")),
        log_filename=os.getenv("LOG_FILENAME", "voicerelay.log"),
        max_log_size=safe_convert(os.getenv("LOG_MAX_SIZE"), int, 10 * 1024 * 1024),
        backup_count=safe_convert(os.getenv("LOG_BACKUP_COUNT"), int, 5),
        console_output=safe_convert(os.getenv("LOG_CONSOLE_OUTPUT"), bool, True),
        file_output=safe_convert(os.getenv("LOG_FILE_OUTPUT"), bool, True),
    )


def load_application_config() -> ApplicationConfig:
    """Load complete application configuration from environment variables."""
    _check_env_loaded()

    config = ApplicationConfig(
        openai=load_openai_config(),
        audio=load_audio_config(),
        capture=load_capture_config(),
        playback=load_playback_config(),
        relay=load_relay_config(),
        retry=load_retry_config(),
        logging=load_logging_config(),
    )

    # Validate configuration and raise exceptions for critical errors
    validation_errors = config.validate()
    if validation_errors:
        error_msg = "Configuration validation failed:\n" + "\n".join(
            f"  - {error}" for error in validation_errors
        )
        raise ValueError(error_msg)

    return config


def get_environment_info() -> Dict[str, Any]:
    """Get information about current environment variables for debugging."""
    _check_env_loaded()

    return {
        "environment_variables_loaded": len(
            [
                k
                for k in os.environ.keys()
                if k.startswith(
                    ("OPENAI_", "AUDIO_", "SILENCE_", "PLAYBACK_", "RELAY_", "CONNECT_", "LOG_")
                )
            ]
        ),
        "dotenv_loaded": Path(".env").exists(),
        "openai_api_key_set": bool(os.getenv("OPENAI_API_KEY")),
    }
