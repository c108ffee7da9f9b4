"""
Centralized configuration settings for voicerelay.

Singleton access to the application configuration.
"""

from typing import Optional

from voicerelay.config.env_loader import get_environment_info, load_application_config
from voicerelay.config.models import ApplicationConfig

# Global configuration instance
_config: Optional[ApplicationConfig] = None


def get_config() -> ApplicationConfig:
    """Get the global application configuration instance."""
    global _config
    if _config is None:
        _config = load_application_config()
    return _config


def set_config(config: Optional[ApplicationConfig]) -> None:
    """Set a custom configuration instance (useful for testing)."""
    global _config
    _config = config


def print_configuration_summary() -> None:
    """Print a summary of the current configuration."""
    config = get_config()
    env_info = get_environment_info()

    print("=== voicerelay Configuration Summary ===")
    print(f"OpenAI model: {config.openai.model}")
    print(f"Endpoint: {config.openai.get_websocket_url()}")
    print(
        f"Audio: {config.audio.sample_rate}Hz, {config.audio.channels} channel(s), "
        f"{config.audio.bits_per_sample}-bit {config.audio.encoding}"
    )
    print(
        f"Silence: {config.capture.silence_timeout_ms}ms below {config.capture.silence_threshold}"
    )
    print(f"Init mode: {config.relay.init_mode} (tools: {config.relay.enable_tools})")
    print(f"Connect retries: {config.retry.max_retries}")
    print(f"Log level: {config.logging.level.value}")
    print(f"API key set: {env_info['openai_api_key_set']}")
    print(f".env file present: {env_info['dotenv_loaded']}")
