"""
Configuration package for voicerelay.

```python
from voicerelay.config import load_env_file, get_config
load_env_file()
config = get_config()
print(config.openai.get_websocket_url())
```
"""

from voicerelay.config.env_loader import load_application_config, load_env_file
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
from voicerelay.config.settings import (
    get_config,
    print_configuration_summary,
    set_config,
)

__all__ = [
    "ApplicationConfig",
    "AudioConfig",
    "CaptureConfig",
    "LoggingConfig",
    "LogLevel",
    "OpenAIConfig",
    "PlaybackConfig",
    "RelayConfig",
    "RetryConfig",
    "get_config",
    "load_application_config",
    "load_env_file",
    "print_configuration_summary",
    "set_config",
]
