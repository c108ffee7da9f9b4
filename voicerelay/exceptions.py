"""Exception types raised by the relay components."""

from typing import Optional


class RelayError(Exception):
    """Base class for all voicerelay errors."""


class ConfigError(RelayError):
    """Required configuration (such as the API key) is missing or invalid."""


class DeviceError(RelayError):
    """An audio device could not be found or opened."""


class ChannelError(RelayError):
    """The connection to the realtime service failed."""


class AuthError(ChannelError):
    """The realtime service rejected the credentials."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ChannelClosed(ChannelError):
    """The connection was closed by either side."""

    def __init__(self, code: Optional[int] = None, reason: str = ""):
        super().__init__(f"Channel closed (code={code}, reason={reason!r})")
        self.code = code
        self.reason = reason


class PlaybackError(RelayError):
    """Rendering a buffer through the output device failed."""
