"""Microphone capture, speaker playback and audio helpers."""

import logging
from typing import Any

from voicerelay.exceptions import DeviceError

logger = logging.getLogger(__name__)


def load_sounddevice() -> Any:
    """Import sounddevice, turning a missing PortAudio library into DeviceError.

    sounddevice raises OSError at import time when PortAudio is not installed;
    the relay treats that the same as a missing audio device.
    """
    try:
        import sounddevice as sd
    except OSError as e:
        raise DeviceError(f"Audio backend unavailable (PortAudio not found): {e}") from e
    return sd


def check_input_device(device: Any = None) -> str:
    """Verify that a capture device is available.

    Returns:
        str: The name of the input device that will be used

    Raises:
        DeviceError: No usable input device
    """
    sd = load_sounddevice()
    try:
        info = sd.query_devices(device, kind="input")
    except Exception as e:
        raise DeviceError(f"No audio input device available: {e}") from e

    name = str(info.get("name", "unknown")) if hasattr(info, "get") else str(info)
    logger.debug(f"Input device available: {name}")
    return name
