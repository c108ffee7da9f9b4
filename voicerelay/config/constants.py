"""
Constants and configuration values used throughout the application.

This module defines constants that are used across different parts of the application,
providing a centralized location for default values and making it easier to keep
capture and playback settings consistent.
"""

# Logger name used throughout the application
LOGGER_NAME = "voicerelay"

# OpenAI Realtime API defaults
DEFAULT_OPENAI_MODEL = "gpt-4o-realtime-preview-2024-10-01"
DEFAULT_OPENAI_BASE_URL = "wss://api.openai.com"
DEFAULT_OPENAI_TIMEOUT = 30  # seconds allowed for the opening handshake

# Audio constants shared by capture and playback
DEFAULT_SAMPLE_RATE = 24000  # 24kHz, the Realtime API pcm16 rate
DEFAULT_CHANNELS = 1  # Mono
DEFAULT_BITS_PER_SAMPLE = 16  # 16-bit PCM
DEFAULT_ENCODING = "signed-integer"
DEFAULT_CHUNK_FRAMES = 2400  # 100ms at 24kHz
SUPPORTED_BITS_PER_SAMPLE = (16,)
SUPPORTED_ENCODINGS = ("signed-integer",)

# Silence detection
DEFAULT_SILENCE_TIMEOUT_MS = 600
DEFAULT_SILENCE_THRESHOLD = 0.01  # normalized RMS below which a block counts as silent

# Playback
DEFAULT_PLAYBACK_QUEUE_SIZE = 8

# Relay session defaults
DEFAULT_INIT_MODE = "response"
INIT_MODES = ("response", "conversation_item")
DEFAULT_MODALITIES = ["text", "audio"]
DEFAULT_INSTRUCTIONS = "Please assist the user with getting their local weather forecast."

# Connect retry policy (0 retries keeps the single-attempt behaviour)
DEFAULT_CONNECT_MAX_RETRIES = 0
DEFAULT_CONNECT_RETRY_BASE_DELAY = 1.0
DEFAULT_CONNECT_RETRY_MAX_DELAY = 30.0
