"""
voicerelay - relay microphone audio to the OpenAI Realtime API and play back
the spoken responses.
"""

__version__ = "0.1.0"
