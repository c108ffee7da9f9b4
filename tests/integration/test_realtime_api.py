import asyncio
import os

import pytest
from dotenv import load_dotenv

from voicerelay.channel import RealtimeChannel
from voicerelay.config.models import OpenAIConfig
from voicerelay.models.openai_api import ResponseCreateEvent, ResponseCreateOptions

# Load environment variables (including OPENAI_API_KEY)
load_dotenv()
API_KEY = os.getenv("OPENAI_API_KEY")


@pytest.mark.asyncio
@pytest.mark.integration
async def test_text_response_round_trip():
    """
    Verify that the channel connects to the OpenAI Realtime API, receives the
    session.created event and a complete text response.
    """
    channel = RealtimeChannel.from_config(OpenAIConfig(api_key=API_KEY))
    received = []

    async def on_message(message):
        received.append(message["type"])
        if message["type"] == "response.done":
            await channel.close()

    channel.on_message = on_message
    await channel.connect()
    await channel.send(
        ResponseCreateEvent(
            response=ResponseCreateOptions(modalities=["text"], instructions="Say hello.")
        )
    )

    await asyncio.wait_for(channel.run(), timeout=60)

    assert "session.created" in received, "Server should announce the session"
    assert "response.done" in received, "Response should complete before the timeout"
