"""Wire and tool models for the OpenAI Realtime API."""

from voicerelay.models.openai_api import (
    ClientEvent,
    ClientEventType,
    ConversationItemContentParam,
    ConversationItemCreateEvent,
    ConversationItemParam,
    ErrorEvent,
    InputAudioBufferAppendEvent,
    InputAudioBufferCommitEvent,
    MessageRole,
    OutboundMessage,
    ResponseAudioDeltaEvent,
    ResponseContentPart,
    ResponseContentPartAddedEvent,
    ResponseCreateEvent,
    ResponseCreateOptions,
    ResponseFunctionCallArgumentsDoneEvent,
    ServerEvent,
    ServerEventType,
    SessionConfig,
    SessionUpdateEvent,
)
from voicerelay.models.tool_models import (
    GetCurrentWeatherTool,
    TemperatureUnit,
    get_relay_tools,
)
