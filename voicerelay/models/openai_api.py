"""
Pydantic models for OpenAI Realtime API message structures.

This module provides type-safe models for the messages the relay exchanges with
the OpenAI Realtime API. Outbound (client) events are built from these models
and serialized without ``None`` fields. Inbound (server) events are validated
leniently: only the fields the relay reads are declared, everything else is
allowed through untouched.
"""

from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class MessageRole(str, Enum):
    """Role of a participant in a conversation."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class ClientEventType(str, Enum):
    """Client event types the relay sends."""

    SESSION_UPDATE = "session.update"
    INPUT_AUDIO_BUFFER_APPEND = "input_audio_buffer.append"
    INPUT_AUDIO_BUFFER_COMMIT = "input_audio_buffer.commit"
    CONVERSATION_ITEM_CREATE = "conversation.item.create"
    RESPONSE_CREATE = "response.create"


class ServerEventType(str, Enum):
    """Server event types the relay understands."""

    ERROR = "error"
    RESPONSE_AUDIO_DELTA = "response.audio.delta"
    RESPONSE_AUDIO_DONE = "response.audio.done"
    RESPONSE_CONTENT_PART_ADDED = "response.content_part.added"
    RESPONSE_CONTENT_PART_DONE = "response.content_part.done"
    RESPONSE_FUNCTION_CALL_ARGUMENTS_DONE = "response.function_call_arguments.done"


class ClientEvent(BaseModel):
    """Base model for events sent to the server."""

    type: str
    event_id: Optional[str] = None

    def to_wire(self) -> Dict[str, Any]:
        """Dictionary ready for JSON serialization."""
        return self.model_dump(mode="json", exclude_none=True)


class ServerEvent(BaseModel):
    """Base model for events received from the server."""

    model_config = ConfigDict(extra="allow")

    type: str
    event_id: Optional[str] = None


# Session


class SessionConfig(BaseModel):
    """Subset of the Realtime session configuration the relay updates."""

    tools: Optional[List[Dict[str, Any]]] = None
    tool_choice: Optional[Literal["auto", "none"]] = None


class SessionUpdateEvent(ClientEvent):
    """Event to update session configuration.

    The server will respond with a session.updated event.
    """

    type: str = ClientEventType.SESSION_UPDATE.value
    session: SessionConfig


# Input audio buffer


class InputAudioBufferAppendEvent(ClientEvent):
    """Event to append audio to the input buffer.

    The server does not send a confirmation response to this event.
    """

    type: str = ClientEventType.INPUT_AUDIO_BUFFER_APPEND.value
    audio: str  # Base64 encoded audio


class InputAudioBufferCommitEvent(ClientEvent):
    """Event to commit the audio buffer to the conversation.

    The server will respond with an input_audio_buffer.committed event.
    """

    type: str = ClientEventType.INPUT_AUDIO_BUFFER_COMMIT.value


# Conversation


class ConversationItemContentParam(BaseModel):
    """Parameter for creating content in a conversation item."""

    type: str  # "input_text", "input_audio", etc.
    text: Optional[str] = None
    audio: Optional[str] = None


class ConversationItemParam(BaseModel):
    """Parameter for creating a conversation item."""

    type: str  # "message", "function_call_output"
    role: Optional[MessageRole] = None
    content: Optional[List[ConversationItemContentParam]] = None
    call_id: Optional[str] = None
    output: Optional[str] = None


class ConversationItemCreateEvent(ClientEvent):
    """Event to create a conversation item.

    The server will respond with a conversation.item.created event if successful.
    """

    type: str = ClientEventType.CONVERSATION_ITEM_CREATE.value
    item: ConversationItemParam
    previous_item_id: Optional[str] = None


# Response


class ResponseCreateOptions(BaseModel):
    """Options for creating a response."""

    modalities: List[Literal["audio", "text"]] = Field(default_factory=lambda: ["text"])
    instructions: Optional[str] = None
    voice: Optional[str] = None


class ResponseCreateEvent(ClientEvent):
    """Event to create a model response.

    The server will respond with a response.created event, followed by various
    delta events, and finally a response.done event.
    """

    type: str = ClientEventType.RESPONSE_CREATE.value
    response: Optional[ResponseCreateOptions] = None


# Server events


class ErrorEvent(ServerEvent):
    """Event indicating an error occurred on the server side."""

    type: str = ServerEventType.ERROR.value
    error: Dict[str, Any] = Field(default_factory=dict)


class ResponseAudioDeltaEvent(ServerEvent):
    """Event containing an audio delta from the model."""

    type: str = ServerEventType.RESPONSE_AUDIO_DELTA.value
    response_id: Optional[str] = None
    item_id: Optional[str] = None
    delta: str  # Base64 encoded audio chunk


class ResponseContentPart(BaseModel):
    """Content part of a response; audio parts may carry inline audio."""

    model_config = ConfigDict(extra="allow")

    type: str  # "audio", "text"
    audio: Optional[str] = None
    transcript: Optional[str] = None


class ResponseContentPartAddedEvent(ServerEvent):
    """Event sent when a new content part is added to a response."""

    type: str = ServerEventType.RESPONSE_CONTENT_PART_ADDED.value
    response_id: Optional[str] = None
    item_id: Optional[str] = None
    part: ResponseContentPart


class ResponseFunctionCallArgumentsDoneEvent(ServerEvent):
    """Event indicating function call arguments generation is complete."""

    type: str = ServerEventType.RESPONSE_FUNCTION_CALL_ARGUMENTS_DONE.value
    call_id: str
    name: Optional[str] = None
    arguments: str = "{}"


OutboundMessage = Union[ClientEvent, Dict[str, Any]]
