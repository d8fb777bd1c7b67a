"""SSE envelope and the typed domain events classified from it.

Every SSE event from OpenCode arrives as `{"type": "...", "properties": {...}}`.
The dispatcher turns one Envelope into exactly one DomainEvent. Events are
immutable and carry Python field names; wire aliases only exist on the
property schemas used for decoding.

Consumers handle events with a match statement:

    match event:
        case MessagePartUpdated(part=ToolPart() as part):
            ...
        case SessionIdle(session_id=session_id):
            ...
        case UnknownEvent():
            pass
"""

from typing import Any

from pydantic import BaseModel, Field

from opencode_bridge.schemas.parts import MessageInfo, Part
from opencode_bridge.schemas.permission import PermissionRequest, QuestionRequest
from opencode_bridge.schemas.session import SessionStatusPayload


class Envelope(BaseModel):
    """Raw SSE event as delivered by the transport. Never stored."""

    event_type: str = Field(alias="type")
    properties: Any = None

    model_config = {"populate_by_name": True}


class MessageUpdated(BaseModel):
    info: MessageInfo | None = None

    model_config = {"frozen": True}


class MessagePartUpdated(BaseModel):
    part: Part
    # Incremental text appended since the previous update of this part, if any.
    delta: str | None = None

    model_config = {"frozen": True}


class SessionIdle(BaseModel):
    session_id: str

    model_config = {"frozen": True}


class SessionError(BaseModel):
    session_id: str | None = None
    # Error payload as sent by the server; its shape varies by error kind.
    error: Any = None

    model_config = {"frozen": True}


class SessionStatus(BaseModel):
    session_id: str
    status: SessionStatusPayload

    model_config = {"frozen": True}


class PermissionAsked(BaseModel):
    request: PermissionRequest

    model_config = {"frozen": True}


class PermissionReplied(BaseModel):
    session_id: str
    request_id: str
    reply: str

    model_config = {"frozen": True}


class QuestionAsked(BaseModel):
    request: QuestionRequest

    model_config = {"frozen": True}


class QuestionReplied(BaseModel):
    session_id: str
    request_id: str

    model_config = {"frozen": True}


class UnknownEvent(BaseModel):
    """Unrecognized or malformed envelope.

    `event_type` is the original discriminant, suffixed with " (parse error)"
    when the type was known but its properties did not match.
    """

    event_type: str

    model_config = {"frozen": True}


DomainEvent = (
    MessageUpdated
    | MessagePartUpdated
    | SessionIdle
    | SessionError
    | SessionStatus
    | PermissionAsked
    | PermissionReplied
    | QuestionAsked
    | QuestionReplied
    | UnknownEvent
)
