"""Message content parts and tool execution states.

A message is made of parts, each tagged by its `type` field. Tool parts carry
an optional `state` object tagged by its own `status` field:

    {"type": "tool", "id": "p1", "tool": "bash",
     "state": {"status": "running", "input": {...}, "title": "ls"}}

Every `message.part.updated` event carries the full part, so consumers replace
their copy of a part on each update rather than merging fields.
"""

import logging
from typing import Annotated, Any, Literal

from pydantic import BaseModel, BeforeValidator, Discriminator, Field, Tag

logger = logging.getLogger(__name__)

# Status labels the server uses for tool states, in lifecycle order.
TOOL_STATUSES = ("pending", "running", "completed", "error")

# Part types with a dedicated model. Anything else decodes as OtherPart.
_KNOWN_PART_TYPES = frozenset({"text", "tool", "step-start", "step-finish"})


class TimeSpan(BaseModel):
    """Start/end timestamps (epoch milliseconds) for a message or part."""

    start: float | None = None
    end: float | None = None

    model_config = {"frozen": True}


class MessageInfo(BaseModel):
    """The subset of a message object carried by `message.updated`."""

    id: str
    role: str
    session_id: str | None = Field(default=None, alias="sessionID")
    time: TimeSpan | None = None

    model_config = {"frozen": True, "populate_by_name": True}


# ---------------------------------------------------------------------------
# Tool states
# ---------------------------------------------------------------------------


class _ToolStateBase(BaseModel):
    status: str
    input: Any = None

    model_config = {"frozen": True}

    @property
    def is_running(self) -> bool:
        return self.status == "running"

    @property
    def is_completed(self) -> bool:
        return self.status == "completed"

    @property
    def is_error(self) -> bool:
        return self.status == "error"

    @property
    def status_str(self) -> str:
        """Lowercase status label for display and telemetry."""
        return self.status


class PendingState(_ToolStateBase):
    """The tool call is known but has not started executing."""

    status: Literal["pending"] = "pending"


class RunningState(_ToolStateBase):
    status: Literal["running"] = "running"
    title: str | None = None
    metadata: dict[str, Any] | None = None


class CompletedState(_ToolStateBase):
    status: Literal["completed"] = "completed"
    output: str | None = None
    title: str | None = None
    metadata: dict[str, Any] | None = None


class ErrorState(_ToolStateBase):
    status: Literal["error"] = "error"
    error: str | None = None


ToolState = Annotated[
    PendingState | RunningState | CompletedState | ErrorState,
    Field(discriminator="status"),
]


def _drop_unrecognized_status(value: Any) -> Any:
    """Treat a tool state with an unknown `status` as absent.

    Known statuses with a malformed payload still fail validation.
    """
    if isinstance(value, dict) and value.get("status") not in TOOL_STATUSES:
        logger.debug("Ignoring tool state with unrecognized status %r", value.get("status"))
        return None
    return value


# ---------------------------------------------------------------------------
# Parts
# ---------------------------------------------------------------------------


class TextPart(BaseModel):
    type: Literal["text"] = "text"
    id: str
    session_id: str | None = Field(default=None, alias="sessionID")
    message_id: str | None = Field(default=None, alias="messageID")
    text: str = ""
    time: TimeSpan | None = None

    model_config = {"frozen": True, "populate_by_name": True}


class ToolPart(BaseModel):
    """A tool invocation.

    `state` is None until the server reports progress for the call, which is
    different from an explicit PendingState.
    """

    type: Literal["tool"] = "tool"
    id: str
    session_id: str | None = Field(default=None, alias="sessionID")
    message_id: str | None = Field(default=None, alias="messageID")
    call_id: str | None = Field(default=None, alias="callID")
    # The tool name, e.g. "bash", "read", "edit", "task".
    tool: str | None = None
    state: Annotated[ToolState | None, BeforeValidator(_drop_unrecognized_status)] = None

    model_config = {"frozen": True, "populate_by_name": True}


class StepStartPart(BaseModel):
    type: Literal["step-start"] = "step-start"
    id: str
    session_id: str | None = Field(default=None, alias="sessionID")

    model_config = {"frozen": True, "populate_by_name": True}


class StepFinishPart(BaseModel):
    type: Literal["step-finish"] = "step-finish"
    id: str
    session_id: str | None = Field(default=None, alias="sessionID")
    reason: str | None = None

    model_config = {"frozen": True, "populate_by_name": True}


class OtherPart(BaseModel):
    """Catch-all for part types this client does not process.

    Covers reasoning, file, subtask, snapshot and any type added later. The
    raw `type` string is kept for diagnostics.
    """

    type: str | None = None
    id: str | None = None
    session_id: str | None = Field(default=None, alias="sessionID")

    model_config = {"frozen": True, "populate_by_name": True}


def _part_tag(value: Any) -> str:
    if isinstance(value, OtherPart):
        return "other"
    if isinstance(value, dict):
        part_type = value.get("type")
    else:
        part_type = getattr(value, "type", None)
    if isinstance(part_type, str) and part_type in _KNOWN_PART_TYPES:
        return part_type
    return "other"


Part = Annotated[
    Annotated[TextPart, Tag("text")]
    | Annotated[ToolPart, Tag("tool")]
    | Annotated[StepStartPart, Tag("step-start")]
    | Annotated[StepFinishPart, Tag("step-finish")]
    | Annotated[OtherPart, Tag("other")],
    Discriminator(_part_tag),
]
