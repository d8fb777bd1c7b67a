"""opencode-bridge: typed events and requests for the OpenCode agent server API."""

from opencode_bridge.dispatcher import classify, classify_raw, parse_envelope, register_decoder
from opencode_bridge.schemas.events import (
    DomainEvent,
    Envelope,
    MessagePartUpdated,
    MessageUpdated,
    PermissionAsked,
    PermissionReplied,
    QuestionAsked,
    QuestionReplied,
    SessionError,
    SessionIdle,
    SessionStatus,
    UnknownEvent,
)

__version__ = "0.1.0"
__all__ = [
    "classify",
    "classify_raw",
    "parse_envelope",
    "register_decoder",
    "DomainEvent",
    "Envelope",
    "MessagePartUpdated",
    "MessageUpdated",
    "PermissionAsked",
    "PermissionReplied",
    "QuestionAsked",
    "QuestionReplied",
    "SessionError",
    "SessionIdle",
    "SessionStatus",
    "UnknownEvent",
]
