"""Classify raw SSE envelopes into typed domain events.

Decoding happens in two steps: the envelope is read with its `properties` left
untyped, then the decoder registered for `type` validates `properties` against
the schema for that event. `classify` never raises:

- unknown `type`          -> UnknownEvent(type)
- known `type`, bad props -> UnknownEvent("<type> (parse error)")

The server protocol evolves independently of this client, so unrecognized and
malformed events are data the caller can skip, never a reason to stop reading
the stream.
"""

import json
import logging
from collections.abc import Callable, Mapping
from typing import Any

from pydantic import BaseModel, Field, ValidationError

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
from opencode_bridge.schemas.parts import MessageInfo, Part
from opencode_bridge.schemas.permission import PermissionRequest, QuestionRequest
from opencode_bridge.schemas.session import SessionStatusPayload

logger = logging.getLogger(__name__)

PARSE_ERROR_SUFFIX = " (parse error)"
INVALID_ENVELOPE = "(invalid envelope)"

Decoder = Callable[[Any], DomainEvent]

# Event type -> decoder. A decoder that raises makes classify() return an
# UnknownEvent instead.
_DECODERS: dict[str, Decoder] = {}


def register_decoder(event_type: str) -> Callable[[Decoder], Decoder]:
    """Register a properties decoder for one event type.

    Registering the same type again replaces the previous decoder.
    """

    def decorator(func: Decoder) -> Decoder:
        _DECODERS[event_type] = func
        return func

    return decorator


def known_event_types() -> frozenset[str]:
    return frozenset(_DECODERS)


# ---------------------------------------------------------------------------
# Per-type property schemas. Each extracts only the fields this client uses
# and ignores the rest of the payload.
# ---------------------------------------------------------------------------


class _MessageUpdatedProps(BaseModel):
    info: MessageInfo | None = None


class _MessagePartUpdatedProps(BaseModel):
    part: Part
    delta: str | None = None


class _SessionIdProps(BaseModel):
    session_id: str = Field(alias="sessionID")


class _SessionErrorProps(BaseModel):
    session_id: str | None = Field(default=None, alias="sessionID")
    error: Any = None


class _SessionStatusProps(BaseModel):
    session_id: str = Field(alias="sessionID")
    status: SessionStatusPayload


class _PermissionRepliedProps(BaseModel):
    session_id: str = Field(alias="sessionID")
    request_id: str = Field(alias="requestID")
    reply: str


class _QuestionRepliedProps(BaseModel):
    session_id: str = Field(alias="sessionID")
    request_id: str = Field(alias="requestID")


# ---------------------------------------------------------------------------
# Decoders
# ---------------------------------------------------------------------------


@register_decoder("message.updated")
def _decode_message_updated(properties: Any) -> DomainEvent:
    # Only `info` is consumed, and it is optional: a payload that does not
    # match still yields the event, just without info.
    try:
        props = _MessageUpdatedProps.model_validate(properties)
    except ValidationError as exc:
        logger.debug("Dropping unparseable message.updated info: %s", exc)
        return MessageUpdated(info=None)
    return MessageUpdated(info=props.info)


@register_decoder("message.part.updated")
def _decode_message_part_updated(properties: Any) -> DomainEvent:
    props = _MessagePartUpdatedProps.model_validate(properties)
    return MessagePartUpdated(part=props.part, delta=props.delta)


@register_decoder("session.idle")
def _decode_session_idle(properties: Any) -> DomainEvent:
    props = _SessionIdProps.model_validate(properties)
    return SessionIdle(session_id=props.session_id)


@register_decoder("session.error")
def _decode_session_error(properties: Any) -> DomainEvent:
    # Both fields are optional, so an error is always reported even when the
    # payload is unusable.
    try:
        props = _SessionErrorProps.model_validate(properties)
    except ValidationError as exc:
        logger.debug("Unparseable session.error properties: %s", exc)
        return SessionError()
    return SessionError(session_id=props.session_id, error=props.error)


@register_decoder("session.status")
def _decode_session_status(properties: Any) -> DomainEvent:
    props = _SessionStatusProps.model_validate(properties)
    return SessionStatus(session_id=props.session_id, status=props.status)


@register_decoder("permission.asked")
def _decode_permission_asked(properties: Any) -> DomainEvent:
    return PermissionAsked(request=PermissionRequest.model_validate(properties))


@register_decoder("permission.replied")
def _decode_permission_replied(properties: Any) -> DomainEvent:
    props = _PermissionRepliedProps.model_validate(properties)
    return PermissionReplied(
        session_id=props.session_id,
        request_id=props.request_id,
        reply=props.reply,
    )


@register_decoder("question.asked")
def _decode_question_asked(properties: Any) -> DomainEvent:
    return QuestionAsked(request=QuestionRequest.model_validate(properties))


@register_decoder("question.replied")
def _decode_question_replied(properties: Any) -> DomainEvent:
    props = _QuestionRepliedProps.model_validate(properties)
    return QuestionReplied(session_id=props.session_id, request_id=props.request_id)


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------


def classify(envelope: Envelope) -> DomainEvent:
    """Turn one envelope into one domain event. Never raises."""
    decoder = _DECODERS.get(envelope.event_type)
    if decoder is None:
        return UnknownEvent(event_type=envelope.event_type)

    try:
        return decoder(envelope.properties)
    except Exception as exc:
        # Registered decoders may fail in ways other than ValidationError;
        # classification stays total either way.
        logger.debug("Failed to parse %s properties: %s", envelope.event_type, exc)
        return UnknownEvent(event_type=f"{envelope.event_type}{PARSE_ERROR_SUFFIX}")


def parse_envelope(raw: Any) -> Envelope | None:
    """Validate a decoded JSON value as an envelope. Returns None if invalid."""
    try:
        return Envelope.model_validate(raw)
    except ValidationError:
        return None


def classify_raw(raw: str | bytes | Mapping[str, Any]) -> DomainEvent:
    """Classify an envelope given as JSON text or an already-decoded mapping.

    Input that is not an envelope at all (invalid JSON, no string `type`)
    becomes UnknownEvent("(invalid envelope)").
    """
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except ValueError as exc:
            # JSONDecodeError, or UnicodeDecodeError for undecodable bytes.
            logger.debug("Discarding non-JSON event data: %s", exc)
            return UnknownEvent(event_type=INVALID_ENVELOPE)

    envelope = parse_envelope(raw)
    if envelope is None:
        logger.debug("Discarding event without a valid envelope: %r", raw)
        return UnknownEvent(event_type=INVALID_ENVELOPE)
    return classify(envelope)
