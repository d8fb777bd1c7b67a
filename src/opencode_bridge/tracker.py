"""Latest-known state per session, built by applying classified events in order.

Usage:
    tracker = SessionEventTracker()
    async for event in client.stream_events():
        tracker.apply(event)
        for part in tracker.running_tools(session_id):
            ...

Part updates are full replacements, so events for the same part must be
applied in the order the transport delivered them. Events for different parts
or sessions are independent.
"""

import logging
from collections import defaultdict

from opencode_bridge.schemas.events import (
    DomainEvent,
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
from opencode_bridge.schemas.parts import MessageInfo, Part, ToolPart
from opencode_bridge.schemas.permission import PermissionRequest, QuestionRequest
from opencode_bridge.schemas.session import IdleStatus, SessionStatusPayload

logger = logging.getLogger(__name__)


class SessionEventTracker:
    """Keeps only the most recent value for each part, status and request."""

    def __init__(self) -> None:
        # (session_id, part_id) -> latest part. Parts without a session id are
        # keyed under None.
        self._parts: dict[tuple[str | None, str], Part] = {}
        # Absent key means the status is unknown (no status event seen yet).
        self._statuses: dict[str, SessionStatusPayload] = {}
        self._messages: dict[str, MessageInfo] = {}
        # Pending requests keyed by request id until the matching reply arrives.
        self._permissions: dict[str, PermissionRequest] = {}
        self._questions: dict[str, QuestionRequest] = {}
        self._errors: dict[str | None, object] = {}
        # Unknown discriminants seen, for diagnostics.
        self.unknown_counts: defaultdict[str, int] = defaultdict(int)

    def apply(self, event: DomainEvent) -> None:
        match event:
            case MessageUpdated(info=None):
                pass
            case MessageUpdated(info=info):
                self._messages[info.id] = info
            case MessagePartUpdated(part=part):
                if part.id is None:
                    # Only OtherPart can lack an id; there is nothing to key it by.
                    return
                self._parts[(part.session_id, part.id)] = part
            case SessionIdle(session_id=session_id):
                self._statuses[session_id] = IdleStatus()
            case SessionStatus(session_id=session_id, status=status):
                self._statuses[session_id] = status
            case SessionError(session_id=session_id, error=error):
                self._errors[session_id] = error
            case PermissionAsked(request=request):
                self._permissions[request.id] = request
            case PermissionReplied(request_id=request_id):
                self._resolve(self._permissions, request_id, "permission")
            case QuestionAsked(request=request):
                self._questions[request.id] = request
            case QuestionReplied(request_id=request_id):
                self._resolve(self._questions, request_id, "question")
            case UnknownEvent(event_type=event_type):
                self.unknown_counts[event_type] += 1

    @staticmethod
    def _resolve(pending: dict, request_id: str, kind: str) -> None:
        if pending.pop(request_id, None) is None:
            logger.debug("Reply for unknown %s request %s", kind, request_id)

    # -----------------------------------------------------------------------
    # Queries
    # -----------------------------------------------------------------------

    def part(self, session_id: str | None, part_id: str) -> Part | None:
        return self._parts.get((session_id, part_id))

    def parts_for_session(self, session_id: str | None) -> list[Part]:
        """Latest parts of a session, in the order each part was first seen."""
        return [part for (sid, _), part in self._parts.items() if sid == session_id]

    def running_tools(self, session_id: str | None) -> list[ToolPart]:
        return [
            part
            for part in self.parts_for_session(session_id)
            if isinstance(part, ToolPart) and part.state is not None and part.state.is_running
        ]

    def status(self, session_id: str) -> SessionStatusPayload | None:
        """Latest reported status, or None while it is still unknown."""
        return self._statuses.get(session_id)

    def message(self, message_id: str) -> MessageInfo | None:
        return self._messages.get(message_id)

    def last_error(self, session_id: str | None) -> object | None:
        return self._errors.get(session_id)

    def pending_permissions(self, session_id: str | None = None) -> list[PermissionRequest]:
        return [
            request
            for request in self._permissions.values()
            if session_id is None or request.session_id == session_id
        ]

    def pending_questions(self, session_id: str | None = None) -> list[QuestionRequest]:
        return [
            request
            for request in self._questions.values()
            if session_id is None or request.session_id == session_id
        ]
