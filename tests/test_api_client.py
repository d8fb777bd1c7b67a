"""Tests for OpenCodeClient request methods and event stream parsing.

httpx.AsyncClient is replaced with fakes that record calls and replay canned
responses or SSE lines.
"""

import json
from unittest.mock import patch

import httpx
import pytest

from opencode_bridge.api_client import OpenCodeClient
from opencode_bridge.config import BridgeSettings
from opencode_bridge.schemas.events import (
    MessagePartUpdated,
    PermissionAsked,
    SessionIdle,
    UnknownEvent,
)
from opencode_bridge.schemas.requests import (
    CreateSessionRequest,
    PermissionReply,
    PermissionReplyRequest,
    QuestionAnswer,
    QuestionReplyRequest,
    SendPromptRequest,
)


def _sse(payload: dict) -> list[str]:
    """One SSE message: a data line followed by the blank separator line."""
    return [f"data: {json.dumps(payload)}", ""]


class FakeResponse:
    """Fake httpx response with a JSON body and/or SSE lines."""

    def __init__(self, payload=None, lines: list[str] | None = None, status_code: int = 200):
        self._payload = payload
        self._lines = lines or []
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            request = httpx.Request("GET", "http://opencode.test")
            raise httpx.HTTPStatusError(
                f"HTTP {self.status_code}",
                request=request,
                response=httpx.Response(self.status_code, request=request),
            )

    def json(self):
        return self._payload

    async def aiter_lines(self):
        for line in self._lines:
            yield line


class FakeStreamContext:
    def __init__(self, response):
        self._response = response

    async def __aenter__(self):
        return self._response

    async def __aexit__(self, *args):
        pass


class FakeClient:
    """Fake httpx.AsyncClient that records requests and returns one response."""

    def __init__(self, response: FakeResponse):
        self._response = response
        self.calls: list[tuple[str, str, dict]] = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        pass

    async def get(self, url, **kwargs):
        self.calls.append(("GET", url, kwargs))
        return self._response

    async def post(self, url, **kwargs):
        self.calls.append(("POST", url, kwargs))
        return self._response

    def stream(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        return FakeStreamContext(self._response)


@pytest.fixture
def api_client():
    return OpenCodeClient(base_url="http://opencode.test/")


async def _collect(api_client, lines: list[str]) -> list:
    with patch("httpx.AsyncClient", return_value=FakeClient(FakeResponse(lines=lines))):
        return [event async for event in api_client.stream_events()]


class TestRequests:
    """Each method posts the builder payload to the documented path."""

    @pytest.mark.asyncio
    async def test_health(self, api_client):
        fake = FakeClient(FakeResponse({"healthy": True, "version": "0.15.0"}))
        with patch("httpx.AsyncClient", return_value=fake) as client_cls:
            health = await api_client.health()

        assert health.healthy is True
        assert health.version == "0.15.0"
        assert fake.calls == [("GET", "/global/health", {})]
        assert client_cls.call_args.kwargs["base_url"] == "http://opencode.test"

    @pytest.mark.asyncio
    async def test_create_session_without_title_sends_empty_body(self, api_client):
        fake = FakeClient(FakeResponse({"id": "ses_1", "title": "New session", "version": "x"}))
        with patch("httpx.AsyncClient", return_value=fake):
            session = await api_client.create_session()

        assert session.id == "ses_1"
        assert session.title == "New session"
        assert session.parent_id is None
        assert fake.calls == [("POST", "/session", {"json": {}})]

    @pytest.mark.asyncio
    async def test_create_session_with_title(self, api_client):
        fake = FakeClient(FakeResponse({"id": "ses_2", "parentId": "ses_1"}))
        with patch("httpx.AsyncClient", return_value=fake):
            session = await api_client.create_session(CreateSessionRequest(title="Child"))

        assert session.parent_id == "ses_1"
        assert fake.calls[0][2] == {"json": {"title": "Child"}}

    @pytest.mark.asyncio
    async def test_send_prompt(self, api_client):
        fake = FakeClient(FakeResponse({"info": {"id": "msg_1"}, "parts": []}))
        with patch("httpx.AsyncClient", return_value=fake) as client_cls:
            result = await api_client.send_prompt("ses_1", SendPromptRequest.from_text("hi"))

        assert result == {"info": {"id": "msg_1"}, "parts": []}
        assert fake.calls == [
            ("POST", "/session/ses_1/message", {"json": {"parts": [{"type": "text", "text": "hi"}]}})
        ]
        assert client_cls.call_args.kwargs["timeout"] == 300.0

    @pytest.mark.asyncio
    async def test_reply_permission(self, api_client):
        fake = FakeClient(FakeResponse(True))
        with patch("httpx.AsyncClient", return_value=fake):
            await api_client.reply_permission(
                "perm_1", PermissionReplyRequest(reply=PermissionReply.always)
            )

        assert fake.calls == [("POST", "/permission/perm_1/reply", {"json": {"reply": "always"}})]

    @pytest.mark.asyncio
    async def test_reply_question(self, api_client):
        fake = FakeClient(FakeResponse(True))
        with patch("httpx.AsyncClient", return_value=fake):
            await api_client.reply_question(
                "q_1", QuestionReplyRequest(answers=[QuestionAnswer(label="Yes")])
            )

        assert fake.calls == [
            ("POST", "/question/q_1/reply", {"json": {"answers": [{"label": "Yes"}]}})
        ]

    @pytest.mark.asyncio
    async def test_http_errors_propagate(self, api_client):
        fake = FakeClient(FakeResponse({"error": "nope"}, status_code=503))
        with patch("httpx.AsyncClient", return_value=fake), pytest.raises(httpx.HTTPStatusError):
            await api_client.create_session()

        # No retry.
        assert len(fake.calls) == 1

    def test_from_settings(self):
        settings = BridgeSettings(
            _env_file=None, opencode_url="http://127.0.0.1:5000", request_timeout=5.0
        )

        client = OpenCodeClient.from_settings(settings)

        assert client._base_url == "http://127.0.0.1:5000"
        assert client._timeout == 5.0


class TestStreamEvents:
    """SSE messages are classified one by one, in delivery order."""

    @pytest.mark.asyncio
    async def test_events_are_classified_in_order(self, api_client):
        lines = (
            _sse({"type": "server.connected", "properties": {}})
            + _sse(
                {
                    "type": "message.part.updated",
                    "properties": {"part": {"type": "text", "id": "p1", "text": "Hi"}},
                }
            )
            + _sse({"type": "session.idle", "properties": {"sessionID": "s1"}})
        )

        events = await _collect(api_client, lines)

        assert events[0] == UnknownEvent(event_type="server.connected")
        assert isinstance(events[1], MessagePartUpdated)
        assert events[1].part.text == "Hi"
        assert events[2] == SessionIdle(session_id="s1")

    @pytest.mark.asyncio
    async def test_malformed_data_does_not_end_stream(self, api_client):
        lines = (
            ["data: {not json", ""]
            + _sse({"type": "session.idle", "properties": {}})
            + _sse({"type": "session.idle", "properties": {"sessionID": "s1"}})
        )

        events = await _collect(api_client, lines)

        assert events == [
            UnknownEvent(event_type="(invalid envelope)"),
            UnknownEvent(event_type="session.idle (parse error)"),
            SessionIdle(session_id="s1"),
        ]

    @pytest.mark.asyncio
    async def test_comments_and_other_fields_are_ignored(self, api_client):
        lines = [
            ": keepalive",
            "",
            "event: message",
            "id: 42",
            'data:{"type":"session.idle","properties":{"sessionID":"s1"}}',
            "",
        ]

        events = await _collect(api_client, lines)

        assert events == [SessionIdle(session_id="s1")]

    @pytest.mark.asyncio
    async def test_multi_line_data_is_joined(self, api_client):
        lines = [
            'data: {"type": "permission.asked",',
            'data:  "properties": {"id": "perm_1", "sessionID": "s1"}}',
            "",
        ]

        events = await _collect(api_client, lines)

        assert len(events) == 1
        assert isinstance(events[0], PermissionAsked)
        assert events[0].request.id == "perm_1"

    @pytest.mark.asyncio
    async def test_trailing_message_without_separator_is_flushed(self, api_client):
        lines = ['data: {"type": "session.idle", "properties": {"sessionID": "s3"}}']

        events = await _collect(api_client, lines)

        assert events == [SessionIdle(session_id="s3")]

    @pytest.mark.asyncio
    async def test_subscribes_to_event_endpoint(self, api_client):
        fake = FakeClient(FakeResponse(lines=[]))
        with patch("httpx.AsyncClient", return_value=fake):
            events = [event async for event in api_client.stream_events()]

        assert events == []
        method, url, kwargs = fake.calls[0]
        assert (method, url) == ("GET", "/event")
        assert kwargs["headers"] == {"Accept": "text/event-stream"}
