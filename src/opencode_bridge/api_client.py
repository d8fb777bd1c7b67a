"""Async HTTP client for the OpenCode server.

Request bodies come from the builders in `schemas.requests`. The event stream
is read from `GET /event` and every SSE message is classified into a
DomainEvent as it arrives. There is no retry or reconnection here: HTTP errors
propagate to the caller, who owns that policy.
"""

import logging
from collections.abc import AsyncGenerator
from typing import Any

import httpx

from opencode_bridge.config import BridgeSettings
from opencode_bridge.dispatcher import classify_raw
from opencode_bridge.schemas.events import DomainEvent
from opencode_bridge.schemas.requests import (
    CreateSessionRequest,
    PermissionReplyRequest,
    QuestionReplyRequest,
    SendPromptRequest,
)
from opencode_bridge.schemas.session import HealthResponse, Session

logger = logging.getLogger(__name__)

_SSE_DATA_FIELD = "data:"


class OpenCodeClient:
    """Wraps the OpenCode endpoints this bridge uses with typed method calls."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        prompt_timeout: float = 300.0,
        stream_timeout: float | None = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._prompt_timeout = prompt_timeout
        self._stream_timeout = stream_timeout

    @classmethod
    def from_settings(cls, settings: BridgeSettings) -> "OpenCodeClient":
        return cls(
            base_url=settings.opencode_url,
            timeout=settings.request_timeout,
            stream_timeout=settings.stream_timeout,
        )

    def _client(self, timeout: float | httpx.Timeout | None = None) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout if timeout is None else timeout,
        )

    # -----------------------------------------------------------------------
    # Requests
    # -----------------------------------------------------------------------

    async def health(self) -> HealthResponse:
        async with self._client() as client:
            response = await client.get("/global/health")
            response.raise_for_status()
            return HealthResponse.model_validate(response.json())

    async def create_session(self, request: CreateSessionRequest | None = None) -> Session:
        body = (request or CreateSessionRequest()).to_payload()
        async with self._client() as client:
            response = await client.post("/session", json=body)
            response.raise_for_status()
            return Session.model_validate(response.json())

    async def send_prompt(self, session_id: str, request: SendPromptRequest) -> dict[str, Any]:
        """Submit a prompt. The server answers once the assistant turn finishes."""
        async with self._client(timeout=self._prompt_timeout) as client:
            response = await client.post(
                f"/session/{session_id}/message",
                json=request.to_payload(),
            )
            response.raise_for_status()
            return response.json()

    async def reply_permission(self, request_id: str, request: PermissionReplyRequest) -> None:
        async with self._client() as client:
            response = await client.post(
                f"/permission/{request_id}/reply",
                json=request.to_payload(),
            )
            response.raise_for_status()

    async def reply_question(self, request_id: str, request: QuestionReplyRequest) -> None:
        async with self._client() as client:
            response = await client.post(
                f"/question/{request_id}/reply",
                json=request.to_payload(),
            )
            response.raise_for_status()

    # -----------------------------------------------------------------------
    # Event stream
    # -----------------------------------------------------------------------

    async def stream_events(self) -> AsyncGenerator[DomainEvent, None]:
        """Yield one DomainEvent per SSE message, in delivery order.

        Malformed messages come through as UnknownEvent so one bad payload
        never ends the stream. Cancel the consuming task to stop reading.
        """
        timeout = httpx.Timeout(self._timeout, read=self._stream_timeout)
        async with httpx.AsyncClient(base_url=self._base_url, timeout=timeout) as client:
            async with client.stream(
                "GET", "/event", headers={"Accept": "text/event-stream"}
            ) as response:
                response.raise_for_status()
                logger.info("Subscribed to event stream at %s/event", self._base_url)
                data_lines: list[str] = []
                async for line in response.aiter_lines():
                    if line.startswith(_SSE_DATA_FIELD):
                        data = line[len(_SSE_DATA_FIELD):]
                        # A single space after the colon is part of the framing.
                        if data.startswith(" "):
                            data = data[1:]
                        data_lines.append(data)
                        continue
                    if not line and data_lines:
                        yield classify_raw("\n".join(data_lines))
                        data_lines = []
                    # Comments (":keepalive"), event:/id:/retry: fields are ignored.
                if data_lines:
                    yield classify_raw("\n".join(data_lines))
