"""Session objects and session-level status reported by the server."""

from typing import Annotated, Literal

from pydantic import BaseModel, Field


class Session(BaseModel):
    """Session object returned by `POST /session`."""

    id: str
    title: str | None = None
    parent_id: str | None = Field(default=None, alias="parentId")

    model_config = {"frozen": True, "populate_by_name": True}


class HealthResponse(BaseModel):
    """Response from `GET /global/health`."""

    healthy: bool = False
    version: str | None = None


class IdleStatus(BaseModel):
    type: Literal["idle"] = "idle"

    model_config = {"frozen": True}


class BusyStatus(BaseModel):
    type: Literal["busy"] = "busy"

    model_config = {"frozen": True}


class RetryStatus(BaseModel):
    """The server is re-attempting after a transient failure.

    `attempt` counts up within one retry sequence and restarts for the next.
    """

    type: Literal["retry"] = "retry"
    attempt: int = Field(default=0, ge=0)
    message: str | None = None

    model_config = {"frozen": True}


SessionStatusPayload = Annotated[
    IdleStatus | BusyStatus | RetryStatus,
    Field(discriminator="type"),
]
