"""Permission and question requests raised by the agent.

Each request has an `id`. The later `permission.replied` / `question.replied`
event carries the same value as `requestID`; that equality is the only link
between a request and its reply.
"""

from typing import Any

from pydantic import BaseModel, Field


class PermissionRequest(BaseModel):
    """The agent asks to use a permission (e.g. "edit", "bash") on some patterns."""

    id: str
    session_id: str = Field(alias="sessionID")
    permission: str | None = None
    # Glob patterns the permission would apply to.
    patterns: list[str] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)

    model_config = {"frozen": True, "populate_by_name": True}


class QuestionOption(BaseModel):
    label: str
    description: str | None = None

    model_config = {"frozen": True}


class QuestionInfo(BaseModel):
    """One question within a question request, with its selectable options."""

    question: str | None = None
    header: str | None = None
    options: list[QuestionOption] = Field(default_factory=list)

    model_config = {"frozen": True}


class QuestionRequest(BaseModel):
    id: str
    session_id: str = Field(alias="sessionID")
    questions: list[QuestionInfo] = Field(default_factory=list)

    model_config = {"frozen": True, "populate_by_name": True}
