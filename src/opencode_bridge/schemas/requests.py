"""Outbound request bodies for the OpenCode HTTP API.

Optional fields left unset are omitted from the serialized body instead of
being sent as null, since the server treats "unset" and "null" differently
for some of them. Always serialize through `to_payload()`.
"""

from enum import Enum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field


class _RequestBody(BaseModel):
    model_config = {"populate_by_name": True}

    def to_payload(self) -> dict[str, Any]:
        """Wire-ready JSON body with unset optionals left out."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class CreateSessionRequest(_RequestBody):
    """Payload for POST /session."""

    title: str | None = None


class TextPartInput(BaseModel):
    type: Literal["text"] = "text"
    text: str
    synthetic: bool | None = None


class FilePartInput(BaseModel):
    type: Literal["file"] = "file"
    mime: str
    url: str
    filename: str | None = None


PartInput = Annotated[TextPartInput | FilePartInput, Field(discriminator="type")]


class ModelParam(BaseModel):
    """Which backend model handles a prompt. Both values are passed through as-is."""

    provider_id: str = Field(alias="providerId")
    model_id: str = Field(alias="modelId")

    model_config = {"populate_by_name": True}


class SendPromptRequest(_RequestBody):
    """Payload for POST /session/{id}/message."""

    parts: list[PartInput]
    system: str | None = None
    model: ModelParam | None = None
    agent: str | None = None

    @classmethod
    def from_text(
        cls,
        text: str,
        system: str | None = None,
        model: ModelParam | None = None,
        agent: str | None = None,
    ) -> "SendPromptRequest":
        """Build a prompt made of a single text part."""
        return cls(
            parts=[TextPartInput(text=text)],
            system=system,
            model=model,
            agent=agent,
        )


class PermissionReply(str, Enum):
    once = "once"
    always = "always"
    reject = "reject"


class PermissionReplyRequest(_RequestBody):
    """Payload for POST /permission/{id}/reply."""

    reply: PermissionReply
    message: str | None = None


class QuestionAnswer(BaseModel):
    label: str
    description: str | None = None


class QuestionReplyRequest(_RequestBody):
    """Payload for POST /question/{id}/reply. Answers keep the order given."""

    answers: list[QuestionAnswer]
