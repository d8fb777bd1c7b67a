"""Configuration injected into the OpenCode server process.

The server reads a JSON document from the OPENCODE_CONFIG_CONTENT environment
variable at startup. Headless operation disables LSP and formatters; the
permission posture comes from settings so it can be tightened per deployment.
"""

from pydantic import BaseModel, Field

CONFIG_ENV_VAR = "OPENCODE_CONFIG_CONTENT"
CONFIG_SCHEMA_URL = "https://opencode.ai/config.json"


class OpenCodePermissions(BaseModel):
    """Permission levels ("allow", "ask", "deny") per tool category."""

    edit: str = "allow"
    bash: str = "allow"
    webfetch: str = "allow"


class OpenCodeEnvConfig(BaseModel):
    schema_url: str = Field(default=CONFIG_SCHEMA_URL, alias="$schema")
    lsp: bool = False
    formatter: bool = False
    permission: OpenCodePermissions = Field(default_factory=OpenCodePermissions)

    model_config = {"populate_by_name": True}

    @classmethod
    def from_permissions(cls, permissions: OpenCodePermissions) -> "OpenCodeEnvConfig":
        return cls(permission=permissions.model_copy())

    def to_env_value(self) -> str:
        """Serialize for the OPENCODE_CONFIG_CONTENT environment variable."""
        return self.model_dump_json(by_alias=True)
