"""Process settings loaded from environment variables (and an optional .env file)."""

import logging

from pydantic_settings import BaseSettings, SettingsConfigDict

from opencode_bridge.schemas.server_config import (
    CONFIG_ENV_VAR,
    OpenCodeEnvConfig,
    OpenCodePermissions,
)


class BridgeSettings(BaseSettings):
    """All settings used by the bridge. Every field has a working default."""

    log_level: str = "INFO"

    # Base URL of the OpenCode HTTP server.
    opencode_url: str = "http://127.0.0.1:4096"
    request_timeout: float = 30.0
    # Read timeout for the event stream. None keeps the stream open indefinitely.
    stream_timeout: float | None = None

    database_url: str = "sqlite+aiosqlite:///./conversations.db"
    # How many recent messages to reload per channel.
    history_limit: int = 50

    # Permission posture handed to the OpenCode server. Defaults are fully
    # permissive for headless operation; set "ask" or "deny" to tighten.
    permission_edit: str = "allow"
    permission_bash: str = "allow"
    permission_webfetch: str = "allow"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def permissions(self) -> OpenCodePermissions:
        return OpenCodePermissions(
            edit=self.permission_edit,
            bash=self.permission_bash,
            webfetch=self.permission_webfetch,
        )

    def server_env(self) -> dict[str, str]:
        """Environment variables to pass when launching the OpenCode server."""
        config = OpenCodeEnvConfig.from_permissions(self.permissions())
        return {CONFIG_ENV_VAR: config.to_env_value()}


def configure_logging(level: str | None = None) -> None:
    """Configure root logging once at process start."""
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format="%(asctime)s %(levelname)-5s %(name)s: %(message)s",
    )


# Single settings instance used across the package.
settings = BridgeSettings()
