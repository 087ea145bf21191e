"""Application settings (env/.env) and the resolved Joplin connection."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .credentials import mask_token, resolve_token
from .logging import get_logger

logger = get_logger(__name__)

DEFAULT_JOPLIN_PORT = 41184
DEFAULT_MAX_PAGES = 500


class Settings(BaseSettings):
    """Settings for the MCP server and Joplin Data API."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    joplin_token: str | None = Field(default=None, alias="JOPLIN_TOKEN")
    joplin_port: int = Field(default=DEFAULT_JOPLIN_PORT, alias="JOPLIN_PORT")
    max_pages: int = Field(default=DEFAULT_MAX_PAGES, alias="JOPLIN_MAX_PAGES", ge=1)

    http_timeout_seconds: float = Field(
        default=15.0,
        alias="HTTP_TIMEOUT_SECONDS",
        gt=0,
    )

    mcp_transport: Literal["stdio", "streamable-http"] = Field(
        default="stdio", alias="MCP_TRANSPORT"
    )
    mcp_api_key: str | None = Field(default=None, alias="MCP_API_KEY")
    mcp_host: str = Field(default="127.0.0.1", alias="MCP_HOST")
    mcp_port: int = Field(default=5005, alias="MCP_PORT", ge=1, le=65535)

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", alias="LOG_LEVEL"
    )

    @field_validator("joplin_token", mode="before")
    @classmethod
    def _blank_token_is_unset(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("joplin_port", mode="before")
    @classmethod
    def _lenient_port(cls, value: Any) -> int:
        # A bad port must not stop the server; fall back and tell the operator.
        if value is None or (isinstance(value, str) and not value.strip()):
            return DEFAULT_JOPLIN_PORT
        raw = value.strip() if isinstance(value, str) else value
        if isinstance(raw, str) and raw.isdigit():
            port = int(raw)
        elif isinstance(raw, int) and not isinstance(raw, bool):
            port = raw
        else:
            port = 0
        if not 1 <= port <= 65535:
            logger.warning(
                'Invalid JOPLIN_PORT: "%s". Must be an integer between 1 and 65535; '
                "using default port %d.",
                value,
                DEFAULT_JOPLIN_PORT,
            )
            return DEFAULT_JOPLIN_PORT
        return port


@dataclass(frozen=True, slots=True)
class ConnectionConfig:
    """Base URL plus the token every request must carry."""

    base_url: str
    token: str = field(repr=False)

    def __repr__(self) -> str:
        return f"ConnectionConfig(base_url={self.base_url!r}, token={mask_token(self.token)!r})"


def build_connection_config(settings: Settings) -> ConnectionConfig:
    token = resolve_token(settings.joplin_token)
    if token is None:
        logger.warning(
            "Could not find Joplin API token. Requests will fail until one is available.\n"
            "Please ensure:\n"
            "  1. Joplin desktop is installed and has been started at least once\n"
            "  2. The Web Clipper service is enabled (Tools > Options > Web Clipper)\n"
            "  3. Or set the JOPLIN_TOKEN environment variable"
        )
        token = ""
    return ConnectionConfig(base_url=f"http://localhost:{settings.joplin_port}", token=token)
