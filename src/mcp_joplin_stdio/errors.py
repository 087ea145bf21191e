"""Domain errors."""

from __future__ import annotations

from dataclasses import dataclass


class JoplinError(Exception):
    """Base class for every error surfaced to a tool caller."""


@dataclass(frozen=True, slots=True)
class JoplinApiError(JoplinError):
    """Raised when the Joplin Data API returns a non-success response."""

    status_code: int
    method: str
    path: str
    response_text: str

    def __str__(self) -> str:
        return (
            f"Joplin API error ({self.status_code}) for {self.method} {self.path}: "
            f"{self.response_text}"
        )


class JoplinConnectionError(JoplinError):
    """Raised when the Joplin service cannot be reached at all."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Failed to connect to Joplin: {reason}")
        self.reason = reason


class ResourceFileError(JoplinError):
    """A local attachment file could not be read or written."""


class ToolArgumentError(JoplinError):
    """Tool arguments are missing or malformed."""


class NotFoundError(JoplinError):
    """A human-readable name did not match any entity."""


class UnknownToolError(JoplinError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown tool: {name}")
        self.name = name
