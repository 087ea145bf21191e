"""Routes tool calls to handlers and wraps the outcome in a tool result."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from mcp import types
from pydantic import ValidationError

from .errors import JoplinError, ToolArgumentError, UnknownToolError
from .joplin_client import JoplinClient
from .logging import get_logger
from .tools import TOOLS, ToolSpec, text

logger = get_logger(__name__)


def _argument_error(tool: ToolSpec, exc: ValidationError) -> ToolArgumentError:
    problems: list[str] = []
    for err in exc.errors():
        field = ".".join(str(part) for part in err["loc"]) or "arguments"
        if err["type"] == "missing":
            problems.append(f"Must provide '{field}'")
        else:
            problems.append(f"Invalid value for '{field}': {err['msg']}")
    return ToolArgumentError(f"{tool.name}: " + "; ".join(problems))


def failure(message: str) -> types.CallToolResult:
    return types.CallToolResult(content=[text(f"Error: {message}")], isError=True)


class Dispatcher:
    """Maps a tool name plus argument bag onto a ``JoplinClient`` call.

    Never raises: every failure becomes a ``CallToolResult`` with ``isError``.
    """

    def __init__(self, client: JoplinClient, tools: Iterable[ToolSpec] = TOOLS) -> None:
        self._client = client
        self._tools = {tool.name: tool for tool in tools}

    def _decode(self, name: str, arguments: Mapping[str, Any] | None) -> tuple[ToolSpec, Any]:
        tool = self._tools.get(name)
        if tool is None:
            raise UnknownToolError(name)
        try:
            return tool, tool.args_model.model_validate(dict(arguments or {}))
        except ValidationError as exc:
            raise _argument_error(tool, exc) from exc

    async def dispatch(
        self, name: str, arguments: Mapping[str, Any] | None = None
    ) -> types.CallToolResult:
        try:
            tool, args = self._decode(name, arguments)
            content = await tool.handler(self._client, args)
        except JoplinError as exc:
            logger.warning("Tool %s failed: %s", name, exc)
            return failure(str(exc))
        except Exception as exc:
            logger.exception("Tool %s raised unexpectedly", name)
            return failure(str(exc) or type(exc).__name__)
        return types.CallToolResult(content=list(content), isError=False)
