"""Logging utilities for the Joplin MCP server."""

from __future__ import annotations

import logging
from typing import Literal

from mcp.server.fastmcp.utilities.logging import configure_logging as _mcp_configure_logging

_PACKAGE_LOGGER_NAME = "mcp_joplin_stdio"

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def _qualify(name: str | None) -> str:
    if not name:
        return _PACKAGE_LOGGER_NAME
    if name.startswith(_PACKAGE_LOGGER_NAME):
        return name
    return f"{_PACKAGE_LOGGER_NAME}.{name}"


def configure_logging(level: LogLevel = "INFO") -> logging.Logger:
    """Route all log output to stderr.

    stdout carries the MCP stdio stream, so nothing may ever be printed there.
    """

    _mcp_configure_logging(level=level)
    logger = logging.getLogger(_PACKAGE_LOGGER_NAME)
    logger.setLevel(level)
    return logger


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a logger scoped to the package namespace."""

    return logging.getLogger(_qualify(name))
