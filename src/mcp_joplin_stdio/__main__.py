"""CLI entrypoint."""

from __future__ import annotations

import sys

import anyio
import uvicorn

from .asgi import create_app
from .logging import configure_logging, get_logger
from .mcp_server import run_stdio
from .settings import Settings

logger = get_logger(__name__)


def main() -> None:
    settings = Settings()
    configure_logging(settings.log_level)

    if settings.mcp_transport == "streamable-http":
        uvicorn.run(
            create_app(settings),
            host=settings.mcp_host,
            port=settings.mcp_port,
            log_level=settings.log_level.lower(),
        )
        return

    try:
        anyio.run(run_stdio, settings)
    except KeyboardInterrupt:
        logger.info("Interrupted; stdio transport closed")
    except Exception:
        logger.exception("Failed to start server")
        sys.exit(1)


if __name__ == "__main__":
    main()
