"""CLI entry point for the API Hub MCP server."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

import uvicorn

from .config import Settings, get_settings
from .logging import configure_logging
from .server import build_server

logger = logging.getLogger(__name__)

HTTP_TRANSPORTS = {"http", "streamable-http", "streamablehttp", "sse"}


def _parse_args(argv: Optional[List[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="api-hub-mcp",
        description="Expose an API Hub OpenAPI document as MCP tools.",
    )
    parser.add_argument("api_id", nargs="?", help="API identifier (default: $API_HUB_API_ID)")
    parser.add_argument("--transport", help="stdio, http, streamable-http or sse")
    parser.add_argument("--host", help="Bind host for HTTP transports")
    parser.add_argument("--port", type=int, help="Bind port for HTTP transports")
    parser.add_argument("--log-level", help="Logging level")
    return parser.parse_args(argv)


def resolve_settings(args: argparse.Namespace, settings: Settings) -> Settings:
    overrides = {
        "api_hub_api_id": args.api_id,
        "api_hub_transport": args.transport,
        "api_hub_host": args.host,
        "api_hub_port": args.port,
        "api_hub_log_level": args.log_level,
    }
    update = {key: value for key, value in overrides.items() if value is not None}
    return settings.model_copy(update=update)


async def _run(settings: Settings, api_id: str) -> None:
    mcp, app = build_server(settings, api_id)
    transport = settings.api_hub_transport.lower()

    if transport in HTTP_TRANSPORTS:
        if not app:
            raise RuntimeError(f"HTTP app unavailable for transport={transport}")
        config = uvicorn.Config(app, host=settings.api_hub_host, port=settings.api_hub_port)
        server = uvicorn.Server(config)
        await server.serve()
        return
    await mcp.run_stdio_async(show_banner=False)


def main(argv: Optional[List[str]] = None) -> None:
    args = _parse_args(argv)
    settings = resolve_settings(args, get_settings())
    if not settings.api_hub_api_id:
        sys.stderr.write("api-hub-mcp: an API identifier is required (argument or API_HUB_API_ID)\n")
        raise SystemExit(2)

    configure_logging(settings.api_hub_log_level)
    try:
        asyncio.run(_run(settings, settings.api_hub_api_id))
    except KeyboardInterrupt:
        pass
    except Exception:
        logger.exception("Fatal error in main()")
        raise SystemExit(1)


if __name__ == "__main__":
    main()
