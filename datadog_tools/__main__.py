"""
Datadog tools MCP server entry point.

Run with: python -m datadog_tools [--config settings.toml]
"""

import argparse
import asyncio
import logging
import sys

from mcp.server import Server
from mcp.server.stdio import stdio_server

from .backend import DatadogBackend
from .config import ToolSettings, load_settings
from .tools import register_tools

logger = logging.getLogger("datadog_tools")


async def run_server(settings: ToolSettings):
    """Run the MCP server."""
    app = Server(settings.server_name)
    backend = DatadogBackend(settings.datadog, request_timeout=settings.executor.timeout_seconds)
    register_tools(app, backend, settings)

    # stdio_server is an async context manager
    async with stdio_server() as (read_stream, write_stream):
        await app.run(read_stream, write_stream, app.create_initialization_options())


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog="datadog_tools",
        description="MCP server exposing Datadog log search, span search and span aggregation",
    )
    parser.add_argument("--config", "-c", help="Path to a TOML settings file")
    parser.add_argument("--log-level", default="INFO", help="Logging level (default: INFO)")
    return parser.parse_args(argv)


def main(argv=None):
    """Main entry point for the Datadog tools MCP server."""
    args = parse_args(argv)
    # stdout carries the MCP protocol; logs go to stderr.
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    try:
        settings = load_settings(args.config)
    except Exception as e:
        print(f"Error loading settings: {e}", file=sys.stderr)
        sys.exit(1)

    if not settings.datadog.configured:
        logger.warning("DD_API_KEY and DD_APP_KEY must be set to use the Datadog tools; exiting")
        return

    try:
        asyncio.run(run_server(settings))
    except KeyboardInterrupt:
        pass
    except Exception as e:
        print(f"Error starting MCP server: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
