# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Command-line entry point.

``hellomcp`` serves over stdio by default; ``hellomcp http`` (or
``MCP_TRANSPORT=http``) starts the HTTP transport on ``HOST``/``PORT``.
"""

from __future__ import annotations

import argparse
import os
import sys

import anyio

from .config import HelloConfig
from .server import MCPServer
from .utils import get_logger, setup_logger


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="hellomcp", description="Hellō Admin MCP server")
    parser.add_argument(
        "transport",
        nargs="?",
        default=os.environ.get("MCP_TRANSPORT", "stdio"),
        help="stdio (default) or http",
    )
    parser.add_argument("--host", default=None, help="HTTP bind address (default: $HOST or 0.0.0.0)")
    parser.add_argument("--port", type=int, default=None, help="HTTP port (default: $PORT or 3000)")
    parser.add_argument("--log-level", default=None, help="Override HELLOMCP_LOG_LEVEL")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logger(level=args.log_level)
    logger = get_logger("hellomcp.main")

    try:
        config = HelloConfig.from_env()
    except ValueError as exc:
        logger.error("invalid configuration: %s", exc, extra={"event": "config.invalid"})
        return 2

    transport = args.transport.lower()
    server = MCPServer(config, transport=transport)
    kwargs = {}
    if transport != "stdio":
        kwargs = {"host": args.host, "port": args.port}

    try:
        anyio.run(lambda: server.serve(**kwargs))
    except ValueError as exc:
        logger.error("%s", exc, extra={"event": "server.start_failed"})
        return 2
    except KeyboardInterrupt:
        logger.info("interrupted", extra={"event": "server.interrupted"})
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
