# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""STDIO transport: newline-delimited JSON-RPC over ``stdin``/``stdout``.

Each line is one envelope.  Lines are handled concurrently so that several
tool calls arriving while a browser login is pending all wait on the same
attempt.  Only JSON-RPC bodies are written to ``stdout``; logs go to stderr.
SIGINT/SIGTERM cancel the serve loop, which closes any open callback listener.

Blocking ``stdin`` reads happen on a daemon thread that hands lines to the
event loop through a :class:`~anyio.from_thread.BlockingPortal`.  Cancelling
the loop never waits for the next line, and the parked reader thread does not
hold up interpreter exit.
"""

from __future__ import annotations

from collections.abc import AsyncIterable, AsyncIterator, Callable
from concurrent.futures import CancelledError
from contextlib import AbstractAsyncContextManager, asynccontextmanager
import json
import signal
import sys
import threading
from typing import TYPE_CHECKING, Any, Protocol, TextIO

import anyio
from anyio import CancelScope
from anyio.from_thread import BlockingPortal
from anyio.streams.memory import MemoryObjectSendStream

from .base import BaseTransport
from ...errors import ParseError
from ...utils import get_logger


if TYPE_CHECKING:  # pragma: no cover - typing only
    from ..core import MCPServer


class LineWriter(Protocol):
    async def write(self, data: str) -> Any: ...

    async def flush(self) -> Any: ...


StdioStreams = tuple[AsyncIterable[str], LineWriter]


def _pump_lines(stream: TextIO, portal: BlockingPortal, send: MemoryObjectSendStream[str]) -> None:
    try:
        for line in iter(stream.readline, ""):
            portal.call(send.send, line)
        portal.call(send.aclose)
    except (RuntimeError, CancelledError, anyio.BrokenResourceError, anyio.ClosedResourceError):
        # portal stopped or reader closed: the transport is no longer listening
        return


@asynccontextmanager
async def stdio_streams(
    stdin: TextIO | None = None, stdout: TextIO | None = None
) -> AsyncIterator[StdioStreams]:
    """Yield a line iterator over *stdin* and an async writer for *stdout*."""
    send, receive = anyio.create_memory_object_stream[str]()
    async with BlockingPortal() as portal, receive:
        reader = threading.Thread(
            target=_pump_lines,
            args=(stdin or sys.stdin, portal, send),
            name="hellomcp-stdin",
            daemon=True,
        )
        reader.start()
        try:
            yield receive, anyio.wrap_file(stdout or sys.stdout)
        finally:
            await portal.stop(cancel_remaining=True)
            send.close()


def get_stdio_streams() -> Callable[[], AbstractAsyncContextManager[StdioStreams]]:
    """Return the stdio stream context manager.

    Separated into a helper so tests can patch it with in-memory streams.
    """
    return stdio_streams


class StdioTransport(BaseTransport):
    """Run an :class:`hellomcp.server.MCPServer` over STDIO."""

    TRANSPORT = ("stdio", "STDIO", "Standard IO")

    def __init__(self, server: MCPServer) -> None:
        super().__init__(server)
        self._logger = get_logger("hellomcp.transport.stdio")
        self._write_lock = anyio.Lock()

    async def run(
        self,
        *,
        stdin: AsyncIterable[str] | None = None,
        stdout: LineWriter | None = None,
        handle_signals: bool = True,
    ) -> None:
        if stdin is not None and stdout is not None:
            await self._serve(stdin, stdout, handle_signals=handle_signals)
            return

        streams_ctx = get_stdio_streams()
        async with streams_ctx() as (default_in, default_out):
            await self._serve(
                stdin if stdin is not None else default_in,
                stdout if stdout is not None else default_out,
                handle_signals=handle_signals,
            )

    async def _serve(self, stdin: AsyncIterable[str], stdout: LineWriter, *, handle_signals: bool) -> None:
        async with anyio.create_task_group() as outer:
            if handle_signals:
                outer.start_soon(self._watch_signals, outer.cancel_scope)
            async with anyio.create_task_group() as requests:
                async for line in stdin:
                    line = line.strip()
                    if line:
                        requests.start_soon(self._handle_line, line, stdout)
            self._logger.debug("stdin closed", extra={"event": "transport.stdio.eof"})
            outer.cancel_scope.cancel()

    async def _handle_line(self, line: str, stdout: LineWriter) -> None:
        try:
            envelope = json.loads(line)
        except ValueError:
            error = ParseError("Parse error")
            body: dict[str, Any] | None = {
                "jsonrpc": "2.0",
                "id": None,
                "error": error.to_error_data().model_dump(exclude_none=True),
            }
        else:
            routed = await self.server.handle(envelope, transport=self.transport_name)
            body = routed.body

        if body is None:
            return
        async with self._write_lock:
            await stdout.write(json.dumps(body, ensure_ascii=False) + "\n")
            await stdout.flush()

    async def _watch_signals(self, scope: CancelScope) -> None:
        with anyio.open_signal_receiver(signal.SIGINT, signal.SIGTERM) as signals:
            async for signum in signals:
                self._logger.info(
                    "received %s, shutting down",
                    signal.Signals(signum).name,
                    extra={"event": "transport.stdio.signal"},
                )
                scope.cancel()
                return


__all__ = ["LineWriter", "StdioTransport", "get_stdio_streams", "stdio_streams"]
