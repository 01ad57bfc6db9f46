# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Shared transport primitives for :mod:`hellomcp.server`.

Transports only frame bytes: every decoded envelope goes through
:meth:`MCPServer.handle`, so stdio and HTTP produce identical JSON-RPC bodies.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, ClassVar, Protocol, runtime_checkable


if TYPE_CHECKING:  # pragma: no cover - import cycle guard
    from ..core import MCPServer


class BaseTransport(ABC):
    """Common base for server transports.

    Subclasses receive the owning :class:`MCPServer` and implement :meth:`run`,
    whose keyword arguments are transport specific (host/port for HTTP, nothing
    for stdio).
    """

    TRANSPORT: ClassVar[tuple[str, ...]] = ("transport",)

    def __init__(self, server: MCPServer) -> None:
        self._server = server

    @property
    def server(self) -> MCPServer:
        return self._server

    @property
    def transport_name(self) -> str:
        return self.TRANSPORT[0]

    @property
    def transport_display_name(self) -> str:
        return self.TRANSPORT[1] if len(self.TRANSPORT) > 1 else self.TRANSPORT[0]

    @abstractmethod
    async def run(self, **kwargs: Any) -> None:
        """Serve until cancelled."""


@runtime_checkable
class TransportFactory(Protocol):
    """Callable that produces a configured transport for an ``MCPServer``."""

    def __call__(self, server: MCPServer) -> BaseTransport:  # pragma: no cover - protocol
        ...


__all__ = ["BaseTransport", "TransportFactory"]
