# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Resource declaration utilities.

Usage mirrors :mod:`hellomcp.tool`.  A resource without a reader function is
advertised by ``resources/list`` but cannot be read (documentation links the
client opens itself).
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any


ResourceFn = Callable[[], Any]


@dataclass(slots=True)
class ResourceSpec:
    uri: str
    fn: ResourceFn | None = None
    name: str | None = None
    description: str | None = None
    mime_type: str | None = None

    @property
    def readable(self) -> bool:
        return self.fn is not None


_RESOURCE_ATTR = "__hellomcp_resource__"


def resource(
    uri: str,
    *,
    name: str | None = None,
    description: str | None = None,
    mime_type: str | None = None,
) -> Callable[[ResourceFn], ResourceFn]:
    """Mark a callable as the reader for *uri*.

    The function returns ``str`` (text), ``bytes`` (blob) or a JSON-compatible
    object, which is serialized as text.
    """

    def decorator(fn: ResourceFn) -> ResourceFn:
        spec = ResourceSpec(uri=uri, fn=fn, name=name or fn.__name__, description=description, mime_type=mime_type)
        setattr(fn, _RESOURCE_ATTR, spec)
        return fn

    return decorator


def extract_resource_spec(fn: ResourceFn) -> ResourceSpec | None:
    spec = getattr(fn, _RESOURCE_ATTR, None)
    if isinstance(spec, ResourceSpec):
        return spec
    return None


__all__ = ["ResourceFn", "ResourceSpec", "extract_resource_spec", "resource"]
