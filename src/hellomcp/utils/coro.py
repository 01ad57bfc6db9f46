# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Coroutine helpers shared by the capability services."""

from __future__ import annotations

import inspect
from typing import Any


async def maybe_await_with_args(target: Any, *args: Any, **kwargs: Any) -> Any:
    """Call *target* with the given arguments and await the result if needed.

    Handlers may be plain functions or coroutine functions; awaitables and
    plain values are passed through unchanged (arguments are ignored).
    """
    if callable(target):
        result = target(*args, **kwargs)
    else:
        result = target
    if inspect.isawaitable(result):
        return await result
    return result


__all__ = ["maybe_await_with_args"]
