# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Normalization helpers for handler results.

Tool handlers return plain Python values (usually the decoded Admin API
payload); these helpers coerce them into ``CallToolResult`` /
``ReadResourceResult`` and recover the upstream-status marker from a result
for the router.
"""

from __future__ import annotations

import base64
from collections.abc import Iterable, Mapping
import json
from typing import Any

from pydantic import ValidationError

from .. import types
from ..client.api import UPSTREAM_HEADERS_KEY, UPSTREAM_STATUS_KEY


AUTH_SENTINEL_STATUSES = frozenset({400, 401})


def normalize_tool_result(value: Any) -> types.CallToolResult:
    """Coerce arbitrary tool handler output into ``CallToolResult``.

    Mappings become a pretty-printed JSON text block plus ``structuredContent``.
    """
    if isinstance(value, types.CallToolResult):
        return value

    structured: dict[str, Any] | None = None
    if isinstance(value, Mapping):
        structured = dict(value)
        blocks: list[types.ContentBlock] = [_as_text_content(structured)]
    else:
        blocks = _coerce_content_blocks(value)

    payload: dict[str, Any] = {"content": blocks}
    if structured is not None:
        payload["structuredContent"] = structured
    return types.CallToolResult(**payload)


def _coerce_content_blocks(source: Any) -> list[types.ContentBlock]:
    if source is None:
        return []

    if isinstance(source, (types.TextContent, types.ImageContent, types.EmbeddedResource)):
        return [source]

    if isinstance(source, (bytes, bytearray)):
        encoded = base64.b64encode(bytes(source)).decode("ascii")
        return [types.TextContent(type="text", text=encoded)]

    if isinstance(source, str):
        return [types.TextContent(type="text", text=source)]

    if isinstance(source, Iterable):
        return [_as_text_content(list(source))]

    return [_as_text_content(source)]


def _as_text_content(value: Any) -> types.TextContent:
    try:
        text = json.dumps(value, ensure_ascii=False, indent=2)
    except (TypeError, ValueError):
        text = str(value)
    return types.TextContent(type="text", text=text)


def upstream_marker(result: types.CallToolResult) -> dict[str, Any] | None:
    """Return the ``_httpStatus`` marker carried by *result*, if any.

    The marker is looked for in ``structuredContent`` first, then in a JSON
    object in the first text block.
    """
    candidates: list[Any] = []
    if result.structuredContent is not None:
        candidates.append(result.structuredContent)
    if result.content and isinstance(result.content[0], types.TextContent):
        try:
            candidates.append(json.loads(result.content[0].text))
        except ValueError:
            pass

    for candidate in candidates:
        if isinstance(candidate, dict) and candidate.get(UPSTREAM_STATUS_KEY) in AUTH_SENTINEL_STATUSES:
            return candidate
    return None


def marker_challenge(marker: Mapping[str, Any]) -> str | None:
    headers = marker.get(UPSTREAM_HEADERS_KEY) or {}
    if not isinstance(headers, Mapping):
        return None
    for key, value in headers.items():
        if str(key).lower() == "www-authenticate" and value:
            return str(value)
    return None


def normalize_resource_payload(uri: str, declared_mime: str | None, payload: Any) -> types.ReadResourceResult:
    """Coerce resource handler output into ``ReadResourceResult``."""
    if isinstance(payload, types.ReadResourceResult):
        return payload

    if isinstance(payload, (types.TextResourceContents, types.BlobResourceContents)):
        return types.ReadResourceResult(contents=[payload])

    if isinstance(payload, (bytes, bytearray)):
        mime = declared_mime or "application/octet-stream"
        encoded = base64.b64encode(bytes(payload)).decode("ascii")
        blob = types.BlobResourceContents(uri=uri, mimeType=mime, blob=encoded)
        return types.ReadResourceResult(contents=[blob])

    if isinstance(payload, str):
        text = payload
    else:
        text = json.dumps(payload, ensure_ascii=False, indent=2)
        declared_mime = declared_mime or "application/json"

    try:
        content = types.TextResourceContents(uri=uri, mimeType=declared_mime or "text/plain", text=text)
    except ValidationError as exc:
        raise ValueError(f"Invalid resource URI {uri!r}") from exc
    return types.ReadResourceResult(contents=[content])


__all__ = ["marker_challenge", "normalize_resource_payload", "normalize_tool_result", "upstream_marker"]
