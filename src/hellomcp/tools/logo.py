# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Logo upload tool and the supported-formats resource."""

from __future__ import annotations

import base64
import binascii
import re
from typing import Annotated, Any, Final, Literal

from pydantic import Field

from ..client.api import is_upstream_marker
from ..context import get_context
from ..errors import ParamsValidationError, UpstreamError
from ..resource import resource
from ..tool import tool
from .applications import ApplicationId, application_path
from .publishers import PublisherId


SUPPORTED_MIMETYPES: Final[tuple[str, ...]] = (
    "image/png",
    "image/jpeg",
    "image/gif",
    "image/webp",
    "image/apng",
    "image/svg+xml",
)

_DATA_URL_RE = re.compile(r"^data:([^;,]+);base64,", re.IGNORECASE)


def detect_mime_type(image_data: str) -> str | None:
    """Return the MIME type declared by a ``data:<type>;base64,`` prefix."""
    match = _DATA_URL_RE.match(image_data)
    return match.group(1).lower() if match else None


def decode_image_data(image_data: str) -> tuple[bytes, str]:
    """Split a data URL into raw bytes and its MIME type.

    Raises:
        ParamsValidationError: Missing prefix, unsupported type or bad base64.
    """
    mime_type = detect_mime_type(image_data)
    if mime_type is None:
        raise ParamsValidationError(
            "Could not determine image format. Please ensure the image data includes a data URL prefix "
            "(e.g., data:image/png;base64,...)"
        )
    if mime_type not in SUPPORTED_MIMETYPES:
        raise ParamsValidationError(
            f"Unsupported mimetype: {mime_type}. Supported types: {', '.join(SUPPORTED_MIMETYPES)}",
            data={"mime_type": mime_type, "supported": list(SUPPORTED_MIMETYPES)},
        )
    encoded = image_data[image_data.index(",") + 1 :]
    try:
        return base64.b64decode(encoded, validate=True), mime_type
    except (binascii.Error, ValueError) as exc:
        raise ParamsValidationError("Image data is not valid base64") from exc


@tool("hello_update_logo")
async def update_logo(
    publisher_id: PublisherId,
    application_id: ApplicationId,
    image_url: Annotated[
        str | None, Field(description="URL of the image to upload. Supported formats: PNG, JPG/JPEG, GIF, WebP, APNG, SVG")
    ] = None,
    image_data: Annotated[
        str | None, Field(description="Base64 image as a data URL (data:image/png;base64,...)")
    ] = None,
    theme: Annotated[
        Literal["light", "dark"],
        Field(description="light theme logo (dark elements) or dark theme logo (light elements)"),
    ] = "light",
) -> Any:
    """Update a logo for a Hellō application from a URL or inline image data.

    Returns the full application state after the update.
    """
    if not image_url and not image_data:
        raise ParamsValidationError("Either image_url or image_data must be provided")

    api = get_context().api
    app_path = application_path(publisher_id, application_id)

    current = await api.request_for_tool("GET", app_path)
    if is_upstream_marker(current):
        return current

    if image_url:
        uploaded = await api.request_for_tool("POST", f"{app_path}/logo", params={"url": image_url})
    else:
        assert image_data is not None
        raw, mime_type = decode_image_data(image_data)
        uploaded = api.tool_payload(await api.upload_logo(publisher_id, application_id, raw, mime_type))
    if is_upstream_marker(uploaded):
        return uploaded

    logo_uri = uploaded.get("image_uri") if isinstance(uploaded, dict) else None
    if not logo_uri:
        raise UpstreamError("Logo upload did not return an image_uri", body=uploaded)

    field_name = "image_uri" if theme == "light" else "dark_image_uri"
    update = {**(current or {}), field_name: logo_uri}
    return await api.request_for_tool("PUT", app_path, update)


@resource(
    "hello://supported-logo-formats",
    name="Supported Logo Formats",
    description="List of supported image formats and mimetypes for logo uploads",
    mime_type="application/json",
)
def supported_logo_formats() -> dict[str, Any]:
    return {
        "supportedMimeTypes": list(SUPPORTED_MIMETYPES),
        "supportedExtensions": [".png", ".jpg", ".jpeg", ".gif", ".webp", ".apng", ".svg"],
        "recommendedFormat": "PNG",
        "maxFileSize": "100KB",
        "notes": [
            "PNG format is recommended for transparency support",
            "SVG files are sanitized for security",
            "All images are scaled to fit within 400px × 100px",
            "Both light and dark theme versions are recommended",
            "Image data must include data URL prefix (e.g., data:image/png;base64,...)",
        ],
    }


__all__ = ["SUPPORTED_MIMETYPES", "decode_image_data", "detect_mime_type", "supported_logo_formats", "update_logo"]
