# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Authenticated client for the Hellō Admin REST API.

Each logical call moves through::

    NoAuth → Authenticating → Authenticated ─(401)→ Reauthenticating → Authenticated | Failed

A 401 triggers at most one renewal and one retry, and only when the lifecycle
manager has an interactive flow attached.  A second 401 raises
:class:`~hellomcp.errors.AuthenticationError` carrying the upstream challenge.
Everything else is returned to the caller untouched; :meth:`tool_payload`
translates responses for tool handlers.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
import time
from typing import Any

import httpx

from ..auth.session import AuthLifecycleManager
from ..errors import AuthenticationError, ScopeError, UpstreamError
from ..utils import get_logger


UPSTREAM_STATUS_KEY = "_httpStatus"
UPSTREAM_HEADERS_KEY = "_httpHeaders"

_Send = Callable[[dict[str, str]], Awaitable[httpx.Response]]


@dataclass(slots=True)
class APIResponse:
    status: int
    data: Any
    path: str
    headers: Mapping[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    @property
    def challenge(self) -> str | None:
        for key, value in self.headers.items():
            if key.lower() == "www-authenticate":
                return value
        return None


class AdminAPIClient:
    """Issues Admin API calls on behalf of one :class:`AuthLifecycleManager`.

    This is the only component that invalidates the shared token.
    """

    def __init__(self, lifecycle: AuthLifecycleManager, *, base_url: str, http_client: httpx.AsyncClient) -> None:
        self.lifecycle = lifecycle
        self.base_url = base_url.rstrip("/")
        self._http = http_client
        self._logger = get_logger("hellomcp.client.api")

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def call(
        self,
        method: str,
        path: str,
        body: Any = None,
        *,
        params: Mapping[str, str] | None = None,
        requires_auth: bool = True,
    ) -> APIResponse:
        method = method.upper()
        url = self.base_url + path

        async def send(headers: dict[str, str]) -> httpx.Response:
            kwargs: dict[str, Any] = {"headers": headers, "params": params}
            if body is not None and method in {"POST", "PUT", "PATCH"}:
                kwargs["json"] = body
            return await self._http.request(method, url, **kwargs)

        return await self._send(send, method, path, requires_auth=requires_auth)

    async def upload_logo(self, publisher_id: str, application_id: str, data: bytes, mime_type: str) -> APIResponse:
        """POST image bytes as the multipart ``logo`` field."""
        path = f"/api/v1/publishers/{publisher_id}/applications/{application_id}/logo"
        url = self.base_url + path

        async def send(headers: dict[str, str]) -> httpx.Response:
            files = {"logo": ("logo.png", data, mime_type)}
            return await self._http.post(url, headers=headers, files=files)

        return await self._send(send, "POST", path, requires_auth=True)

    def tool_payload(self, response: APIResponse) -> Any:
        """Translate *response* into a tool result payload.

        2xx responses yield the decoded body.  401, and 400 carrying a bearer
        challenge, yield the upstream-status marker that the router promotes
        to an authentication error with the challenge preserved.

        Raises:
            ScopeError: 403 with ``insufficient_scope``.
            UpstreamError: 404 and any other non-2xx status.
        """
        if response.ok:
            return response.data

        status = response.status
        challenge = response.challenge
        error_code = response.data.get("error") if isinstance(response.data, dict) else None

        if status == 401 or (status == 400 and challenge):
            return {
                UPSTREAM_STATUS_KEY: status,
                UPSTREAM_HEADERS_KEY: {"WWW-Authenticate": challenge} if challenge else {},
                "error": error_code or "invalid_token",
            }
        if status == 403 and ("insufficient_scope" in (challenge or "") or error_code == "insufficient_scope"):
            raise ScopeError(challenge=challenge, upstream_status=status)
        if status == 404:
            raise UpstreamError(f"Resource not found: {response.path}", status=status)

        detail = "Unknown error"
        if isinstance(response.data, dict):
            detail = response.data.get("message") or response.data.get("error") or detail
        raise UpstreamError(f"API request failed with status {status}: {detail}", status=status, body=response.data)

    async def request_for_tool(self, method: str, path: str, body: Any = None, **kwargs: Any) -> Any:
        return self.tool_payload(await self.call(method, path, body, **kwargs))

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _send(self, send: _Send, method: str, path: str, *, requires_auth: bool) -> APIResponse:
        started = time.perf_counter()
        token = await self.lifecycle.ensure_token() if requires_auth else None

        self._logger.info(
            "Admin API %s %s", method, path,
            extra={"event": "admin_api.call", "method": method, "path": path, "has_auth": token is not None},
        )
        response = await self._attempt(send, token)

        if response.status_code == 401 and requires_auth and self.lifecycle.can_authenticate:
            self._logger.info(
                "Admin API rejected token; reauthenticating",
                extra={"event": "admin_api.reauth", "method": method, "path": path},
            )
            self.lifecycle.invalidate(token)
            token = await self.lifecycle.ensure_token()
            response = await self._attempt(send, token)
            if response.status_code == 401:
                self._logger.warning(
                    "Admin API rejected renewed token",
                    extra={"event": "admin_api.reauth_failed", "method": method, "path": path},
                )
                raise AuthenticationError(
                    "Authentication required",
                    challenge=response.headers.get("www-authenticate"),
                    upstream_status=401,
                )

        result = APIResponse(
            status=response.status_code,
            data=_decode(response),
            path=path,
            headers=dict(response.headers),
        )
        self._logger.info(
            "Admin API response %s", result.status,
            extra={
                "event": "admin_api.response",
                "method": method,
                "path": path,
                "status": result.status,
                "duration_ms": round((time.perf_counter() - started) * 1000, 1),
            },
        )
        return result

    async def _attempt(self, send: _Send, token: str | None) -> httpx.Response:
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        try:
            return await send(headers)
        except httpx.HTTPError as exc:
            raise UpstreamError(f"Admin API request failed: {exc}") from exc


def is_upstream_marker(payload: Any) -> bool:
    return isinstance(payload, dict) and UPSTREAM_STATUS_KEY in payload


def _decode(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


__all__ = ["UPSTREAM_HEADERS_KEY", "UPSTREAM_STATUS_KEY", "APIResponse", "AdminAPIClient", "is_upstream_marker"]
