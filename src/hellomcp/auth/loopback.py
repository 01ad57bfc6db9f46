# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Loopback receiver for the authorization-code redirect.

The receiver owns a short-lived HTTP listener on ``localhost:<port>`` that
exists for exactly one authorization attempt:

* ``GET /``            landing page with a sign-in link
* ``GET /auth/start``  302 to the wallet authorization URL
* ``GET /callback``    validates ``error`` → ``state`` → ``code`` in that order

The listener is a Starlette app served by uvicorn over a socket bound up
front, so a port conflict surfaces as :class:`CallbackBindError` before the
browser is opened.  It is shut down on the first resolution, rejection,
timeout or cancellation.
"""

from __future__ import annotations

from collections.abc import Callable
import html
import socket
from typing import Any
import webbrowser

import anyio
import anyio.to_thread
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import HTMLResponse, RedirectResponse, Response
from starlette.routing import Route
from uvicorn import Config, Server

from ..errors import (
    AuthenticationFailed,
    AuthorizationDenied,
    AuthorizationTimeout,
    CallbackBindError,
    MissingCodeError,
    StateMismatchError,
)
from ..utils import get_logger


BrowserOpener = Callable[[str], Any]

_LOGIN_PAGE = """<!doctype html>
<html><head><meta charset="utf-8"><title>Hellō Admin MCP</title></head>
<body>
<h1>Sign in to Hellō</h1>
<p>The Hellō Admin MCP server needs you to sign in before it can manage your applications.</p>
<p><a href="/auth/start">Continue with Hellō</a></p>
</body></html>
"""

_SUCCESS_PAGE = """<!doctype html>
<html><head><meta charset="utf-8"><title>Signed in</title></head>
<body><h1>Authentication complete</h1><p>You can close this window and return to your MCP client.</p></body></html>
"""


def _error_page(message: str) -> HTMLResponse:
    body = f"<h1>Authentication Error</h1><p>{html.escape(message)}</p>"
    return HTMLResponse(body, status_code=400)


class CallbackOutcome:
    """Single-assignment result slot for one authorization attempt."""

    def __init__(self) -> None:
        self._event = anyio.Event()
        self._code: str | None = None
        self._error: AuthenticationFailed | None = None

    @property
    def resolved(self) -> bool:
        return self._event.is_set()

    def resolve(self, code: str) -> bool:
        if self._event.is_set():
            return False
        self._code = code
        self._event.set()
        return True

    def reject(self, error: AuthenticationFailed) -> bool:
        if self._event.is_set():
            return False
        self._error = error
        self._event.set()
        return True

    async def wait(self) -> str:
        await self._event.wait()
        if self._error is not None:
            raise self._error
        assert self._code is not None
        return self._code


def build_callback_app(expected_state: str, authorization_url: str, outcome: CallbackOutcome) -> Starlette:
    """Return the Starlette app that serves the landing page and callback."""

    async def callback(request: Request) -> Response:
        if outcome.resolved:
            return _error_page("This authorization attempt has already completed")

        params = request.query_params
        error = params.get("error")
        if error:
            outcome.reject(AuthorizationDenied(error, params.get("error_description")))
            return _error_page(f"OAuth error: {error}")

        if params.get("state") != expected_state:
            outcome.reject(StateMismatchError())
            return _error_page("Invalid state parameter")

        code = params.get("code")
        if not code:
            outcome.reject(MissingCodeError())
            return _error_page("No authorization code received")

        outcome.resolve(code)
        return HTMLResponse(_SUCCESS_PAGE)

    async def start(_request: Request) -> Response:
        return RedirectResponse(authorization_url, status_code=302)

    async def landing(_request: Request) -> Response:
        return HTMLResponse(_LOGIN_PAGE)

    return Starlette(
        routes=[
            Route("/callback", callback, methods=["GET"]),
            Route("/auth/start", start, methods=["GET"]),
            Route("/{path:path}", landing, methods=["GET"]),
        ]
    )


class LoopbackReceiver:
    """Waits for a single authorization code on a local HTTP listener."""

    def __init__(
        self,
        *,
        host: str = "localhost",
        port: int = 3000,
        timeout: float = 300.0,
        open_browser: BrowserOpener | None = webbrowser.open,
        log_level: str = "warning",
    ) -> None:
        self.host = host
        self.port = port
        self.timeout = timeout
        self._open_browser = open_browser
        self._log_level = log_level
        self._logger = get_logger("hellomcp.auth.loopback")

    @property
    def landing_url(self) -> str:
        return f"http://{self.host}:{self.port}/"

    async def await_authorization_code(self, expected_state: str, authorization_url: str) -> str:
        """Serve the callback endpoints until a code, a rejection or the timeout.

        Raises:
            CallbackBindError: The port is already in use.
            AuthorizationDenied: The wallet redirected back with ``error``.
            StateMismatchError: ``state`` did not match *expected_state*.
            MissingCodeError: The callback carried neither ``error`` nor ``code``.
            AuthorizationTimeout: Nothing arrived within ``timeout`` seconds.
        """
        sock = self._bind()
        outcome = CallbackOutcome()
        app = build_callback_app(expected_state, authorization_url, outcome)
        server = Server(Config(app=app, lifespan="off", log_level=self._log_level, access_log=False))
        stopped = anyio.Event()

        code: str | None = None
        failure: AuthenticationFailed | None = None

        async def serve() -> None:
            try:
                await server.serve(sockets=[sock])
            finally:
                stopped.set()

        self._logger.info(
            "waiting for authorization callback on %s", self.landing_url,
            extra={"event": "auth.loopback.listen", "port": self.port},
        )
        try:
            async with anyio.create_task_group() as tg:
                tg.start_soon(serve)
                try:
                    with anyio.move_on_after(self.timeout) as scope:
                        while not server.started and not stopped.is_set():
                            await anyio.sleep(0.01)
                        if stopped.is_set():
                            failure = CallbackBindError(self.host, self.port, "listener exited during startup")
                        else:
                            await self._launch_browser()
                            try:
                                code = await outcome.wait()
                            except AuthenticationFailed as exc:
                                failure = exc
                    if scope.cancelled_caught:
                        failure = AuthorizationTimeout(self.timeout)
                finally:
                    server.should_exit = True
        finally:
            sock.close()
            self._logger.debug("authorization listener closed", extra={"event": "auth.loopback.close"})

        if failure is not None:
            self._logger.warning(
                "authorization callback failed: %s", failure.message,
                extra={"event": "auth.loopback.reject", "reason": type(failure).__name__},
            )
            raise failure
        assert code is not None
        return code

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _bind(self) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            sock.bind((self.host, self.port))
            sock.listen(8)
        except OSError as exc:
            sock.close()
            raise CallbackBindError(self.host, self.port, exc.strerror or str(exc)) from exc
        return sock

    async def _launch_browser(self) -> None:
        url = self.landing_url
        if self._open_browser is None:
            self._logger.info("open %s in a browser to sign in", url, extra={"event": "auth.loopback.prompt"})
            return
        try:
            await anyio.to_thread.run_sync(self._open_browser, url)
        except Exception as exc:  # noqa: BLE001 - URL is logged for manual use
            self._logger.warning(
                "could not open a browser, visit %s to sign in", url,
                extra={"event": "auth.loopback.browser_failed", "reason": str(exc)},
            )


__all__ = ["BrowserOpener", "CallbackOutcome", "LoopbackReceiver", "build_callback_app"]
