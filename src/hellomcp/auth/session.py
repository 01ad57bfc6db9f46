# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Token lifecycle: session state and single-flight acquisition.

An :class:`AuthSession` is always in exactly one of three states::

    Idle ──ensure_token()──▶ InFlight(attempt) ──success──▶ Cached(token)
     ▲                              │                            │
     └──────────failure─────────────┘◀──────invalidate()─────────┘

While an attempt is in flight every caller of
:meth:`AuthLifecycleManager.ensure_token` awaits the same
:class:`PendingAttempt`, so concurrent tool calls trigger one browser login.
Sessions are plain objects owned by whoever constructs the manager; nothing
here is process-global.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, TypeAlias

import anyio

from ..errors import AuthenticationError, AuthenticationFailed
from ..utils import get_logger


@dataclass(slots=True, frozen=True)
class Idle:
    pass


@dataclass(slots=True, frozen=True)
class InFlight:
    attempt: PendingAttempt


@dataclass(slots=True, frozen=True)
class Cached:
    token: str


SessionState: TypeAlias = Idle | InFlight | Cached


class PendingAttempt:
    """Shared completion slot for one in-flight token acquisition."""

    def __init__(self) -> None:
        self._done = anyio.Event()
        self._token: str | None = None
        self._error: AuthenticationFailed | None = None

    @property
    def done(self) -> bool:
        return self._done.is_set()

    def succeed(self, token: str) -> None:
        if not self._done.is_set():
            self._token = token
            self._done.set()

    def fail(self, error: AuthenticationFailed) -> None:
        if not self._done.is_set():
            self._error = error
            self._done.set()

    async def result(self) -> str:
        await self._done.wait()
        if self._error is not None:
            raise self._error
        assert self._token is not None
        return self._token


class AuthSession:
    """Holds the current :data:`SessionState`."""

    def __init__(self, token: str | None = None) -> None:
        self.state: SessionState = Cached(token) if token else Idle()

    @property
    def token(self) -> str | None:
        return self.state.token if isinstance(self.state, Cached) else None


class TokenFlow(Protocol):
    async def run(self) -> str:
        """Perform one interactive authorization and return an access token."""


class AuthLifecycleManager:
    """Owns an :class:`AuthSession` and the flow used to fill it."""

    def __init__(self, session: AuthSession | None = None, *, flow: TokenFlow | None = None) -> None:
        self.session = session or AuthSession()
        self._flow = flow
        self._logger = get_logger("hellomcp.auth.lifecycle")

    @property
    def can_authenticate(self) -> bool:
        return self._flow is not None

    @property
    def state(self) -> SessionState:
        return self.session.state

    def attach_flow(self, flow: TokenFlow | None) -> None:
        self._flow = flow

    def set_token(self, token: str | None) -> None:
        """Install an externally obtained token; ``None`` clears the session."""
        if isinstance(self.session.state, InFlight):
            self._logger.debug("external token replaces in-flight attempt", extra={"event": "auth.token.set"})
        self.session.state = Cached(token) if token else Idle()

    def invalidate(self, token: str | None = None) -> None:
        """Drop a cached token.  Has no effect on an attempt that is in flight.

        When *token* is given, only that token is dropped; a newer token
        cached by a concurrent renewal survives.
        """
        state = self.session.state
        if isinstance(state, Cached) and (token is None or state.token == token):
            self.session.state = Idle()
            self._logger.info("cached token invalidated", extra={"event": "auth.token.invalidate"})

    async def ensure_token(self) -> str:
        state = self.session.state
        if isinstance(state, Cached):
            return state.token
        if isinstance(state, InFlight):
            self._logger.debug("joining in-flight authorization", extra={"event": "auth.flow.join"})
            return await state.attempt.result()
        if self._flow is None:
            raise AuthenticationError("Authentication required")

        attempt = PendingAttempt()
        in_flight = InFlight(attempt)
        self.session.state = in_flight
        self._logger.info("starting authorization", extra={"event": "auth.flow.start"})

        try:
            token = await self._flow.run()
        except AuthenticationFailed as exc:
            self._settle_failure(in_flight, exc)
            raise
        except Exception as exc:
            failure = AuthenticationFailed(f"Authentication failed: {exc}")
            self._settle_failure(in_flight, failure)
            raise failure from exc
        except BaseException:
            self._settle_failure(in_flight, AuthenticationFailed("Authorization attempt was cancelled"))
            raise

        if self.session.state is in_flight:
            self.session.state = Cached(token)
        attempt.succeed(token)
        self._logger.info("authorization complete", extra={"event": "auth.flow.complete"})
        return token

    def _settle_failure(self, in_flight: InFlight, error: AuthenticationFailed) -> None:
        if self.session.state is in_flight:
            self.session.state = Idle()
        in_flight.attempt.fail(error)
        self._logger.warning(
            "authorization failed: %s", error.message,
            extra={"event": "auth.flow.fail", "reason": type(error).__name__},
        )


__all__ = [
    "AuthLifecycleManager",
    "AuthSession",
    "Cached",
    "Idle",
    "InFlight",
    "PendingAttempt",
    "SessionState",
    "TokenFlow",
]
