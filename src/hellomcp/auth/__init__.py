# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""OAuth 2.0 + PKCE authentication against the Hellō wallet."""

from __future__ import annotations

from .exchange import TokenExchangeClient, TokenResponse
from .flow import PKCEAuthorizationFlow
from .loopback import LoopbackReceiver
from .pkce import PKCEAttempt, build_authorization_url, generate_attempt
from .session import AuthLifecycleManager, AuthSession, Cached, Idle, InFlight


__all__ = [
    "AuthLifecycleManager",
    "AuthSession",
    "Cached",
    "Idle",
    "InFlight",
    "LoopbackReceiver",
    "PKCEAttempt",
    "PKCEAuthorizationFlow",
    "TokenExchangeClient",
    "TokenResponse",
    "build_authorization_url",
    "generate_attempt",
]
