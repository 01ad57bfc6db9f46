# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""PKCE material for a single authorization attempt (RFC 7636).

A :class:`PKCEAttempt` bundles everything one round trip through the Hellō
wallet needs: verifier/challenge pair, ``state`` for CSRF protection, a
``nonce`` and the loopback redirect URI.  Attempts are never reused.
"""

from __future__ import annotations

import base64
from dataclasses import dataclass
import hashlib
import secrets
from urllib.parse import urlencode

from ..config import HelloConfig


MIN_VERIFIER_LENGTH = 43
MAX_VERIFIER_LENGTH = 128
CHALLENGE_METHOD = "S256"


@dataclass(slots=True, frozen=True)
class PKCEAttempt:
    code_verifier: str
    code_challenge: str
    state: str
    nonce: str
    redirect_uri: str
    callback_port: int


def generate_code_verifier(num_bytes: int = 32) -> str:
    """Return a base64url verifier built from *num_bytes* of CSPRNG output.

    32 bytes yields the RFC minimum of 43 characters; 96 bytes the maximum.
    """
    verifier = secrets.token_urlsafe(num_bytes)
    if not MIN_VERIFIER_LENGTH <= len(verifier) <= MAX_VERIFIER_LENGTH:
        raise ValueError(
            f"Code verifier length must be between {MIN_VERIFIER_LENGTH} and {MAX_VERIFIER_LENGTH}, "
            f"got {len(verifier)}"
        )
    return verifier


def generate_code_challenge(verifier: str) -> str:
    """``BASE64URL(SHA256(verifier))`` without padding."""
    digest = hashlib.sha256(verifier.encode("ascii")).digest()
    return base64.urlsafe_b64encode(digest).decode("ascii").rstrip("=")


def generate_attempt(redirect_uri: str, callback_port: int) -> PKCEAttempt:
    verifier = generate_code_verifier()
    return PKCEAttempt(
        code_verifier=verifier,
        code_challenge=generate_code_challenge(verifier),
        state=secrets.token_urlsafe(16),
        nonce=secrets.token_urlsafe(16),
        redirect_uri=redirect_uri,
        callback_port=callback_port,
    )


def build_authorization_url(config: HelloConfig, attempt: PKCEAttempt, *, client_id: str | None = None) -> str:
    """Return the wallet ``/authorize`` URL for *attempt*."""
    params = {
        "client_id": client_id or config.stdio_client_id,
        "redirect_uri": attempt.redirect_uri,
        "scope": config.scope,
        "response_type": "code",
        "response_mode": "query",
        "code_challenge": attempt.code_challenge,
        "code_challenge_method": CHALLENGE_METHOD,
        "state": attempt.state,
        "nonce": attempt.nonce,
    }
    return f"{config.authorization_endpoint}?{urlencode(params)}"


__all__ = [
    "CHALLENGE_METHOD",
    "PKCEAttempt",
    "build_authorization_url",
    "generate_attempt",
    "generate_code_challenge",
    "generate_code_verifier",
]
