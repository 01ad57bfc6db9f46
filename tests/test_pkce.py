# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

from __future__ import annotations

import base64
import hashlib
from urllib.parse import parse_qs, urlsplit

import pytest

from hellomcp.auth import pkce
from hellomcp.config import HelloConfig


def test_verifier_length_within_rfc_bounds() -> None:
    verifier = pkce.generate_code_verifier()
    assert 43 <= len(verifier) <= 128
    assert set(verifier) <= set("ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-_")


def test_verifier_rejects_out_of_range_entropy() -> None:
    with pytest.raises(ValueError, match="between 43 and 128"):
        pkce.generate_code_verifier(8)


def test_challenge_is_unpadded_sha256_base64url() -> None:
    verifier = "dBjftJeZ4CVP-mB92K27uhbUJU1p1r_wW1gFWFOEjXk"
    expected = base64.urlsafe_b64encode(hashlib.sha256(verifier.encode()).digest()).decode().rstrip("=")

    challenge = pkce.generate_code_challenge(verifier)

    assert challenge == expected == "E9Melhoa2OwvFrEMTJguCHaoeK1t8URWbuGJSstw-cM"
    assert "=" not in challenge


def test_attempts_are_fresh() -> None:
    first = pkce.generate_attempt("http://localhost:3000/callback", 3000)
    second = pkce.generate_attempt("http://localhost:3000/callback", 3000)

    assert first.state != second.state
    assert first.code_verifier != second.code_verifier
    assert first.nonce != second.nonce
    assert first.code_challenge == pkce.generate_code_challenge(first.code_verifier)


def test_authorization_url_carries_pkce_parameters() -> None:
    config = HelloConfig(domain="hello.test", callback_port=4100)
    attempt = pkce.generate_attempt(config.redirect_uri, config.callback_port)

    url = pkce.build_authorization_url(config, attempt)
    parts = urlsplit(url)
    query = {key: values[0] for key, values in parse_qs(parts.query).items()}

    assert f"{parts.scheme}://{parts.netloc}{parts.path}" == "https://wallet.hello.test/authorize"
    assert query == {
        "client_id": config.stdio_client_id,
        "redirect_uri": "http://localhost:4100/callback",
        "scope": "mcp",
        "response_type": "code",
        "response_mode": "query",
        "code_challenge": attempt.code_challenge,
        "code_challenge_method": "S256",
        "state": attempt.state,
        "nonce": attempt.nonce,
    }
