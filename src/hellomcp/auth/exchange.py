# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Authorization-code → access-token exchange against the wallet."""

from __future__ import annotations

import httpx
from pydantic import BaseModel, ConfigDict, ValidationError

from ..errors import TokenExchangeFailed
from ..utils import get_logger


class TokenResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    access_token: str
    token_type: str | None = None
    expires_in: int | None = None
    scope: str | None = None


class TokenExchangeClient:
    """Posts a single ``authorization_code`` grant to the token endpoint."""

    def __init__(self, *, token_endpoint: str, client_id: str, http_client: httpx.AsyncClient) -> None:
        self.token_endpoint = token_endpoint
        self.client_id = client_id
        self._http = http_client
        self._logger = get_logger("hellomcp.auth.exchange")

    async def exchange(self, code: str, code_verifier: str, redirect_uri: str) -> str:
        """Return the access token for *code*.

        Raises:
            TokenExchangeFailed: Transport failure, non-2xx status, or a body
                without ``access_token``.
        """
        form = {
            "grant_type": "authorization_code",
            "code": code,
            "code_verifier": code_verifier,
            "client_id": self.client_id,
            "redirect_uri": redirect_uri,
        }
        try:
            response = await self._http.post(
                self.token_endpoint, data=form, headers={"Accept": "application/json"}
            )
        except httpx.HTTPError as exc:
            raise TokenExchangeFailed(f"Token exchange failed: {exc}") from exc

        if not response.is_success:
            self._logger.warning(
                "token exchange rejected",
                extra={"event": "auth.exchange.reject", "status": response.status_code},
            )
            raise TokenExchangeFailed(
                f"Token exchange failed: {response.status_code} {response.text}",
                status=response.status_code,
                body=response.text,
            )

        try:
            token = TokenResponse.model_validate_json(response.content)
        except ValidationError as exc:
            raise TokenExchangeFailed(
                "No access token received", status=response.status_code, body=response.text
            ) from exc

        self._logger.info("token exchange succeeded", extra={"event": "auth.exchange.ok"})
        return token.access_token


__all__ = ["TokenExchangeClient", "TokenResponse"]
