# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Interactive PKCE authorization: generate → loopback → exchange."""

from __future__ import annotations

import webbrowser

import httpx

from .exchange import TokenExchangeClient
from .loopback import BrowserOpener, LoopbackReceiver
from .pkce import build_authorization_url, generate_attempt
from ..config import HelloConfig


class PKCEAuthorizationFlow:
    """One-shot browser login; a fresh :class:`PKCEAttempt` per :meth:`run`."""

    def __init__(
        self,
        config: HelloConfig,
        *,
        receiver: LoopbackReceiver,
        exchange: TokenExchangeClient,
        client_id: str | None = None,
    ) -> None:
        self.config = config
        self.receiver = receiver
        self.exchange = exchange
        self.client_id = client_id or config.stdio_client_id

    @classmethod
    def from_config(
        cls,
        config: HelloConfig,
        http_client: httpx.AsyncClient,
        *,
        open_browser: BrowserOpener | None = webbrowser.open,
    ) -> PKCEAuthorizationFlow:
        receiver = LoopbackReceiver(
            host=config.callback_host,
            port=config.callback_port,
            timeout=config.auth_timeout,
            open_browser=open_browser,
        )
        exchange = TokenExchangeClient(
            token_endpoint=config.token_endpoint,
            client_id=config.stdio_client_id,
            http_client=http_client,
        )
        return cls(config, receiver=receiver, exchange=exchange)

    async def run(self) -> str:
        attempt = generate_attempt(self.config.redirect_uri, self.config.callback_port)
        authorization_url = build_authorization_url(self.config, attempt, client_id=self.client_id)
        code = await self.receiver.await_authorization_code(attempt.state, authorization_url)
        return await self.exchange.exchange(code, attempt.code_verifier, attempt.redirect_uri)


__all__ = ["PKCEAuthorizationFlow"]
