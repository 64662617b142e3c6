"""HTTP launch capability - asks an external token-launch service to create a token."""

from __future__ import annotations

import logging

import httpx

from batch_launchpad.interfaces.launch import CreateResponse
from batch_launchpad.models.batch import TokenMetadata, WalletSlot

log = logging.getLogger(__name__)


class LaunchServiceError(Exception):
    """Transient launch-service failure (5xx, bad payload); worth retrying."""


class HttpLaunchCapability:
    """POSTs wallet keys and token metadata to ``{api_url}/create``.

    The service answers ``{"success": bool, "tokenUrl": str?, "error": str?}``.
    A 4xx is a definite refusal and comes back as ``success=False``; 5xx and
    transport errors raise so the invoker can retry.
    """

    def __init__(
        self,
        api_url: str,
        token_url_template: str = "",
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = api_url.rstrip("/")
        self._token_url_template = token_url_template
        self._client = client or httpx.AsyncClient(follow_redirects=True)

    async def close(self) -> None:
        await self._client.aclose()

    def _payload(self, wallet: WalletSlot, metadata: TokenMetadata) -> dict:
        return {
            "walletData": {
                "publicKey": wallet.spend.public_key,
                "keypair": wallet.spend.secret,
                "mint": wallet.asset.secret,
                "mintPublicKey": wallet.asset.public_key,
            },
            "tokenName": metadata.name,
            "tokenSymbol": metadata.symbol,
            "tokenDescription": metadata.description,
            "imageRef": metadata.image_ref,
            "twitterLink": metadata.twitter,
            "websiteLink": metadata.website,
            "telegramLink": metadata.telegram,
        }

    def token_url(self, wallet: WalletSlot, metadata: TokenMetadata) -> str:
        return self._token_url_template.format(
            symbol=metadata.symbol, issuer=wallet.asset.public_key,
        )

    async def create(self, wallet: WalletSlot, metadata: TokenMetadata) -> CreateResponse:
        log.info("Requesting token creation for %s (%s)", wallet.name, wallet.spend.public_key[:8])

        resp = await self._client.post(
            f"{self._base_url}/create", json=self._payload(wallet, metadata),
        )
        if resp.status_code >= 500:
            raise LaunchServiceError(f"launch service HTTP {resp.status_code}")

        try:
            data = resp.json()
        except ValueError as exc:
            raise LaunchServiceError(f"launch service returned non-JSON body: {exc}") from exc

        if resp.status_code >= 400 or not data.get("success"):
            error = data.get("error") or f"HTTP {resp.status_code}"
            log.warning("Launch service refused %s: %s", wallet.name, error)
            return CreateResponse(success=False, error=str(error))

        url = data.get("tokenUrl") or self.token_url(wallet, metadata)
        return CreateResponse(success=True, external_url=url)
