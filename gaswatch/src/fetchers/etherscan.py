"""Etherscan gas tracker fetcher.

Endpoint: https://api.etherscan.io/v2/api?chainid=1&module=gastracker&action=gasoracle
Rate Limit: 5 calls/sec (free key)
API Key: Required
"""

import logging

from ..FeeSamples import CryptoKind, EvmGasSample
from .base import (
    BaseFetcher,
    FetcherDecodeError,
    FetcherEndpointError,
    FetcherUpstreamError,
    register_fetcher,
    require_number,
)

logger = logging.getLogger(__name__)


@register_fetcher
class EtherscanFetcher(BaseFetcher):
    """Fetcher for the Etherscan gas oracle.

    Returns safe/propose/fast gas prices in gwei. Etherscan encodes the
    prices as decimal strings and reports failures with ``status: "0"``
    inside an HTTP 200 response.
    """

    name = "etherscan"
    kind = CryptoKind.EVM
    BASE_URL = "https://api.etherscan.io/v2/api"
    CHAIN_ID = 1

    async def fetch(self) -> EvmGasSample:
        """Fetch gas price tiers from Etherscan.

        :returns: Gas prices in gwei.
        :raises FetcherEndpointError: If no API key is configured.
        :raises FetcherError: On any other failure.
        """
        if not self.has_api_key:
            raise FetcherEndpointError(
                "Etherscan API key is not configured", source=self.name
            )

        response = await self._get(
            self.base_url,
            params={
                "chainid": self.CHAIN_ID,
                "module": "gastracker",
                "action": "gasoracle",
                "apikey": self.api_key,
            },
        )
        data = self._json_object(response)

        status = data.get("status")
        if status is None:
            raise FetcherDecodeError("missing field 'status'", source=self.name)
        if str(status) != "1":
            detail = data.get("result") or data.get("message") or "unknown error"
            raise FetcherUpstreamError(str(detail), source=self.name)

        result = data.get("result")
        if not isinstance(result, dict):
            raise FetcherDecodeError(
                "field 'result' is not an object", source=self.name
            )

        sample = self._make_sample(
            EvmGasSample,
            safe_low=require_number(result, "SafeGasPrice", self.name),
            standard=require_number(result, "ProposeGasPrice", self.name),
            fast=require_number(result, "FastGasPrice", self.name),
        )
        logger.debug(f"[etherscan] Gas prices: {sample}")
        return sample
