"""Ethereum JSON-RPC fee history fetcher.

Endpoint: any Ethereum JSON-RPC node (eth_feeHistory)
Rate Limit: Depends on provider; public nodes need no key
"""

import logging
from statistics import mean

from ..FeeSamples import CryptoKind, EvmGasSample
from .base import BaseFetcher, FetcherDecodeError, register_fetcher

logger = logging.getLogger(__name__)

WEI_PER_GWEI = 10**9


@register_fetcher
class EvmRpcFetcher(BaseFetcher):
    """Keyless alternative to Etherscan built on ``eth_feeHistory``.

    Each tier is the pending block's base fee plus the mean priority fee
    paid at the 10th, 50th and 90th reward percentile over recent blocks.
    """

    name = "evm_rpc"
    kind = CryptoKind.EVM
    BASE_URL = "https://ethereum-rpc.publicnode.com"

    BLOCK_COUNT = 5
    PERCENTILES = (10, 50, 90)

    async def fetch(self) -> EvmGasSample:
        """Fetch gas tiers from fee history.

        :returns: Gas prices in gwei.
        :raises FetcherError: On failure.
        """
        response = await self._post(
            self.base_url,
            json={
                "jsonrpc": "2.0",
                "id": 1,
                "method": "eth_feeHistory",
                "params": [self.BLOCK_COUNT, "latest", list(self.PERCENTILES)],
            },
        )
        result = self._rpc_result(response)
        if not isinstance(result, dict):
            raise FetcherDecodeError("field 'result' is not an object", source=self.name)

        base_fees = result.get("baseFeePerGas")
        rewards = result.get("reward")
        if not isinstance(base_fees, list) or not base_fees:
            raise FetcherDecodeError(
                "missing or empty field 'baseFeePerGas'", source=self.name
            )
        if not isinstance(rewards, list) or not rewards:
            raise FetcherDecodeError("missing or empty field 'reward'", source=self.name)

        # Last entry is the base fee of the next (pending) block
        base_fee = self._parse_quantity(base_fees[-1])

        tiers: list[float] = []
        for index in range(len(self.PERCENTILES)):
            tips = []
            for block in rewards:
                if not isinstance(block, list) or len(block) != len(self.PERCENTILES):
                    raise FetcherDecodeError(
                        "reward entry does not match requested percentiles",
                        source=self.name,
                    )
                tips.append(self._parse_quantity(block[index]))
            try:
                tiers.append((base_fee + mean(tips)) / WEI_PER_GWEI)
            except OverflowError as e:
                raise FetcherDecodeError(
                    f"fee quantity too large: {e}", source=self.name
                ) from e

        sample = self._make_sample(
            EvmGasSample, safe_low=tiers[0], standard=tiers[1], fast=tiers[2]
        )
        logger.debug(f"[evm_rpc] Gas prices: {sample}")
        return sample

    def _parse_quantity(self, value: object) -> int:
        """Parse a hex-encoded JSON-RPC quantity.

        :raises FetcherDecodeError: If the value is not a hex string.
        """
        if not isinstance(value, str) or not value.startswith("0x"):
            raise FetcherDecodeError(
                f"expected hex quantity, got {value!r}", source=self.name
            )
        try:
            return int(value, 16)
        except ValueError as e:
            raise FetcherDecodeError(
                f"expected hex quantity, got {value!r}", source=self.name
            ) from e
