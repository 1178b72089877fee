"""Solana RPC performance fetcher.

Endpoint: https://api.mainnet-beta.solana.com (JSON-RPC getRecentPerformanceSamples)
Rate Limit: 100 requests/10s per IP on the public endpoint
"""

import logging

from ..FeeSamples import CryptoKind, SolPerformanceSample
from .base import BaseFetcher, FetcherDecodeError, register_fetcher, require_number

logger = logging.getLogger(__name__)


@register_fetcher
class SolanaRpcFetcher(BaseFetcher):
    """Fetcher for Solana network throughput.

    Requests the most recent performance samples (one per ~60s window) and
    reports total transactions divided by total sampled seconds.
    """

    name = "solana_rpc"
    kind = CryptoKind.SOLANA
    BASE_URL = "https://api.mainnet-beta.solana.com"

    # Number of 60-second performance windows to average over
    SAMPLE_LIMIT = 5

    async def fetch(self) -> SolPerformanceSample:
        """Fetch recent throughput.

        :returns: Transactions per second.
        :raises FetcherError: On failure.
        """
        response = await self._post(
            self.base_url,
            json={
                "jsonrpc": "2.0",
                "id": 1,
                "method": "getRecentPerformanceSamples",
                "params": [self.SAMPLE_LIMIT],
            },
        )
        result = self._rpc_result(response)

        if not isinstance(result, list) or not result:
            raise FetcherDecodeError(
                "expected a non-empty list of performance samples", source=self.name
            )

        transactions = 0.0
        seconds = 0.0
        for entry in result:
            if not isinstance(entry, dict):
                raise FetcherDecodeError(
                    "performance sample is not an object", source=self.name
                )
            transactions += require_number(entry, "numTransactions", self.name)
            seconds += require_number(entry, "samplePeriodSecs", self.name)

        if seconds <= 0:
            raise FetcherDecodeError("sample period is zero", source=self.name)

        sample = self._make_sample(SolPerformanceSample, tps=transactions / seconds)
        logger.debug(
            f"[solana_rpc] {len(result)} samples, {sample.tps:.1f} tx/s"
        )
        return sample
