"""mempool.space fee estimator fetcher.

Endpoint: https://mempool.space/api/v1/fees/recommended
Rate Limit: Moderate (no key required)
"""

import logging

from ..FeeSamples import BtcFeeSample, CryptoKind
from .base import BaseFetcher, register_fetcher, require_number

logger = logging.getLogger(__name__)


@register_fetcher
class MempoolFetcher(BaseFetcher):
    """Fetcher for mempool.space recommended Bitcoin fees (sat/vB).

    Also works against self-hosted mempool instances via ``base_url``.
    """

    name = "mempool"
    kind = CryptoKind.BITCOIN
    BASE_URL = "https://mempool.space/api/v1/fees/recommended"

    async def fetch(self) -> BtcFeeSample:
        """Fetch recommended fees.

        :returns: Fastest, half-hour and hour fee rates.
        :raises FetcherError: On failure.
        """
        response = await self._get(self.base_url)
        data = self._json_object(response)

        sample = self._make_sample(
            BtcFeeSample,
            fastest=require_number(data, "fastestFee", self.name),
            half_hour=require_number(data, "halfHourFee", self.name),
            hour=require_number(data, "hourFee", self.name),
        )
        logger.debug(f"[mempool] Fees: {sample}")
        return sample
