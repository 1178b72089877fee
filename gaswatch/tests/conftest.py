"""Shared fixtures for gaswatch tests."""

import asyncio

import pytest

from gaswatch.src.FeeSamples import (
    BtcFeeSample,
    CryptoKind,
    EvmGasSample,
    RawSample,
    SolPerformanceSample,
)
from gaswatch.src.fetchers import BaseFetcher, FetcherError


class FakeFetcher(BaseFetcher):
    """In-memory fetcher with a controllable delay, result and error."""

    def __init__(
        self,
        kind: CryptoKind,
        result: RawSample | None = None,
        error: FetcherError | None = None,
        delay: float = 0.0,
    ) -> None:
        super().__init__()
        self.kind = kind
        self.name = f"fake_{kind.value}"
        self.result = result
        self.error = error
        self.delay = delay
        self.calls = 0
        self.cancelled = False

    async def fetch(self) -> RawSample:
        self.calls += 1
        if self.delay:
            try:
                await asyncio.sleep(self.delay)
            except asyncio.CancelledError:
                self.cancelled = True
                raise
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def evm_sample() -> EvmGasSample:
    return EvmGasSample(safe_low=30.0, standard=45.0, fast=60.0)


@pytest.fixture
def btc_sample() -> BtcFeeSample:
    return BtcFeeSample(fastest=15.0, half_hour=12.3, hour=10.0)


@pytest.fixture
def sol_sample() -> SolPerformanceSample:
    return SolPerformanceSample(tps=3012.4)


@pytest.fixture
def make_fetchers(evm_sample, btc_sample, sol_sample):
    """Factory for a full set of fake fetchers.

    Keyword arguments per kind accept ``error`` and ``delay`` overrides, e.g.
    ``make_fetchers(bitcoin={"error": FetcherTimeoutError("slow")})``.
    """

    def _make(**overrides: dict) -> dict[CryptoKind, FakeFetcher]:
        results = {
            CryptoKind.EVM: evm_sample,
            CryptoKind.BITCOIN: btc_sample,
            CryptoKind.SOLANA: sol_sample,
        }
        return {
            kind: FakeFetcher(kind, result=result, **overrides.get(kind.value, {}))
            for kind, result in results.items()
        }

    return _make
