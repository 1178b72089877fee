"""Unit tests for FeeAggregator."""

import asyncio

import pytest

from gaswatch.src.FeeAggregator import FeeAggregator, FetchFailure, FetchSuccess
from gaswatch.src.FeeSamples import CryptoKind
from gaswatch.src.fetchers import (
    ErrorKind,
    FetcherDecodeError,
    FetcherEndpointError,
    FetcherHTTPError,
    FetcherTimeoutError,
    FetcherUpstreamError,
    get_fetcher,
)


class TestFeeAggregatorInit:
    """Test FeeAggregator initialization."""

    def test_missing_kind(self, make_fetchers) -> None:
        """All three kinds are required."""
        fetchers = make_fetchers()
        del fetchers[CryptoKind.SOLANA]

        with pytest.raises(ValueError, match="Missing fetchers for: \\['solana'\\]"):
            FeeAggregator(fetchers)

    def test_wrong_kind(self, make_fetchers) -> None:
        """A fetcher must serve the kind it is registered under."""
        fetchers = make_fetchers()
        fetchers[CryptoKind.EVM] = get_fetcher("mempool")

        with pytest.raises(ValueError, match="serves bitcoin, not evm"):
            FeeAggregator(fetchers)


class TestFetchAllSuccess:
    """Test the all-succeed path."""

    @pytest.mark.asyncio
    async def test_returns_all_samples_unchanged(
        self, make_fetchers, evm_sample, btc_sample, sol_sample
    ) -> None:
        """Success should carry exactly the three fetched samples."""
        fetchers = make_fetchers()
        outcome = await FeeAggregator(fetchers).fetch_all()

        assert isinstance(outcome, FetchSuccess)
        assert outcome.success
        assert outcome.sample.evm is evm_sample
        assert outcome.sample.bitcoin is btc_sample
        assert outcome.sample.solana is sol_sample
        assert all(f.calls == 1 for f in fetchers.values())

    @pytest.mark.asyncio
    async def test_completion_order_does_not_matter(
        self, make_fetchers, evm_sample, btc_sample, sol_sample
    ) -> None:
        """Results should land under fixed names whatever finishes first."""
        fetchers = make_fetchers(
            evm={"delay": 0.03},
            bitcoin={"delay": 0.01},
            solana={"delay": 0.02},
        )
        outcome = await FeeAggregator(fetchers).fetch_all()

        assert outcome.sample.evm is evm_sample
        assert outcome.sample.bitcoin is btc_sample
        assert outcome.sample.solana is sol_sample

    @pytest.mark.asyncio
    async def test_fetches_run_concurrently(self, make_fetchers) -> None:
        """Three 0.2s fetches should take about 0.2s, not 0.6s."""
        fetchers = make_fetchers(
            evm={"delay": 0.2},
            bitcoin={"delay": 0.2},
            solana={"delay": 0.2},
        )
        loop = asyncio.get_running_loop()
        started = loop.time()
        outcome = await FeeAggregator(fetchers).fetch_all()

        assert outcome.success
        assert loop.time() - started < 0.5


class TestFetchAllFailure:
    """Test the fail-fast join."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("kind", list(CryptoKind))
    @pytest.mark.parametrize(
        "error",
        [
            FetcherEndpointError("Invalid URL"),
            FetcherHTTPError(503, "unavailable"),
            FetcherDecodeError("missing field 'fastestFee'"),
            FetcherUpstreamError("Missing/Invalid API Key"),
            FetcherTimeoutError("Request timed out"),
        ],
        ids=lambda e: e.kind.value,
    )
    async def test_single_failure_wins(self, make_fetchers, kind, error) -> None:
        """Any single failure yields that exact error, others succeeding."""
        fetchers = make_fetchers(**{kind.value: {"error": error}})
        outcome = await FeeAggregator(fetchers).fetch_all()

        assert isinstance(outcome, FetchFailure)
        assert not outcome.success
        assert outcome.error is error
        assert outcome.kind == error.kind
        assert outcome.message == str(error)

    @pytest.mark.asyncio
    async def test_source_filled_in(self, make_fetchers) -> None:
        """Errors without a source should be tagged with the fetcher name."""
        fetchers = make_fetchers(bitcoin={"error": FetcherHTTPError(500, "boom")})
        outcome = await FeeAggregator(fetchers).fetch_all()

        assert outcome.source == "fake_bitcoin"

    @pytest.mark.asyncio
    async def test_failure_cancels_slow_fetches(self, make_fetchers) -> None:
        """First failure should cancel the other in-flight fetches."""
        fetchers = make_fetchers(
            evm={"delay": 5.0},
            bitcoin={"error": FetcherTimeoutError("slow"), "delay": 0.01},
            solana={"delay": 5.0},
        )
        outcome = await asyncio.wait_for(FeeAggregator(fetchers).fetch_all(), timeout=2)

        assert outcome.kind == ErrorKind.TIMEOUT
        assert fetchers[CryptoKind.EVM].cancelled
        assert fetchers[CryptoKind.SOLANA].cancelled

    @pytest.mark.asyncio
    async def test_first_failure_reported(self, make_fetchers) -> None:
        """With two failures, the one that completes first is reported."""
        first = FetcherUpstreamError("first")
        fetchers = make_fetchers(
            evm={"error": FetcherDecodeError("second"), "delay": 0.1},
            solana={"error": first, "delay": 0.01},
        )
        outcome = await FeeAggregator(fetchers).fetch_all()

        assert outcome.error is first

    @pytest.mark.asyncio
    async def test_programming_errors_propagate(self, make_fetchers) -> None:
        """A fetcher returning the wrong sample type is a bug, not a failure."""
        fetchers = make_fetchers(solana={"delay": 5.0})
        fetchers[CryptoKind.EVM].result = fetchers[CryptoKind.BITCOIN].result

        with pytest.raises(TypeError, match="returned BtcFeeSample for evm"):
            await FeeAggregator(fetchers).fetch_all()
        assert fetchers[CryptoKind.SOLANA].cancelled


class TestFetchAllCancellation:
    """Test cancellation by the caller."""

    @pytest.mark.asyncio
    async def test_cancel_cancels_children(self, make_fetchers) -> None:
        """Cancelling fetch_all should cancel every in-flight fetch."""
        fetchers = make_fetchers(
            evm={"delay": 5.0},
            bitcoin={"delay": 5.0},
            solana={"delay": 5.0},
        )
        task = asyncio.create_task(FeeAggregator(fetchers).fetch_all())
        await asyncio.sleep(0.05)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert all(f.cancelled for f in fetchers.values())
