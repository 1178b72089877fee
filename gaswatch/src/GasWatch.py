"""GasWatch: Main orchestrator for refresh cycles.

This module runs one cycle per call: read the user's preferences, emit a
loading snapshot, fetch all three sources concurrently and schedule the
next cycle from the outcome.

Architecture:
    - One shared httpx.AsyncClient, injected into every fetcher
    - FeeAggregator fans out to the fetchers with a fail-fast join
    - RefreshScheduler turns the outcome into a Snapshot with next_run_at
    - Preferences are re-read at the start of every cycle; read failures
      fall back to native units and a 10-minute interval
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Awaitable, Callable, Union

import httpx

from .FeeAggregator import FeeAggregator
from .FeeSamples import CryptoKind
from .fetchers import BaseFetcher, get_available_fetchers, get_fetcher
from .PreferenceStore import DEFAULT_INTERVAL, DEFAULT_UNIT
from .RefreshScheduler import RefreshInterval, RefreshScheduler
from .UnitFormatter import DisplayUnit

if TYPE_CHECKING:
    from .PreferenceStore import PreferenceStore
    from .Snapshot import Snapshot

logger = logging.getLogger(__name__)

# Default fetcher per network
DEFAULT_SOURCES: dict[CryptoKind, str] = {
    CryptoKind.EVM: "etherscan",
    CryptoKind.BITCOIN: "mempool",
    CryptoKind.SOLANA: "solana_rpc",
}

SnapshotCallback = Callable[["Snapshot"], Union[Awaitable[None], None]]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class GasWatch:
    """Orchestrates fetch, aggregation and scheduling.

    :ivar preferences: Store the unit and interval are read from.
    :ivar aggregator: Fan-out over the three fetchers.
    :ivar scheduler: Next-run policy.
    """

    def __init__(
        self,
        preferences: PreferenceStore,
        sources: dict[CryptoKind, str] | None = None,
        api_keys: dict[str, str] | None = None,
        request_timeout: float = BaseFetcher.DEFAULT_REQUEST_TIMEOUT,
        resource_timeout: float = BaseFetcher.DEFAULT_RESOURCE_TIMEOUT,
        *,
        aggregator: FeeAggregator | None = None,
        scheduler: RefreshScheduler | None = None,
        client: httpx.AsyncClient | None = None,
        clock: Callable[[], datetime] = _utcnow,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """Initialize the orchestrator.

        :param preferences: Preference store (read each cycle).
        :param sources: Fetcher name per network (default: DEFAULT_SOURCES).
        :param api_keys: Dict mapping source names to API keys.
        :param request_timeout: Per-request timeout in seconds (default: 8.0).
        :param resource_timeout: Whole round-trip timeout in seconds (default: 10.0).
        :param aggregator: Prebuilt aggregator; sources/api_keys are ignored if given.
        :param scheduler: Scheduler (default: 5-minute error retry).
        :param client: HTTP client to share; created and owned here if None.
        :param clock: Returns the current time for cycles without explicit now.
        :param sleep: Coroutine used to wait between cycles in run().
        :raises ValueError: If a source is unknown or serves the wrong network.
        """
        self.preferences = preferences
        self.scheduler = scheduler or RefreshScheduler()
        self.clock = clock
        self.sleep = sleep

        self._owns_client = False
        self.client = client

        if aggregator is None:
            if self.client is None:
                self.client = httpx.AsyncClient(
                    timeout=httpx.Timeout(request_timeout),
                    limits=httpx.Limits(max_connections=10, max_keepalive_connections=5),
                    follow_redirects=True,
                )
                self._owns_client = True
            aggregator = FeeAggregator(
                self._create_fetchers(
                    {**DEFAULT_SOURCES, **(sources or {})},
                    api_keys or {},
                    request_timeout,
                    resource_timeout,
                )
            )
        self.aggregator = aggregator

        logger.info(
            "GasWatch initialized: sources="
            + ", ".join(
                f"{kind.value}={fetcher.name}"
                for kind, fetcher in self.aggregator.fetchers.items()
            )
        )

    def _create_fetchers(
        self,
        sources: dict[CryptoKind, str],
        api_keys: dict[str, str],
        request_timeout: float,
        resource_timeout: float,
    ) -> dict[CryptoKind, BaseFetcher]:
        """Instantiate one fetcher per network from the registry."""
        fetchers: dict[CryptoKind, BaseFetcher] = {}
        for kind, name in sources.items():
            available = get_available_fetchers(kind)
            if name not in available:
                raise ValueError(
                    f"Unknown {kind.value} source '{name}'. Available: {available}"
                )
            fetchers[kind] = get_fetcher(
                name,
                api_key=api_keys.get(name),
                client=self.client,
                request_timeout=request_timeout,
                resource_timeout=resource_timeout,
            )
        return fetchers

    def read_preferences(self) -> tuple[DisplayUnit, RefreshInterval]:
        """Read unit and interval, degrading to defaults on failure.

        :returns: (unit, interval) for the current cycle.
        """
        try:
            unit = self.preferences.read_unit()
        except Exception as exc:  # any store failure falls back to the default
            logger.warning(f"Failed to read display unit ({exc}); using {DEFAULT_UNIT.value}")
            unit = DEFAULT_UNIT

        try:
            interval = self.preferences.read_interval()
        except Exception as exc:
            logger.warning(
                f"Failed to read refresh interval ({exc}); using {DEFAULT_INTERVAL.label}"
            )
            interval = DEFAULT_INTERVAL

        return unit, interval

    async def run_cycle(
        self,
        now: datetime | None = None,
        on_loading: SnapshotCallback | None = None,
    ) -> Snapshot:
        """Run one fetch-aggregate-schedule cycle.

        :param now: Cycle timestamp (default: clock()).
        :param on_loading: Optional callback receiving the loading snapshot
            before the fetch starts.
        :returns: Success or error snapshot with next_run_at set.
        """
        now = now or self.clock()
        unit, interval = self.read_preferences()

        if on_loading is not None:
            result = on_loading(self.scheduler.loading(now, unit))
            if asyncio.iscoroutine(result):
                await result

        outcome = await self.aggregator.fetch_all()
        snapshot = self.scheduler.next_cycle(outcome, interval, now, unit)

        if snapshot.is_success:
            logger.info(f"Cycle ok: {snapshot.describe()}")
        else:
            logger.warning(f"Cycle failed: {snapshot.describe()}")
        logger.info(f"Next refresh at {snapshot.next_run_at:%Y-%m-%d %H:%M:%S %Z}")
        return snapshot

    async def run(
        self,
        render: SnapshotCallback,
        max_cycles: int | None = None,
    ) -> None:
        """Run cycles until cancelled, sleeping until each next_run_at.

        :param render: Receives every snapshot, loading ones included.
        :param max_cycles: Stop after this many cycles (default: run forever).
        """
        cycles = 0
        while max_cycles is None or cycles < max_cycles:
            snapshot = await self.run_cycle(on_loading=render)
            result = render(snapshot)
            if asyncio.iscoroutine(result):
                await result
            cycles += 1

            if max_cycles is not None and cycles >= max_cycles:
                break

            delay = (snapshot.next_run_at - self.clock()).total_seconds()
            await self.sleep(max(0.0, delay))

    async def aclose(self) -> None:
        """Close the HTTP client if it was created here."""
        if self._owns_client and self.client is not None and not self.client.is_closed:
            await self.client.aclose()

    async def __aenter__(self) -> GasWatch:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
