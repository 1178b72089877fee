"""FeeAggregator: Concurrent fan-out to the three fee sources.

All three fetchers run as concurrent tasks. Results are consumed in
completion order, and the join is all-or-nothing:
    - The first fetcher error ends the attempt; the remaining tasks are cancelled
    - Only when every fetcher succeeds is an AggregateSample assembled
    - No partial sample is ever returned, including on cancellation

.. code-block:: python

    >>> aggregator = FeeAggregator({
    ...     CryptoKind.EVM: get_fetcher("etherscan", api_key="..."),
    ...     CryptoKind.BITCOIN: get_fetcher("mempool"),
    ...     CryptoKind.SOLANA: get_fetcher("solana_rpc"),
    ... })
    >>> outcome = await aggregator.fetch_all()
    >>> outcome.success
    True
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Union

from .FeeSamples import AggregateSample, CryptoKind, RawSample
from .fetchers import ErrorKind, FetcherError

if TYPE_CHECKING:
    from .fetchers import BaseFetcher

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FetchSuccess:
    """All sources answered.

    :ivar sample: The combined sample.
    """

    sample: AggregateSample

    @property
    def success(self) -> bool:
        return True


@dataclass(frozen=True)
class FetchFailure:
    """One source failed; the attempt produced no sample.

    :ivar error: The fetcher error, passed through unchanged.
    """

    error: FetcherError

    @property
    def success(self) -> bool:
        return False

    @property
    def kind(self) -> ErrorKind:
        """Error category of the failing fetcher."""
        return self.error.kind

    @property
    def message(self) -> str:
        """Human-readable error message."""
        return str(self.error)

    @property
    def source(self) -> str:
        """Name of the failing fetcher."""
        return self.error.source


FetchOutcome = Union[FetchSuccess, FetchFailure]


class FeeAggregator:
    """Runs one fetcher per network concurrently with a fail-fast join.

    :ivar fetchers: Dict mapping each CryptoKind to its fetcher.
    """

    def __init__(self, fetchers: dict[CryptoKind, BaseFetcher]) -> None:
        """Initialize the aggregator.

        :param fetchers: Exactly one fetcher per CryptoKind.
        :raises ValueError: If a kind is missing or a fetcher serves another kind.
        """
        missing = [kind.value for kind in CryptoKind if kind not in fetchers]
        if missing:
            raise ValueError(f"Missing fetchers for: {missing}")
        for kind, fetcher in fetchers.items():
            if fetcher.kind != kind:
                raise ValueError(
                    f"Fetcher '{fetcher.name}' serves {fetcher.kind.value}, "
                    f"not {kind.value}"
                )
        self.fetchers = dict(fetchers)

    async def fetch_all(self) -> FetchOutcome:
        """Fetch from all sources concurrently.

        :returns: FetchSuccess with all three samples, or FetchFailure carrying
            the first error observed.
        """
        tasks = [
            asyncio.create_task(self._fetch_one(kind, fetcher), name=f"fetch-{kind.value}")
            for kind, fetcher in self.fetchers.items()
        ]
        samples: dict[CryptoKind, RawSample] = {}

        try:
            for next_done in asyncio.as_completed(tasks):
                try:
                    kind, sample = await next_done
                except FetcherError as e:
                    logger.warning(
                        f"[{e.source or 'unknown'}] Fetch failed ({e.kind.value}): {e}"
                    )
                    return FetchFailure(e)
                samples[kind] = sample
        finally:
            await self._cancel_pending(tasks)

        logger.debug(f"All {len(samples)} sources fetched")
        return FetchSuccess(AggregateSample.from_samples(samples))

    async def _fetch_one(
        self,
        kind: CryptoKind,
        fetcher: BaseFetcher,
    ) -> tuple[CryptoKind, RawSample]:
        """Fetch one sample and tag it with its kind.

        :raises FetcherError: From the fetcher, with source filled in.
        """
        try:
            sample = await fetcher.fetch()
        except FetcherError as e:
            if not e.source:
                e.source = fetcher.name
            raise
        if not isinstance(sample, RawSample) or sample.kind != kind:
            raise TypeError(
                f"Fetcher '{fetcher.name}' returned {type(sample).__name__} "
                f"for {kind.value}"
            )
        return kind, sample

    @staticmethod
    async def _cancel_pending(tasks: list[asyncio.Task]) -> None:
        """Cancel unfinished tasks and wait until they have stopped.

        Errors of tasks that finished after the first failure are collected
        here so they are not reported as never retrieved.
        """
        pending = [task for task in tasks if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            logger.debug(f"Cancelling {len(pending)} in-flight fetches")
        await asyncio.gather(*tasks, return_exceptions=True)
