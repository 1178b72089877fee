"""RefreshScheduler: Decide when the next cycle runs.

Per cycle:
    - Loading is emitted when the cycle starts (no schedule yet)
    - Success: next run after the user's refresh interval
    - Failure: next run after a fixed 5 minutes, whatever the interval

Nothing carries over between cycles; retrying a failure simply means
starting the next cycle earlier.

.. code-block:: python

    >>> scheduler = RefreshScheduler()
    >>> snapshot = scheduler.next_cycle(outcome, RefreshInterval.TEN, now)
    >>> snapshot.next_run_at - now
    datetime.timedelta(seconds=600)
"""

from __future__ import annotations

from datetime import datetime, timedelta
from enum import Enum

from .FeeAggregator import FetchFailure, FetchOutcome, FetchSuccess
from .Snapshot import ErrorState, LoadingState, Snapshot, SuccessState
from .UnitFormatter import DisplayUnit


class RefreshInterval(int, Enum):
    """Allowed refresh cadences, in minutes."""

    FIVE = 5
    TEN = 10
    FIFTEEN = 15
    THIRTY = 30

    @property
    def minutes(self) -> int:
        return int(self.value)

    @property
    def label(self) -> str:
        return f"{self.value} minutes"

    @classmethod
    def parse(cls, value: str | int) -> RefreshInterval:
        """Parse an interval from minutes or a label like "15 minutes".

        :raises ValueError: If the value is not an allowed interval.
        """
        if isinstance(value, str):
            text = value.strip().lower().removesuffix("minutes").strip()
            try:
                value = int(text)
            except ValueError as e:
                raise ValueError(f"Unknown refresh interval '{value}'") from e
        try:
            return cls(value)
        except ValueError as e:
            allowed = ", ".join(str(i.value) for i in cls)
            raise ValueError(
                f"Unknown refresh interval '{value}'. Allowed minutes: {allowed}"
            ) from e


class RefreshScheduler:
    """Turns a fetch outcome into a Snapshot with the next run time.

    :ivar error_retry_minutes: Delay before retrying after a failed cycle.
    """

    DEFAULT_ERROR_RETRY_MINUTES = 5

    def __init__(self, error_retry_minutes: int = DEFAULT_ERROR_RETRY_MINUTES) -> None:
        """Initialize the scheduler.

        :param error_retry_minutes: Retry delay after failure (default: 5).
        :raises ValueError: If the delay is not positive.
        """
        if error_retry_minutes <= 0:
            raise ValueError("error_retry_minutes must be positive")
        self.error_retry_minutes = error_retry_minutes

    def loading(self, now: datetime, unit: DisplayUnit = DisplayUnit.NATIVE) -> Snapshot:
        """Snapshot shown while a cycle is in progress."""
        return Snapshot(captured_at=now, state=LoadingState(), next_run_at=None, unit=unit)

    def next_cycle(
        self,
        outcome: FetchOutcome,
        interval: RefreshInterval,
        now: datetime,
        unit: DisplayUnit = DisplayUnit.NATIVE,
    ) -> Snapshot:
        """Build the terminal snapshot of a cycle.

        :param outcome: Result of FeeAggregator.fetch_all().
        :param interval: User's refresh interval.
        :param now: Cycle timestamp.
        :param unit: Display unit for the snapshot.
        :returns: Success or error snapshot with next_run_at set.
        :raises TypeError: If outcome is neither FetchSuccess nor FetchFailure.
        """
        if isinstance(outcome, FetchSuccess):
            return Snapshot(
                captured_at=now,
                state=SuccessState(outcome.sample),
                next_run_at=now + timedelta(minutes=interval.minutes),
                unit=unit,
            )
        if isinstance(outcome, FetchFailure):
            return Snapshot(
                captured_at=now,
                state=ErrorState(outcome.message),
                next_run_at=now + timedelta(minutes=self.error_retry_minutes),
                unit=unit,
            )
        raise TypeError(f"Unexpected outcome type {type(outcome).__name__}")
