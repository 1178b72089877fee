"""Snapshot: The unit of output handed to the rendering layer.

One Snapshot is produced per cycle. Its state is exactly one of loading,
success (with the combined sample) or error (with a message).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Union

from .FeeSamples import AggregateSample, CryptoKind
from .UnitFormatter import DisplayUnit, format_value

# Row labels in display order
ROW_LABELS: dict[CryptoKind, str] = {
    CryptoKind.BITCOIN: "BTC",
    CryptoKind.EVM: "ETH",
    CryptoKind.SOLANA: "SOL",
}


@dataclass(frozen=True)
class LoadingState:
    """Fetch in progress."""


@dataclass(frozen=True)
class SuccessState:
    """All sources answered.

    :ivar sample: The combined sample.
    """

    sample: AggregateSample


@dataclass(frozen=True)
class ErrorState:
    """The cycle failed.

    :ivar message: User-facing error message.
    """

    message: str


SnapshotState = Union[LoadingState, SuccessState, ErrorState]


@dataclass(frozen=True)
class Snapshot:
    """Result of one refresh cycle.

    :ivar captured_at: When the cycle started.
    :ivar state: Loading, success or error.
    :ivar next_run_at: When the host should start the next cycle; None while loading.
    :ivar unit: Display unit read at the start of the cycle.
    """

    captured_at: datetime
    state: SnapshotState
    next_run_at: datetime | None = None
    unit: DisplayUnit = field(default=DisplayUnit.NATIVE)

    @property
    def is_loading(self) -> bool:
        return isinstance(self.state, LoadingState)

    @property
    def is_success(self) -> bool:
        return isinstance(self.state, SuccessState)

    @property
    def is_error(self) -> bool:
        return isinstance(self.state, ErrorState)

    def rows(self) -> list[tuple[str, str]]:
        """Get (label, formatted value) rows for a success state.

        :returns: One row per network, or an empty list for loading/error.

        .. code-block:: python

            >>> snapshot.rows()
            [('BTC', '12.0 sat/vB'), ('ETH', '45 gwei'), ('SOL', '3012 tx/s')]
        """
        if not isinstance(self.state, SuccessState):
            return []
        return [
            (ROW_LABELS[kind], format_value(value, kind, self.unit))
            for kind, value in self.state.sample.display_values().items()
        ]

    def describe(self) -> str:
        """One-line summary for logs and terminals."""
        if isinstance(self.state, LoadingState):
            return "Loading..."
        if isinstance(self.state, ErrorState):
            return f"Error: {self.state.message}"
        return " | ".join(f"{label}: {value}" for label, value in self.rows())
