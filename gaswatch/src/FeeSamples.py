"""FeeSamples: Typed fee samples produced by the fetchers.

Each source yields one immutable sample holding its native numeric fields.
Samples validate on construction, so a sample either exists with every
field set to a non-negative finite value or it does not exist at all.

.. code-block:: python

    >>> sample = EvmGasSample(safe_low=30, standard=45, fast=60)
    >>> sample.display_value
    45.0
    >>> EvmGasSample(safe_low=-1, standard=45, fast=60)
    Traceback (most recent call last):
    ...
    ValueError: safe_low must be a non-negative finite number, got -1
"""

from __future__ import annotations

import math
from dataclasses import dataclass, fields
from enum import Enum
from typing import ClassVar


class CryptoKind(str, Enum):
    """Which network a sample describes; selects formatting rules."""

    EVM = "evm"
    BITCOIN = "bitcoin"
    SOLANA = "solana"


@dataclass(frozen=True)
class RawSample:
    """Base class for per-source samples.

    :cvar kind: Network this sample describes.
    """

    kind: ClassVar[CryptoKind]

    def __post_init__(self) -> None:
        for field in fields(self):
            value = getattr(self, field.name)
            if (
                isinstance(value, bool)
                or not isinstance(value, (int, float))
                or not math.isfinite(value)
                or value < 0
            ):
                raise ValueError(
                    f"{field.name} must be a non-negative finite number, got {value!r}"
                )
            object.__setattr__(self, field.name, float(value))

    @property
    def display_value(self) -> float:
        """The single value shown for this network."""
        raise NotImplementedError


@dataclass(frozen=True)
class EvmGasSample(RawSample):
    """Ethereum gas price tiers in gwei.

    :ivar safe_low: Low priority price.
    :ivar standard: Standard price.
    :ivar fast: High priority price.
    """

    kind: ClassVar[CryptoKind] = CryptoKind.EVM

    safe_low: float
    standard: float
    fast: float

    @property
    def display_value(self) -> float:
        return self.standard


@dataclass(frozen=True)
class BtcFeeSample(RawSample):
    """Bitcoin fee recommendations in sat/vB.

    :ivar fastest: Next-block fee.
    :ivar half_hour: Fee to confirm within ~30 minutes.
    :ivar hour: Fee to confirm within ~60 minutes.
    """

    kind: ClassVar[CryptoKind] = CryptoKind.BITCOIN

    fastest: float
    half_hour: float
    hour: float

    @property
    def display_value(self) -> float:
        return self.half_hour


@dataclass(frozen=True)
class SolPerformanceSample(RawSample):
    """Solana network throughput.

    :ivar tps: Transactions per second over the sampled window.
    """

    kind: ClassVar[CryptoKind] = CryptoKind.SOLANA

    tps: float

    @property
    def display_value(self) -> float:
        return self.tps


@dataclass(frozen=True)
class AggregateSample:
    """One sample per network, assembled after all three fetches succeeded.

    :ivar evm: Ethereum gas sample.
    :ivar bitcoin: Bitcoin fee sample.
    :ivar solana: Solana performance sample.
    """

    evm: EvmGasSample
    bitcoin: BtcFeeSample
    solana: SolPerformanceSample

    def __post_init__(self) -> None:
        for name, expected in (
            ("evm", EvmGasSample),
            ("bitcoin", BtcFeeSample),
            ("solana", SolPerformanceSample),
        ):
            if not isinstance(getattr(self, name), expected):
                raise TypeError(f"{name} must be a {expected.__name__}")

    @classmethod
    def from_samples(cls, samples: dict[CryptoKind, RawSample]) -> AggregateSample:
        """Build from a kind-keyed mapping, as produced by the aggregator.

        :param samples: Exactly one sample per CryptoKind.
        :raises KeyError: If a kind is missing.
        """
        return cls(
            evm=samples[CryptoKind.EVM],
            bitcoin=samples[CryptoKind.BITCOIN],
            solana=samples[CryptoKind.SOLANA],
        )

    def display_values(self) -> dict[CryptoKind, float]:
        """Get the display value of each network, in fixed order."""
        return {
            CryptoKind.BITCOIN: self.bitcoin.display_value,
            CryptoKind.EVM: self.evm.display_value,
            CryptoKind.SOLANA: self.solana.display_value,
        }
