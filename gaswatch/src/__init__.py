"""
gaswatch - Network Fee Snapshot Module

This module produces periodic fee snapshots for Ethereum, Bitcoin and Solana:
- FeeSamples: Typed per-network samples and the combined sample
- FeeAggregator: Concurrent fetch with fail-fast join
- UnitFormatter: Display formatting per unit and network
- RefreshScheduler: Next-run policy and snapshot construction
- PreferenceStore: User unit/interval settings
- GasWatch: Main orchestrator for refresh cycles
- fetchers: Modular fee fetcher implementations
"""

from .FeeAggregator import FeeAggregator, FetchFailure, FetchOutcome, FetchSuccess
from .FeeSamples import (
    AggregateSample,
    BtcFeeSample,
    CryptoKind,
    EvmGasSample,
    RawSample,
    SolPerformanceSample,
)
from .GasWatch import DEFAULT_SOURCES, GasWatch
from .PreferenceStore import (
    JsonPreferenceStore,
    PreferenceError,
    PreferenceStore,
    StaticPreferenceStore,
)
from .RefreshScheduler import RefreshInterval, RefreshScheduler
from .Snapshot import ErrorState, LoadingState, Snapshot, SuccessState
from .UnitFormatter import DisplayUnit, format_value

__all__ = [
    "AggregateSample",
    "BtcFeeSample",
    "CryptoKind",
    "DEFAULT_SOURCES",
    "DisplayUnit",
    "ErrorState",
    "EvmGasSample",
    "FeeAggregator",
    "FetchFailure",
    "FetchOutcome",
    "FetchSuccess",
    "GasWatch",
    "JsonPreferenceStore",
    "LoadingState",
    "PreferenceError",
    "PreferenceStore",
    "RawSample",
    "RefreshInterval",
    "RefreshScheduler",
    "Snapshot",
    "SolPerformanceSample",
    "StaticPreferenceStore",
    "SuccessState",
    "format_value",
]
