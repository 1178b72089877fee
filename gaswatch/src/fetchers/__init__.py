"""
Fee fetchers for the supported networks.

This module provides a unified interface for fetching one fee sample per
network from interchangeable upstream APIs.

Usage:
    from gaswatch.src.fetchers import get_fetcher, get_available_fetchers

    # Get list of available fetchers
    available = get_available_fetchers()
    # ['etherscan', 'evm_rpc', 'mempool', 'solana_rpc']

    # Create a fetcher instance
    fetcher = get_fetcher("mempool")
    sample = await fetcher.fetch()

    # For fetchers requiring API keys
    fetcher = get_fetcher("etherscan", api_key="your-api-key")
"""

# Import base classes and utilities
from .base import (
    FETCHER_REGISTRY,
    BaseFetcher,
    ErrorKind,
    FetcherDecodeError,
    FetcherEndpointError,
    FetcherError,
    FetcherHTTPError,
    FetcherTimeoutError,
    FetcherUpstreamError,
    get_available_fetchers,
    get_fetcher,
    register_fetcher,
    require_number,
)

# Import all fetcher implementations to trigger registration
from .etherscan import EtherscanFetcher
from .evm_rpc import EvmRpcFetcher
from .mempool import MempoolFetcher
from .solana_rpc import SolanaRpcFetcher

__all__ = [
    # Base classes
    "BaseFetcher",
    "ErrorKind",
    "FetcherError",
    "FetcherEndpointError",
    "FetcherHTTPError",
    "FetcherDecodeError",
    "FetcherUpstreamError",
    "FetcherTimeoutError",
    "require_number",
    # Registry functions
    "register_fetcher",
    "get_fetcher",
    "get_available_fetchers",
    "FETCHER_REGISTRY",
    # Fetcher implementations
    "EtherscanFetcher",
    "EvmRpcFetcher",
    "MempoolFetcher",
    "SolanaRpcFetcher",
]
