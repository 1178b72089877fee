#!/usr/bin/env python3
"""GasWatch.

Fetches Ethereum gas prices, Bitcoin fee rates and Solana throughput from
three independent sources, and refreshes them on the user's schedule.

Run once with ``--once`` or keep running; see --help for configuration.
"""

import argparse
import asyncio
import logging
import os
import sys

from .src.FeeSamples import CryptoKind
from .src.fetchers import get_available_fetchers
from .src.GasWatch import DEFAULT_SOURCES, GasWatch
from .src.PreferenceStore import JsonPreferenceStore
from .src.RefreshScheduler import RefreshInterval
from .src.Snapshot import Snapshot
from .src.UnitFormatter import DisplayUnit

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)

DEFAULT_PREFERENCES_PATH = "~/.config/gaswatch/settings.json"


def parse_api_keys(api_key_str: str | None) -> dict[str, str]:
    """Parse comma-separated API key string into a dictionary.

    Format: source1=key1,source2=key2
    Example: etherscan=abc123

    :param api_key_str: Comma-separated API key string.
    :returns: Dict mapping source names to API keys.
    """
    if not api_key_str:
        return {}

    api_keys = {}
    for item in api_key_str.split(","):
        item = item.strip()
        if "=" in item:
            source, key = item.split("=", 1)
            api_keys[source.strip().lower()] = key.strip()
    return api_keys


def parse_env_api_keys(environ: dict[str, str] | None = None) -> dict[str, str]:
    """Parse API keys from individual environment variables.

    Looks for: API_KEY_ETHERSCAN, APIKEY_ETHERSCAN, etc.

    :param environ: Environment mapping (default: os.environ).
    :returns: Dict mapping source names to API keys.
    """
    if environ is None:
        environ = dict(os.environ)

    api_keys = {}
    prefixes = ["API_KEY_", "APIKEY_"]

    for key, value in environ.items():
        for prefix in prefixes:
            if key.startswith(prefix) and value:
                source = key[len(prefix):].lower()
                api_keys[source] = value
                break

    return api_keys


def render_snapshot(snapshot: Snapshot) -> None:
    """Render a snapshot as log lines."""
    if snapshot.is_loading:
        logger.info("Loading...")
        return
    if snapshot.is_error:
        logger.error(snapshot.describe())
        return
    for label, value in snapshot.rows():
        logger.info(f"  {label}: {value}")
    logger.info(f"  as of {snapshot.captured_at:%H:%M:%S %Z}")


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser with environment fallbacks."""
    parser = argparse.ArgumentParser(
        description="GasWatch: ETH gas, BTC fees and SOL throughput snapshots",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Available sources:
  evm:     {', '.join(get_available_fetchers(CryptoKind.EVM))}
  bitcoin: {', '.join(get_available_fetchers(CryptoKind.BITCOIN))}
  solana:  {', '.join(get_available_fetchers(CryptoKind.SOLANA))}

Examples:
  # One snapshot with the default sources
  API_KEY_ETHERSCAN=your-key python -m gaswatch.main --once

  # Keyless EVM source, fiat display, refresh every 15 minutes
  python -m gaswatch.main --evm-source evm_rpc --unit fiat --interval 15

Environment variables (CLI args take precedence):
  EVM_SOURCE, BTC_SOURCE, SOL_SOURCE, PREFERENCES_PATH, PRICE_UNIT,
  UPDATE_FREQUENCY, REQUEST_TIMEOUT, RESOURCE_TIMEOUT, API_KEYS,
  API_KEY_ETHERSCAN, etc.
""",
    )

    parser.add_argument(
        "--evm-source",
        dest="evm_source",
        type=str,
        help="Ethereum gas source (default: etherscan)",
        default=os.environ.get("EVM_SOURCE") or DEFAULT_SOURCES[CryptoKind.EVM],
    )

    parser.add_argument(
        "--btc-source",
        dest="btc_source",
        type=str,
        help="Bitcoin fee source (default: mempool)",
        default=os.environ.get("BTC_SOURCE") or DEFAULT_SOURCES[CryptoKind.BITCOIN],
    )

    parser.add_argument(
        "--sol-source",
        dest="sol_source",
        type=str,
        help="Solana performance source (default: solana_rpc)",
        default=os.environ.get("SOL_SOURCE") or DEFAULT_SOURCES[CryptoKind.SOLANA],
    )

    parser.add_argument(
        "--preferences",
        type=str,
        help=f"Settings file holding unit and interval (default: {DEFAULT_PREFERENCES_PATH})",
        default=os.environ.get("PREFERENCES_PATH") or DEFAULT_PREFERENCES_PATH,
    )

    parser.add_argument(
        "--unit",
        type=str,
        help="Save display unit before starting (native or fiat)",
        default=os.environ.get("PRICE_UNIT"),
    )

    parser.add_argument(
        "--interval",
        type=str,
        help="Save refresh interval in minutes before starting (5, 10, 15 or 30)",
        default=os.environ.get("UPDATE_FREQUENCY"),
    )

    parser.add_argument(
        "--request-timeout",
        dest="request_timeout",
        type=float,
        help="Per-request timeout in seconds (default: 8.0)",
        default=float(os.environ.get("REQUEST_TIMEOUT") or "8.0"),
    )

    parser.add_argument(
        "--resource-timeout",
        dest="resource_timeout",
        type=float,
        help="Timeout for a whole request including body in seconds (default: 10.0)",
        default=float(os.environ.get("RESOURCE_TIMEOUT") or "10.0"),
    )

    parser.add_argument(
        "--api-keys",
        dest="api_keys",
        type=str,
        help="Comma-separated API keys (e.g., etherscan=abc)",
        default=os.environ.get("API_KEYS"),
    )

    parser.add_argument(
        "--once",
        action="store_true",
        help="Run a single cycle and exit (exit code 1 on error)",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )

    return parser


async def run(gas_watch: GasWatch, once: bool) -> Snapshot | None:
    """Run one cycle or loop forever, closing the HTTP client afterwards."""
    async with gas_watch:
        if once:
            snapshot = await gas_watch.run_cycle(on_loading=render_snapshot)
            render_snapshot(snapshot)
            return snapshot
        await gas_watch.run(render_snapshot)
    return None


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the GasWatch CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    # Configure logging level
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    # Validate arguments
    if args.request_timeout <= 0:
        parser.error("--request-timeout must be positive")

    if args.resource_timeout <= 0:
        parser.error("--resource-timeout must be positive")

    sources = {
        CryptoKind.EVM: args.evm_source.strip().lower(),
        CryptoKind.BITCOIN: args.btc_source.strip().lower(),
        CryptoKind.SOLANA: args.sol_source.strip().lower(),
    }
    for kind, source in sources.items():
        available = get_available_fetchers(kind)
        if source not in available:
            parser.error(
                f"Unknown {kind.value} source '{source}'. "
                f"Available: {', '.join(available)}"
            )

    preferences = JsonPreferenceStore(args.preferences)

    # Apply settings passed on the command line
    if args.unit:
        try:
            preferences.write_unit(DisplayUnit.parse(args.unit))
        except ValueError as e:
            parser.error(str(e))

    if args.interval:
        try:
            preferences.write_interval(RefreshInterval.parse(args.interval))
        except ValueError as e:
            parser.error(str(e))

    # Parse API keys (CLI + environment)
    api_keys = parse_env_api_keys()
    api_keys.update(parse_api_keys(args.api_keys))

    # Log configuration
    logger.info("=" * 60)
    logger.info("GasWatch - Network Fee Snapshots")
    logger.info("=" * 60)
    logger.info(f"EVM Source:        {sources[CryptoKind.EVM]}")
    logger.info(f"Bitcoin Source:    {sources[CryptoKind.BITCOIN]}")
    logger.info(f"Solana Source:     {sources[CryptoKind.SOLANA]}")
    logger.info(f"Preferences:       {preferences.path}")
    logger.info(f"Request Timeout:   {args.request_timeout}s")
    logger.info(f"Resource Timeout:  {args.resource_timeout}s")
    if api_keys:
        logger.info(f"API Keys:          {', '.join(api_keys.keys())}")
    logger.info("=" * 60)

    try:
        gas_watch = GasWatch(
            preferences=preferences,
            sources=sources,
            api_keys=api_keys,
            request_timeout=args.request_timeout,
            resource_timeout=args.resource_timeout,
        )
        snapshot = asyncio.run(run(gas_watch, args.once))
    except KeyboardInterrupt:
        logger.info("Shutting down...")
        return
    except Exception as e:
        logger.error(f"Fatal error: {e}")
        sys.exit(1)

    if snapshot is not None and snapshot.is_error:
        sys.exit(1)


if __name__ == "__main__":
    main()
