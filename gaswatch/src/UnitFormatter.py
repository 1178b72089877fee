"""UnitFormatter: Render fee values for display.

Fixed per-kind rules:

    ======  =======  ==========================  =============
    unit    kind     rule                        example
    ======  =======  ==========================  =============
    FIAT    any      "$" + 2 decimals            $142.50
    NATIVE  EVM      0 decimals + " gwei"        45 gwei
    NATIVE  BITCOIN  1 decimal + " sat/vB"       12.3 sat/vB
    NATIVE  SOLANA   0 decimals + " tx/s"        3012 tx/s
    ======  =======  ==========================  =============

Formatting never raises. Values that cannot be rendered with the rule's
precision (NaN, infinity, non-numbers) fall back to a plain ``str()``.
"""

from __future__ import annotations

import logging
import math
from enum import Enum

from .FeeSamples import CryptoKind

logger = logging.getLogger(__name__)


class DisplayUnit(str, Enum):
    """User-selected display unit."""

    NATIVE = "native"
    FIAT = "fiat"

    @classmethod
    def parse(cls, value: str) -> DisplayUnit:
        """Parse a unit name, accepting the legacy settings spellings.

        :param value: e.g. "native", "Native Units", "fiat", "usd", "$".
        :raises ValueError: If the value is not a known unit.

        .. code-block:: python

            >>> DisplayUnit.parse("Native Units")
            <DisplayUnit.NATIVE: 'native'>
        """
        normalized = value.strip().lower()
        if normalized in ("native", "native units"):
            return cls.NATIVE
        if normalized in ("fiat", "usd", "$"):
            return cls.FIAT
        raise ValueError(f"Unknown display unit '{value}'")


CURRENCY_SYMBOL = "$"

# (decimals, suffix) per kind for native units
NATIVE_RULES: dict[CryptoKind, tuple[int, str]] = {
    CryptoKind.EVM: (0, "gwei"),
    CryptoKind.BITCOIN: (1, "sat/vB"),
    CryptoKind.SOLANA: (0, "tx/s"),
}


def _fixed(value: float, decimals: int) -> str:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return str(value)
    if not math.isfinite(value):
        return str(float(value))
    return f"{value:.{decimals}f}"


def format_value(value: float, kind: CryptoKind, unit: DisplayUnit) -> str:
    """Format a value for display.

    :param value: Raw value from a sample.
    :param kind: Network the value belongs to.
    :param unit: Display unit.
    :returns: Display string; never raises.

    .. code-block:: python

        >>> format_value(45.0, CryptoKind.EVM, DisplayUnit.NATIVE)
        '45 gwei'
        >>> format_value(12.3, CryptoKind.BITCOIN, DisplayUnit.NATIVE)
        '12.3 sat/vB'
        >>> format_value(142.5, CryptoKind.EVM, DisplayUnit.FIAT)
        '$142.50'
    """
    if unit == DisplayUnit.FIAT:
        return f"{CURRENCY_SYMBOL}{_fixed(value, 2)}"

    rule = NATIVE_RULES.get(kind)
    if unit != DisplayUnit.NATIVE or rule is None:
        logger.debug(f"No format rule for {kind!r}/{unit!r}, using plain rendering")
        try:
            return f"{value:g}"
        except (TypeError, ValueError):
            return str(value)

    decimals, suffix = rule
    return f"{_fixed(value, decimals)} {suffix}"
