"""Unit tests for UnitFormatter."""

import math

import pytest

from gaswatch.src.FeeSamples import CryptoKind
from gaswatch.src.UnitFormatter import DisplayUnit, format_value


class TestNativeFormatting:
    """Test native unit rules."""

    def test_evm_gwei(self) -> None:
        assert format_value(45.0, CryptoKind.EVM, DisplayUnit.NATIVE) == "45 gwei"

    def test_evm_rounds_to_integer(self) -> None:
        assert format_value(0.63, CryptoKind.EVM, DisplayUnit.NATIVE) == "1 gwei"

    def test_bitcoin_one_decimal(self) -> None:
        assert format_value(12.3, CryptoKind.BITCOIN, DisplayUnit.NATIVE) == "12.3 sat/vB"

    def test_bitcoin_pads_decimal(self) -> None:
        assert format_value(12, CryptoKind.BITCOIN, DisplayUnit.NATIVE) == "12.0 sat/vB"

    def test_solana_throughput(self) -> None:
        assert format_value(3012.4, CryptoKind.SOLANA, DisplayUnit.NATIVE) == "3012 tx/s"


class TestFiatFormatting:
    """Test fiat rule, identical for every kind."""

    @pytest.mark.parametrize("kind", list(CryptoKind))
    def test_two_decimals_with_symbol(self, kind) -> None:
        assert format_value(142.5, kind, DisplayUnit.FIAT) == "$142.50"

    def test_small_value(self) -> None:
        assert format_value(0.004, CryptoKind.SOLANA, DisplayUnit.FIAT) == "$0.00"


class TestFallbacks:
    """Formatting should never raise."""

    def test_nan(self) -> None:
        assert format_value(math.nan, CryptoKind.EVM, DisplayUnit.NATIVE) == "nan gwei"

    def test_infinity_fiat(self) -> None:
        assert format_value(math.inf, CryptoKind.BITCOIN, DisplayUnit.FIAT) == "$inf"

    def test_non_number(self) -> None:
        assert format_value("n/a", CryptoKind.EVM, DisplayUnit.NATIVE) == "n/a gwei"

    def test_unknown_unit(self) -> None:
        assert format_value(12.5, CryptoKind.EVM, "btc") == "12.5"


class TestDisplayUnitParse:
    """Test DisplayUnit.parse."""

    @pytest.mark.parametrize("text", ["native", "Native Units", " NATIVE "])
    def test_native(self, text) -> None:
        assert DisplayUnit.parse(text) == DisplayUnit.NATIVE

    @pytest.mark.parametrize("text", ["fiat", "USD", "$"])
    def test_fiat(self, text) -> None:
        assert DisplayUnit.parse(text) == DisplayUnit.FIAT

    def test_unknown(self) -> None:
        with pytest.raises(ValueError, match="Unknown display unit 'eur'"):
            DisplayUnit.parse("eur")
