"""Unit tests for the CLI helpers."""

import json

import pytest

from gaswatch.main import build_parser, main, parse_api_keys, parse_env_api_keys


class TestParseApiKeys:
    """Test API key parsing."""

    def test_empty(self) -> None:
        assert parse_api_keys(None) == {}
        assert parse_api_keys("") == {}

    def test_pairs(self) -> None:
        assert parse_api_keys("Etherscan=abc, other = x=y ,junk") == {
            "etherscan": "abc",
            "other": "x=y",
        }

    def test_env(self) -> None:
        environ = {
            "API_KEY_ETHERSCAN": "abc",
            "APIKEY_MEMPOOL": "m",
            "API_KEY_EMPTY": "",
            "PATH": "/usr/bin",
        }
        assert parse_env_api_keys(environ) == {"etherscan": "abc", "mempool": "m"}


class TestParser:
    """Test argument parsing and validation."""

    def test_defaults(self, monkeypatch) -> None:
        for name in ("EVM_SOURCE", "BTC_SOURCE", "SOL_SOURCE", "PRICE_UNIT", "UPDATE_FREQUENCY"):
            monkeypatch.delenv(name, raising=False)
        args = build_parser().parse_args([])

        assert args.evm_source == "etherscan"
        assert args.btc_source == "mempool"
        assert args.sol_source == "solana_rpc"
        assert args.request_timeout == 8.0
        assert args.resource_timeout == 10.0
        assert args.unit is None
        assert not args.once

    def test_env_fallback(self, monkeypatch) -> None:
        monkeypatch.setenv("EVM_SOURCE", "evm_rpc")
        monkeypatch.setenv("RESOURCE_TIMEOUT", "4")

        args = build_parser().parse_args([])

        assert args.evm_source == "evm_rpc"
        assert args.resource_timeout == 4.0

    def test_unknown_source_rejected(self, tmp_path) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["--btc-source", "etherscan", "--preferences", str(tmp_path / "s.json")])
        assert exc_info.value.code == 2

    def test_invalid_timeout_rejected(self, tmp_path) -> None:
        with pytest.raises(SystemExit):
            main(["--request-timeout", "0", "--preferences", str(tmp_path / "s.json")])

    def test_invalid_interval_rejected(self, tmp_path) -> None:
        path = tmp_path / "s.json"
        with pytest.raises(SystemExit):
            main(["--interval", "7", "--preferences", str(path)])
        assert not path.exists()


class TestMainOnce:
    """Test a one-shot run with the network replaced."""

    def test_settings_saved_and_error_exit(self, tmp_path, monkeypatch) -> None:
        """Unit/interval flags are persisted; an error snapshot exits with 1."""
        path = tmp_path / "settings.json"
        for name in ("API_KEYS", "API_KEY_ETHERSCAN", "APIKEY_ETHERSCAN"):
            monkeypatch.delenv(name, raising=False)

        # No Etherscan key: the cycle fails before any request is sent
        with pytest.raises(SystemExit) as exc_info:
            main([
                "--once",
                "--unit", "fiat",
                "--interval", "15",
                "--preferences", str(path),
            ])

        assert exc_info.value.code == 1
        assert json.loads(path.read_text()) == {
            "priceUnit": "fiat",
            "updateFrequency": "15 minutes",
        }
