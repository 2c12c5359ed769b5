"""Tests for configuration loading."""

import pytest

from trade_cli.config.config import Config, DEFAULT_BASE_URL, build_networks

ENV_VARS = [
    "EXECUTE_TRADE_PRIVATE_KEY",
    "EXECUTE_TRADE_API_TOKEN",
    "EXECUTE_TRADE_BASE_URL",
    "EXECUTE_TRADE_BASE_RPC_URL",
    "EXECUTE_TRADE_BSC_RPC_URL",
    "EXECUTE_TRADE_SLIPPAGE_BPS",
    "EXECUTE_TRADE_HTTP_TIMEOUT",
    "LOG_LEVEL",
]


class TestConfig:
    """Test cases for Config."""

    @pytest.fixture(autouse=True)
    def clean_env(self, monkeypatch, tmp_path):
        # setenv first so values written by load_dotenv are undone on teardown
        for name in ENV_VARS:
            monkeypatch.setenv(name, "")
            monkeypatch.delenv(name)
        self.missing_env = str(tmp_path / "missing.env")

    def test_defaults(self):
        """Test default values when nothing is set."""
        config = Config.load(self.missing_env)

        assert config.api.base_url == DEFAULT_BASE_URL
        assert config.api.slippage_bps == 300
        assert config.api.timeout == 30.0
        assert config.log_level == "WARNING"
        assert set(config.networks) == {"base", "bsc"}

    def test_missing_credentials_fail_validation(self):
        """Test that missing key and token are reported."""
        valid, errors = Config.load(self.missing_env).validate()

        assert valid is False
        assert "EXECUTE_TRADE_PRIVATE_KEY is required" in errors
        assert "EXECUTE_TRADE_API_TOKEN is required" in errors

    def test_valid_config(self, monkeypatch):
        """Test that a complete environment validates."""
        monkeypatch.setenv("EXECUTE_TRADE_PRIVATE_KEY", "0x" + "11" * 32)
        monkeypatch.setenv("EXECUTE_TRADE_API_TOKEN", "token")
        monkeypatch.setenv("EXECUTE_TRADE_BASE_RPC_URL", "https://base.rpc")
        monkeypatch.setenv("EXECUTE_TRADE_BASE_URL", "https://staging.api/")

        config = Config.load(self.missing_env)
        valid, errors = config.validate()

        assert valid is True
        assert errors == []
        assert config.api.base_url == "https://staging.api"
        assert config.get_network("BASE").is_configured is True
        assert config.get_network("bsc").is_configured is False

    def test_no_rpc_urls_fail_validation(self, monkeypatch):
        """Test that at least one RPC URL is required."""
        monkeypatch.setenv("EXECUTE_TRADE_PRIVATE_KEY", "0x" + "11" * 32)
        monkeypatch.setenv("EXECUTE_TRADE_API_TOKEN", "token")

        valid, errors = Config.load(self.missing_env).validate()

        assert valid is False
        assert any("RPC_URL" in e for e in errors)

    def test_env_file_loaded(self, tmp_path):
        """Test that values are read from an env file."""
        env_file = tmp_path / ".env.local"
        env_file.write_text(
            "EXECUTE_TRADE_API_TOKEN=from-file\n"
            "EXECUTE_TRADE_SLIPPAGE_BPS=150\n"
            "EXECUTE_TRADE_BSC_RPC_URL=https://bsc.rpc\n"
        )

        config = Config.load(str(env_file))

        assert config.api.api_token == "from-file"
        assert config.api.slippage_bps == 150
        assert config.networks["bsc"].rpc_url == "https://bsc.rpc"

    def test_invalid_slippage(self, monkeypatch):
        """Test that out-of-range slippage is rejected."""
        monkeypatch.setenv("EXECUTE_TRADE_SLIPPAGE_BPS", "0")
        valid, errors = Config.load(self.missing_env).validate()
        assert any("SLIPPAGE" in e for e in errors)

    def test_malformed_numbers_reported(self, monkeypatch):
        """Test that non-numeric slippage or timeout becomes a validation error."""
        monkeypatch.setenv("EXECUTE_TRADE_SLIPPAGE_BPS", "3%")
        monkeypatch.setenv("EXECUTE_TRADE_HTTP_TIMEOUT", "soon")

        config = Config.load(self.missing_env)
        valid, errors = config.validate()

        assert valid is False
        assert "EXECUTE_TRADE_SLIPPAGE_BPS must be a number, got '3%'" in errors
        assert "EXECUTE_TRADE_HTTP_TIMEOUT must be a number, got 'soon'" in errors
        assert config.api.slippage_bps == 300
        assert config.api.timeout == 30.0


class TestNetworks:
    """Test cases for the network table."""

    def test_network_ids(self, monkeypatch):
        """Test network ids and native symbols."""
        monkeypatch.delenv("EXECUTE_TRADE_BASE_RPC_URL", raising=False)
        networks = build_networks()

        assert networks["base"].network_id == 8453
        assert networks["base"].native_symbol == "ETH"
        assert networks["bsc"].network_id == 56
        assert networks["bsc"].native_symbol == "BNB"
        assert networks["base"].rpc_env_var == "EXECUTE_TRADE_BASE_RPC_URL"
        assert networks["base"].is_configured is False


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
