"""Unit tests for configuration loading."""

import pytest

from solana_router.config import (
    MarketConfig,
    ModelConfig,
    SolanaConfig,
    get_env_var,
    get_router_config,
    get_solana_config,
    int_validator,
    url_list_validator,
)
from solana_router.utils.errors import ConfigurationError


@pytest.fixture(autouse=True)
def clear_config_cache():
    get_solana_config.cache_clear()
    get_router_config.cache_clear()
    yield
    get_solana_config.cache_clear()
    get_router_config.cache_clear()


class TestEnvVars:
    """Test suite for get_env_var and validators."""

    def test_default_when_missing(self, monkeypatch):
        monkeypatch.delenv("ROUTER_TEST_VALUE", raising=False)

        assert get_env_var("ROUTER_TEST_VALUE", "fallback") == "fallback"

    def test_required_missing(self, monkeypatch):
        monkeypatch.delenv("ROUTER_TEST_VALUE", raising=False)

        with pytest.raises(ConfigurationError):
            get_env_var("ROUTER_TEST_VALUE", required=True)

    def test_validator_failure(self, monkeypatch):
        monkeypatch.setenv("ROUTER_TEST_VALUE", "three")

        with pytest.raises(ConfigurationError) as exc_info:
            get_env_var("ROUTER_TEST_VALUE", validator=int_validator)
        assert exc_info.value.details["key"] == "ROUTER_TEST_VALUE"

    def test_url_list_preserves_order(self):
        urls = url_list_validator("https://b.example.com, https://a.example.com")

        assert urls == ("https://b.example.com", "https://a.example.com")

    def test_url_list_rejects_garbage(self):
        with pytest.raises(ValueError):
            url_list_validator("https://ok.example.com,not a url")


class TestSectionConfigs:
    """Test suite for the per-section dataclasses."""

    def test_solana_config_from_env(self, monkeypatch):
        # Setup
        monkeypatch.setenv("SOLANA_RPC_ENDPOINTS", "https://one.example.com,https://two.example.com")
        monkeypatch.setenv("SOLANA_COMMITMENT", "FINALIZED")
        monkeypatch.setenv("SOLANA_TIMEOUT", "2.5")

        # Execute
        config = get_solana_config()

        # Verify
        assert config.rpc_endpoints == ("https://one.example.com", "https://two.example.com")
        assert config.commitment == "finalized"
        assert config.request_timeout == 2.5

    def test_bad_commitment(self, monkeypatch):
        monkeypatch.setenv("SOLANA_COMMITMENT", "eventually")

        with pytest.raises(ConfigurationError):
            get_solana_config()

    def test_empty_pool_rejected(self):
        with pytest.raises(ConfigurationError):
            SolanaConfig(rpc_endpoints=())

    @pytest.mark.parametrize("timeout", [2.0, 6.0])
    def test_market_timeout_bounds(self, timeout):
        with pytest.raises(ConfigurationError):
            MarketConfig(timeout=timeout)

    def test_model_enabled_by_key(self):
        assert ModelConfig().enabled is False
        assert ModelConfig(api_key="sk-test").enabled is True

    def test_router_config_from_env(self, monkeypatch):
        monkeypatch.setenv("ROUTER_MAX_TOOL_ROUNDS", "5")
        monkeypatch.setenv("SESSION_EXPIRY_MINUTES", "10")

        config = get_router_config()

        assert config.max_tool_rounds == 5
        assert config.session_ttl_minutes == 10
