"""Tests for settings loading and orchestrator wiring."""

import pytest

from offer_negotiation.config import Settings, load_settings
from offer_negotiation.errors import ConfigurationError, DistributionError
from offer_negotiation.factory import build_oracle_client, build_orchestrator
from offer_negotiation.memory import InMemoryMarketplace
from offer_negotiation.oracle_clients import AIManagementOracleClient, OpenAIOracleClient
from offer_negotiation.selector import DIRECT_DISTRIBUTION, POOL_DISTRIBUTION, Distribution

ENV_VARS = [
    "OFFER_DIRECT_DISTRIBUTION",
    "OFFER_POOL_DISTRIBUTION",
    "ORACLE_BACKEND",
    "OPENAI_API_KEY",
    "OPENAI_GPT_MODEL",
    "AI_MANAGEMENT_URL",
    "ORACLE_MAX_TOKENS",
    "ORACLE_TIMEOUT",
    "LOG_LEVEL",
]


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    for name in ENV_VARS:
        # setenv first so teardown also removes values loaded from .env files
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    return str(tmp_path / "missing.env")


def test_defaults(clean_env):
    settings = load_settings(clean_env)
    
    assert settings.direct_distribution == DIRECT_DISTRIBUTION
    assert settings.pool_distribution == POOL_DISTRIBUTION
    assert settings.oracle_backend == "openai"
    assert settings.openai_api_key is None
    assert settings.oracle_max_tokens == 60
    assert settings.log_level == "INFO"


def test_env_overrides(clean_env, monkeypatch):
    monkeypatch.setenv("OFFER_DIRECT_DISTRIBUTION", "0.4,0.4,0.1,0.1")
    monkeypatch.setenv("OFFER_POOL_DISTRIBUTION", "0.9,0.1,0,0")
    monkeypatch.setenv("ORACLE_BACKEND", "AI_Management")
    monkeypatch.setenv("ORACLE_MAX_TOKENS", "5")
    monkeypatch.setenv("ORACLE_TIMEOUT", "2.5")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    
    settings = load_settings(clean_env)
    
    assert settings.direct_distribution == Distribution(0.4, 0.4, 0.1, 0.1)
    assert settings.pool_distribution == Distribution(0.9, 0.1)
    assert settings.oracle_backend == "ai_management"
    assert settings.oracle_max_tokens == 5
    assert settings.oracle_timeout == 2.5
    assert settings.log_level == "DEBUG"


def test_env_file_is_loaded(clean_env, tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text("OPENAI_GPT_MODEL=gpt-test\nORACLE_MAX_TOKENS=7\n")
    
    settings = load_settings(str(env_file))
    
    assert settings.openai_model == "gpt-test"
    assert settings.oracle_max_tokens == 7


def test_malformed_direct_distribution(clean_env, monkeypatch):
    monkeypatch.setenv("OFFER_DIRECT_DISTRIBUTION", "0.5,0.2,0.1,0.1")
    
    with pytest.raises(DistributionError):
        load_settings(clean_env)


def test_pool_distribution_must_be_terminal():
    with pytest.raises(DistributionError, match="Pool distribution"):
        Settings(pool_distribution=Distribution(0.5, 0.3, 0.2, 0.0))


def test_invalid_integer(clean_env, monkeypatch):
    monkeypatch.setenv("ORACLE_MAX_TOKENS", "lots")
    
    with pytest.raises(ConfigurationError, match="ORACLE_MAX_TOKENS"):
        load_settings(clean_env)


def test_unknown_backend():
    with pytest.raises(ConfigurationError, match="ORACLE_BACKEND"):
        Settings(oracle_backend="carrier-pigeon")


def test_build_oracle_client_backends():
    assert isinstance(
        build_oracle_client(Settings(oracle_backend="ai_management")),
        AIManagementOracleClient,
    )
    assert isinstance(
        build_oracle_client(Settings(openai_api_key="sk-test")),
        OpenAIOracleClient,
    )


def test_missing_openai_key_disables_oracle(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    market = InMemoryMarketplace()
    
    orchestrator = build_orchestrator(Settings(), market, market, market)
    
    assert orchestrator.oracle_strategy is None
    assert orchestrator.direct_strategy.distribution == DIRECT_DISTRIBUTION
    assert orchestrator.pool_strategy.distribution == POOL_DISTRIBUTION
    assert orchestrator.pool_strategy.name == "pool"
