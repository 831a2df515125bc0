"""Settings loaded from the environment (and a .env file when present)."""

import logging
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from offer_negotiation.errors import ConfigurationError, DistributionError
from offer_negotiation.selector import (
    DIRECT_DISTRIBUTION,
    POOL_DISTRIBUTION,
    Distribution,
)

ORACLE_BACKENDS = ("openai", "ai_management")

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass
class Settings:
    """Runtime configuration for the offer negotiation service."""
    direct_distribution: Distribution = DIRECT_DISTRIBUTION
    pool_distribution: Distribution = POOL_DISTRIBUTION
    oracle_backend: str = "openai"
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o-mini"
    ai_management_url: str = "http://localhost:8001"
    oracle_max_tokens: int = 60
    oracle_timeout: float = 60.0
    log_level: str = "INFO"
    
    def __post_init__(self):
        """Validate settings structure."""
        if self.oracle_backend not in ORACLE_BACKENDS:
            raise ConfigurationError(
                f"Unknown ORACLE_BACKEND '{self.oracle_backend}'. "
                f"Available: {', '.join(ORACLE_BACKENDS)}"
            )
        if not self.pool_distribution.is_terminal:
            raise DistributionError(
                "Pool distribution must not postpone or pool: "
                f"{self.pool_distribution.as_tuple()}"
            )
        if self.oracle_max_tokens <= 0:
            raise ConfigurationError("ORACLE_MAX_TOKENS must be positive")


def _get_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer, got '{raw}'") from e


def _get_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be a number, got '{raw}'") from e


def _get_distribution(name: str, default: Distribution) -> Distribution:
    raw = os.getenv(name)
    if not raw:
        return default
    return Distribution.parse(raw)


def load_settings(env_file: Optional[str] = None) -> Settings:
    """Load settings from environment variables.
    
    Args:
        env_file: Optional path to a .env file; defaults to dotenv's lookup
    
    Raises:
        ConfigurationError: If a value cannot be parsed
        DistributionError: If a distribution is malformed
    """
    load_dotenv(dotenv_path=env_file)
    
    return Settings(
        direct_distribution=_get_distribution("OFFER_DIRECT_DISTRIBUTION", DIRECT_DISTRIBUTION),
        pool_distribution=_get_distribution("OFFER_POOL_DISTRIBUTION", POOL_DISTRIBUTION),
        oracle_backend=os.getenv("ORACLE_BACKEND", "openai").strip().lower(),
        openai_api_key=os.getenv("OPENAI_API_KEY"),
        openai_model=os.getenv("OPENAI_GPT_MODEL", "gpt-4o-mini"),
        ai_management_url=os.getenv("AI_MANAGEMENT_URL", "http://localhost:8001"),
        oracle_max_tokens=_get_int("ORACLE_MAX_TOKENS", 60),
        oracle_timeout=_get_float("ORACLE_TIMEOUT", 60.0),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging for the service."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
    )
