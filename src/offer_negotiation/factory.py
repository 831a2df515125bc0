"""Wiring: build oracle clients and the orchestrator from settings."""

import logging
from typing import Optional

from offer_negotiation.config import Settings
from offer_negotiation.decision_trace import TraceStore
from offer_negotiation.oracle_clients import (
    AIManagementOracleClient,
    BaseOracleClient,
    OpenAIOracleClient,
)
from offer_negotiation.orchestrator import OfferOrchestrator
from offer_negotiation.ports import ConsumerPort, ProviderPort, ServicePort
from offer_negotiation.selector import RandomSource
from offer_negotiation.strategies import OracleStrategy, StochasticStrategy

logger = logging.getLogger(__name__)


def build_oracle_client(settings: Settings) -> Optional[BaseOracleClient]:
    """Create the configured oracle client, or None if it cannot be built.
    
    A missing OpenAI key disables the oracle instead of failing startup;
    providers that opt into the oracle then fail with ConfigurationError.
    """
    if settings.oracle_backend == "ai_management":
        return AIManagementOracleClient(
            base_url=settings.ai_management_url,
            timeout=settings.oracle_timeout,
        )
    
    try:
        return OpenAIOracleClient(
            api_key=settings.openai_api_key,
            model=settings.openai_model,
            timeout=settings.oracle_timeout,
        )
    except ValueError as e:
        logger.warning(f"Oracle disabled: {e}")
        return None


def build_orchestrator(
    settings: Settings,
    consumer: ConsumerPort,
    services: ServicePort,
    providers: ProviderPort,
    oracle: Optional[BaseOracleClient] = None,
    rng: Optional[RandomSource] = None,
    trace_store: Optional[TraceStore] = None,
) -> OfferOrchestrator:
    """Assemble an orchestrator with strategies built from settings."""
    if oracle is None:
        oracle = build_oracle_client(settings)
    
    oracle_strategy = None
    if oracle is not None:
        oracle_strategy = OracleStrategy(
            oracle,
            consumer,
            max_tokens=settings.oracle_max_tokens,
        )
    
    return OfferOrchestrator(
        consumer=consumer,
        services=services,
        providers=providers,
        direct_strategy=StochasticStrategy(
            settings.direct_distribution, services, rng=rng, name="direct"
        ),
        pool_strategy=StochasticStrategy(
            settings.pool_distribution, services, rng=rng, name="pool"
        ),
        oracle_strategy=oracle_strategy,
        trace_store=trace_store,
    )
