"""Offer orchestrator: single entry point when an offer reaches a provider.

Validates the offer, picks a decision strategy, runs it and applies the
resulting side effect through the collaborator ports.

There is no rollback: an offer accepted whose service then fails to
commence stays ACCEPTED, and the error is surfaced to the caller.
"""

import logging
import uuid
from typing import Optional

from offer_negotiation.decision_trace import (
    Channel,
    DecisionRecord,
    DecisionStatus,
    TraceStore,
    get_trace_store,
)
from offer_negotiation.errors import (
    ConfigurationError,
    OfferValidationError,
    ProviderNotFoundError,
    ServiceNotFoundError,
    ValidationError,
)
from offer_negotiation.models import Decision, Offer, OfferState, Provider
from offer_negotiation.ports import ConsumerPort, ProviderPort, ServicePort
from offer_negotiation.strategies import DecisionStrategy

logger = logging.getLogger(__name__)


def _validate_offer(offer: Optional[Offer]) -> None:
    if offer is None:
        logger.error("Offer not defined")
        raise OfferValidationError("Offer not defined")
    if offer.state != OfferState.MARKET:
        message = f"Offer {offer.id} not in state MARKET (state={offer.state.value})"
        logger.error(message)
        raise OfferValidationError(message)


class OfferOrchestrator:
    """Decides offers on behalf of providers and applies the outcome.

    Responsibilities:
    - Validate the offer before any side effect
    - Resolve the provider and select a strategy
    - Dispatch the decision to the consumer and service collaborators
    - Record a decision trace for every attempt

    Strategy selection:
    - Direct offers use the oracle strategy when the provider opts in,
      the direct stochastic strategy otherwise
    - Pool offers always use the pool stochastic strategy
    """

    def __init__(
        self,
        consumer: ConsumerPort,
        services: ServicePort,
        providers: ProviderPort,
        direct_strategy: DecisionStrategy,
        pool_strategy: DecisionStrategy,
        oracle_strategy: Optional[DecisionStrategy] = None,
        trace_store: Optional[TraceStore] = None,
    ):
        self.consumer = consumer
        self.services = services
        self.providers = providers
        self.direct_strategy = direct_strategy
        self.pool_strategy = pool_strategy
        self.oracle_strategy = oracle_strategy
        self.trace_store = trace_store if trace_store is not None else get_trace_store()

    async def create_provider(
        self,
        account: str,
        services_limit: int = 1,
        uses_oracle: bool = False,
    ) -> Provider:
        """Register a new provider for an account.

        Raises:
            ValidationError: If the account is missing or the limit is negative
        """
        logger.debug(f"create_provider() called with account: {account}")
        if not account:
            raise ValidationError("Account not defined")
        if services_limit < 0:
            raise ValidationError(f"services_limit must be >= 0, got {services_limit}")

        provider = Provider(
            id=str(uuid.uuid4()),
            account=account,
            services_limit=services_limit,
            uses_oracle=uses_oracle,
        )
        try:
            provider = await self.providers.save_provider(provider)
        except Exception as e:
            logger.error(f"create_provider() error: {e}")
            raise

        logger.info(f"create_provider() created provider {provider.id} for account {account}")
        return provider

    def _select_direct_strategy(self, provider: Provider) -> DecisionStrategy:
        if not provider.uses_oracle:
            return self.direct_strategy
        if self.oracle_strategy is None:
            raise ConfigurationError(
                f"Provider {provider.id} uses the oracle but no oracle strategy is configured"
            )
        return self.oracle_strategy

    async def receive_direct(self, offer: Offer) -> Offer:
        """Decide an offer sent directly to its buyer's provider.

        Args:
            offer: Offer in state MARKET

        Returns:
            The offer after the decision's effect was applied

        Raises:
            OfferValidationError: If the offer is missing or not in state MARKET
            ProviderNotFoundError: If no provider owns the offer's buyer account
            DependencyError: If a collaborator or the oracle fails
        """
        _validate_offer(offer)
        logger.debug(f"receive_direct() called with offer: {offer.id}")
        record = DecisionRecord.start(offer.id, Channel.DIRECT)
        self.trace_store.store(record)

        try:
            provider = await self.providers.find_provider_by_account(offer.buyer)
            if provider is None:
                raise ProviderNotFoundError(f"Provider not found for account {offer.buyer}")
            record.provider_id = provider.id

            strategy = self._select_direct_strategy(provider)
            record.strategy = strategy.name
            decision = await strategy.decide(provider, offer)
            offer = await self._apply(decision, offer, provider, Channel.DIRECT)
        except Exception as e:
            logger.error(
                f"receive_direct() error (offer={offer.id}, provider={record.provider_id}): {e}"
            )
            record.complete(DecisionStatus.FAILED, error=str(e))
            raise

        self._complete(record, decision, offer)
        return offer

    async def receive_from_pool(self, offer: Offer, provider: Provider) -> Offer:
        """Decide an offer a provider picked up from the shared pool.

        The offer's buyer is reassigned to the provider's account before
        deciding. Pool offers can only be accepted or rejected.

        Raises:
            OfferValidationError: If the offer is missing or not in state MARKET
            ProviderNotFoundError: If the provider is missing
            DependencyError: If a collaborator fails
        """
        _validate_offer(offer)
        if provider is None:
            logger.error(f"receive_from_pool() provider not found (offer={offer.id})")
            raise ProviderNotFoundError("Provider not found")
        logger.debug(f"receive_from_pool() called with offer: {offer.id}, provider: {provider.id}")

        record = DecisionRecord.start(offer.id, Channel.POOL)
        record.provider_id = provider.id
        record.strategy = self.pool_strategy.name
        self.trace_store.store(record)

        offer.buyer = provider.account
        try:
            decision = await self.pool_strategy.decide(provider, offer)
            offer = await self._apply(decision, offer, provider, Channel.POOL)
        except Exception as e:
            logger.error(
                f"receive_from_pool() error (offer={offer.id}, provider={provider.id}): {e}"
            )
            record.complete(DecisionStatus.FAILED, error=str(e))
            raise

        self._complete(record, decision, offer)
        return offer

    async def _apply(
        self,
        decision: Optional[Decision],
        offer: Offer,
        provider: Provider,
        channel: Channel,
    ) -> Offer:
        if decision == Decision.ACCEPT:
            offer = await self.consumer.offer_accepted(offer)
            logger.info(f"Provider {provider.id} accepted offer {offer.id}")
            service = await self.services.find_service_by_id(offer.service)
            if service is None:
                raise ServiceNotFoundError(
                    f"Service {offer.service} not found for accepted offer {offer.id}"
                )
            await self.services.commence(service)
            logger.info(f"Commenced service {service.id} for offer {offer.id}")
        elif decision == Decision.REJECT:
            offer = await self.consumer.offer_rejected(offer)
            logger.info(f"Provider {provider.id} rejected offer {offer.id}")
        elif decision == Decision.POOL and channel == Channel.DIRECT:
            offer = await self.consumer.offer_to_pool(offer)
            logger.info(f"Provider {provider.id} moved offer {offer.id} to the pool")
        elif decision is None:
            logger.info(f"No decision for offer {offer.id}, leaving it in state MARKET")
        else:
            logger.info(f"Provider {provider.id} left offer {offer.id} for later ({decision.value})")
        return offer

    def _complete(self, record: DecisionRecord, decision: Optional[Decision], offer: Offer) -> None:
        status = DecisionStatus.NO_DECISION if decision is None else DecisionStatus.DECIDED
        record.complete(
            status,
            decision=decision.value if decision is not None else None,
            offer_state=offer.state.value,
        )
