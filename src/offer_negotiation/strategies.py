"""Decision strategies: map (provider, offer) to a Decision.

Two interchangeable policies sit behind DecisionStrategy:
- StochasticStrategy draws from a distribution and vetoes accepts when
  the provider is at capacity (direct and pool offers)
- OracleStrategy defers the accept/reject judgment to a language model

Strategies never mutate offers; applying a decision is the orchestrator's job.
"""

import logging
from abc import ABC, abstractmethod
from typing import Iterable, Optional

from offer_negotiation.capacity import has_capacity
from offer_negotiation.models import Decision, Offer, OfferState, Provider
from offer_negotiation.oracle_clients import BaseOracleClient
from offer_negotiation.ports import ConsumerPort, ServicePort
from offer_negotiation.selector import Distribution, RandomSource

logger = logging.getLogger(__name__)

ACCEPT_TOKEN = "Y"
REJECT_TOKEN = "N"


class DecisionStrategy(ABC):
    """Abstract base class for decision policies"""

    name: str = "strategy"

    @abstractmethod
    async def decide(self, provider: Provider, offer: Offer) -> Optional[Decision]:
        """Decide what the provider does with the offer.

        Returns:
            A Decision, or None when no decision could be reached
        """
        pass


class StochasticStrategy(DecisionStrategy):
    """Draws an outcome at random, downgrading accept to reject at capacity."""

    def __init__(
        self,
        distribution: Distribution,
        services: ServicePort,
        rng: Optional[RandomSource] = None,
        name: str = "stochastic",
    ):
        self.distribution = distribution
        self.services = services
        self.rng = rng
        self.name = name

    async def decide(self, provider: Provider, offer: Offer) -> Decision:
        logger.debug(f"{self.name}.decide() called with offer: {offer.id}")
        decision = self.distribution.choose(self.rng)

        if decision != Decision.ACCEPT:
            return decision

        try:
            count = await self.services.count_active_services(provider.id)
        except Exception as e:
            logger.error(
                f"{self.name}.decide() error counting active services "
                f"(offer={offer.id}, provider={provider.id}): {e}"
            )
            raise

        if not has_capacity(count, provider.services_limit):
            logger.info(
                f"{self.name}.decide() provider capacity reached: {provider.id} "
                f"({count}/{provider.services_limit}), rejecting offer {offer.id}"
            )
            return Decision.REJECT
        return Decision.ACCEPT


def _format_price(price: float) -> str:
    if isinstance(price, float) and price.is_integer():
        return str(int(price))
    return str(price)


def build_history_prompt(history: Iterable[Offer], pending: Offer) -> str:
    """Summarize past offers and the pending one for the oracle.

    Each past offer becomes "<price>Y" when it was accepted and "<price>N"
    otherwise; the pending offer's bare price comes last, e.g.
    "100N,150Y,200".
    """
    tokens = [
        f"{_format_price(offer.price)}"
        f"{ACCEPT_TOKEN if offer.state == OfferState.ACCEPTED else REJECT_TOKEN}"
        for offer in history
    ]
    tokens.append(_format_price(pending.price))
    return ",".join(tokens)


def parse_oracle_reply(text: str) -> Optional[Decision]:
    """Map the oracle's reply to a decision, or None if it is ambiguous."""
    reply = (text or "").strip()
    if reply == ACCEPT_TOKEN:
        return Decision.ACCEPT
    if reply == REJECT_TOKEN:
        return Decision.REJECT
    return None


class OracleStrategy(DecisionStrategy):
    """Lets a language model judge the offer against the provider's history."""

    name = "oracle"

    def __init__(
        self,
        oracle: BaseOracleClient,
        consumer: ConsumerPort,
        max_tokens: int = 60,
    ):
        self.oracle = oracle
        self.consumer = consumer
        self.max_tokens = max_tokens

    async def decide(self, provider: Provider, offer: Offer) -> Optional[Decision]:
        logger.debug(f"oracle.decide() called with offer: {offer.id}")

        offers = await self.consumer.find_offers_by_buyer(provider.account)
        history = [past for past in offers if past.id != offer.id]
        prompt = build_history_prompt(history, offer)

        try:
            text = await self.oracle.complete(prompt, max_tokens=self.max_tokens)
        except Exception as e:
            logger.error(
                f"oracle.decide() error (offer={offer.id}, provider={provider.id}): {e}"
            )
            raise

        decision = parse_oracle_reply(text)
        if decision is None:
            logger.warning(
                f"Response is not a clear Y/N answer (offer={offer.id}, "
                f"provider={provider.id}): {text!r}"
            )
        return decision
