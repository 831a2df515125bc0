"""In-memory marketplace implementing every collaborator port.

Used for local runs of the API server and in tests. In production the
ports are backed by the marketplace's persistence layer.
"""

import logging
from dataclasses import replace
from typing import Dict, List, Optional

from offer_negotiation.errors import OfferStateError, ServiceNotFoundError
from offer_negotiation.models import (
    Offer,
    OfferState,
    Provider,
    Service,
    ServiceState,
)
from offer_negotiation.ports import ConsumerPort, ProviderPort, ServicePort

logger = logging.getLogger(__name__)


class InMemoryMarketplace(ConsumerPort, ServicePort, ProviderPort):
    """Dict-backed store for offers, services and providers.

    Stored objects are copies; callers always get fresh instances back.
    `pool` lists the ids of offers handed to the shared pool, in order,
    so callers can observe pool insertions.
    """

    def __init__(self):
        self.offers: Dict[str, Offer] = {}
        self.services: Dict[str, Service] = {}
        self.providers: Dict[str, Provider] = {}
        self.pool: List[str] = []

    def add_offer(self, offer: Offer) -> Offer:
        self.offers[offer.id] = replace(offer)
        return offer

    def add_service(self, service: Service) -> Service:
        self.services[service.id] = replace(service)
        return service

    def add_provider(self, provider: Provider) -> Provider:
        self.providers[provider.id] = replace(provider)
        return provider

    # Consumer side

    async def _transition(self, offer: Offer, target: OfferState) -> Offer:
        stored = self.offers.get(offer.id)
        if stored is None:
            raise OfferStateError(f"Offer {offer.id} not found")
        if stored.state != OfferState.MARKET:
            raise OfferStateError(
                f"Offer {offer.id} cannot move from {stored.state.value} to {target.value}"
            )
        stored = replace(stored, buyer=offer.buyer, state=target)
        self.offers[offer.id] = stored
        logger.debug(f"Offer {offer.id} -> {target.value}")
        return replace(stored)

    async def offer_accepted(self, offer: Offer) -> Offer:
        return await self._transition(offer, OfferState.ACCEPTED)

    async def offer_rejected(self, offer: Offer) -> Offer:
        return await self._transition(offer, OfferState.REJECTED)

    async def offer_to_pool(self, offer: Offer) -> Offer:
        pooled = await self._transition(offer, OfferState.POOLED)
        self.pool.append(pooled.id)
        return pooled

    async def find_offer_by_id(self, offer_id: str) -> Optional[Offer]:
        stored = self.offers.get(offer_id)
        return replace(stored) if stored else None

    async def find_offers_by_buyer(self, account_id: str) -> List[Offer]:
        return [replace(o) for o in self.offers.values() if o.buyer == account_id]

    # Services

    async def find_service_by_id(self, service_id: str) -> Optional[Service]:
        stored = self.services.get(service_id)
        return replace(stored) if stored else None

    async def commence(self, service: Service) -> Service:
        stored = self.services.get(service.id)
        if stored is None:
            raise ServiceNotFoundError(f"Service {service.id} not found")
        stored = replace(stored, state=ServiceState.ACTIVE)
        self.services[service.id] = stored
        return replace(stored)

    async def count_active_services(self, provider_id: str) -> int:
        return sum(
            1 for s in self.services.values()
            if s.provider == provider_id and s.state == ServiceState.ACTIVE
        )

    # Providers

    async def find_provider_by_account(self, account_id: str) -> Optional[Provider]:
        for provider in self.providers.values():
            if provider.account == account_id:
                return replace(provider)
        return None

    async def find_provider_by_id(self, provider_id: str) -> Optional[Provider]:
        stored = self.providers.get(provider_id)
        return replace(stored) if stored else None

    async def save_provider(self, provider: Provider) -> Provider:
        return self.add_provider(provider)
