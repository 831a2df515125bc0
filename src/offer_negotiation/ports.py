"""Collaborator interfaces consumed by the offer orchestrator.

Persistence, the consumer-side offer lifecycle and service lifecycle are
owned elsewhere; the orchestrator only talks to them through these ports.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from offer_negotiation.models import Offer, Provider, Service


class ConsumerPort(ABC):
    """Consumer-side offer lifecycle.
    
    Transition methods persist the new state and raise OfferStateError
    when the offer is not in a transitionable state.
    """
    
    @abstractmethod
    async def offer_accepted(self, offer: Offer) -> Offer:
        pass
    
    @abstractmethod
    async def offer_rejected(self, offer: Offer) -> Offer:
        pass
    
    @abstractmethod
    async def offer_to_pool(self, offer: Offer) -> Offer:
        pass
    
    @abstractmethod
    async def find_offer_by_id(self, offer_id: str) -> Optional[Offer]:
        pass
    
    @abstractmethod
    async def find_offers_by_buyer(self, account_id: str) -> List[Offer]:
        """Return every offer ever addressed to an account."""
        pass


class ServicePort(ABC):
    """Service lifecycle."""
    
    @abstractmethod
    async def find_service_by_id(self, service_id: str) -> Optional[Service]:
        pass
    
    @abstractmethod
    async def commence(self, service: Service) -> Service:
        """Move a service to ACTIVE."""
        pass
    
    @abstractmethod
    async def count_active_services(self, provider_id: str) -> int:
        pass


class ProviderPort(ABC):
    """Provider and account lookup."""
    
    @abstractmethod
    async def find_provider_by_account(self, account_id: str) -> Optional[Provider]:
        pass
    
    @abstractmethod
    async def find_provider_by_id(self, provider_id: str) -> Optional[Provider]:
        pass
    
    @abstractmethod
    async def save_provider(self, provider: Provider) -> Provider:
        pass
