"""Domain models for offers, providers and services."""

from dataclasses import dataclass
from enum import Enum


class OfferState(str, Enum):
    """Lifecycle state of a direct offer."""
    MARKET = "MARKET"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    POOLED = "POOLED"


class ServiceState(str, Enum):
    """Lifecycle state of a service instance."""
    PENDING = "PENDING"
    ACTIVE = "ACTIVE"  # Occupies provider capacity
    COMPLETED = "COMPLETED"


class Decision(str, Enum):
    """Outcome of a provider's decision on an offer."""
    ACCEPT = "accept"
    REJECT = "reject"
    POSTPONE = "postpone"
    POOL = "pool"


@dataclass
class Offer:
    """A direct offer extended to a provider.
    
    Attributes:
        id: Offer identifier
        buyer: Account id of the provider the offer is addressed to
        service: Id of the service started when the offer is accepted
        price: Offered price
        state: Current lifecycle state
    """
    id: str
    buyer: str
    service: str
    price: float
    state: OfferState = OfferState.MARKET
    
    def __post_init__(self):
        """Coerce raw state strings once at the boundary."""
        self.state = OfferState(self.state)


@dataclass
class Provider:
    """A seller able to take on services.
    
    Attributes:
        id: Provider identifier
        account: Linked account id
        services_limit: Maximum number of concurrently active services
        uses_oracle: Delegate direct-offer decisions to the language model
    """
    id: str
    account: str
    services_limit: int = 1
    uses_oracle: bool = False


@dataclass
class Service:
    """A service instance owned by a provider."""
    id: str
    provider: str
    state: ServiceState = ServiceState.PENDING
    
    def __post_init__(self):
        self.state = ServiceState(self.state)
