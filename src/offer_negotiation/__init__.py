"""Offer negotiation package.

Decides what a provider does with an offer it receives: accept it,
reject it, postpone it, or push it into the shared pool.
"""

from offer_negotiation.models import (
    Decision,
    Offer,
    OfferState,
    Provider,
    Service,
    ServiceState,
)
from offer_negotiation.orchestrator import OfferOrchestrator

__all__ = [
    "Decision",
    "Offer",
    "OfferState",
    "OfferOrchestrator",
    "Provider",
    "Service",
    "ServiceState",
]
