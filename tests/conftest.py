"""Shared fixtures for offer negotiation tests."""

import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from offer_negotiation.decision_trace import TraceStore
from offer_negotiation.memory import InMemoryMarketplace
from offer_negotiation.models import Offer, Provider, Service
from offer_negotiation.strategies import DecisionStrategy


class ScriptedRandom:
    """Random source that replays a fixed sequence of draws."""
    
    def __init__(self, *values):
        self.values = list(values)
    
    def random(self) -> float:
        return self.values.pop(0)


class FixedStrategy(DecisionStrategy):
    """Strategy that always returns the same decision."""
    
    def __init__(self, decision, name="fixed"):
        self.decision = decision
        self.name = name
        self.calls = []
    
    async def decide(self, provider, offer):
        self.calls.append((provider.id, offer.id))
        return self.decision


@pytest.fixture
def marketplace():
    market = InMemoryMarketplace()
    market.add_provider(Provider(id="prov-1", account="acct-1", services_limit=1))
    market.add_service(Service(id="svc-1", provider="prov-1"))
    market.add_offer(Offer(id="offer-1", buyer="acct-1", service="svc-1", price=100))
    return market


@pytest.fixture
def trace_store():
    return TraceStore()
