"""Offer Negotiation Service - FastAPI Application"""

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException, Query
from pydantic import BaseModel, Field

from offer_negotiation.config import configure_logging, load_settings
from offer_negotiation.errors import (
    DependencyError,
    OfferStateError,
    OfferValidationError,
    ProviderNotFoundError,
    ValidationError,
)
from offer_negotiation.factory import build_orchestrator
from offer_negotiation.memory import InMemoryMarketplace
from offer_negotiation.models import Offer, Provider
from offer_negotiation.orchestrator import OfferOrchestrator
from offer_negotiation.ports import ConsumerPort, ProviderPort

logger = logging.getLogger(__name__)


# Pydantic models
class ProviderCreateRequest(BaseModel):
    """Provider registration request"""
    account: str = Field(min_length=1)
    services_limit: int = Field(default=1, ge=0)
    uses_oracle: bool = False


class ProviderResponse(BaseModel):
    """Provider response model"""
    id: str
    account: str
    services_limit: int
    uses_oracle: bool

    @classmethod
    def from_provider(cls, provider: Provider) -> "ProviderResponse":
        return cls(
            id=provider.id,
            account=provider.account,
            services_limit=provider.services_limit,
            uses_oracle=provider.uses_oracle,
        )


class PoolPickupRequest(BaseModel):
    """Pool pickup request"""
    provider_id: str


class OfferResponse(BaseModel):
    """Offer response model"""
    id: str
    buyer: str
    service: str
    price: float
    state: str

    @classmethod
    def from_offer(cls, offer: Offer) -> "OfferResponse":
        return cls(
            id=offer.id,
            buyer=offer.buyer,
            service=offer.service,
            price=offer.price,
            state=offer.state.value,
        )


def _to_http_error(e: Exception) -> HTTPException:
    if isinstance(e, ProviderNotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, (OfferValidationError, OfferStateError)):
        return HTTPException(status_code=409, detail=str(e))
    if isinstance(e, ValidationError):
        return HTTPException(status_code=400, detail=str(e))
    if isinstance(e, DependencyError):
        return HTTPException(status_code=502, detail=str(e))
    return HTTPException(status_code=500, detail=str(e))


def create_app(
    orchestrator: OfferOrchestrator,
    consumer: Optional[ConsumerPort] = None,
    providers: Optional[ProviderPort] = None,
) -> FastAPI:
    """Build the HTTP surface over an orchestrator.

    Args:
        orchestrator: Orchestrator that decides offers
        consumer: Offer lookup, defaults to the orchestrator's consumer port
        providers: Provider lookup, defaults to the orchestrator's provider port
    """
    consumer = consumer or orchestrator.consumer
    providers = providers or orchestrator.providers

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup and shutdown events"""
        yield
        # Shutdown
        if orchestrator.oracle_strategy is not None:
            oracle = getattr(orchestrator.oracle_strategy, "oracle", None)
            if oracle is not None:
                await oracle.aclose()
        logger.info("Offer Negotiation Service stopped")

    app = FastAPI(
        title="Offer Negotiation Service",
        description="Provider-side decisions on direct and pooled offers",
        version="1.0.0",
        lifespan=lifespan,
    )

    async def _load_offer(offer_id: str) -> Offer:
        offer = await consumer.find_offer_by_id(offer_id)
        if offer is None:
            raise HTTPException(status_code=404, detail=f"Offer {offer_id} not found")
        return offer

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "oracle": "configured" if orchestrator.oracle_strategy else "disabled",
        }

    @app.post("/providers", response_model=ProviderResponse)
    async def create_provider(request: ProviderCreateRequest):
        """Register a provider for an account"""
        try:
            provider = await orchestrator.create_provider(
                request.account,
                services_limit=request.services_limit,
                uses_oracle=request.uses_oracle,
            )
        except Exception as e:
            logger.error(f"Provider creation error: {e}")
            raise _to_http_error(e)
        return ProviderResponse.from_provider(provider)

    @app.post("/offers/{offer_id}/receive", response_model=OfferResponse)
    async def receive_direct(offer_id: str):
        """Deliver a direct offer to its provider"""
        offer = await _load_offer(offer_id)
        try:
            offer = await orchestrator.receive_direct(offer)
        except Exception as e:
            logger.error(f"Direct offer error for {offer_id}: {e}")
            raise _to_http_error(e)
        return OfferResponse.from_offer(offer)

    @app.post("/offers/{offer_id}/pool-pickup", response_model=OfferResponse)
    async def receive_from_pool(offer_id: str, request: PoolPickupRequest):
        """Deliver a pooled offer to the provider picking it up"""
        offer = await _load_offer(offer_id)
        provider = await providers.find_provider_by_id(request.provider_id)
        if provider is None:
            raise HTTPException(
                status_code=404, detail=f"Provider {request.provider_id} not found"
            )
        try:
            offer = await orchestrator.receive_from_pool(offer, provider)
        except Exception as e:
            logger.error(f"Pool offer error for {offer_id}: {e}")
            raise _to_http_error(e)
        return OfferResponse.from_offer(offer)

    @app.get("/traces")
    async def list_traces(limit: int = Query(default=10, ge=1, le=1000)) -> List[Dict[str, Any]]:
        """Most recent decision traces"""
        return [record.to_dict() for record in orchestrator.trace_store.get_recent(limit)]

    return app


def build_app() -> FastAPI:
    """Build an app backed by the in-memory marketplace."""
    settings = load_settings()
    configure_logging(settings.log_level)
    marketplace = InMemoryMarketplace()
    orchestrator = build_orchestrator(settings, marketplace, marketplace, marketplace)
    logger.info("Offer Negotiation Service started")
    return create_app(orchestrator)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("offer_negotiation.api_server:build_app", factory=True, host="0.0.0.0", port=8002)
