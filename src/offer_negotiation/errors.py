"""Exception hierarchy for offer negotiation.

Validation errors are raised before any side effect and are safe to retry
once the input is fixed. Dependency errors are raised mid-sequence; the
offer's final state is unknown and must be re-fetched before retrying.
"""

from typing import Optional


class OfferNegotiationError(Exception):
    """Base class for all offer negotiation errors."""
    pass


class ValidationError(OfferNegotiationError, ValueError):
    """Raised when input is missing or in the wrong state."""
    pass


class OfferValidationError(ValidationError):
    """Raised when an offer is missing or not in state MARKET."""
    pass


class ProviderNotFoundError(ValidationError):
    """Raised when no provider can be resolved for an offer."""
    pass


class DistributionError(ValidationError):
    """Raised when outcome probabilities are malformed."""
    pass


class ConfigurationError(ValidationError):
    """Raised when the service is wired or configured inconsistently."""
    pass


class DependencyError(OfferNegotiationError):
    """Raised when an external collaborator fails."""
    pass


class OfferStateError(DependencyError):
    """Raised by the consumer side when an offer cannot transition."""
    pass


class ServiceNotFoundError(DependencyError):
    """Raised when the service linked to an offer does not exist."""
    pass


class OracleError(DependencyError):
    """Raised on oracle transport, authentication or non-success responses."""
    
    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status
