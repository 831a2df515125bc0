"""Capacity guard for provider workloads."""


def has_capacity(active_service_count: int, services_limit: int) -> bool:
    """Return True if a provider can take on one more service."""
    return active_service_count < services_limit
