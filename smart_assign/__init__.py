"""smart_assign - automatic assignment of procurement requests to officers."""

from smart_assign.balancing.service import LoadBalancingService, get_load_balancing_service

__all__ = [
    "LoadBalancingService",
    "get_load_balancing_service",
]
