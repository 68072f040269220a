"""
Business logic services for the Trackium location agent.

Services orchestrate provider and node calls and own local persistence.
"""

from .resolver import LocationResolver
from .store import LocalStore
from .delivery import (
    DeliveryClient,
    DeliveryResult,
    DirectDelivery,
    KeypairQueueDelivery,
    build_strategies,
)
from .service_loop import ServiceLoop, LoopState, CycleResult

__all__ = [
    "LocationResolver",
    "LocalStore",
    "DeliveryClient",
    "DeliveryResult",
    "DirectDelivery",
    "KeypairQueueDelivery",
    "build_strategies",
    "ServiceLoop",
    "LoopState",
    "CycleResult",
]
