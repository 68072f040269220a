"""
Data models for the Trackium location agent.

Contains DTOs for location readings, persisted state and delivery payloads.
"""

from .location import Location, LocationSource
from .delivery import PersistedRecord, PendingPayload

__all__ = [
    "Location",
    "LocationSource",
    "PersistedRecord",
    "PendingPayload",
]
