"""
HTTP layer for the Trackium location agent.

Provides the low-level client shared by geolocation providers and delivery.
"""

from .client import APIClient

__all__ = [
    "APIClient",
]
