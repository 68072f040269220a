"""
Error taxonomy for the Trackium location agent.
"""

from typing import List, Optional


class TrackiumError(Exception):
    """Base class for all agent errors."""


class ConfigurationError(TrackiumError):
    """Invalid configuration or missing device identifier."""


class ProviderError(TrackiumError):
    """A geolocation provider failed to produce a location."""

    def __init__(self, provider: str, cause: str):
        self.provider = provider
        self.cause = cause
        super().__init__(f"{provider}: {cause}")


class ResolutionExhausted(TrackiumError):
    """Every configured provider failed during one resolution attempt."""

    def __init__(self, errors: Optional[List[ProviderError]] = None):
        self.errors = list(errors or [])
        details = "; ".join(str(e) for e in self.errors) or "no providers configured"
        super().__init__(f"All location providers failed ({details})")


class PersistenceError(TrackiumError):
    """Reading or writing local state failed."""


class DeliveryError(TrackiumError):
    """
    Delivery to the remote node failed.

    ``acknowledged`` counts the leading payloads the remote node accepted
    before the failure occurred.
    """

    def __init__(self, message: str, acknowledged: int = 0):
        self.acknowledged = acknowledged
        super().__init__(message)
