"""
Location resolver.

Tries geolocation providers in priority order and returns the first
successful reading.
"""

import logging
from typing import List, Optional, Sequence, TYPE_CHECKING

from ..core.exceptions import ProviderError, ResolutionExhausted
from ..models import Location

if TYPE_CHECKING:
    from ..providers import LocationProvider


class LocationResolver:
    """
    Sequential provider fallback chain.

    Providers are queried one after another, never concurrently, so the
    first provider to succeed wins by construction.
    """

    def __init__(
        self,
        providers: Sequence["LocationProvider"],
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize resolver.

        Args:
            providers: Providers in priority order (highest first)
            logger: Logger instance
        """
        self.providers = list(providers)
        self.logger = logger or logging.getLogger(__name__)
        self.last_errors: List[ProviderError] = []

    def resolve_or_raise(self) -> Location:
        """
        Resolve the current location.

        Returns:
            Location from the highest-priority provider that succeeded

        Raises:
            ResolutionExhausted: If every provider failed
        """
        self.logger.info("Detecting location...")
        errors: List[ProviderError] = []

        for provider in self.providers:
            try:
                location = provider.resolve()
            except ProviderError as e:
                self.logger.warning(f"Provider {provider.name} failed: {e.cause}")
                errors.append(e)
                continue

            self.logger.info(f"Location detected via {provider.name}")
            self.last_errors = errors
            return location

        self.last_errors = errors
        raise ResolutionExhausted(errors)

    def resolve(self) -> Optional[Location]:
        """
        Resolve the current location.

        Returns:
            Location, or None when no provider could produce one
        """
        try:
            return self.resolve_or_raise()
        except ResolutionExhausted as e:
            self.logger.error(str(e))
            return None
