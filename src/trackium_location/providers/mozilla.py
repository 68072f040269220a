"""
Mozilla Location Service provider (WiFi/IP hybrid, last resort).
"""

import logging
from typing import Optional

from ..api import APIClient
from ..core import constants
from ..core.exceptions import ProviderError
from ..models import Location, LocationSource
from .base import fetch_json, require_coordinate, optional_accuracy, nested

# No access points are sent, so the service falls back to the caller's IP
GEOLOCATE_REQUEST = {"considerIp": True}


class MozillaLocationProvider:
    """Resolve location via ``POST /v1/geolocate``."""

    name = constants.PROVIDER_MOZILLA_MLS

    def __init__(
        self,
        client: APIClient,
        url: str = constants.MOZILLA_MLS_URL,
        logger: Optional[logging.Logger] = None
    ):
        self.client = client
        self.url = url
        self.logger = logger or logging.getLogger(__name__)

    def resolve(self) -> Location:
        """
        Query MLS once.

        Expected response: ``{"location": {"lat": .., "lng": ..}, "accuracy": ..}``.
        Accuracy defaults to 2000 m; MLS returns no city or country.

        Raises:
            ProviderError: On transport, status or payload errors
        """
        data = fetch_json(self.name, lambda: self.client.post(self.url, GEOLOCATE_REQUEST))
        self.logger.debug(f"{self.name} response: {data}")
        location = nested(data, "location")
        if not location:
            raise ProviderError(self.name, "no location in response")

        return Location(
            latitude=require_coordinate(self.name, location.get("lat"), "location.lat", 90),
            longitude=require_coordinate(self.name, location.get("lng"), "location.lng", 180),
            accuracy=optional_accuracy(
                data.get("accuracy"), constants.MOZILLA_MLS_DEFAULT_ACCURACY
            ),
            source=LocationSource.MOZILLA_MLS,
        )
