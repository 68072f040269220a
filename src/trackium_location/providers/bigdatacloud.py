"""
BigDataCloud client-info provider.

Best accuracy of the three providers and the only one returning a
country name alongside the city.
"""

import logging
from typing import Optional

from ..api import APIClient
from ..core import constants
from ..core.exceptions import ProviderError
from ..models import Location, LocationSource
from .base import fetch_json, require_coordinate, optional_accuracy, optional_text, nested


class BigDataCloudProvider:
    """Resolve location via ``GET /data/client-info``."""

    name = constants.PROVIDER_BIGDATACLOUD

    def __init__(
        self,
        client: APIClient,
        url: str = constants.BIGDATACLOUD_URL,
        logger: Optional[logging.Logger] = None
    ):
        self.client = client
        self.url = url
        self.logger = logger or logging.getLogger(__name__)

    def resolve(self) -> Location:
        """
        Query BigDataCloud once.

        Expected response::

            {"location": {"latitude": 51.5, "longitude": -0.12,
                          "accuracyRadius": 800, "city": "London",
                          "countryName": "UK"}}

        Returns:
            Normalized location (accuracy defaults to 1000 m)

        Raises:
            ProviderError: On transport, status or payload errors
        """
        data = fetch_json(self.name, lambda: self.client.get(self.url))
        self.logger.debug(f"{self.name} response: {data}")
        location = nested(data, "location")
        if not location:
            raise ProviderError(self.name, "no location in response")

        return Location(
            latitude=require_coordinate(self.name, location.get("latitude"), "location.latitude", 90),
            longitude=require_coordinate(self.name, location.get("longitude"), "location.longitude", 180),
            accuracy=optional_accuracy(
                location.get("accuracyRadius"), constants.BIGDATACLOUD_DEFAULT_ACCURACY
            ),
            source=LocationSource.BIGDATACLOUD,
            city=optional_text(location.get("city")),
            country=optional_text(location.get("countryName")),
        )
