"""
ip-api.com provider (IP-based fallback).
"""

import logging
from typing import Optional

from ..api import APIClient
from ..core import constants
from ..core.exceptions import ProviderError
from ..models import Location, LocationSource
from .base import fetch_json, require_coordinate, optional_text


class IpApiProvider:
    """Resolve location via ``GET http://ip-api.com/json/``."""

    name = constants.PROVIDER_IP_API

    def __init__(
        self,
        client: APIClient,
        url: str = constants.IP_API_URL,
        logger: Optional[logging.Logger] = None
    ):
        self.client = client
        self.url = url
        self.logger = logger or logging.getLogger(__name__)

    def resolve(self) -> Location:
        """
        Query ip-api once.

        Accuracy is always 5000 m whatever the payload says.

        Raises:
            ProviderError: If status is not "success" or coordinates are missing
        """
        data = fetch_json(self.name, lambda: self.client.get(self.url))
        self.logger.debug(f"{self.name} response: {data}")

        status = data.get("status")
        if status != "success":
            reason = data.get("message") or f"status={status!r}"
            raise ProviderError(self.name, f"lookup failed ({reason})")

        return Location(
            latitude=require_coordinate(self.name, data.get("lat"), "lat", 90),
            longitude=require_coordinate(self.name, data.get("lon"), "lon", 180),
            accuracy=constants.IP_API_ACCURACY,
            source=LocationSource.IP_API,
            city=optional_text(data.get("city")),
            country=optional_text(data.get("country")),
        )
