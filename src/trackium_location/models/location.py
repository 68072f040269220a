"""
Location data models.

Contains the normalized location reading produced by geolocation providers.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class LocationSource(str, Enum):
    """Provider that produced a reading, in default priority order."""

    BIGDATACLOUD = "bigdatacloud"
    IP_API = "ip-api"
    MOZILLA_MLS = "mozilla-mls"


@dataclass(frozen=True)
class Location:
    """Normalized location reading."""

    latitude: float
    longitude: float
    accuracy: float
    source: LocationSource
    city: Optional[str] = None
    country: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a JSON-compatible dict, omitting unknown city/country."""
        data: Dict[str, Any] = {
            "latitude": self.latitude,
            "longitude": self.longitude,
            "accuracy": self.accuracy,
            "source": self.source.value,
        }
        if self.city is not None:
            data["city"] = self.city
        if self.country is not None:
            data["country"] = self.country
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Location":
        """Build a Location from the dict produced by ``to_dict``."""
        return cls(
            latitude=float(data["latitude"]),
            longitude=float(data["longitude"]),
            accuracy=float(data["accuracy"]),
            source=LocationSource(data["source"]),
            city=data.get("city"),
            country=data.get("country"),
        )
