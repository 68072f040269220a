"""
Persistence and delivery data models.

Contains the last-known-state record and the payload sent to the remote node.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict

from ..core.date_utils import DateUtils
from .location import Location


@dataclass(frozen=True)
class PersistedRecord:
    """Last known state of the device, overwritten on every resolution."""

    device_id: str
    location: Location
    resolved_at: datetime
    delivered: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "deviceId": self.device_id,
            "location": self.location.to_dict(),
            "timestamp": DateUtils.to_iso(self.resolved_at),
            "uploaded": self.delivered,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PersistedRecord":
        return cls(
            device_id=data["deviceId"],
            location=Location.from_dict(data["location"]),
            resolved_at=DateUtils.parse_iso(data["timestamp"]),
            delivered=bool(data.get("uploaded", False)),
        )


@dataclass(frozen=True)
class PendingPayload:
    """
    One location update awaiting acknowledgement by the remote node.

    Serializes to the body of ``POST /api/location/update``; the same
    dict shape is used for entries of the pending queue.
    """

    device_id: str
    latitude: float
    longitude: float
    accuracy: float
    timestamp: str
    source: str
    altitude: float = 0
    speed: float = 0

    @classmethod
    def from_location(
        cls,
        device_id: str,
        location: Location,
        resolved_at: datetime
    ) -> "PendingPayload":
        """Build the payload for a freshly resolved location."""
        return cls(
            device_id=device_id,
            latitude=location.latitude,
            longitude=location.longitude,
            accuracy=location.accuracy,
            timestamp=DateUtils.to_iso(resolved_at),
            source=location.source.value,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "deviceId": self.device_id,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "accuracy": self.accuracy,
            "altitude": self.altitude,
            "speed": self.speed,
            "timestamp": self.timestamp,
            "source": self.source,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PendingPayload":
        return cls(
            device_id=data["deviceId"],
            latitude=float(data["latitude"]),
            longitude=float(data["longitude"]),
            accuracy=float(data["accuracy"]),
            timestamp=data["timestamp"],
            source=data["source"],
            altitude=data.get("altitude", 0),
            speed=data.get("speed", 0),
        )
