"""
Trackium Location Agent

Periodically determines an approximate device location through third-party
geolocation services, keeps the last known state on disk and relays every
reading to a Minima node without losing it when the node is unreachable.
"""

__version__ = "1.0.0"
__description__ = "Periodic device location agent for Trackium"


def __getattr__(name):
    """Lazy import to avoid importing dependencies when not needed."""
    if name == "LocationServiceApp":
        from .main import LocationServiceApp
        return LocationServiceApp
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "LocationServiceApp",
]
