"""
Common contract and parsing helpers for geolocation providers.

A provider is any object with a ``name`` and a ``resolve()`` method that
returns a :class:`Location` or raises :class:`ProviderError`. Each call
performs exactly one network round trip; retrying is left to the next
service cycle.
"""

import math
from typing import Any, Callable, Dict, Optional, Protocol

import requests  # type: ignore

from ..core.exceptions import ProviderError
from ..models import Location


class LocationProvider(Protocol):
    """Structural type satisfied by every provider client."""

    name: str

    def resolve(self) -> Location:
        ...


def fetch_json(provider: str, call: Callable[[], Any]) -> Dict[str, Any]:
    """
    Run one HTTP call and return its decoded JSON object.

    Every transport, status and decoding failure is mapped to ProviderError.

    Args:
        provider: Provider name used in error messages
        call: Zero-argument callable performing the request

    Returns:
        Decoded JSON object

    Raises:
        ProviderError: On any failure
    """
    try:
        data = call()
    except requests.exceptions.JSONDecodeError as e:
        raise ProviderError(provider, f"malformed JSON response: {e}")
    except requests.exceptions.Timeout as e:
        raise ProviderError(provider, f"request timed out: {e}")
    except requests.exceptions.HTTPError as e:
        status = e.response.status_code if e.response is not None else "unknown"
        raise ProviderError(provider, f"HTTP {status}")
    except requests.exceptions.RequestException as e:
        raise ProviderError(provider, f"connection failed: {e}")
    except ValueError as e:
        raise ProviderError(provider, f"malformed JSON response: {e}")

    if not isinstance(data, dict):
        raise ProviderError(provider, "response is not a JSON object")
    return data


def require_coordinate(provider: str, value: Any, field: str, limit: float) -> float:
    """
    Validate a required latitude/longitude value.

    Raises:
        ProviderError: If the value is missing, non-numeric or out of range
    """
    if value is None:
        raise ProviderError(provider, f"missing field '{field}'")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ProviderError(provider, f"field '{field}' is not a number: {value!r}")
    value = float(value)
    if not math.isfinite(value) or abs(value) > limit:
        raise ProviderError(provider, f"field '{field}' out of range: {value}")
    return value


def optional_accuracy(value: Any, default: float) -> float:
    """Return a positive numeric accuracy, or the provider default."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    if not math.isfinite(value) or value <= 0:
        return default
    return float(value)


def optional_text(value: Any) -> Optional[str]:
    """Return a non-empty string field, or None."""
    if isinstance(value, str) and value.strip():
        return value
    return None


def nested(data: Dict[str, Any], key: str) -> Dict[str, Any]:
    """Return ``data[key]`` when it is an object, else an empty dict."""
    value = data.get(key)
    return value if isinstance(value, dict) else {}
