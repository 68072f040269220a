"""
Geolocation provider clients.

Each provider issues one request to a fixed third-party service and
normalizes its response to a :class:`Location`.
"""

import logging
from typing import List, Optional, Sequence

from ..api import APIClient
from ..core import constants
from .base import LocationProvider
from .bigdatacloud import BigDataCloudProvider
from .ip_api import IpApiProvider
from .mozilla import MozillaLocationProvider

PROVIDER_CLASSES = {
    constants.PROVIDER_BIGDATACLOUD: BigDataCloudProvider,
    constants.PROVIDER_IP_API: IpApiProvider,
    constants.PROVIDER_MOZILLA_MLS: MozillaLocationProvider,
}


def build_providers(
    client: APIClient,
    order: Sequence[str] = constants.DEFAULT_PROVIDER_ORDER,
    logger: Optional[logging.Logger] = None
) -> List[LocationProvider]:
    """
    Instantiate providers in priority order.

    Args:
        client: Shared HTTP client
        order: Provider names, highest priority first
        logger: Logger instance

    Returns:
        Ordered list of providers

    Raises:
        ValueError: On an unknown provider name
    """
    providers: List[LocationProvider] = []
    for name in order:
        try:
            provider_class = PROVIDER_CLASSES[name]
        except KeyError:
            raise ValueError(f"Unknown location provider: {name}")
        providers.append(provider_class(client, logger=logger))
    return providers


__all__ = [
    "LocationProvider",
    "BigDataCloudProvider",
    "IpApiProvider",
    "MozillaLocationProvider",
    "PROVIDER_CLASSES",
    "build_providers",
]
