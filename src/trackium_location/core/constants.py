"""
Application-wide constants for the Trackium location agent.

This module defines provider endpoints, fallback accuracies and default
configuration values used throughout the application.
"""

# Upstream geolocation endpoints (no API key required)
BIGDATACLOUD_URL = "https://api.bigdatacloud.net/data/client-info"
IP_API_URL = "http://ip-api.com/json/"
MOZILLA_MLS_URL = "https://location.services.mozilla.com/v1/geolocate?key=test"

# Fallback accuracy per provider, in meters
BIGDATACLOUD_DEFAULT_ACCURACY = 1000.0
IP_API_ACCURACY = 5000.0  # IP geolocation is inherently coarse
MOZILLA_MLS_DEFAULT_ACCURACY = 2000.0

# Provider names in default priority order
PROVIDER_BIGDATACLOUD = "bigdatacloud"
PROVIDER_IP_API = "ip-api"
PROVIDER_MOZILLA_MLS = "mozilla-mls"
DEFAULT_PROVIDER_ORDER = [
    PROVIDER_BIGDATACLOUD,
    PROVIDER_IP_API,
    PROVIDER_MOZILLA_MLS,
]

# Remote node
DEFAULT_NODE_URL = "http://127.0.0.1:9003"
LOCATION_UPDATE_ENDPOINT = "/api/location/update"
PENDING_QUEUE_KEY = "pending_location_updates"

# Delivery strategies
STRATEGY_DIRECT = "direct"
STRATEGY_KEYPAIR = "keypair"
DELIVERY_STRATEGIES = (STRATEGY_DIRECT, STRATEGY_KEYPAIR)

# Scheduling
DEFAULT_UPDATE_INTERVAL_MS = 180000  # 3 minutes

# HTTP
DEFAULT_API_TIMEOUT = 10  # seconds
DEFAULT_API_MAX_RETRIES = 0  # the update interval is the retry mechanism

# Local storage
DEFAULT_DATA_DIR = "data"
LAST_STATE_FILENAME = "location-data.json"
DEFAULT_LOG_FILE = "logs/trackium_location.log"
