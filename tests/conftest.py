"""
Pytest configuration and shared fixtures for all tests.
"""

import sys
from datetime import datetime, timedelta
from pathlib import Path

import pytest
import pytz

# Add the project root to sys.path so we can import from src
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from src.trackium_location.models import Location, LocationSource, PendingPayload  # noqa: E402
from src.trackium_location.services.store import LocalStore  # noqa: E402

CONFIG_ENV_VARS = [
    "CONFIG_FILE",
    "TRACKIUM_DEVICE_ID",
    "MINIMA_NODE_URL",
    "UPDATE_INTERVAL",
    "DELIVERY_STRATEGY",
    "TRACKIUM_DATA_DIR",
    "API_TIMEOUT",
    "LOG_LEVEL",
    "LOG_FILE",
]

NODE_URL = "http://node.test:9003"


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Remove configuration env vars and run from an empty directory."""
    for name in CONFIG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    return monkeypatch


@pytest.fixture
def london():
    """Reading as produced by BigDataCloud."""
    return Location(
        latitude=51.5,
        longitude=-0.12,
        accuracy=800.0,
        source=LocationSource.BIGDATACLOUD,
        city="London",
        country="UK",
    )


@pytest.fixture
def store(tmp_path):
    """Local store in a temporary directory."""
    return LocalStore(str(tmp_path / "data"))


@pytest.fixture
def make_payload():
    """Factory for payloads with increasing timestamps."""
    start = datetime(2024, 1, 1, 12, 0, 0, tzinfo=pytz.UTC)

    def _make(index: int = 0, device_id: str = "TRACK-001") -> PendingPayload:
        location = Location(
            latitude=40.0 + index,
            longitude=-74.0,
            accuracy=5000.0,
            source=LocationSource.IP_API,
        )
        return PendingPayload.from_location(
            device_id, location, start + timedelta(minutes=3 * index)
        )

    return _make


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as unit test (no external dependencies)"
    )
