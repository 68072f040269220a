"""
Core utilities for the Trackium location agent.

Provides configuration management, logging, error types and date handling.
"""

from .config import Config
from .logger import setup_logger, LoggerContext
from . import constants
from .date_utils import DateUtils
from .exceptions import (
    TrackiumError,
    ConfigurationError,
    ProviderError,
    ResolutionExhausted,
    PersistenceError,
    DeliveryError,
)

__all__ = [
    "Config",
    "setup_logger",
    "LoggerContext",
    "constants",
    "DateUtils",
    "TrackiumError",
    "ConfigurationError",
    "ProviderError",
    "ResolutionExhausted",
    "PersistenceError",
    "DeliveryError",
]
