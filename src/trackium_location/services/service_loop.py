"""
Service loop orchestrating resolve -> persist -> deliver on a fixed interval.

Cycles never overlap: the wait for the next cycle starts only once the
current one has completed, and the fixed interval is the only retry
mechanism for both resolution and delivery failures.
"""

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from ..core.date_utils import DateUtils
from ..core.exceptions import PersistenceError
from ..core.logger import LoggerContext
from ..models import Location, PersistedRecord, PendingPayload
from .delivery import DeliveryClient, DeliveryResult
from .resolver import LocationResolver
from .store import LocalStore


class LoopState(str, Enum):
    """States of the service loop."""

    IDLE = "idle"
    RESOLVING = "resolving"
    PERSISTING = "persisting"
    DELIVERING = "delivering"
    SLEEPING = "sleeping"
    STOPPED = "stopped"


@dataclass(frozen=True)
class CycleResult:
    """Outcome of one cycle."""

    location: Optional[Location] = None
    persisted: bool = False
    delivery: Optional[DeliveryResult] = None


class ServiceLoop:
    """Single-worker periodic location cycle."""

    def __init__(
        self,
        device_id: str,
        resolver: LocationResolver,
        store: LocalStore,
        delivery: DeliveryClient,
        interval_seconds: float,
        logger: Optional[logging.Logger] = None,
        clock: Callable = DateUtils.utc_now
    ):
        """
        Initialize service loop.

        Args:
            device_id: Identifier sent with every update
            resolver: Location resolver
            store: Local store for last known state
            delivery: Delivery client
            interval_seconds: Pause between the end of one cycle and the next
            logger: Logger instance
            clock: Returns the current UTC datetime
        """
        self.device_id = device_id
        self.resolver = resolver
        self.store = store
        self.delivery = delivery
        self.interval_seconds = interval_seconds
        self.logger = logger or logging.getLogger(__name__)
        self.clock = clock

        self.state = LoopState.IDLE
        self.cycles_completed = 0
        self.current_location: Optional[Location] = None
        self._stop_event = threading.Event()

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    def stop(self) -> None:
        """
        Request shutdown.

        An in-flight request is allowed to finish; no further cycle starts.
        """
        if not self._stop_event.is_set():
            self.logger.info("Stopping location service...")
        self._stop_event.set()

    def run_cycle(self) -> CycleResult:
        """
        Run one resolve -> persist -> deliver cycle.

        Returns:
            What happened during the cycle
        """
        self.state = LoopState.RESOLVING
        location = self.resolver.resolve()
        if location is None:
            self.logger.warning("No location available this cycle")
            return CycleResult()

        self.current_location = location
        self._log_location(location)
        resolved_at = self.clock()

        self.state = LoopState.PERSISTING
        record = PersistedRecord(
            device_id=self.device_id,
            location=location,
            resolved_at=resolved_at,
        )
        persisted = self._save_record(record)

        # Delivery is attempted even when persistence failed
        self.state = LoopState.DELIVERING
        payload = PendingPayload.from_location(self.device_id, location, resolved_at)
        result = self.delivery.deliver(payload)

        if result.delivered_current and persisted:
            self._save_record(
                PersistedRecord(
                    device_id=record.device_id,
                    location=record.location,
                    resolved_at=record.resolved_at,
                    delivered=True,
                )
            )

        return CycleResult(location=location, persisted=persisted, delivery=result)

    def run_forever(self, max_cycles: Optional[int] = None) -> None:
        """
        Run cycles until stopped.

        Args:
            max_cycles: Stop after this many cycles (None runs until stop())

        Raises:
            Exception: Any unexpected fault, after the loop has moved to STOPPED
        """
        self.logger.info(f"Update interval: {self.interval_seconds:g} seconds")
        try:
            while not self.stopped:
                with LoggerContext(self.logger, f"location cycle {self.cycles_completed + 1}"):
                    self.run_cycle()
                self.cycles_completed += 1

                if max_cycles is not None and self.cycles_completed >= max_cycles:
                    break
                if self.stopped:
                    break

                self.state = LoopState.SLEEPING
                self.logger.info(f"Next update in {self.interval_seconds:g} seconds")
                self._stop_event.wait(self.interval_seconds)
        except Exception:
            self.logger.critical("Location service stopped by an internal fault")
            raise
        finally:
            self.state = LoopState.STOPPED

    def _save_record(self, record: PersistedRecord) -> bool:
        try:
            self.store.save_last(record)
            return True
        except PersistenceError as e:
            self.logger.error(str(e))
            return False

    def _log_location(self, location: Location) -> None:
        self.logger.info(f"Location: {location.latitude:.6f}, {location.longitude:.6f}")
        self.logger.info(f"  Accuracy: {location.accuracy:g}m | Source: {location.source.value}")
        if location.city:
            self.logger.info(f"  City: {location.city}, {location.country or 'unknown'}")
