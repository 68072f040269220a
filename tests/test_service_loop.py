"""
Tests for the resolve -> persist -> deliver service loop.
"""

import threading
from datetime import datetime
from unittest.mock import Mock, patch

import pytest
import pytz

from src.trackium_location.core.exceptions import DeliveryError, PersistenceError
from src.trackium_location.models import Location, LocationSource, PendingPayload
from src.trackium_location.services.delivery import DeliveryClient, DeliveryResult
from src.trackium_location.services.service_loop import LoopState, ServiceLoop

RESOLVED_AT = datetime(2024, 1, 1, 12, 0, 0, tzinfo=pytz.UTC)


def make_loop(resolver=None, store=None, delivery=None, interval=0.0):
    return ServiceLoop(
        device_id="TRACK-001",
        resolver=resolver or Mock(),
        store=store or Mock(),
        delivery=delivery or Mock(),
        interval_seconds=interval,
        logger=Mock(),
        clock=lambda: RESOLVED_AT,
    )


def failing_strategy():
    strategy = Mock()
    strategy.name = "direct"
    strategy.send.side_effect = DeliveryError("node unreachable")
    return strategy


class TestRunCycle:
    """Single cycle transitions."""

    def test_no_location_skips_persist_and_deliver(self):
        resolver = Mock()
        resolver.resolve.return_value = None
        store = Mock()
        delivery = Mock()

        result = make_loop(resolver, store, delivery).run_cycle()

        assert result.location is None
        store.save_last.assert_not_called()
        delivery.deliver.assert_not_called()

    def test_full_cycle(self, london):
        resolver = Mock()
        resolver.resolve.return_value = london
        store = Mock()
        delivery = Mock()
        delivery.deliver.return_value = DeliveryResult(sent=1, remaining=0, delivered_current=True)

        result = make_loop(resolver, store, delivery).run_cycle()

        assert result.location == london
        assert result.persisted
        delivery.deliver.assert_called_once_with(
            PendingPayload.from_location("TRACK-001", london, RESOLVED_AT)
        )
        # Saved once before delivery, then again marked as uploaded
        records = [call.args[0] for call in store.save_last.call_args_list]
        assert [r.delivered for r in records] == [False, True]
        assert all(r.resolved_at == RESOLVED_AT for r in records)

    def test_failed_delivery_leaves_record_not_uploaded(self, london):
        resolver = Mock()
        resolver.resolve.return_value = london
        store = Mock()
        delivery = Mock()
        delivery.deliver.return_value = DeliveryResult(sent=0, remaining=1, delivered_current=False)

        make_loop(resolver, store, delivery).run_cycle()

        store.save_last.assert_called_once()
        assert store.save_last.call_args.args[0].delivered is False

    def test_persistence_failure_still_delivers(self, london):
        resolver = Mock()
        resolver.resolve.return_value = london
        store = Mock()
        store.save_last.side_effect = PersistenceError("disk full")
        delivery = Mock()
        delivery.deliver.return_value = DeliveryResult(sent=1, remaining=0, delivered_current=True)

        result = make_loop(resolver, store, delivery).run_cycle()

        assert not result.persisted
        delivery.deliver.assert_called_once()
        store.save_last.assert_called_once()

    def test_current_location_tracked(self, london):
        resolver = Mock()
        resolver.resolve.return_value = london
        delivery = Mock()
        delivery.deliver.return_value = DeliveryResult(0, 1, False)
        loop = make_loop(resolver, delivery=delivery)

        loop.run_cycle()

        assert loop.current_location == london


class TestRunForever:
    """Scheduling and shutdown."""

    def test_runs_requested_number_of_cycles(self):
        resolver = Mock()
        resolver.resolve.return_value = None
        loop = make_loop(resolver)

        loop.run_forever(max_cycles=3)

        assert resolver.resolve.call_count == 3
        assert loop.cycles_completed == 3
        assert loop.state is LoopState.STOPPED

    def test_readings_survive_repeated_delivery_failure(self, store):
        """N failed cycles leave N readings queued, in resolution order."""
        readings = [
            Location(50.0 + i, 8.0, 1000.0, LocationSource.BIGDATACLOUD) for i in range(4)
        ]
        resolver = Mock()
        resolver.resolve.side_effect = readings
        delivery = DeliveryClient(store, [failing_strategy()], logger=Mock())
        loop = make_loop(resolver, store, delivery)

        loop.run_forever(max_cycles=4)

        queue = store.load_pending_queue()
        assert [p.latitude for p in queue] == [50.0, 51.0, 52.0, 53.0]
        assert store.load_last().location == readings[-1]
        assert store.load_last().delivered is False

    def test_stop_during_cycle_prevents_next_cycle(self):
        loop = make_loop()
        loop.resolver.resolve.side_effect = lambda: loop.stop()

        loop.run_forever()

        assert loop.resolver.resolve.call_count == 1
        assert loop.state is LoopState.STOPPED

    def test_stop_interrupts_sleep(self):
        resolver = Mock()
        resolver.resolve.return_value = None
        loop = make_loop(resolver, interval=60.0)

        worker = threading.Thread(target=loop.run_forever)
        worker.start()
        # First cycle runs immediately, then the loop waits for 60 s
        for _ in range(100):
            if loop.state is LoopState.SLEEPING:
                break
            threading.Event().wait(0.01)
        loop.stop()
        worker.join(timeout=5)

        assert not worker.is_alive()
        assert resolver.resolve.call_count == 1

    def test_waits_full_interval_between_cycles(self):
        resolver = Mock()
        resolver.resolve.return_value = None
        loop = make_loop(resolver, interval=42.0)

        with patch.object(loop._stop_event, "wait", return_value=False) as wait:
            loop.run_forever(max_cycles=3)

        assert [c.args[0] for c in wait.call_args_list] == [42.0, 42.0]

    def test_internal_fault_stops_loop(self):
        resolver = Mock()
        resolver.resolve.side_effect = RuntimeError("boom")
        loop = make_loop(resolver)

        with pytest.raises(RuntimeError, match="boom"):
            loop.run_forever()

        assert loop.state is LoopState.STOPPED
        loop.logger.critical.assert_called_once()
