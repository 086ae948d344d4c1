"""
tests/test_telemetry.py
────────────────────────
Tests for the rolling telemetry window.
"""
import json
import time
from datetime import timedelta

import pytest

from aethergrid.data.models import AnomalyKind, Severity
from aethergrid.data.store import InMemoryStore
from aethergrid.data.telemetry import TelemetryStore
from config.assets import TELEMETRY_KEY


class TestSeeding:
    def test_seeds_full_window_when_empty(self, telemetry, kv):
        assert len(telemetry.history()) == 100
        assert kv.load(TELEMETRY_KEY) is not None

    def test_malformed_blob_falls_back_to_seed(self, clock):
        kv = InMemoryStore({TELEMETRY_KEY: "{not json"})
        store = TelemetryStore(kv, capacity=10, clock=clock, seed=1)
        assert len(store.history()) == 10

    def test_wrong_shape_blob_falls_back_to_seed(self, clock):
        kv = InMemoryStore({TELEMETRY_KEY: json.dumps({"samples": []})})
        store = TelemetryStore(kv, capacity=10, clock=clock, seed=1)
        assert len(store.history()) == 10

    def test_reload_from_persisted_window(self, telemetry, kv, clock):
        telemetry.tick()
        reloaded = TelemetryStore(kv, capacity=100, clock=clock)
        assert reloaded.history() == telemetry.history()

    def test_oversized_blob_pruned_to_newest(self, telemetry, kv, clock):
        history = telemetry.history()
        smaller = TelemetryStore(kv, capacity=10, clock=clock)
        assert smaller.history() == history[-10:]

    def test_seed_is_clean(self, telemetry):
        assert telemetry.analyze_window(60).anomaly_detected is False


class TestTick:
    def test_window_never_exceeds_capacity(self, kv, clock):
        store = TelemetryStore(kv, capacity=5, clock=clock, seed=3)
        for _ in range(12):
            clock.advance(2)
            store.tick()
            assert len(store.history()) <= 5

    def test_retains_most_recent_in_order(self, kv, clock):
        store = TelemetryStore(kv, capacity=5, clock=clock, seed=3)
        produced = []
        for _ in range(8):
            clock.advance(2)
            produced.append(store.tick())
        assert store.history() == produced[-5:]

    def test_timestamps_increase_with_stalled_clock(self, telemetry):
        first = telemetry.tick()
        second = telemetry.tick()  # clock did not move
        assert second.captured_at > first.captured_at

    def test_latest(self, telemetry, clock):
        clock.advance(2)
        sample = telemetry.tick()
        assert telemetry.latest() == sample

    def test_tick_persists(self, telemetry, kv, clock):
        clock.advance(2)
        sample = telemetry.tick()
        stored = json.loads(kv.load(TELEMETRY_KEY))
        assert stored[-1]["vibration"] == sample.vibration

    def test_history_is_a_copy(self, telemetry):
        h = telemetry.history()
        h.clear()
        assert len(telemetry.history()) == 100


class TestIngest:
    def test_rejects_out_of_order(self, telemetry, make_sample, now):
        with pytest.raises(ValueError):
            telemetry.ingest(make_sample(now - timedelta(hours=1)))

    def test_accepts_newer(self, telemetry, make_sample, clock):
        sample = make_sample(clock.advance(1))
        telemetry.ingest(sample)
        assert telemetry.latest() == sample


class TestSubscribe:
    def test_immediate_callback_with_current_state(self, telemetry):
        seen = []
        telemetry.subscribe(lambda latest, window: seen.append((latest, len(window))))
        assert seen == [(telemetry.latest(), 100)]

    def test_notified_on_tick(self, telemetry, clock):
        seen = []
        telemetry.subscribe(lambda latest, window: seen.append(latest))
        clock.advance(2)
        sample = telemetry.tick()
        assert seen[-1] == sample
        assert len(seen) == 2

    def test_unsubscribe(self, telemetry, clock):
        seen = []
        unsubscribe = telemetry.subscribe(lambda latest, window: seen.append(latest))
        unsubscribe()
        unsubscribe()  # idempotent
        clock.advance(2)
        telemetry.tick()
        assert len(seen) == 1

    def test_failing_listener_does_not_block_others(self, telemetry, clock):
        seen = []

        def broken(latest, window):
            raise RuntimeError("boom")

        telemetry.subscribe(broken)
        telemetry.subscribe(lambda latest, window: seen.append(latest))
        clock.advance(2)
        telemetry.tick()
        assert len(seen) == 2

    def test_window_passed_is_a_copy(self, telemetry, clock):
        telemetry.subscribe(lambda latest, window: window.clear())
        clock.advance(2)
        telemetry.tick()
        assert len(telemetry.history()) == 100


class TestAnalyzeWindow:
    def test_vibration_spike_detected(self, telemetry, flood):
        flood(vibration=7.5)
        result = telemetry.analyze_window(60)
        assert result.anomaly_detected is True
        assert result.anomalies[0].kind == AnomalyKind.VIBRATION_SPIKE
        assert result.anomalies[0].severity == Severity.CRITICAL

    def test_high_not_critical(self, telemetry, flood):
        flood(vibration=5.0)
        assert telemetry.analyze_window(60).anomalies[0].severity == Severity.HIGH

    def test_quiet_window(self, telemetry, flood):
        flood(vibration=2.0, temperature=60.0)
        assert telemetry.analyze_window(60).anomaly_detected is False

    def test_empty_window_after_long_silence(self, telemetry, clock):
        clock.advance(3600)
        result = telemetry.analyze_window(60)
        assert result.anomaly_detected is False
        assert result.sample_count == 0


class TestBackgroundLoop:
    def test_start_stop(self, kv):
        store = TelemetryStore(kv, capacity=20, tick_interval_s=0.01, seed=5)
        before = store.latest()
        store.start()
        store.start()  # second start is a no-op
        try:
            for _ in range(200):
                if store.latest() != before:
                    break
                time.sleep(0.01)
        finally:
            store.stop(timeout=1.0)
        assert store.latest() != before
        assert len(store.history()) == 20
