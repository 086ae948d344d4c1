"""
aethergrid/data/telemetry.py
────────────────────────────
Rolling window of turbine telemetry.

Provides:
  - tick()           : generate + append one sample, notify, persist
  - ingest()         : append an externally captured sample
  - subscribe()      : register a (latest, window) listener
  - analyze_window() : threshold scoring over the trailing N seconds
  - start() / stop() : background tick thread

The window holds at most `capacity` samples in capture order (FIFO eviction)
and is persisted as one JSON blob under TELEMETRY_KEY. Writers build a new
list and swap it in under the lock, so readers never see a partial window.
"""
from __future__ import annotations

import json
import logging
import threading
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

import numpy as np
from pydantic import ValidationError

from aethergrid.analytics.anomaly import score_window
from aethergrid.data.models import TelemetrySample, WindowAnalysis
from aethergrid.data.simulator import generate_history, generate_sample
from aethergrid.data.store import KeyValueStore
from aethergrid.data.weather import FALLBACK_SNAPSHOT, WeatherFeed, WeatherSnapshot
from config.assets import DEFAULT_ASSET_ID, TELEMETRY_KEY
from config.settings import settings

logger = logging.getLogger(__name__)

Listener = Callable[[TelemetrySample, list[TelemetrySample]], None]


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


class TelemetryStore:
    def __init__(
        self,
        store: KeyValueStore,
        weather: WeatherFeed | None = None,
        capacity: int = settings.TELEMETRY_CAPACITY,
        tick_interval_s: float = settings.TICK_INTERVAL_S,
        asset_id: str = DEFAULT_ASSET_ID,
        clock: Callable[[], datetime] = _utcnow,
        seed: int | None = None,
    ) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self.tick_interval_s = tick_interval_s
        self.asset_id = asset_id
        self._store = store
        self._weather = weather
        self._clock = clock
        self._seed = seed
        self._rng = np.random.default_rng(seed)
        self._lock = threading.RLock()
        self._listeners: list[Listener] = []
        self._samples: list[TelemetrySample] = self._load()

        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self._last_weather_refresh: float | None = None

    # ── Persistence ──────────────────────────────────────────────────────────

    def _load(self) -> list[TelemetrySample]:
        blob = self._store.load(TELEMETRY_KEY)
        if blob:
            try:
                raw = json.loads(blob)
                if not isinstance(raw, list):
                    raise TypeError(f"expected a list, got {type(raw).__name__}")
                samples = [TelemetrySample.model_validate(item) for item in raw]
                return samples[-self.capacity:]
            except (ValueError, TypeError, ValidationError) as exc:
                logger.warning("Stored telemetry window unreadable, reseeding: %s", exc)

        samples = generate_history(
            self.capacity,
            self.tick_interval_s,
            self._current_weather(),
            end=self._clock(),
            seed=self._seed,
        )
        self._save(samples)
        return samples

    def _save(self, samples: list[TelemetrySample]) -> None:
        self._store.save(TELEMETRY_KEY, json.dumps([s.model_dump(mode="json") for s in samples]))

    def _current_weather(self) -> WeatherSnapshot:
        return self._weather.current() if self._weather is not None else FALLBACK_SNAPSHOT

    # ── Write path ───────────────────────────────────────────────────────────

    def tick(self) -> TelemetrySample:
        """Generate one sample at the current time and append it."""
        with self._lock:
            ts = self._clock()
            if self._samples and ts <= self._samples[-1].captured_at:
                ts = self._samples[-1].captured_at + timedelta(microseconds=1)
            sample = generate_sample(ts, self._current_weather(), self._rng)
            listeners, window = self._append_locked(sample)
        self._notify(listeners, sample, window)
        return sample

    def ingest(self, sample: TelemetrySample) -> None:
        """Append an externally captured sample; it must be newer than the latest."""
        with self._lock:
            if self._samples and sample.captured_at <= self._samples[-1].captured_at:
                raise ValueError(
                    f"Sample at {sample.captured_at.isoformat()} is not newer than "
                    f"{self._samples[-1].captured_at.isoformat()}"
                )
            listeners, window = self._append_locked(sample)
        self._notify(listeners, sample, window)

    def _append_locked(self, sample: TelemetrySample) -> tuple[list[Listener], list[TelemetrySample]]:
        window = (self._samples + [sample])[-self.capacity:]
        self._samples = window
        self._save(window)
        return list(self._listeners), window

    def _notify(self, listeners: list[Listener], sample: TelemetrySample, window: list[TelemetrySample]) -> None:
        for callback in listeners:
            try:
                callback(sample, list(window))
            except Exception:
                logger.exception("Telemetry listener %r failed", callback)

    # ── Read path ────────────────────────────────────────────────────────────

    def subscribe(self, callback: Listener) -> Callable[[], None]:
        """
        Register `callback` for every tick. It is called once immediately
        with the current state when the window is non-empty.

        Returns an unsubscribe function (safe to call more than once).
        """
        with self._lock:
            self._listeners.append(callback)
            window = list(self._samples)

        if window:
            self._notify([callback], window[-1], window)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._listeners:
                    self._listeners.remove(callback)

        return unsubscribe

    def latest(self) -> TelemetrySample | None:
        with self._lock:
            return self._samples[-1] if self._samples else None

    def history(self) -> list[TelemetrySample]:
        with self._lock:
            return list(self._samples)

    def analyze_window(self, window_seconds: float = 60, now: datetime | None = None) -> WindowAnalysis:
        """Score the samples captured within the last `window_seconds`."""
        return score_window(
            self.history(),
            window_seconds=window_seconds,
            now=now or self._clock(),
            asset_id=self.asset_id,
        )

    # ── Background loop ──────────────────────────────────────────────────────

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="telemetry-tick", daemon=True)
        self._thread.start()
        logger.info("Telemetry simulation started (every %.1fs, capacity %d)", self.tick_interval_s, self.capacity)

    def stop(self, timeout: float | None = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def _run(self) -> None:
        while not self._stop.wait(self.tick_interval_s):
            self._maybe_refresh_weather()
            self.tick()

    def _maybe_refresh_weather(self) -> None:
        if self._weather is None:
            return
        now = self._clock().timestamp()
        due = self._last_weather_refresh is None or now - self._last_weather_refresh >= settings.WEATHER_REFRESH_S
        if due:
            self._last_weather_refresh = now
            self._weather.refresh()
