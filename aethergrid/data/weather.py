"""
aethergrid/data/weather.py
──────────────────────────
Environmental baseline for the telemetry simulator.

Pulls current 2 m temperature and 10 m wind speed from Open-Meteo (free, no
key). Any failure leaves the last known snapshot in place, starting from the
static fallback in config/assets.py.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass

import httpx

from config.assets import WEATHER_FALLBACK
from config.settings import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WeatherSnapshot:
    temperature_c: float
    wind_speed_ms: float
    is_real: bool = False


FALLBACK_SNAPSHOT = WeatherSnapshot(
    temperature_c=WEATHER_FALLBACK.temperature_c,
    wind_speed_ms=WEATHER_FALLBACK.wind_speed_ms,
    is_real=False,
)


class WeatherFeed:
    def __init__(
        self,
        lat: float = settings.SITE_LAT,
        lng: float = settings.SITE_LNG,
        url: str = settings.WEATHER_URL,
        timeout: float = settings.WEATHER_TIMEOUT_S,
        client: httpx.Client | None = None,
    ) -> None:
        self.lat = lat
        self.lng = lng
        self._url = url
        self._client = client or httpx.Client(timeout=timeout)
        self._lock = threading.Lock()
        self._snapshot = FALLBACK_SNAPSHOT

    def current(self) -> WeatherSnapshot:
        with self._lock:
            return self._snapshot

    def refresh(self) -> WeatherSnapshot:
        """Fetch current conditions; on any failure keep the previous snapshot."""
        params = {
            "latitude": self.lat,
            "longitude": self.lng,
            "current": "temperature_2m,wind_speed_10m",
        }
        try:
            response = self._client.get(self._url, params=params)
            response.raise_for_status()
            current = response.json().get("current") or {}
            snapshot = WeatherSnapshot(
                temperature_c=float(current["temperature_2m"]),
                wind_speed_ms=float(current["wind_speed_10m"]) / 3.6,  # km/h → m/s
                is_real=True,
            )
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as exc:
            logger.warning("Weather refresh failed, keeping %s baseline: %s",
                           "live" if self.current().is_real else "fallback", exc)
            return self.current()

        with self._lock:
            self._snapshot = snapshot
        logger.info("Weather baseline updated: %.1f °C, %.1f m/s", snapshot.temperature_c, snapshot.wind_speed_ms)
        return snapshot
