"""
aethergrid/data/simulator.py
────────────────────────────
Synthetic SCADA sample generator for a single wind turbine.

Generates:
  - A seed history of evenly spaced samples ending "now"
  - One fresh sample per call to generate_sample()

Design:
  - Environmental baseline (wind, ambient temperature) comes from a
    WeatherSnapshot; gusts are a slow sine plus uniform noise
  - Power follows the turbine transfer curve (see config/assets.py)
  - Vibration rises above the onset wind speed, blades pitch out above rated
  - All outputs are clipped so power, vibration and temperature stay ≥ 0
"""
from __future__ import annotations

from datetime import UTC, datetime, timedelta

import numpy as np

from aethergrid.data.models import TelemetrySample
from aethergrid.data.weather import FALLBACK_SNAPSHOT, WeatherSnapshot
from config.assets import WTG_PROFILE, TurbineProfile


def power_curve(wind_speed: float, profile: TurbineProfile = WTG_PROFILE) -> float:
    """
    Noise-free turbine output in kW.

    Zero below cut-in, cubic ramp above it, saturating at rated power.
    Non-decreasing in wind speed.
    """
    excess = max(0.0, wind_speed - profile.cut_in_ms)
    if excess == 0.0:
        return 0.0
    return float(min(profile.rated_power_kw, excess ** 3 / 100.0 * 1_000.0))


def generate_sample(
    ts: datetime,
    weather: WeatherSnapshot = FALLBACK_SNAPSHOT,
    rng: np.random.Generator | None = None,
    profile: TurbineProfile = WTG_PROFILE,
) -> TelemetrySample:
    """Generate one sample captured at `ts`."""
    rng = rng if rng is not None else np.random.default_rng()
    t = ts.timestamp() / 10.0  # slow time factor (10 s units)

    def noise() -> float:
        return float(rng.uniform(-0.05, 0.05))

    wind = max(0.0, weather.wind_speed_ms + np.sin(t * 2.0) * 1.5 + noise() * 2.0)

    base_power = power_curve(wind, profile)
    power = base_power + noise() * 50.0 if base_power > 0.0 else 0.0
    power = float(np.clip(power, 0.0, profile.rated_power_kw))

    load = power / profile.rated_power_kw
    temperature = weather.temperature_c + load * profile.heating_c_at_rated + np.sin(t * 0.1) * 2.0

    vibration = 1.0 + max(0.0, (wind - profile.vibration_onset_ms) * 0.2) + float(rng.uniform(0.0, 0.5))
    rotor = min(profile.max_rotor_rpm, wind * 1.5)
    pitch = (wind - profile.pitch_onset_ms) * 5.0 if wind > profile.pitch_onset_ms else 0.0
    pitch += noise() * 2.0

    return TelemetrySample(
        captured_at=ts,
        wind_speed=round(float(wind), 3),
        power_output=round(power, 1),
        vibration=round(float(max(0.0, vibration)), 3),
        rotor_speed=round(float(np.clip(rotor, 0.0, profile.max_rotor_rpm)), 2),
        temperature=round(float(max(0.0, temperature)), 2),
        pitch_angle=round(float(np.clip(pitch, 0.0, 90.0)), 2),
    )


def generate_history(
    count: int,
    interval_s: float,
    weather: WeatherSnapshot = FALLBACK_SNAPSHOT,
    end: datetime | None = None,
    seed: int | None = None,
) -> list[TelemetrySample]:
    """
    Generate `count` samples spaced `interval_s` apart, the newest one
    interval before `end` (default: now). Returned in capture order.
    """
    rng = np.random.default_rng(seed)
    end = end or datetime.now(tz=UTC)
    return [
        generate_sample(end - timedelta(seconds=i * interval_s), weather, rng)
        for i in range(count, 0, -1)
    ]
