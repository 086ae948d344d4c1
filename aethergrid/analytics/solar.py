"""
aethergrid/analytics/solar.py
─────────────────────────────
Rooftop solar potential estimate.

Pure and deterministic: the only inputs are the arguments, so identical
(lat, lng, panel_type, known_area_sqm, electricity_rate) always give an
identical SolarEstimate.

Model:
  baseline  = 1400 kWh/m²/yr × (1 − |lat|/90 × 0.6) × (1 + 0.1 sin(lng))
  roof_seed = |lat × lng × 1000|
  roof area = 100 + roof_seed mod 400 m²  (usable = 70 %, or known area)
  shade     = 5 + roof_seed mod 20 %
  output    = panels × 1.6 m² × efficiency × baseline × (1 − shade) × 0.75
"""
from __future__ import annotations

import logging
import math

import numpy as np

from aethergrid.data.models import SolarEstimate
from config.assets import (
    BASE_FLUX_KWH,
    DEFAULT_PANEL_TYPE,
    PANEL_AREA_SQM,
    PANEL_COST_USD,
    PANEL_EFFICIENCY,
    PERFORMANCE_RATIO,
    USABLE_ROOF_FRACTION,
)
from config.settings import settings

logger = logging.getLogger(__name__)

HOURS_PER_YEAR = 8_760
DAYLIGHT_START = 6
DAYLIGHT_END = 18


def annual_flux_per_sqm(lat: float, lng: float) -> float:
    """Baseline kWh/m²/yr: falls with |lat|, perturbed by a longitude 'weather' term."""
    lat_factor = 1.0 - (abs(lat) / 90.0) * 0.6
    weather_factor = 1.0 + math.sin(lng) * 0.1
    return BASE_FLUX_KWH * lat_factor * weather_factor


def _roof_seed(lat: float, lng: float) -> float:
    return abs(lat * lng * 1_000.0)


def hourly_flux_curve() -> list[float]:
    """
    Normalized 8760-hour irradiance curve.

    Zero outside 06:00–18:00, half-sine over the daylight hours, scaled by
    ±20 % annual seasonality.
    """
    hours = np.arange(HOURS_PER_YEAR)
    hour_of_day = hours % 24
    day = hours // 24
    season = np.sin(day / 365.0 * 2.0 * np.pi)
    daily = np.sin((hour_of_day - DAYLIGHT_START) / (DAYLIGHT_END - DAYLIGHT_START) * np.pi)
    curve = np.maximum(0.0, daily * (1.0 + season * 0.2))
    daylight = (hour_of_day >= DAYLIGHT_START) & (hour_of_day <= DAYLIGHT_END)
    return np.where(daylight, curve, 0.0).tolist()


def analyze_roof(
    lat: float,
    lng: float,
    panel_type: str = DEFAULT_PANEL_TYPE,
    known_area_sqm: float | None = None,
    electricity_rate: float | None = None,
) -> SolarEstimate:
    """
    Estimate rooftop solar output and financials at (lat, lng).

    Args:
        lat, lng: Site coordinates in degrees
        panel_type: Key of PANEL_EFFICIENCY (unknown types use the default)
        known_area_sqm: Usable roof area from a footprint lookup, if known
        electricity_rate: $/kWh for savings (default settings.ELECTRICITY_RATE)
    """
    efficiency = PANEL_EFFICIENCY.get(panel_type)
    if efficiency is None:
        logger.warning("Unknown panel type %r, using %s", panel_type, DEFAULT_PANEL_TYPE)
        efficiency = PANEL_EFFICIENCY[DEFAULT_PANEL_TYPE]
    rate = settings.ELECTRICITY_RATE if electricity_rate is None else electricity_rate

    baseline = annual_flux_per_sqm(lat, lng)

    seed = _roof_seed(lat, lng)
    roof_area = 100.0 + seed % 400.0
    usable_area = float(known_area_sqm) if known_area_sqm is not None else roof_area * USABLE_ROOF_FRACTION
    usable_area = max(0.0, usable_area)
    shade_loss = 5.0 + seed % 20.0

    panels = int(math.floor(usable_area / PANEL_AREA_SQM))
    effective_flux = baseline * (1.0 - shade_loss / 100.0)
    total_kwh = panels * PANEL_AREA_SQM * efficiency * effective_flux * PERFORMANCE_RATIO

    installation_cost = panels * PANEL_COST_USD
    annual_savings = total_kwh * rate
    payback = installation_cost / annual_savings if annual_savings > 0 else math.inf

    return SolarEstimate(
        total_flux_kwh=total_kwh,
        hourly_flux=hourly_flux_curve(),
        optimal_panel_count=panels,
        shade_loss_percent=shade_loss,
        installation_cost=installation_cost,
        annual_savings=annual_savings,
        payback_years=payback,
        usable_area_sqm=usable_area,
        roof_area_sqm=roof_area,
        annual_flux_per_sqm=baseline,
    )
