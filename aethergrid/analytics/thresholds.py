"""
aethergrid/analytics/thresholds.py
──────────────────────────────────
Static threshold engine for windowed telemetry means.

Each band is an ascending list of (limit, severity) steps; a value strictly
above a limit earns that step's severity. Values at or below the lowest limit
are normal.
"""
from __future__ import annotations

from dataclasses import dataclass

from aethergrid.data.models import Severity
from config.assets import WTG_THRESHOLDS, AnomalyThresholds


@dataclass(frozen=True)
class ThresholdBand:
    variable: str
    steps: tuple[tuple[float, Severity], ...]   # ascending by limit


def get_static_thresholds(variable: str, thr: AnomalyThresholds = WTG_THRESHOLDS) -> ThresholdBand:
    """Return the threshold band for a telemetry variable."""
    if variable == "vibration":
        return ThresholdBand(
            variable=variable,
            steps=(
                (thr.vibration_high, Severity.HIGH),
                (thr.vibration_critical, Severity.CRITICAL),
            ),
        )
    if variable == "temperature":
        return ThresholdBand(
            variable=variable,
            steps=((thr.temperature_medium, Severity.MEDIUM),),
        )
    # Fallback: no thresholds defined
    return ThresholdBand(variable=variable, steps=())


def evaluate_mean(value: float, band: ThresholdBand) -> Severity | None:
    """
    Classify a windowed mean against a band.

    Returns the severity of the highest limit strictly exceeded, or None.
    """
    for limit, severity in reversed(band.steps):
        if value > limit:
            return severity
    return None
