"""
aethergrid/analytics/anomaly.py
───────────────────────────────
Windowed anomaly scoring for the turbine telemetry stream.

Algorithm: trailing-window means against static thresholds.
  window  = samples captured strictly after (now - window_seconds)
  mean(vibration)   > 6.0 → VibrationSpike CRITICAL
                    > 4.0 → VibrationSpike HIGH
  mean(temperature) > 85  → TemperatureAnomaly MEDIUM

Deterministic given the window contents (apart from the generated ids).
"""
from __future__ import annotations

import uuid
from datetime import UTC, datetime, timedelta

import pandas as pd

from aethergrid.analytics.thresholds import evaluate_mean, get_static_thresholds
from aethergrid.data.models import Anomaly, AnomalyKind, TelemetrySample, WindowAnalysis
from config.assets import DEFAULT_ASSET_ID, WTG_THRESHOLDS, AnomalyThresholds


def to_dataframe(samples: list[TelemetrySample]) -> pd.DataFrame:
    """Convert a list of TelemetrySamples to a pandas DataFrame."""
    df = pd.DataFrame([s.model_dump() for s in samples])
    if not df.empty:
        df["captured_at"] = pd.to_datetime(df["captured_at"], utc=True)
    return df


def slice_window(df: pd.DataFrame, window_seconds: float, now: datetime) -> pd.DataFrame:
    """Rows captured within the last `window_seconds` before `now`."""
    if df.empty:
        return df
    cutoff = pd.Timestamp(now - timedelta(seconds=window_seconds))
    return df[df["captured_at"] > cutoff]


def _anomaly_id(ts: datetime, tag: str) -> str:
    return f"ANM-{int(ts.timestamp() * 1000)}-{tag}-{uuid.uuid4().hex[:6]}"


def score_window(
    samples: list[TelemetrySample],
    window_seconds: float = 60,
    now: datetime | None = None,
    asset_id: str = DEFAULT_ASSET_ID,
    thresholds: AnomalyThresholds = WTG_THRESHOLDS,
) -> WindowAnalysis:
    """
    Score the trailing window of `samples`.

    An empty window yields anomaly_detected=False with no error.
    """
    now = now or datetime.now(tz=UTC)
    window = slice_window(to_dataframe(samples), window_seconds, now)

    if window.empty:
        return WindowAnalysis(anomaly_detected=False, window_seconds=window_seconds)

    mean_vib = float(window["vibration"].mean())
    mean_temp = float(window["temperature"].mean())
    detected_at = window["captured_at"].iloc[-1].to_pydatetime()

    anomalies: list[Anomaly] = []

    vib_severity = evaluate_mean(mean_vib, get_static_thresholds("vibration", thresholds))
    if vib_severity is not None:
        anomalies.append(Anomaly(
            id=_anomaly_id(detected_at, "VIB"),
            detected_at=detected_at,
            kind=AnomalyKind.VIBRATION_SPIKE,
            severity=vib_severity,
            confidence=0.95,
            description=f"Sustained vibration ({mean_vib:.2f} mm/s) detected.",
            asset_id=asset_id,
            recommended_action="Inspect nacelle bearings immediately.",
        ))

    temp_severity = evaluate_mean(mean_temp, get_static_thresholds("temperature", thresholds))
    if temp_severity is not None:
        anomalies.append(Anomaly(
            id=_anomaly_id(detected_at, "TMP"),
            detected_at=detected_at,
            kind=AnomalyKind.TEMPERATURE_ANOMALY,
            severity=temp_severity,
            confidence=0.88,
            description=f"Generator temperature high ({mean_temp:.1f} °C).",
            asset_id=asset_id,
            recommended_action="Check cooling system.",
        ))

    return WindowAnalysis(
        anomaly_detected=bool(anomalies),
        anomalies=anomalies,
        window_seconds=window_seconds,
        sample_count=len(window),
        mean_vibration=round(mean_vib, 3),
        mean_temperature=round(mean_temp, 2),
    )
