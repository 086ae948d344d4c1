"""
config/assets.py
────────────────
Asset definitions, anomaly thresholds and simulation constants.

Wind turbine transfer curve:
  wind < cut_in          → 0 kW
  cut_in ≤ wind          → cubic ramp ((wind - cut_in)³ / 100) × 1000 kW
  ramp capped at rated_power_kw
"""
from dataclasses import dataclass


@dataclass(frozen=True)
class AnomalyThresholds:
    """Mean-over-window limits used by the telemetry scorer."""
    vibration_high: float      # > → VibrationSpike HIGH
    vibration_critical: float  # > → VibrationSpike CRITICAL
    temperature_medium: float  # > → TemperatureAnomaly MEDIUM


@dataclass(frozen=True)
class TurbineProfile:
    cut_in_ms: float
    rated_wind_ms: float
    rated_power_kw: float
    max_rotor_rpm: float
    vibration_onset_ms: float   # wind above which vibration grows
    pitch_onset_ms: float       # wind above which blades pitch out
    heating_c_at_rated: float   # component heating at rated power


@dataclass(frozen=True)
class WeatherFallback:
    temperature_c: float
    wind_speed_ms: float


# ── Wind turbine WTG-04 ───────────────────────────────────────────────────────
WTG_THRESHOLDS = AnomalyThresholds(
    vibration_high=4.0,
    vibration_critical=6.0,
    temperature_medium=85.0,
)

WTG_PROFILE = TurbineProfile(
    cut_in_ms=3.0,
    rated_wind_ms=12.0,
    rated_power_kw=5_000.0,
    max_rotor_rpm=25.0,
    vibration_onset_ms=10.0,
    pitch_onset_ms=12.0,
    heating_c_at_rated=40.0,
)

WEATHER_FALLBACK = WeatherFallback(temperature_c=20.0, wind_speed_ms=10.0)

DEFAULT_ASSET_ID = "WTG-04"

# ── Persistence keys ──────────────────────────────────────────────────────────
TELEMETRY_KEY = "aether_scada_history"
WORK_ORDERS_KEY = "aether_work_orders"

# ── Logistics ─────────────────────────────────────────────────────────────────
RAPID_RESPONSE_CREW = "Rapid Response Unit A"

SEED_WORK_ORDERS: list[dict] = [
    {
        "id": "WO-2026-0127-001",
        "title": "Blade Erosion Repair",
        "asset_id": "WTG-042",
        "status": "PENDING",
        "priority": "CRITICAL",
        "estimated_duration_hours": 6,
        "required_parts": [
            {"part_id": "P-BLADE-KIT", "quantity": 1, "unit_cost": 1500, "name": "Leading Edge Kit"},
        ],
    },
    {
        "id": "WO-2026-0126-055",
        "title": "Gearbox Oil Change",
        "asset_id": "WTG-011",
        "status": "SCHEDULED",
        "priority": "MEDIUM",
        "assigned_crew": "Team Alpha",
        "scheduled_date": "2026-02-12",
        "estimated_duration_hours": 4,
        "required_parts": [
            {"part_id": "P-OIL-FILT", "quantity": 2, "unit_cost": 50, "name": "Oil Filter"},
        ],
    },
]

# Fixed payload dispatched by the offline workflow on a confirmed vibration spike
SIMULATED_DISPATCH: dict = {
    "fault_type": "VibrationSpike",
    "priority_level": 1,
    "crew_size": 3,
    "estimated_hours": 8.0,
    "estimated_parts_list": [
        {"part_id": "P-BRG-KIT", "quantity": 1, "unit_cost": 2400.0, "name": "Main Bearing Kit"},
        {"part_id": "P-COUPLING", "quantity": 1, "unit_cost": 650.0, "name": "HSS Coupling"},
    ],
}

# ── Solar ─────────────────────────────────────────────────────────────────────
BASE_FLUX_KWH = 1_400.0      # kWh/m²/year average
PANEL_AREA_SQM = 1.6
PANEL_COST_USD = 800.0       # installed, per panel
PERFORMANCE_RATIO = 0.75
USABLE_ROOF_FRACTION = 0.7

PANEL_EFFICIENCY: dict[str, float] = {
    "Monocrystalline": 0.21,
    "Polycrystalline": 0.17,
    "ThinFilm": 0.12,
}
DEFAULT_PANEL_TYPE = "Monocrystalline"
