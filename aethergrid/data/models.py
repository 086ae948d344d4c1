"""
aethergrid/data/models.py
─────────────────────────
Pydantic v2 data models for telemetry samples, anomalies, work orders and
solar estimates.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Severity(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]

    def __lt__(self, other):
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other):
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other):
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other):
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank >= other.rank


_SEVERITY_RANK = {
    Severity.LOW: 1,
    Severity.MEDIUM: 2,
    Severity.HIGH: 3,
    Severity.CRITICAL: 4,
}


class AnomalyKind(str, Enum):
    VIBRATION_SPIKE = "VibrationSpike"
    TEMPERATURE_ANOMALY = "TemperatureAnomaly"
    LEADING_EDGE_EROSION = "LeadingEdgeErosion"
    DELAMINATION = "Delamination"
    THERMAL_HOTSPOT = "ThermalHotspot"
    PITCH_BEARING = "PitchBearing"
    POWER_CURVE_DROP = "PowerCurveDrop"
    PITCH_MALFUNCTION = "PitchMalfunction"


class AnomalyStatus(str, Enum):
    OPEN = "OPEN"
    INVESTIGATING = "INVESTIGATING"
    RESOLVED = "RESOLVED"


class WorkOrderStatus(str, Enum):
    PENDING = "PENDING"
    SCHEDULED = "SCHEDULED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"


class Priority(str, Enum):
    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


# Lifecycle orderings (forward-only)
ANOMALY_FLOW: list[AnomalyStatus] = [
    AnomalyStatus.OPEN,
    AnomalyStatus.INVESTIGATING,
    AnomalyStatus.RESOLVED,
]

ORDER_FLOW: list[WorkOrderStatus] = [
    WorkOrderStatus.PENDING,
    WorkOrderStatus.SCHEDULED,
    WorkOrderStatus.IN_PROGRESS,
    WorkOrderStatus.COMPLETED,
]


class TelemetrySample(BaseModel):
    model_config = ConfigDict(frozen=True)

    captured_at: datetime
    wind_speed: float = Field(ge=0.0)       # m/s
    power_output: float = Field(ge=0.0)     # kW
    vibration: float = Field(ge=0.0)        # mm/s
    rotor_speed: float = Field(ge=0.0)      # rpm
    temperature: float = Field(ge=0.0)      # °C
    pitch_angle: float = Field(ge=0.0, le=90.0)


class Anomaly(BaseModel):
    id: str
    detected_at: datetime
    kind: AnomalyKind
    severity: Severity
    confidence: float = Field(ge=0.0, le=1.0)
    description: str
    asset_id: str
    status: AnomalyStatus = AnomalyStatus.OPEN
    recommended_action: str | None = None

    def advance(self, status: AnomalyStatus) -> Anomaly:
        """Return a copy moved to `status`; backward moves are rejected."""
        if ANOMALY_FLOW.index(status) < ANOMALY_FLOW.index(self.status):
            raise ValueError(f"Anomaly {self.id} cannot move from {self.status.value} to {status.value}")
        return self.model_copy(update={"status": status})


class WindowAnalysis(BaseModel):
    anomaly_detected: bool
    anomalies: list[Anomaly] = Field(default_factory=list)
    window_seconds: float
    sample_count: int = 0
    mean_vibration: float | None = None
    mean_temperature: float | None = None


class RepairPart(BaseModel):
    part_id: str
    quantity: int = Field(default=1, ge=0)
    unit_cost: float = Field(default=0.0, ge=0.0)
    name: str | None = None


class WorkOrder(BaseModel):
    id: str
    title: str
    asset_id: str
    status: WorkOrderStatus = WorkOrderStatus.PENDING
    priority: Priority = Priority.MEDIUM
    assigned_crew: str | None = None
    scheduled_date: str | None = None      # ISO date (YYYY-MM-DD)
    estimated_duration_hours: float = Field(default=2.0, ge=0.0)
    required_parts: list[RepairPart] = Field(default_factory=list)
    crew_size: int | None = Field(default=None, ge=0)
    fault_type: str | None = None

    @property
    def parts_cost(self) -> float:
        return float(sum(p.quantity * p.unit_cost for p in self.required_parts))


class SolarEstimate(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_flux_kwh: float
    hourly_flux: list[float]
    optimal_panel_count: int
    shade_loss_percent: float
    installation_cost: float
    annual_savings: float
    payback_years: float            # inf when annual_savings == 0
    usable_area_sqm: float
    roof_area_sqm: float
    annual_flux_per_sqm: float      # baseline before shading
