"""
aethergrid/agent/tools.py
─────────────────────────
Tool catalog exposed to the reasoning backend and the local executor.

Three tools, one argument model each, joined in a discriminated union on the
`tool` field:
  analyze_scada_telemetry → TelemetryStore.analyze_window
  dispatch_repair_crew    → DispatchRegistry.dispatch_repair_crew
  query_solar_potential   → analyze_roof

Any other name raises UnknownToolError from parse_tool_call(); ToolExecutor.run()
turns that (and invalid arguments) into a structured error result.
"""
from __future__ import annotations

import logging
import math
import time
from collections.abc import Callable
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from aethergrid.analytics.solar import analyze_roof
from aethergrid.data.models import RepairPart, SolarEstimate
from aethergrid.data.telemetry import TelemetryStore
from aethergrid.logistics.dispatch import DispatchRegistry
from config.assets import DEFAULT_PANEL_TYPE
from config.settings import settings

logger = logging.getLogger(__name__)

ANALYZE_TELEMETRY = "analyze_scada_telemetry"
DISPATCH_REPAIR_CREW = "dispatch_repair_crew"
QUERY_SOLAR_POTENTIAL = "query_solar_potential"
TOOL_NAMES = (ANALYZE_TELEMETRY, DISPATCH_REPAIR_CREW, QUERY_SOLAR_POTENTIAL)
MAX_WINDOW_S = 86_400


class UnknownToolError(LookupError):
    """The backend asked for a tool that is not in the catalog."""


# ── Argument models ───────────────────────────────────────────────────────────

class AnalyzeTelemetryCall(BaseModel):
    tool: Literal["analyze_scada_telemetry"] = ANALYZE_TELEMETRY
    window_seconds: float = Field(default=60.0, gt=0, le=MAX_WINDOW_S)


class DispatchRepairCrewCall(BaseModel):
    tool: Literal["dispatch_repair_crew"] = DISPATCH_REPAIR_CREW
    fault_type: str
    priority_level: int = Field(ge=1, le=5)
    asset_id: str
    crew_size: int = Field(default=2, ge=1)
    estimated_hours: float = Field(default=4.0, gt=0)
    estimated_parts_list: list[RepairPart] = Field(default_factory=list)


class QuerySolarPotentialCall(BaseModel):
    tool: Literal["query_solar_potential"] = QUERY_SOLAR_POTENTIAL
    lat: float = Field(ge=-90.0, le=90.0)
    lng: float = Field(ge=-180.0, le=180.0)
    panel_type: str = DEFAULT_PANEL_TYPE


ToolInvocation = Annotated[
    Union[AnalyzeTelemetryCall, DispatchRepairCrewCall, QuerySolarPotentialCall],
    Field(discriminator="tool"),
]
_INVOCATION = TypeAdapter(ToolInvocation)


def parse_tool_call(name: str, args: dict[str, Any] | None) -> ToolInvocation:
    """Validate a backend tool call into its argument model."""
    if name not in TOOL_NAMES:
        raise UnknownToolError(name)
    return _INVOCATION.validate_python({**(args or {}), "tool": name})


# ── Declarations sent to the backend ──────────────────────────────────────────

TOOL_CATALOG: list[dict[str, Any]] = [
    {
        "name": ANALYZE_TELEMETRY,
        "description": "Analyze SCADA sensor data for anomalies.",
        "parameters": {
            "type": "OBJECT",
            "properties": {
                "window_seconds": {"type": "INTEGER", "description": "Time window in seconds to analyze (at most one day)"},
            },
            "required": ["window_seconds"],
        },
    },
    {
        "name": DISPATCH_REPAIR_CREW,
        "description": "Create a work order to dispatch a repair crew.",
        "parameters": {
            "type": "OBJECT",
            "properties": {
                "fault_type": {"type": "STRING"},
                "priority_level": {"type": "INTEGER", "description": "1 (most urgent) to 5"},
                "asset_id": {"type": "STRING"},
                "crew_size": {"type": "INTEGER"},
                "estimated_hours": {"type": "NUMBER"},
                "estimated_parts_list": {
                    "type": "ARRAY",
                    "items": {
                        "type": "OBJECT",
                        "properties": {
                            "part_id": {"type": "STRING"},
                            "quantity": {"type": "INTEGER"},
                            "unit_cost": {"type": "NUMBER"},
                        },
                        "required": ["part_id"],
                    },
                },
            },
            "required": ["fault_type", "priority_level", "asset_id"],
        },
    },
    {
        "name": QUERY_SOLAR_POTENTIAL,
        "description": "Analyze solar potential for a location.",
        "parameters": {
            "type": "OBJECT",
            "properties": {
                "lat": {"type": "NUMBER"},
                "lng": {"type": "NUMBER"},
                "panel_type": {"type": "STRING"},
            },
            "required": ["lat", "lng"],
        },
    },
]


def _solar_payload(estimate: SolarEstimate) -> dict[str, Any]:
    """Tool-sized view of an estimate: the 8760-point curve is summarized."""
    data = estimate.model_dump(exclude={"hourly_flux"})
    if not math.isfinite(data["payback_years"]):
        data["payback_years"] = None
    data["hourly_flux_points"] = len(estimate.hourly_flux)
    data["peak_hourly_flux"] = max(estimate.hourly_flux, default=0.0)
    return data


class ToolExecutor:
    """Runs catalog tools synchronously against the local subsystems."""

    def __init__(
        self,
        telemetry: TelemetryStore,
        registry: DispatchRegistry,
        solar: Callable[..., SolarEstimate] = analyze_roof,
        latency_s: float = settings.TOOL_LATENCY_S,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.telemetry = telemetry
        self.registry = registry
        self._solar = solar
        self._latency_s = latency_s
        self._sleep = sleep

    def execute(self, call: ToolInvocation) -> dict[str, Any]:
        if self._latency_s > 0:
            self._sleep(self._latency_s)

        if isinstance(call, AnalyzeTelemetryCall):
            return self.telemetry.analyze_window(call.window_seconds).model_dump(mode="json")

        if isinstance(call, DispatchRepairCrewCall):
            order_id = self.registry.dispatch_repair_crew(
                fault_type=call.fault_type,
                priority_level=call.priority_level,
                asset_id=call.asset_id,
                parts=call.estimated_parts_list,
                crew_size=call.crew_size,
                estimated_hours=call.estimated_hours,
            )
            order = self.registry.get_order(order_id)
            return {
                "status": "DISPATCHED",
                "work_order_id": order_id,
                "priority": order.priority.value,
                "order_status": order.status.value,
                "assigned_crew": order.assigned_crew,
                "scheduled_date": order.scheduled_date,
            }

        if isinstance(call, QuerySolarPotentialCall):
            return _solar_payload(self._solar(call.lat, call.lng, call.panel_type))

        raise UnknownToolError(type(call).__name__)

    def run(self, name: str, args: dict[str, Any] | None) -> dict[str, Any]:
        """Parse and execute; unknown tools and bad arguments become error results."""
        try:
            call = parse_tool_call(name, args)
        except UnknownToolError:
            logger.warning("Backend requested unknown tool %r", name)
            return {"error": "Unknown tool", "tool": name}
        except ValidationError as exc:
            details = [f"{'.'.join(map(str, e['loc']))}: {e['msg']}" for e in exc.errors()]
            logger.warning("Invalid arguments for %s: %s", name, details)
            return {"error": "Invalid arguments", "tool": name, "details": details}

        logger.info("Executing tool %s", name)
        return self.execute(call)
