"""
aethergrid/agent/advisor.py
───────────────────────────
Single-turn narrative helpers: predictive root-cause analysis for an anomaly
and a justification for the chosen repair strategy tier.

Both ask the reasoning backend once (no tools) and fall back to canned,
deterministic text whenever the backend is unavailable or fails.
"""
from __future__ import annotations

import json
import logging

from aethergrid.agent.reasoning import ReasoningClient, ReasoningError, Turn
from aethergrid.data.models import Anomaly, AnomalyKind, TelemetrySample

logger = logging.getLogger(__name__)

ROOT_CAUSE_INSTRUCTION = "Role: AetherGrid Mission Control. Goal: Analyze anomalies."
STRATEGY_INSTRUCTION = "Role: AetherGrid Site Supervisor. Goal: Explain repair ROI and risk."

_TIER_JUSTIFICATION = {
    "Budget": "Selected for short-term cost containment. Risks recurrence within 6 months.",
    "Balanced": "Optimal ROI. Extends asset life by 3 years with moderate initial outlay.",
}
_DEFAULT_JUSTIFICATION = "Maximum longevity. Includes 5-year warranty and complete subsystem overhaul."


def simulated_root_cause(anomaly: Anomaly, recent: list[TelemetrySample]) -> str:
    if anomaly.kind == AnomalyKind.VIBRATION_SPIKE:
        vib = f"{recent[-1].vibration:.2f}" if recent else "Unknown"
        return (
            f"**Analysis**: High vibration detected ({vib} mm/s). \n"
            "**Root Cause**: Potential misalignment in the high-speed shaft coupling. \n"
            "**Recommendation**: Inspect coupling and gearbox mounts."
        )
    if anomaly.kind == AnomalyKind.LEADING_EDGE_EROSION:
        return (
            "**Analysis**: Visual evidence of leading edge erosion. \n"
            "**Root Cause**: Environmental wear from particulate impact. \n"
            "**Recommendation**: Schedule blade repair (Tier 2)."
        )
    return (
        f"**Analysis**: Anomaly detected in {anomaly.asset_id}. \n"
        "**Root Cause**: Pattern matches historical sensor drift. \n"
        "**Recommendation**: Calibrate sensors and monitor."
    )


def simulated_justification(tier: str) -> str:
    return _TIER_JUSTIFICATION.get(tier, _DEFAULT_JUSTIFICATION)


class AgentAdvisor:
    def __init__(self, reasoning: ReasoningClient) -> None:
        self.reasoning = reasoning

    def _ask(self, prompt: str, instruction: str) -> str | None:
        if not self.reasoning.is_available():
            return None
        try:
            response = self.reasoning.converse([Turn(role="user", content=prompt)], [], instruction)
        except ReasoningError as exc:
            logger.warning("Advisor falling back to simulated text: %s", exc)
            return None
        return response.text or None

    def root_cause_analysis(self, anomaly: Anomaly, recent: list[TelemetrySample]) -> str:
        """Predictive root-cause narrative for `anomaly` given recent telemetry."""
        context = json.dumps([s.model_dump(mode="json") for s in recent[-10:]])
        prompt = (
            "Analyze the following anomaly detected in a wind turbine asset.\n\n"
            f"Anomaly: {anomaly.model_dump_json()}\n"
            f"Recent SCADA Telemetry: {context}\n\n"
            'Provide a concise "Predictive Root-Cause Analysis". '
            "Distinguish between environmental noise and genuine component fatigue."
        )
        return self._ask(prompt, ROOT_CAUSE_INSTRUCTION) or simulated_root_cause(anomaly, recent)

    def justify_strategy(self, tier: str, cost: float, life_extension_years: float) -> str:
        prompt = (
            f'Justify the selection of the "{tier}" repair tier '
            f"(Cost: ${cost:,.0f}, Life Extension: +{life_extension_years} yrs). "
            "Explain the ROI and risk trade-off."
        )
        return self._ask(prompt, STRATEGY_INSTRUCTION) or simulated_justification(tier)
