"""
config/strategies.py
────────────────────
Repair strategy tiers offered to the site supervisor.
"""
from dataclasses import dataclass


@dataclass(frozen=True)
class RepairStrategy:
    tier: str
    name: str
    cost: float
    downtime_hours: float
    life_extension_years: float
    risk_level: str
    description: str
    recommended: bool
    warranty: str


REPAIR_STRATEGIES: list[RepairStrategy] = [
    RepairStrategy(
        tier="Budget",
        name="Patch Repair",
        cost=4_500.0,
        downtime_hours=6.0,
        life_extension_years=0.5,
        risk_level="High",
        description="Minimal intervention. Addresses symptoms but not root cause.",
        recommended=False,
        warranty="90 days",
    ),
    RepairStrategy(
        tier="Balanced",
        name="Sub-assembly Swap",
        cost=12_000.0,
        downtime_hours=12.0,
        life_extension_years=3.0,
        risk_level="Low",
        description="Replace bearing race and seals. Optimal balance of cost vs longevity.",
        recommended=True,
        warranty="2 years",
    ),
    RepairStrategy(
        tier="Luxury",
        name="Full Overhaul",
        cost=45_000.0,
        downtime_hours=48.0,
        life_extension_years=10.0,
        risk_level="Zero",
        description="Complete Gen-5 yaw system installation with upgraded sensors.",
        recommended=False,
        warranty="5 years",
    ),
]

STRATEGY_BY_TIER: dict[str, RepairStrategy] = {s.tier: s for s in REPAIR_STRATEGIES}


def recommended_strategy() -> RepairStrategy:
    """Return the tier flagged as recommended (first one if several)."""
    return next(s for s in REPAIR_STRATEGIES if s.recommended)
