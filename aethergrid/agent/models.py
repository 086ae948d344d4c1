"""
aethergrid/agent/models.py
──────────────────────────
Trigger, step and run records for the agent orchestrator.
"""
from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

FINAL_ANSWER = "Final Answer"
ERROR_ACTION = "Error"


class RunStatus(str, Enum):
    COMPLETED = "COMPLETED"
    SIMULATED = "SIMULATED"   # successful but degraded (no reasoning backend)
    ERRORED = "ERRORED"


class AgentState(str, Enum):
    INIT = "INIT"
    THINKING = "THINKING"
    EXECUTING_TOOL = "EXECUTING_TOOL"
    COMPLETED = "COMPLETED"
    SIMULATED = "SIMULATED"
    ERRORED = "ERRORED"


TERMINAL_STATES = {AgentState.COMPLETED, AgentState.SIMULATED, AgentState.ERRORED}

ALLOWED_TRANSITIONS: dict[AgentState, set[AgentState]] = {
    AgentState.INIT: {AgentState.THINKING, AgentState.EXECUTING_TOOL},
    AgentState.THINKING: {AgentState.EXECUTING_TOOL, AgentState.COMPLETED, AgentState.ERRORED},
    AgentState.EXECUTING_TOOL: {
        AgentState.THINKING,
        AgentState.EXECUTING_TOOL,
        AgentState.COMPLETED,
        AgentState.SIMULATED,
    },
    AgentState.COMPLETED: set(),
    AgentState.SIMULATED: set(),
    AgentState.ERRORED: set(),
}


class TriggerEvent(BaseModel):
    trigger: str = Field(min_length=1)
    context: dict[str, Any] = Field(default_factory=dict)


class AgentStep(BaseModel):
    model_config = ConfigDict(frozen=True)

    step_index: int = Field(ge=1)
    thought: str = ""
    action: str
    result: Any = None


class AgentRun(BaseModel):
    trigger: str
    context: dict[str, Any] = Field(default_factory=dict)
    steps: list[AgentStep] = Field(default_factory=list)
    status: RunStatus | None = None
    final_result: str | None = None
    budget_exhausted: bool = False
    states: list[AgentState] = Field(default_factory=lambda: [AgentState.INIT])

    @property
    def state(self) -> AgentState:
        return self.states[-1]

    def record(self, step: AgentStep) -> None:
        """Append a step; indices must be strictly increasing."""
        if self.steps and step.step_index <= self.steps[-1].step_index:
            raise ValueError(f"Step {step.step_index} recorded after step {self.steps[-1].step_index}")
        self.steps.append(step)

    def transition(self, to: AgentState) -> None:
        if to not in ALLOWED_TRANSITIONS[self.state]:
            raise RuntimeError(f"Illegal agent transition {self.state.value} → {to.value}")
        self.states.append(to)
        if to in TERMINAL_STATES:
            self.status = RunStatus(to.value)

    def to_payload(self) -> dict[str, Any]:
        """Run output consumed by the UI: status, steps, final_result."""
        return {
            "status": self.status.value if self.status else None,
            "steps": [s.model_dump(mode="json") for s in self.steps],
            "final_result": self.final_result,
            "budget_exhausted": self.budget_exhausted,
        }
