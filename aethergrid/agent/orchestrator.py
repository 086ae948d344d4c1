"""
aethergrid/agent/orchestrator.py
────────────────────────────────
Bounded tool-calling loop between the reasoning backend and local subsystems.

States:
  INIT → {THINKING ⇄ EXECUTING_TOOL} → COMPLETED | SIMULATED | ERRORED

  backend unavailable at start   → offline workflow, SIMULATED
  response without a tool call   → final answer, COMPLETED
  tool call                      → execute, feed result back, next turn
  backend failure / deadline     → error step, ERRORED (no retry)
  turn budget exhausted          → COMPLETED, final_result=None,
                                   budget_exhausted=True

run() never raises for backend failures; only a malformed trigger
(pydantic.ValidationError) escapes. Each call builds a fresh AgentRun.
"""
from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable
from typing import Any

from aethergrid.agent.models import (
    ERROR_ACTION,
    FINAL_ANSWER,
    AgentRun,
    AgentState,
    AgentStep,
    TriggerEvent,
)
from aethergrid.agent.reasoning import (
    ReasoningClient,
    ReasoningError,
    ReasoningUnavailable,
    ToolCall,
    Turn,
)
from aethergrid.agent.tools import (
    ANALYZE_TELEMETRY,
    DISPATCH_REPAIR_CREW,
    TOOL_CATALOG,
    ToolExecutor,
)
from config.assets import DEFAULT_ASSET_ID, SIMULATED_DISPATCH
from config.settings import settings

logger = logging.getLogger(__name__)

SYSTEM_INSTRUCTION = (
    "Role: AetherGrid Mission Control. Goal: investigate asset anomalies. "
    "Confirm them against SCADA telemetry before acting, dispatch a repair crew "
    "only for confirmed faults, and finish with a short plain-text summary."
)

SIMULATION_WINDOW_S = 60


class AgentOrchestrator:
    def __init__(
        self,
        reasoning: ReasoningClient,
        executor: ToolExecutor,
        max_turns: int = settings.AGENT_MAX_TURNS,
        deadline_s: float | None = settings.AGENT_DEADLINE_S,
        system_instruction: str = SYSTEM_INSTRUCTION,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_turns < 1:
            raise ValueError("max_turns must be at least 1")
        self.reasoning = reasoning
        self.executor = executor
        self.max_turns = max_turns
        self.deadline_s = deadline_s
        self.system_instruction = system_instruction
        self._clock = clock

    # ── Entry point ──────────────────────────────────────────────────────────

    def run(self, trigger: str, context: dict[str, Any] | None = None) -> AgentRun:
        """Run one orchestration for `trigger` and return its trace."""
        event = TriggerEvent(trigger=trigger, context=context if context is not None else {})
        run = AgentRun(trigger=event.trigger, context=event.context)
        logger.info("Agent run started: %s", event.trigger)

        if not self.reasoning.is_available():
            logger.info("Reasoning backend unavailable, using offline workflow")
            self._simulate(run)
        else:
            self._loop(run, event)

        logger.info("Agent run finished: %s after %d step(s)", run.status.value, len(run.steps))
        return run

    # ── Reasoning loop ───────────────────────────────────────────────────────

    def _loop(self, run: AgentRun, event: TriggerEvent) -> None:
        history = [Turn(role="user", content=self._opening_message(event))]
        deadline = self._clock() + self.deadline_s if self.deadline_s is not None else None

        for turn in range(1, self.max_turns + 1):
            run.transition(AgentState.THINKING)

            if deadline is not None and self._clock() > deadline:
                self._fail(run, turn, f"Run deadline of {self.deadline_s:.0f}s exceeded")
                return

            try:
                response = self.reasoning.converse(history, TOOL_CATALOG, self.system_instruction)
            except ReasoningUnavailable as exc:
                if turn == 1:
                    logger.info("Reasoning backend reported unavailable (%s), using offline workflow", exc)
                    self._simulate(run)
                else:
                    self._fail(run, turn, f"Reasoning backend unavailable: {exc}")
                return
            except ReasoningError as exc:
                self._fail(run, turn, f"Reasoning backend error: {exc}")
                return

            history.append(Turn(role="model", content=[p.model_dump() for p in response.content_parts]))
            call = response.tool_call

            if call is None:
                run.record(AgentStep(step_index=turn, thought=response.text, action=FINAL_ANSWER))
                run.final_result = response.text
                run.transition(AgentState.COMPLETED)
                return

            run.transition(AgentState.EXECUTING_TOOL)
            result = self._execute(call)
            history.append(Turn(role="tool", content={"name": call.name, "response": result}))
            run.record(AgentStep(step_index=turn, thought=response.text, action=call.name, result=result))

        logger.warning("Agent turn budget (%d) exhausted without a final answer", self.max_turns)
        run.budget_exhausted = True
        run.final_result = None
        run.transition(AgentState.COMPLETED)

    def _execute(self, call: ToolCall) -> dict[str, Any]:
        try:
            return self.executor.run(call.name, call.args)
        except Exception as exc:
            logger.exception("Tool %s failed", call.name)
            return {"error": "Tool execution failed", "tool": call.name, "message": str(exc)}

    def _fail(self, run: AgentRun, turn: int, message: str) -> None:
        logger.error("Agent run aborted on turn %d: %s", turn, message)
        run.record(AgentStep(step_index=turn, thought=message, action=ERROR_ACTION, result={"error": message}))
        run.transition(AgentState.ERRORED)

    @staticmethod
    def _opening_message(event: TriggerEvent) -> str:
        if not event.context:
            return event.trigger
        return f"{event.trigger}\n\nContext:\n{json.dumps(event.context, default=str, indent=2)}"

    # ── Offline workflow ─────────────────────────────────────────────────────

    def _simulate(self, run: AgentRun) -> None:
        """
        Two fixed steps: analyze the last 60 s of telemetry, then dispatch a
        crew only if an anomaly was confirmed.
        """
        run.transition(AgentState.EXECUTING_TOOL)
        analysis = self.executor.run(ANALYZE_TELEMETRY, {"window_seconds": SIMULATION_WINDOW_S})
        run.record(AgentStep(
            step_index=1,
            thought=f"Checking the last {SIMULATION_WINDOW_S}s of SCADA telemetry to confirm the trigger.",
            action=ANALYZE_TELEMETRY,
            result=analysis,
        ))

        run.transition(AgentState.EXECUTING_TOOL)
        if analysis.get("anomaly_detected"):
            anomaly = analysis["anomalies"][0]
            asset_id = anomaly.get("asset_id") or self._context_asset(run) or DEFAULT_ASSET_ID
            dispatch = self.executor.run(DISPATCH_REPAIR_CREW, {**SIMULATED_DISPATCH, "asset_id": asset_id})
            run.record(AgentStep(
                step_index=2,
                thought=(
                    f"{anomaly['kind']} confirmed ({anomaly['severity']}) on {asset_id}. "
                    f"Offline mode files the standard {SIMULATED_DISPATCH['fault_type']} repair "
                    "whatever the anomaly kind. Dispatching a rapid response crew."
                ),
                action=DISPATCH_REPAIR_CREW,
                result=dispatch,
            ))
            run.final_result = (
                f"Work order {dispatch.get('work_order_id')} dispatched for "
                f"{SIMULATED_DISPATCH['fault_type']} on {asset_id}."
            )
        else:
            message = "No anomaly confirmed in the telemetry window; false positive, no action taken."
            run.record(AgentStep(step_index=2, thought=message, action=FINAL_ANSWER, result={"status": "NO_ACTION"}))
            run.final_result = message

        run.transition(AgentState.SIMULATED)

    @staticmethod
    def _context_asset(run: AgentRun) -> str | None:
        anomaly = run.context.get("anomaly")
        if isinstance(anomaly, dict):
            return anomaly.get("asset_id")
        return getattr(anomaly, "asset_id", None)
