"""
app.py
──────
AetherGrid Agent Core: composition root.

Startup sequence:
  1. Configure logging from settings.LOG_LEVEL
  2. Open the key-value store (SQLite at DATABASE_URL)
  3. Build telemetry, dispatch, reasoning and orchestrator services
  4. When run directly: refresh the weather baseline, run the agent once on
     the latest telemetry and print the step trace
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass

from aethergrid.agent.advisor import AgentAdvisor
from aethergrid.agent.orchestrator import AgentOrchestrator
from aethergrid.agent.reasoning import GeminiReasoningClient, ReasoningClient
from aethergrid.agent.tools import ToolExecutor
from aethergrid.data.store import KeyValueStore, SqliteStore
from aethergrid.data.telemetry import TelemetryStore
from aethergrid.data.weather import WeatherFeed
from aethergrid.logistics.dispatch import DispatchRegistry
from config.settings import settings


@dataclass
class Services:
    store: KeyValueStore
    weather: WeatherFeed
    telemetry: TelemetryStore
    registry: DispatchRegistry
    reasoning: ReasoningClient
    executor: ToolExecutor
    orchestrator: AgentOrchestrator
    advisor: AgentAdvisor


def build_services(
    store: KeyValueStore | None = None,
    reasoning: ReasoningClient | None = None,
    weather: WeatherFeed | None = None,
    seed: int | None = None,
) -> Services:
    """Wire every service from settings; arguments override the defaults."""
    store = store if store is not None else SqliteStore(settings.DATABASE_URL)
    weather = weather if weather is not None else WeatherFeed()
    reasoning = reasoning if reasoning is not None else GeminiReasoningClient()

    telemetry = TelemetryStore(store, weather=weather, seed=seed)
    registry = DispatchRegistry(store)
    executor = ToolExecutor(telemetry, registry)
    return Services(
        store=store,
        weather=weather,
        telemetry=telemetry,
        registry=registry,
        reasoning=reasoning,
        executor=executor,
        orchestrator=AgentOrchestrator(reasoning, executor),
        advisor=AgentAdvisor(reasoning),
    )


def main() -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    services = build_services()
    services.weather.refresh()

    latest = services.telemetry.tick()
    analysis = services.telemetry.analyze_window(60)
    if analysis.anomaly_detected:
        anomaly = analysis.anomalies[0]
        trigger = f"Anomaly Detected: {anomaly.kind.value} on {anomaly.asset_id}"
        context = {"anomaly": anomaly.model_dump(mode="json"), "telemetry": latest.model_dump(mode="json")}
    else:
        trigger = f"Routine health check on {services.telemetry.asset_id}"
        context = {"telemetry": latest.model_dump(mode="json")}

    run = services.orchestrator.run(trigger, context)
    print(json.dumps(run.to_payload(), indent=2, default=str))


if __name__ == "__main__":
    main()
