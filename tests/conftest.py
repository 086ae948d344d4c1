"""
tests/conftest.py
─────────────────
Shared pytest fixtures for the AetherGrid test suite.
"""
import os
from datetime import datetime, timedelta, timezone

import pytest

# Throwaway persistence, no backend, no simulated latency
os.environ.setdefault("DATABASE_URL", ":memory:")
os.environ.setdefault("TOOL_LATENCY_S", "0")
os.environ.setdefault("TELEMETRY_CAPACITY", "100")
os.environ.setdefault("TICK_INTERVAL_S", "2.0")


class FakeClock:
    """Settable UTC clock; call it to read the current time."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> datetime:
        self.now = self.now + timedelta(seconds=seconds)
        return self.now


class ScriptedReasoningClient:
    """
    Reasoning client that replays a script. Each entry is either a
    ReasoningResponse (returned) or an exception (raised). Once the script
    runs out the last entry repeats.
    """

    def __init__(self, script=None, available: bool = True) -> None:
        self.script = list(script or [])
        self.available = available
        self.calls: list[dict] = []

    def is_available(self) -> bool:
        return self.available

    def converse(self, history, tools, system_instruction):
        self.calls.append({
            "history": [t.model_copy(deep=True) for t in history],
            "tools": tools,
            "system_instruction": system_instruction,
        })
        idx = min(len(self.calls) - 1, len(self.script) - 1)
        entry = self.script[idx]
        if isinstance(entry, Exception):
            raise entry
        return entry


def text_response(text: str):
    from aethergrid.agent.reasoning import ContentPart, ReasoningResponse
    return ReasoningResponse(content_parts=[ContentPart(text=text)])


def tool_response(name: str, args: dict | None = None, text: str = ""):
    from aethergrid.agent.reasoning import ContentPart, ReasoningResponse, ToolCall
    parts = [ContentPart(text=text)] if text else []
    parts.append(ContentPart(tool_call=ToolCall(name=name, args=args or {})))
    return ReasoningResponse(content_parts=parts)


@pytest.fixture
def now() -> datetime:
    return datetime(2026, 1, 27, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock(now) -> FakeClock:
    return FakeClock(now)


@pytest.fixture
def kv():
    from aethergrid.data.store import InMemoryStore
    return InMemoryStore()


@pytest.fixture
def make_sample():
    from aethergrid.data.models import TelemetrySample

    def _make(ts: datetime, vibration: float = 1.5, temperature: float = 55.0, wind_speed: float = 9.0):
        return TelemetrySample(
            captured_at=ts,
            wind_speed=wind_speed,
            power_output=2_000.0,
            vibration=vibration,
            rotor_speed=13.5,
            temperature=temperature,
            pitch_angle=0.0,
        )

    return _make


@pytest.fixture
def telemetry(kv, clock):
    from aethergrid.data.telemetry import TelemetryStore
    return TelemetryStore(kv, capacity=100, tick_interval_s=2.0, clock=clock, seed=42)


@pytest.fixture
def flood(telemetry, clock, make_sample):
    """
    Move the clock past the seeded history and fill the trailing 60 s window
    with samples at the given vibration/temperature.
    """
    def _flood(vibration: float = 1.5, temperature: float = 55.0, count: int = 30) -> None:
        clock.advance(300)
        start = clock.now - timedelta(seconds=58)
        for i in range(count):
            telemetry.ingest(make_sample(start + timedelta(seconds=i * 58 / count), vibration, temperature))

    return _flood


@pytest.fixture
def registry(kv, clock):
    from aethergrid.logistics.dispatch import DispatchRegistry
    return DispatchRegistry(kv, clock=clock)


@pytest.fixture
def executor(telemetry, registry):
    from aethergrid.agent.tools import ToolExecutor
    return ToolExecutor(telemetry, registry, latency_s=0.0)
