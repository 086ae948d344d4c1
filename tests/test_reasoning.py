"""
tests/test_reasoning.py
────────────────────────
Tests for the Gemini reasoning client, using httpx.MockTransport.
"""
import json

import httpx
import pytest

from aethergrid.agent.reasoning import (
    ContentPart,
    GeminiReasoningClient,
    ReasoningResponse,
    ReasoningTransientError,
    ReasoningUnavailable,
    ToolCall,
    Turn,
    UnavailableReasoningClient,
)
from aethergrid.agent.tools import TOOL_CATALOG


def _client(handler, api_key="test-key") -> GeminiReasoningClient:
    return GeminiReasoningClient(
        api_key=api_key,
        model="gemini-test",
        base_url="https://reasoning.test/v1beta/",
        client=httpx.Client(transport=httpx.MockTransport(handler)),
    )


def _reply(*parts) -> httpx.Response:
    return httpx.Response(200, json={"candidates": [{"content": {"role": "model", "parts": list(parts)}}]})


HISTORY = [Turn(role="user", content="Vibration alert on WTG-04")]


class TestAvailability:
    def test_no_key_is_unavailable(self):
        client = _client(lambda r: _reply({"text": "hi"}), api_key="")
        assert client.is_available() is False
        with pytest.raises(ReasoningUnavailable):
            client.converse(HISTORY, TOOL_CATALOG, "system")

    def test_stand_in_client(self):
        client = UnavailableReasoningClient()
        assert client.is_available() is False
        with pytest.raises(ReasoningUnavailable):
            client.converse(HISTORY, [], "system")


class TestConverse:
    def test_text_reply(self):
        result = _client(lambda r: _reply({"text": "All clear."})).converse(HISTORY, TOOL_CATALOG, "system")
        assert result.text == "All clear."
        assert result.tool_call is None

    def test_function_call_reply(self):
        handler = lambda r: _reply(
            {"text": "Checking sensors."},
            {"functionCall": {"name": "analyze_scada_telemetry", "args": {"window_seconds": 60}}},
        )
        result = _client(handler).converse(HISTORY, TOOL_CATALOG, "system")
        assert result.text == "Checking sensors."
        assert result.tool_call == ToolCall(name="analyze_scada_telemetry", args={"window_seconds": 60})

    def test_request_shape(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["key"] = request.headers.get("x-goog-api-key")
            seen["body"] = json.loads(request.content)
            return _reply({"text": "ok"})

        history = [
            Turn(role="user", content="Vibration alert"),
            Turn(role="model", content=[ContentPart(tool_call=ToolCall(name="analyze_scada_telemetry", args={}))]),
            Turn(role="tool", content={"name": "analyze_scada_telemetry", "response": {"anomaly_detected": False}}),
        ]
        _client(handler).converse(history, TOOL_CATALOG, "Be concise.")

        assert seen["url"] == "https://reasoning.test/v1beta/models/gemini-test:generateContent"
        assert seen["key"] == "test-key"
        body = seen["body"]
        assert body["systemInstruction"] == {"parts": [{"text": "Be concise."}]}
        assert [c["role"] for c in body["contents"]] == ["user", "model", "user"]
        assert body["contents"][1]["parts"][0]["functionCall"]["name"] == "analyze_scada_telemetry"
        assert body["contents"][2]["parts"][0]["functionResponse"]["response"] == {"anomaly_detected": False}
        assert body["tools"] == [{"functionDeclarations": TOOL_CATALOG}]

    def test_tools_omitted_when_empty(self):
        seen = {}

        def handler(request):
            seen["body"] = json.loads(request.content)
            return _reply({"text": "ok"})

        _client(handler).converse(HISTORY, [], "system")
        assert "tools" not in seen["body"]

    def test_structured_user_content_serialized(self):
        seen = {}

        def handler(request):
            seen["body"] = json.loads(request.content)
            return _reply({"text": "ok"})

        _client(handler).converse([Turn(role="user", content={"asset": "WTG-04"})], [], "system")
        assert json.loads(seen["body"]["contents"][0]["parts"][0]["text"]) == {"asset": "WTG-04"}


class TestFailures:
    def test_server_error_is_transient(self):
        with pytest.raises(ReasoningTransientError):
            _client(lambda r: httpx.Response(500)).converse(HISTORY, [], "system")

    def test_timeout_is_transient(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        with pytest.raises(ReasoningTransientError):
            _client(handler).converse(HISTORY, [], "system")

    def test_non_json_is_transient(self):
        with pytest.raises(ReasoningTransientError):
            _client(lambda r: httpx.Response(200, text="<html>")).converse(HISTORY, [], "system")

    def test_missing_candidates_is_transient(self):
        with pytest.raises(ReasoningTransientError):
            _client(lambda r: httpx.Response(200, json={"candidates": []})).converse(HISTORY, [], "system")


class TestReasoningResponse:
    def test_text_joins_parts(self):
        response = ReasoningResponse(content_parts=[ContentPart(text="a"), ContentPart(text="b")])
        assert response.text == "ab"

    def test_empty(self):
        assert ReasoningResponse().text == ""
        assert ReasoningResponse().tool_call is None


class TestMalformedPayloads:
    @pytest.mark.parametrize("payload", [
        {"candidates": [{"content": {"parts": None}}]},
        {"candidates": [{"content": {}}]},
    ])
    def test_missing_parts_is_empty_reply(self, payload):
        result = _client(lambda r: httpx.Response(200, json=payload)).converse(HISTORY, [], "system")
        assert result.content_parts == []
        assert result.tool_call is None

    @pytest.mark.parametrize("part", [
        {"functionCall": {"name": "analyze_scada_telemetry", "args": ["window_seconds", 60]}},
        {"functionCall": ["analyze_scada_telemetry"]},
        {"text": {"nested": "object"}},
        42,
    ])
    def test_bad_part_is_transient(self, part):
        client = _client(lambda r: _reply(part))
        with pytest.raises(ReasoningTransientError):
            client.converse(HISTORY, [], "system")
