"""
aethergrid/agent/reasoning.py
─────────────────────────────
Boundary to the external tool-calling reasoning backend.

Wire shape (backend independent):
  request  = history [{role: user|model|tool, content}], tools, system_instruction
  response = content_parts [{text} | {tool_call: {name, args}}]

GeminiReasoningClient speaks the Gemini generateContent REST API over httpx
with a per-call timeout. Without an API key every call raises
ReasoningUnavailable; network or backend failures raise
ReasoningTransientError.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Literal, Protocol

import httpx
from pydantic import BaseModel, Field, ValidationError

from config.settings import settings

logger = logging.getLogger(__name__)


# ── Errors ────────────────────────────────────────────────────────────────────

class ReasoningError(Exception):
    """Base class for reasoning backend failures."""


class ReasoningUnavailable(ReasoningError):
    """No backend configured (missing credential or endpoint)."""


class ReasoningTransientError(ReasoningError):
    """Backend reachable in principle but the call failed."""


# ── Wire models ───────────────────────────────────────────────────────────────

class ToolCall(BaseModel):
    name: str
    args: dict[str, Any] = Field(default_factory=dict)


class ContentPart(BaseModel):
    text: str | None = None
    tool_call: ToolCall | None = None


class ReasoningResponse(BaseModel):
    content_parts: list[ContentPart] = Field(default_factory=list)

    @property
    def text(self) -> str:
        return "".join(p.text for p in self.content_parts if p.text)

    @property
    def tool_call(self) -> ToolCall | None:
        return next((p.tool_call for p in self.content_parts if p.tool_call is not None), None)


class Turn(BaseModel):
    role: Literal["user", "model", "tool"]
    content: Any


class ReasoningClient(Protocol):
    def is_available(self) -> bool: ...

    def converse(
        self,
        history: list[Turn],
        tools: list[dict[str, Any]],
        system_instruction: str,
    ) -> ReasoningResponse: ...


class UnavailableReasoningClient:
    """Stand-in used when no backend is configured."""

    def is_available(self) -> bool:
        return False

    def converse(self, history, tools, system_instruction) -> ReasoningResponse:
        raise ReasoningUnavailable("No reasoning backend configured")


# ── Gemini ────────────────────────────────────────────────────────────────────

def _to_gemini_content(turn: Turn) -> dict[str, Any]:
    if turn.role == "model":
        parts = []
        for raw in turn.content or []:
            part = raw if isinstance(raw, ContentPart) else ContentPart.model_validate(raw)
            if part.tool_call is not None:
                parts.append({"functionCall": {"name": part.tool_call.name, "args": part.tool_call.args}})
            else:
                parts.append({"text": part.text or ""})
        return {"role": "model", "parts": parts}

    if turn.role == "tool":
        return {
            "role": "user",
            "parts": [{"functionResponse": {"name": turn.content["name"], "response": turn.content["response"]}}],
        }

    text = turn.content if isinstance(turn.content, str) else json.dumps(turn.content, default=str)
    return {"role": "user", "parts": [{"text": text}]}


def _from_gemini_payload(payload: dict[str, Any]) -> ReasoningResponse:
    try:
        parts = payload["candidates"][0]["content"].get("parts") or []
    except (KeyError, IndexError, TypeError, AttributeError) as exc:
        raise ReasoningTransientError(f"Malformed response from reasoning backend: {exc}") from exc

    content_parts: list[ContentPart] = []
    try:
        for part in parts:
            if "functionCall" in part:
                call = part["functionCall"]
                tool_call = ToolCall(name=call.get("name", ""), args=call.get("args") or {})
                content_parts.append(ContentPart(tool_call=tool_call))
            elif "text" in part:
                content_parts.append(ContentPart(text=part["text"]))
    except (TypeError, AttributeError, ValidationError) as exc:
        raise ReasoningTransientError(f"Malformed part in reasoning backend response: {exc}") from exc
    return ReasoningResponse(content_parts=content_parts)


class GeminiReasoningClient:
    def __init__(
        self,
        api_key: str = settings.GEMINI_API_KEY,
        model: str = settings.GEMINI_MODEL,
        base_url: str = settings.GEMINI_BASE_URL,
        timeout: float = settings.REASONING_TIMEOUT_S,
        temperature: float = settings.REASONING_TEMPERATURE,
        client: httpx.Client | None = None,
    ) -> None:
        self._api_key = api_key
        self.model = model
        self._url = f"{base_url.rstrip('/')}/models/{model}:generateContent"
        self.temperature = temperature
        self._client = client or httpx.Client(timeout=httpx.Timeout(timeout))

    def is_available(self) -> bool:
        return bool(self._api_key)

    def converse(
        self,
        history: list[Turn],
        tools: list[dict[str, Any]],
        system_instruction: str,
    ) -> ReasoningResponse:
        if not self.is_available():
            raise ReasoningUnavailable("GEMINI_API_KEY is not set")

        body: dict[str, Any] = {
            "systemInstruction": {"parts": [{"text": system_instruction}]},
            "contents": [_to_gemini_content(t) for t in history],
            "generationConfig": {"temperature": self.temperature},
        }
        if tools:
            body["tools"] = [{"functionDeclarations": tools}]
        try:
            response = self._client.post(self._url, json=body, headers={"x-goog-api-key": self._api_key})
            response.raise_for_status()
            payload = response.json()
        except httpx.TimeoutException as exc:
            raise ReasoningTransientError(f"Reasoning backend timed out: {exc}") from exc
        except httpx.HTTPError as exc:
            raise ReasoningTransientError(f"Reasoning backend call failed: {exc}") from exc
        except ValueError as exc:
            raise ReasoningTransientError(f"Reasoning backend returned non-JSON body: {exc}") from exc

        result = _from_gemini_payload(payload)
        logger.debug("Gemini %s returned %d part(s)", self.model, len(result.content_parts))
        return result
