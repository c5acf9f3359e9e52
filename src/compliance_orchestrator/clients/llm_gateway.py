"""
compliance_orchestrator.clients.llm_gateway

Provider-agnostic chat-completion boundary used by the planner and assessors.

Responsibilities:
- Call an OpenAI-compatible `/chat/completions` endpoint over httpx.
- Enforce a per-call timeout so a hung provider surfaces as an error.
- Extract a JSON object from model output that may carry fences or prose.
"""

from __future__ import annotations

import json
import re
from typing import Any

import httpx

from compliance_orchestrator.observability.logging import get_logger
from compliance_orchestrator.settings import Settings

log = get_logger(__name__)

_FENCE_OPEN = re.compile(r"^```\w*\n?")
_FENCE_CLOSE = re.compile(r"\n?```$")
_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


class LlmGatewayError(Exception):
    pass


class LlmGateway:
    def __init__(self, *, settings: Settings, http: httpx.AsyncClient) -> None:
        self._settings = settings
        self._http = http

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._settings.llm_api_key:
            headers["Authorization"] = f"Bearer {self._settings.llm_api_key}"
        return headers

    async def chat(self, messages: list[dict[str, Any]]) -> str:
        url = f"{self._settings.llm_base_url.rstrip('/')}/chat/completions"
        body = {
            "model": self._settings.llm_model,
            "messages": messages,
            "temperature": self._settings.llm_temperature,
            "response_format": {"type": "json_object"},
        }
        try:
            r = await self._http.post(
                url,
                headers=self._headers(),
                json=body,
                timeout=httpx.Timeout(self._settings.llm_timeout_seconds),
            )
            r.raise_for_status()
            payload = r.json()
        except httpx.TimeoutException as e:
            raise LlmGatewayError(
                f"model call timed out after {self._settings.llm_timeout_seconds}s"
            ) from e
        except httpx.HTTPStatusError as e:
            raise LlmGatewayError(f"model call failed with HTTP {e.response.status_code}") from e
        except (httpx.HTTPError, ValueError) as e:
            raise LlmGatewayError(f"model call failed: {e}") from e

        try:
            content = payload["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise LlmGatewayError("model response has no message content") from e

        usage = payload.get("usage") or {}
        log.debug(
            "llm_call",
            model=self._settings.llm_model,
            prompt_tokens=usage.get("prompt_tokens"),
            completion_tokens=usage.get("completion_tokens"),
        )
        return str(content or "")

    async def chat_json(
        self, *, system: str, user: str | list[dict[str, Any]]
    ) -> dict[str, Any]:
        content = await self.chat(
            [{"role": "system", "content": system}, {"role": "user", "content": user}]
        )
        return extract_json(content)


def extract_json(content: str) -> dict[str, Any]:
    """
    Parse the first JSON object found in model output.

    Accepts bare JSON, fenced ```json blocks, or an object embedded in prose.
    """

    cleaned = content.strip()
    if cleaned.startswith("```"):
        cleaned = _FENCE_OPEN.sub("", cleaned)
        cleaned = _FENCE_CLOSE.sub("", cleaned)

    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError:
        match = _JSON_OBJECT.search(cleaned)
        if match is None:
            raise LlmGatewayError("model response contains no JSON object") from None
        try:
            parsed = json.loads(match.group())
        except json.JSONDecodeError as e:
            raise LlmGatewayError(f"model response is not valid JSON: {e}") from e

    if not isinstance(parsed, dict):
        raise LlmGatewayError("model response JSON is not an object")
    return parsed


# --- Module Notes -----------------------------------------------------------
# Provider SDKs can replace the httpx call without touching callers, as long as
# `chat` keeps returning the raw assistant text and raising LlmGatewayError.
