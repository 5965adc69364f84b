"""Structured text generation through an OpenAI-compatible chat endpoint."""

from __future__ import annotations

import json
import logging
import os
from typing import Any

import httpx

LLM_API_URL = os.getenv("LLM_API_URL", "https://api.openai.com/v1/chat/completions")
LLM_API_KEY = os.getenv("LLM_API_KEY")
LLM_MODEL = os.getenv("LLM_MODEL", "gpt-4o-mini")
LLM_TIMEOUT_SECONDS = float(os.getenv("LLM_TIMEOUT_SECONDS", "30"))

logger = logging.getLogger(__name__)


class LLMError(RuntimeError):
    """Raised when generation fails or returns something other than the requested JSON."""


class LLMNotConfigured(LLMError):
    """Raised when no API key is available."""


def llm_enabled() -> bool:
    return bool(LLM_API_KEY)


def invoke_llm(prompt: str, schema: dict[str, Any], *, client: httpx.Client | None = None) -> dict[str, Any]:
    """Ask the model for a JSON object matching ``schema`` and return it parsed."""
    if not llm_enabled():
        raise LLMNotConfigured("LLM_API_KEY is not configured.")

    payload = {
        "model": LLM_MODEL,
        "messages": [{"role": "user", "content": prompt}],
        "response_format": {
            "type": "json_schema",
            "json_schema": {"name": "response", "schema": schema},
        },
    }
    headers = {"Authorization": f"Bearer {LLM_API_KEY}"}

    owns_client = client is None
    http = client or httpx.Client(timeout=LLM_TIMEOUT_SECONDS)
    try:
        response = http.post(LLM_API_URL, json=payload, headers=headers)
        response.raise_for_status()
        content = response.json()["choices"][0]["message"]["content"]
        result = json.loads(content)
    except httpx.HTTPError as exc:
        logger.warning("LLM request failed: %s", exc)
        raise LLMError(str(exc)) from exc
    except (KeyError, IndexError, TypeError, ValueError) as exc:
        logger.warning("LLM returned an unexpected payload: %s", exc)
        raise LLMError("Unexpected LLM response.") from exc
    finally:
        if owns_client:
            http.close()

    if not isinstance(result, dict):
        raise LLMError("LLM response was not a JSON object.")
    return result
