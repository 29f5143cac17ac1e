"""Unified LLM Router: dual-provider abstraction for Gemini + OpenAI.

Routes LLM calls to Google Gemini or OpenAI GPT based on model prefix:
  - gemini-* → Google GenAI SDK
  - gpt-*   → OpenAI Responses API

Every AI step of the search pipeline goes through `llm_call()`. The router
never raises: missing keys and provider failures come back as an LLMResult
with `error` set, so callers degrade instead of failing the request.
"""

import json
import logging
import re
import time
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Optional

from materialscout.api_keys import api_keys_manager
from materialscout.config_loader import get_config

logger = logging.getLogger(__name__)

DEFAULT_MODEL = get_config().llm.model

_JSON_ARRAY_RE = re.compile(r"\[[\s\S]*\]")
_JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")


@dataclass
class LLMResult:
    text: str
    input_tokens: int = 0
    output_tokens: int = 0
    duration_s: float = 0.0
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and bool(self.text)


def provider_for_model(model: str) -> str:
    return "openai" if model.startswith("gpt-") else "gemini"


def is_llm_configured(model: Optional[str] = None) -> bool:
    """True when an API key exists for the provider serving `model`."""
    return api_keys_manager.get_key(provider_for_model(model or DEFAULT_MODEL)) is not None


# =============================================================================
# PROVIDER CLIENTS (one per key, shared by the fan-out threads)
# =============================================================================

@lru_cache(maxsize=4)
def _gemini_client(api_key: str, timeout_s: float):
    from google import genai
    from google.genai import types

    return genai.Client(api_key=api_key, http_options=types.HttpOptions(timeout=int(timeout_s * 1000)))


@lru_cache(maxsize=4)
def _openai_client(api_key: str, timeout_s: float):
    from openai import OpenAI

    return OpenAI(api_key=api_key, timeout=timeout_s)


def _generate_gemini(
    api_key: str,
    model: str,
    system_prompt: Optional[str],
    user_prompt: str,
    json_mode: bool,
    temperature: float,
    max_output_tokens: Optional[int],
) -> tuple[str, int, int]:
    from google.genai import types

    config_kwargs: dict = {"temperature": temperature}
    if system_prompt:
        config_kwargs["system_instruction"] = system_prompt
    if json_mode:
        config_kwargs["response_mime_type"] = "application/json"
    if max_output_tokens:
        config_kwargs["max_output_tokens"] = max_output_tokens

    client = _gemini_client(api_key, get_config().llm.request_timeout_seconds)
    response = client.models.generate_content(
        model=model,
        contents=[types.Content(role="user", parts=[types.Part.from_text(text=user_prompt)])],
        config=types.GenerateContentConfig(**config_kwargs),
    )
    usage = getattr(response, "usage_metadata", None)
    return (
        response.text or "",
        getattr(usage, "prompt_token_count", 0) or 0,
        getattr(usage, "candidates_token_count", 0) or 0,
    )


def _generate_openai(
    api_key: str,
    model: str,
    system_prompt: Optional[str],
    user_prompt: str,
    json_mode: bool,
    temperature: float,
    max_output_tokens: Optional[int],
) -> tuple[str, int, int]:
    kwargs: dict = {
        "model": model,
        "input": [{"role": "user", "content": [{"type": "input_text", "text": user_prompt}]}],
        "temperature": temperature,
    }
    if system_prompt:
        kwargs["instructions"] = system_prompt
    if json_mode:
        kwargs["text"] = {"format": {"type": "json_object"}}
    if max_output_tokens:
        kwargs["max_output_tokens"] = max_output_tokens

    client = _openai_client(api_key, get_config().llm.request_timeout_seconds)
    response = client.responses.create(**kwargs)
    usage = getattr(response, "usage", None)
    return (
        response.output_text or "",
        getattr(usage, "input_tokens", 0) or 0,
        getattr(usage, "output_tokens", 0) or 0,
    )


_GENERATORS = {
    "gemini": _generate_gemini,
    "openai": _generate_openai,
}


def llm_call(
    model: str,
    user_prompt: str,
    system_prompt: Optional[str] = None,
    json_mode: bool = True,
    temperature: float = 0.0,
    max_output_tokens: Optional[int] = None,
) -> LLMResult:
    """Route an LLM call to the appropriate provider based on model name."""
    provider = provider_for_model(model)
    api_key = api_keys_manager.get_key(provider)
    if not api_key:
        return LLMResult(text="", error=f"No API key configured for {provider}")

    t0 = time.time()
    try:
        text, input_tokens, output_tokens = _GENERATORS[provider](
            api_key, model, system_prompt, user_prompt, json_mode, temperature, max_output_tokens,
        )
    except Exception as e:
        logger.error(f"[LLM] {provider} error ({model}): {e}")
        return LLMResult(text="", error=str(e), duration_s=round(time.time() - t0, 2))

    return LLMResult(
        text=text,
        input_tokens=input_tokens,
        output_tokens=output_tokens,
        duration_s=round(time.time() - t0, 2),
    )


# =============================================================================
# RESPONSE PARSING
# =============================================================================

def extract_json_array(text: str) -> Optional[list]:
    """Parse the first JSON array embedded in free model text.

    Models often wrap the payload in prose or markdown fences, so the
    outermost `[...]` span is cut out before decoding.
    """
    if not text:
        return None
    match = _JSON_ARRAY_RE.search(text)
    if not match:
        return None
    try:
        parsed = json.loads(match.group(0))
    except json.JSONDecodeError:
        logger.warning(f"[LLM] Could not decode JSON array. First 200: {text[:200]}")
        return None
    return parsed if isinstance(parsed, list) else None


def extract_json_object(text: str) -> Optional[dict[str, Any]]:
    """Parse the first JSON object embedded in free model text."""
    if not text:
        return None
    match = _JSON_OBJECT_RE.search(text)
    if not match:
        return None
    try:
        parsed = json.loads(match.group(0))
    except json.JSONDecodeError:
        logger.warning(f"[LLM] Could not decode JSON object. First 200: {text[:200]}")
        return None
    return parsed if isinstance(parsed, dict) else None
