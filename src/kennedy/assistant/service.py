from __future__ import annotations

import os
import time
from dataclasses import dataclass
from typing import Any

import requests

from kennedy.logging import get_logger


logger = get_logger(__name__)

NO_ANSWER_FALLBACK = "Sin respuesta de la IA."

_DEFAULT_URL = "https://openrouter.ai/api/v1/chat/completions"
_DEFAULT_MODEL = "xiaomi/mimo-v2-flash:free"


@dataclass(frozen=True)
class AssistantReply:
    content: str
    provider: str
    model: str | None = None
    meta: dict[str, Any] | None = None
    ok: bool = True
    error: str | None = None


def _truncate_text(value: str, *, limit: int = 2000) -> str:
    text = (value or "").strip()
    if len(text) <= limit:
        return text
    return text[:limit]


def _openrouter_api_key() -> str | None:
    raw = (os.getenv("KENNEDY_OPENROUTER_API_KEY") or os.getenv("OPENROUTER_API_KEY") or "").strip()
    return raw or None


def _openrouter_url() -> str:
    return (os.getenv("KENNEDY_OPENROUTER_URL") or _DEFAULT_URL).strip().rstrip("/")


def _openrouter_model() -> str:
    return (os.getenv("KENNEDY_OPENROUTER_MODEL") or _DEFAULT_MODEL).strip()


def _openrouter_timeout_seconds() -> float:
    raw = (os.getenv("KENNEDY_OPENROUTER_TIMEOUT_SECONDS") or "").strip()
    if not raw:
        return 30.0
    try:
        return max(1.0, float(raw))
    except ValueError:
        return 30.0


def _assistant_temperature() -> float | None:
    raw = (os.getenv("KENNEDY_ASSISTANT_TEMPERATURE") or "").strip()
    if not raw:
        return None
    try:
        value = float(raw)
    except ValueError:
        return None
    return min(2.0, max(0.0, value))


def _openrouter_headers(api_key: str) -> dict[str, str]:
    # OpenRouter attributes traffic through these two headers
    return {
        "Authorization": f"Bearer {api_key}",
        "Content-Type": "application/json",
        "HTTP-Referer": (os.getenv("KENNEDY_OPENROUTER_REFERER") or "https://vintex.net.br").strip(),
        "X-Title": (os.getenv("KENNEDY_OPENROUTER_TITLE") or "Kennedy System").strip(),
    }


def _failure(error: str, *, model: str, meta: dict[str, Any]) -> AssistantReply:
    return AssistantReply(
        content=f"Assistant error: {error}",
        provider="openrouter",
        model=model,
        meta=meta,
        ok=False,
        error=error,
    )


def _first_choice_content(data: Any) -> str | None:
    if not isinstance(data, dict):
        return None
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    choice0 = choices[0]
    if not isinstance(choice0, dict):
        return None
    message_obj = choice0.get("message")
    if isinstance(message_obj, dict) and message_obj.get("content"):
        return str(message_obj["content"])
    if choice0.get("text"):
        return str(choice0["text"])
    return None


def generate_reply(
    *,
    prompt: str | None = None,
    messages: list[dict[str, Any]] | None = None,
) -> AssistantReply:
    """Run one OpenRouter chat completion.

    ``messages`` (a role-tagged history) wins over ``prompt``, which is sent
    as a single user message. Failures are returned as ``ok=False`` replies
    rather than raised; there is no retry.
    """

    if messages is None:
        if prompt is None:
            raise ValueError("prompt is required when messages is not provided")
        messages = [{"role": "user", "content": prompt}]

    url = _openrouter_url()
    model = _openrouter_model()
    api_key = _openrouter_api_key()
    if api_key is None:
        error = "OpenRouter API key is not configured"
        logger.warning(error)
        return _failure(error, model=model, meta={"url": url})

    payload: dict[str, Any] = {"model": model, "messages": messages}
    temperature = _assistant_temperature()
    if temperature is not None:
        payload["temperature"] = temperature

    started = time.monotonic()
    try:
        response = requests.post(
            url,
            json=payload,
            headers=_openrouter_headers(api_key),
            timeout=_openrouter_timeout_seconds(),
        )
        response.raise_for_status()
        data = response.json()
    except requests.exceptions.HTTPError as exc:
        response_obj = getattr(exc, "response", None)
        status_code = getattr(response_obj, "status_code", None)
        response_text = _truncate_text(str(getattr(response_obj, "text", "") or ""))
        error = f"OpenRouter Error {status_code}: {response_text or exc}"
        meta: dict[str, Any] = {"url": url, "status_code": status_code}
        if response_text:
            meta["response_text"] = response_text
        logger.warning("OpenRouter request failed (%s, status=%s): %s", url, status_code, response_text or exc)
        return _failure(error, model=model, meta=meta)
    except Exception as exc:
        error = f"{type(exc).__name__}: {exc}"
        logger.warning("OpenRouter request failed (%s): %s", url, error)
        return _failure(error, model=model, meta={"url": url, "error": repr(exc)})
    elapsed_ms = int((time.monotonic() - started) * 1000)

    meta = {"url": url, "elapsed_ms": elapsed_ms}
    if isinstance(data, dict) and isinstance(data.get("usage"), dict):
        meta["usage"] = data["usage"]

    content = _first_choice_content(data)
    if content is None:
        logger.info("OpenRouter returned no choices for model %s", model)
        meta["empty"] = True
        content = NO_ANSWER_FALLBACK

    return AssistantReply(content=content, provider="openrouter", model=model, meta=meta)


def get_generator_dep():
    """FastAPI dependency returning the text-generation callable."""

    return generate_reply
