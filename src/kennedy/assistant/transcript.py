"""Reconstruct readable transcripts from stored bot chat messages.

The n8n workflow that feeds ``n8n_chat_histories`` never settled on a
payload shape. A single table mixes:

* plain strings (``"Mensaje de la persona: Hola"``),
* JSON-encoded strings of LangChain-style records
  (``'{"type": "human", "content": "..."}'``),
* objects whose text lives under ``output.message`` or is split across
  ``output.mensaje_1`` .. ``output.mensaje_3``.

:func:`unwrap_message` turns any of those into display text and
:func:`classify_role` guesses who wrote it. Neither ever raises.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Iterable, Literal

PERSON_PREFIX = "Mensaje de la persona:"
MAX_UNWRAP_DEPTH = 5

_OUTPUT_PARTS = ("mensaje_1", "mensaje_2", "mensaje_3", "message")
_USER_MARKERS = {"human", "user"}

Role = Literal["user", "assistant"]


@dataclass(frozen=True)
class TranscriptEntry:
    id: int
    role: Role
    content: str


def _serialize(value: Any) -> str:
    try:
        return json.dumps(value, ensure_ascii=False)
    except (TypeError, ValueError):
        # cyclic or non-JSON values
        return str(value)


def _maybe_parse(text: str) -> Any:
    stripped = text.strip()
    if not stripped.startswith(("{", "[")):
        return text
    try:
        return json.loads(stripped)
    except ValueError:
        return text


def _join_output_parts(output: dict[str, Any], depth: int) -> str:
    parts = []
    for key in _OUTPUT_PARTS:
        value = output.get(key)
        if value is None:
            continue
        text = _unwrap(value, depth + 1).strip()
        if text:
            parts.append(text)
    return "\n\n".join(parts)


def _unwrap(payload: Any, depth: int) -> str:
    if payload is None:
        return ""
    if depth > MAX_UNWRAP_DEPTH:
        if isinstance(payload, str):
            return payload
        return _serialize(payload)

    if isinstance(payload, str):
        if payload.startswith(PERSON_PREFIX):
            return payload[len(PERSON_PREFIX):].strip()
        parsed = _maybe_parse(payload)
        if parsed is payload:
            return payload
        payload = parsed

    if isinstance(payload, dict):
        if "content" in payload:
            return _unwrap(payload["content"], depth + 1)
        output = payload.get("output")
        if isinstance(output, dict):
            if "message" in output:
                return _unwrap(output["message"], depth + 1)
            return _join_output_parts(output, depth)
        if "message" in payload:
            return _unwrap(payload["message"], depth + 1)
        if "text" in payload:
            return _unwrap(payload["text"], depth + 1)
        return _serialize(payload)

    if isinstance(payload, list):
        return _serialize(payload)

    return str(payload)


def unwrap_message(payload: Any) -> str:
    """Return the display text of one stored chat payload.

    Structures nested deeper than :data:`MAX_UNWRAP_DEPTH` levels are
    serialized verbatim instead of being unwrapped further.
    """

    return _unwrap(payload, 0)


def classify_role(payload: Any) -> Role:
    """Guess whether ``payload`` was written by the person or the bot.

    A ``type``/``role`` of ``human``/``user`` wins, then the person-message
    prefix anywhere in the raw text. Everything else, unparseable payloads
    included, is attributed to the assistant.
    """

    parsed = _maybe_parse(payload) if isinstance(payload, str) else payload
    if isinstance(parsed, dict):
        for key in ("type", "role"):
            marker = parsed.get(key)
            if isinstance(marker, str) and marker.strip().lower() in _USER_MARKERS:
                return "user"

    raw = payload if isinstance(payload, str) else _serialize(payload)
    if PERSON_PREFIX in raw:
        return "user"
    return "assistant"


def build_transcript(rows: Iterable[Any]) -> list[TranscriptEntry]:
    """Turn stored chat rows (``id`` + ``message``) into ordered entries.

    Rows may arrive in any order; the result is sorted by ``id``. Rows
    whose text comes out empty are dropped.
    """

    entries: list[TranscriptEntry] = []
    for row in sorted(rows, key=lambda item: item.id):
        content = unwrap_message(row.message).strip()
        if not content:
            continue
        entries.append(TranscriptEntry(id=int(row.id), role=classify_role(row.message), content=content))
    return entries


_ROLE_LABELS = {"user": "Alumno", "assistant": "Asistente"}


def format_transcript(entries: Iterable[TranscriptEntry]) -> str:
    return "\n".join(f"{_ROLE_LABELS[entry.role]}: {entry.content}" for entry in entries)
