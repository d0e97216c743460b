"""Log level persisted by ``kennedy logging set-level``."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path


def config_path() -> Path:
    """``KENNEDY_LOG_CONFIG``, else ``logging.json`` in ``KENNEDY_CONFIG_DIR`` (``~/.kennedy``)."""

    explicit = (os.getenv("KENNEDY_LOG_CONFIG") or "").strip()
    if explicit:
        return Path(explicit).expanduser()
    config_dir = (os.getenv("KENNEDY_CONFIG_DIR") or "").strip() or Path.home() / ".kennedy"
    return Path(config_dir).expanduser() / "logging.json"


def load_log_level(path: str | Path | None = None) -> int | None:
    """Return the persisted numeric level, or ``None`` when unset or unreadable."""

    path = Path(path) if path is not None else config_path()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return None
    name = data.get("log_level") if isinstance(data, dict) else None
    if not name:
        return None
    level = logging.getLevelName(str(name).upper())
    return level if isinstance(level, int) else None


def save_log_level(level: str, path: str | Path | None = None) -> Path:
    name = str(level).upper()
    if not isinstance(logging.getLevelName(name), int):
        raise ValueError(f"Unknown logging level: {level!r}")
    path = Path(path) if path is not None else config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps({"log_level": name}) + "\n", encoding="utf-8")
    return path
