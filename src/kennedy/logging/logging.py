"""Logging for the ``kennedy`` package.

Modules call ``get_logger(__name__)``. Every logger handed out lives under the
``kennedy`` namespace and propagates to the ``kennedy`` base logger, which is
the only one carrying handlers: a file (``KENNEDY_LOG_FILE``, else
``kennedy.log`` in ``KENNEDY_LOG_DIR``, default ``~/.kennedy/logs``) and
stderr unless ``KENNEDY_LOG_CONSOLE=0``.

Level precedence: explicit argument, ``KENNEDY_LOG_LEVEL``, the level saved by
``kennedy logging set-level``, INFO.
"""

import logging
import os
import sys
from pathlib import Path

from .config import load_log_level

BASE_NAME = "kennedy"
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_configured = False


def log_file_path() -> Path:
    explicit = (os.getenv("KENNEDY_LOG_FILE") or "").strip()
    if explicit:
        return Path(explicit).expanduser()
    log_dir = (os.getenv("KENNEDY_LOG_DIR") or "").strip() or Path.home() / ".kennedy" / "logs"
    return Path(log_dir).expanduser() / "kennedy.log"


def _qualified(name):
    if not name or name == BASE_NAME or name.startswith(BASE_NAME + "."):
        return name or BASE_NAME
    return f"{BASE_NAME}.{name}"


def _default_level():
    from_env = logging.getLevelName((os.getenv("KENNEDY_LOG_LEVEL") or "").strip().upper())
    if isinstance(from_env, int):
        return from_env
    return load_log_level() or logging.INFO


def _console_enabled():
    return (os.getenv("KENNEDY_LOG_CONSOLE") or "1").strip().lower() not in {"0", "false", "no", "off"}


def _drop_handlers(logger):
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def configure(level=None, log_file=None, console=None):
    """(Re)attach the handlers of the ``kennedy`` base logger and return it."""

    global _configured
    base = logging.getLogger(BASE_NAME)
    _drop_handlers(base)

    path = Path(log_file) if log_file is not None else log_file_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    handlers = [logging.FileHandler(path, encoding="utf-8")]
    if _console_enabled() if console is None else console:
        handlers.append(logging.StreamHandler(sys.stderr))

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    for handler in handlers:
        handler.setFormatter(formatter)
        base.addHandler(handler)
    base.setLevel(level if level is not None else _default_level())
    base.propagate = False
    _configured = True
    return base


def get_logger(name=None, level=None):
    """Return ``kennedy.<name>``, configuring the base logger on first use."""

    if not _configured:
        configure(level=level)
    elif level is not None:
        logging.getLogger(BASE_NAME).setLevel(level)
    return logging.getLogger(_qualified(name))


def reset_logger():
    """Detach the base handlers; the next ``get_logger`` call reconfigures."""

    global _configured
    _drop_handlers(logging.getLogger(BASE_NAME))
    _configured = False


def get_configured_level():
    return logging.getLevelName(logging.getLogger(BASE_NAME).getEffectiveLevel())
