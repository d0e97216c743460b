"""Tests for logging utilities."""

import logging

import pytest

from kennedy.logging import configure, get_configured_level, get_logger, log_file_path, reset_logger
from kennedy.logging.config import config_path, load_log_level, save_log_level


@pytest.fixture
def restore_logging():
    yield
    reset_logger()
    get_logger()


def _flush():
    for handler in logging.getLogger("kennedy").handlers:
        handler.flush()


def test_module_loggers_share_the_kennedy_handlers(restore_logging, tmp_path):
    log_file = tmp_path / "kennedy.log"
    configure(log_file=log_file, console=False)

    module_logger = get_logger("kennedy.db.crud")
    module_logger.info("from crud")
    get_logger("scripts").warning("from a script")
    _flush()

    assert module_logger.handlers == []
    assert get_logger("scripts").name == "kennedy.scripts"
    text = log_file.read_text()
    assert "[kennedy.db.crud] from crud" in text
    assert "[kennedy.scripts] from a script" in text


def test_reset_logger_allows_reconfiguration(restore_logging, tmp_path):
    first = tmp_path / "first.log"
    second = tmp_path / "second.log"

    configure(log_file=first, console=False)
    get_logger("kennedy.test").info("first message")
    _flush()

    reset_logger()
    assert logging.getLogger("kennedy").handlers == []

    configure(log_file=second, console=False)
    get_logger("kennedy.test").info("second message")
    _flush()

    assert "first message" in first.read_text()
    assert "second message" in second.read_text()
    assert "second message" not in first.read_text()


def test_level_precedence(restore_logging, tmp_path, monkeypatch):
    monkeypatch.delenv("KENNEDY_LOG_LEVEL", raising=False)
    config_file = tmp_path / "logging.json"
    monkeypatch.setenv("KENNEDY_LOG_CONFIG", str(config_file))
    save_log_level("warning")

    configure(log_file=tmp_path / "x.log", console=False)
    assert get_configured_level() == "WARNING"

    monkeypatch.setenv("KENNEDY_LOG_LEVEL", "debug")
    configure(log_file=tmp_path / "x.log", console=False)
    assert get_configured_level() == "DEBUG"

    configure(level=logging.ERROR, log_file=tmp_path / "x.log", console=False)
    assert get_configured_level() == "ERROR"


def test_persisted_level(tmp_path):
    config_file = tmp_path / "logging.json"

    assert load_log_level(config_file) is None
    assert save_log_level("warning", config_file) == config_file
    assert load_log_level(config_file) == logging.WARNING

    with pytest.raises(ValueError):
        save_log_level("loud", config_file)


def test_malformed_config_is_ignored(tmp_path):
    config_file = tmp_path / "logging.json"
    config_file.write_text("{not json")
    assert load_log_level(config_file) is None


def test_paths_follow_environment(tmp_path, monkeypatch):
    monkeypatch.delenv("KENNEDY_LOG_FILE", raising=False)
    monkeypatch.delenv("KENNEDY_LOG_CONFIG", raising=False)
    monkeypatch.setenv("KENNEDY_LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.setenv("KENNEDY_CONFIG_DIR", str(tmp_path / "cfg"))

    assert log_file_path() == tmp_path / "logs" / "kennedy.log"
    assert config_path() == tmp_path / "cfg" / "logging.json"

    monkeypatch.setenv("KENNEDY_LOG_FILE", str(tmp_path / "custom.log"))
    assert log_file_path() == tmp_path / "custom.log"
