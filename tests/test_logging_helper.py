import pytest

from countdown.helpers import logging_helper
from countdown.helpers.config_helper import ConfigHelper


def _forget_settings() -> None:
    for handler in list(logging_helper._logger.handlers):
        logging_helper._logger.removeHandler(handler)
        handler.close()
    logging_helper._settings = None


def _fake_logging_config(monkeypatch, enabled, settings=None):
    settings = settings or {}
    original_get = ConfigHelper.get

    def fake_get(cls, section, key, fallback=None):
        if (section, key) in settings:
            return settings[(section, key)]
        return original_get(section, key, fallback=fallback)

    def fake_getboolean(cls, section, key, fallback=False):
        if (section, key) == ("Logging", "enabled"):
            return enabled
        return fallback

    monkeypatch.setattr(ConfigHelper, "get", classmethod(fake_get))
    monkeypatch.setattr(ConfigHelper, "getboolean", classmethod(fake_getboolean))


@pytest.fixture
def log_file(monkeypatch, tmp_path):
    _fake_logging_config(
        monkeypatch,
        True,
        {
            ("Logging", "directory"): str(tmp_path / "logs"),
            ("Logging", "filename"): "countdown-test.log",
            ("Logging", "level"): "DEBUG",
        },
    )
    _forget_settings()
    try:
        yield tmp_path / "logs" / "countdown-test.log"
    finally:
        _forget_settings()


def _read(log_file) -> str:
    for handler in logging_helper._logger.handlers:
        handler.flush()
    return log_file.read_text(encoding="utf-8")


def test_lines_name_the_calling_function(log_file):
    logging_helper.log_info("timer added")
    logging_helper.log_warning("entry skipped")

    content = _read(log_file)
    assert "| INFO | test_logging_helper.test_lines_name_the_calling_function - timer added" in content
    assert "| WARNING | test_logging_helper.test_lines_name_the_calling_function - entry skipped" in content


def test_log_exception_accepts_captured_exception(log_file):
    logging_helper.log_exception("write failed", exc_info=OSError("disk full"))

    content = _read(log_file)
    assert "| ERROR |" in content
    assert "write failed" in content
    assert "OSError: disk full" in content


def test_log_function_logs_failures_and_reraises(log_file):
    @logging_helper.log_function
    def explode():
        raise ValueError("boom")

    with pytest.raises(ValueError):
        explode()

    content = _read(log_file)
    assert "explode started" in content
    assert "explode failed: boom" in content


def test_level_filters_debug_lines(monkeypatch, tmp_path):
    _fake_logging_config(
        monkeypatch,
        True,
        {("Logging", "directory"): str(tmp_path), ("Logging", "level"): "WARNING"},
    )
    _forget_settings()
    try:
        logging_helper.log_debug("quiet")
        logging_helper.log_warning("loud")

        content = _read(tmp_path / "countdown.log")
        assert "loud" in content
        assert "quiet" not in content
    finally:
        _forget_settings()


def test_disabled_logging_writes_nothing(monkeypatch, tmp_path):
    _fake_logging_config(monkeypatch, False, {("Logging", "directory"): str(tmp_path)})
    _forget_settings()
    try:
        logging_helper.log_warning("nobody hears this")

        assert not (tmp_path / "countdown.log").exists()
        assert logging_helper._active_logger() is None
    finally:
        _forget_settings()
