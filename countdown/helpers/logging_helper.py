"""File logging for the timer store, switched by the ``[Logging]`` config.

Every line names the function that logged it, e.g.
``2025-01-01 12:00:00 | WARNING | store.load - Skipping persisted timer #1``.
The handler is rebuilt whenever the ``[Logging]`` settings change on disk.
"""

import logging
import os
from functools import wraps
from typing import Any, Callable, NamedTuple, Optional, TypeVar, cast


F = TypeVar("F", bound=Callable[..., Any])

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(module)s.%(funcName)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_logger = logging.getLogger("Countdown")
_logger.propagate = False
_settings: Optional["LogSettings"] = None


class LogSettings(NamedTuple):
    enabled: bool
    path: str
    level: int


def _read_settings() -> LogSettings:
    # config_helper logs its own import through this module
    from countdown.helpers.config_helper import ConfigHelper

    directory = ConfigHelper.get("Logging", "directory", fallback="logs") or "logs"
    filename = ConfigHelper.get("Logging", "filename", fallback="countdown.log") or "countdown.log"
    level_name = ConfigHelper.get("Logging", "level", fallback="INFO") or "INFO"
    if not os.path.isabs(directory):
        directory = os.path.join(PROJECT_ROOT, directory)
    return LogSettings(
        enabled=ConfigHelper.getboolean("Logging", "enabled", fallback=False),
        path=filename if os.path.isabs(filename) else os.path.join(directory, filename),
        level=getattr(logging, str(level_name).upper(), logging.INFO),
    )


def _apply(settings: LogSettings) -> None:
    for handler in list(_logger.handlers):
        _logger.removeHandler(handler)
        handler.close()

    if not settings.enabled:
        _logger.addHandler(logging.NullHandler())
        _logger.setLevel(logging.CRITICAL)
        return

    os.makedirs(os.path.dirname(settings.path), exist_ok=True)
    handler = logging.FileHandler(settings.path, encoding="utf-8")
    handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    _logger.addHandler(handler)
    _logger.setLevel(settings.level)


def _active_logger() -> Optional[logging.Logger]:
    """Return the configured logger, or None while logging is disabled."""
    global _settings
    settings = _read_settings()
    if settings != _settings:
        _apply(settings)
        _settings = settings
    return _logger if settings.enabled else None


def _log(level: int, message: str, exc_info: Any = None) -> None:
    logger = _active_logger()
    if logger is not None:
        # stacklevel 3 attributes the line to whoever called log_info & co.
        logger.log(level, message, exc_info=exc_info, stacklevel=3)


def log_debug(message: str) -> None:
    _log(logging.DEBUG, message)


def log_info(message: str) -> None:
    _log(logging.INFO, message)


def log_warning(message: str) -> None:
    _log(logging.WARNING, message)


def log_exception(message: str, exc_info: Any = True) -> None:
    """Log ``message`` at ERROR level with a traceback.

    ``exc_info`` defaults to the exception being handled; pass an exception
    instance to log one captured elsewhere (e.g. from a finished future).
    """
    _log(logging.ERROR, message, exc_info=exc_info)


def log_module_import(module_name: str) -> None:
    _log(logging.DEBUG, f"{module_name} imported")


def log_function(func: F) -> F:
    """Log when ``func`` starts and finishes, and any exception it raises."""
    name = func.__qualname__

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        if _active_logger() is None:
            return func(*args, **kwargs)

        _log(logging.INFO, f"{name} started")
        try:
            result = func(*args, **kwargs)
        except Exception as exc:
            _log(logging.ERROR, f"{name} failed: {exc}", exc_info=True)
            raise
        _log(logging.DEBUG, f"{name} completed")
        return result

    return cast(F, wrapper)


__all__ = [
    "log_debug",
    "log_exception",
    "log_function",
    "log_info",
    "log_module_import",
    "log_warning",
]
