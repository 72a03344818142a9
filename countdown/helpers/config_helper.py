import configparser
import os
from pathlib import Path
from typing import Any, Callable, Union


class ConfigHelper:
    """Read-only access to ``config/config.ini``.

    The parsed file is cached and re-read when its mtime changes, so edits
    apply without restarting. A missing file leaves every key at its fallback.
    """

    _config = None
    _config_mtime = None
    _config_path: Path = Path("config/config.ini")

    @classmethod
    def load_config(cls, file_path: Union[str, os.PathLike, None] = None) -> configparser.ConfigParser:
        path = Path(file_path) if file_path is not None else cls._config_path
        mtime = os.path.getmtime(path) if path.exists() else None

        if cls._config is None or path != cls._config_path or mtime != cls._config_mtime:
            config = configparser.ConfigParser()
            if mtime is None:
                print(f"Warning: config file '{path}' not found.")
            else:
                config.read(str(path), encoding="utf-8")
            cls._config, cls._config_mtime, cls._config_path = config, mtime, path

        return cls._config

    @classmethod
    def _read(cls, reader: Callable[..., Any], section, key, fallback):
        try:
            return reader(section, key, fallback=fallback)
        except (ValueError, configparser.Error) as e:
            print(f"Config error: [{section}] {key} - {e}")
            return fallback

    @classmethod
    def get(cls, section, key, fallback=None):
        return cls._read(cls.load_config().get, section, key, fallback)

    @classmethod
    def getboolean(cls, section, key, fallback=False):
        return cls._read(cls.load_config().getboolean, section, key, fallback)

    @classmethod
    def get_database_path(cls) -> str:
        """Return the configured SQLite file holding the persisted timers."""
        return (cls.get("Database", "path", fallback="countdown.db") or "countdown.db").strip()

    @classmethod
    def get_storage_key(cls) -> str:
        return (cls.get("Timers", "storage_key", fallback="timers") or "timers").strip()


# Late import to avoid circular dependency with logging_helper
from countdown.helpers.logging_helper import log_module_import

log_module_import(__name__)
