# db.py
import os
import sqlite3
from typing import Union

from countdown.helpers.config_helper import ConfigHelper
from countdown.helpers.logging_helper import log_module_import

log_module_import(__name__)

BUSY_TIMEOUT_MS = 5000


def resolve_db_path(db_path: Union[str, os.PathLike, None] = None) -> str:
    """Return an absolute path for ``db_path`` or the configured database."""
    raw_db_path = str(db_path) if db_path is not None else ConfigHelper.get_database_path()
    return os.path.abspath(os.path.normpath(os.path.expanduser(raw_db_path)))


def get_connection(db_path: Union[str, os.PathLike, None] = None) -> sqlite3.Connection:
    path = resolve_db_path(db_path)
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    conn = sqlite3.connect(path)
    conn.execute(f"PRAGMA busy_timeout = {BUSY_TIMEOUT_MS}")
    return conn
