"""Database connection helpers, schema and the repository error types."""

from __future__ import annotations

import logging
import os
import sqlite3
import time
from typing import Callable, Mapping, Optional, TypeVar, Union

log = logging.getLogger(__name__)

T = TypeVar("T")


class RepositoryError(Exception):
    """A storage operation failed."""


class NotFoundError(RepositoryError):
    """The requested record or object does not exist."""


SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    password TEXT NOT NULL,
    role TEXT NOT NULL CHECK (role IN ('admin', 'investigator', 'officer', 'auditor')),
    clearance_level TEXT NOT NULL CHECK (clearance_level IN ('low', 'medium', 'high', 'critical')),
    deleted INTEGER NOT NULL DEFAULT 0
);

CREATE TABLE IF NOT EXISTS cases (
    case_number TEXT PRIMARY KEY,
    case_name TEXT NOT NULL,
    description TEXT NOT NULL DEFAULT '',
    area TEXT NOT NULL DEFAULT '',
    city TEXT NOT NULL DEFAULT '',
    created_by TEXT NOT NULL,
    created_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%d %H:%M:%S', 'now')),
    case_type TEXT NOT NULL DEFAULT '',
    level TEXT NOT NULL CHECK (level IN ('low', 'medium', 'high', 'critical')),
    status TEXT NOT NULL DEFAULT 'pending' CHECK (status IN ('pending', 'ongoing', 'closed'))
);

CREATE TABLE IF NOT EXISTS case_assignees (
    case_number TEXT NOT NULL REFERENCES cases (case_number),
    user_id TEXT NOT NULL REFERENCES users (id),
    PRIMARY KEY (case_number, user_id)
);

CREATE TABLE IF NOT EXISTS persons (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    case_number TEXT NOT NULL REFERENCES cases (case_number),
    type TEXT NOT NULL CHECK (type IN ('victim', 'suspect', 'witness')),
    name TEXT NOT NULL,
    age INTEGER NOT NULL DEFAULT 0,
    gender TEXT NOT NULL DEFAULT '',
    role TEXT NOT NULL DEFAULT ''
);

CREATE TABLE IF NOT EXISTS reports (
    report_id INTEGER PRIMARY KEY AUTOINCREMENT,
    email TEXT NOT NULL,
    civil_id TEXT NOT NULL,
    name TEXT NOT NULL,
    role TEXT NOT NULL DEFAULT '',
    case_number TEXT REFERENCES cases (case_number),
    description TEXT NOT NULL DEFAULT '',
    area TEXT NOT NULL DEFAULT '',
    city TEXT NOT NULL DEFAULT ''
);

CREATE TABLE IF NOT EXISTS evidence (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    case_number TEXT NOT NULL REFERENCES cases (case_number),
    officer_id TEXT NOT NULL,
    type TEXT NOT NULL CHECK (type IN ('text', 'image')),
    content TEXT NOT NULL,
    size TEXT NOT NULL DEFAULT '',
    remarks TEXT NOT NULL DEFAULT '',
    deleted INTEGER NOT NULL DEFAULT 0
);

CREATE TABLE IF NOT EXISTS audit_logs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    action TEXT NOT NULL,
    evidence_id INTEGER NOT NULL,
    user_id TEXT NOT NULL,
    timestamp TEXT NOT NULL DEFAULT (strftime('%Y-%m-%d %H:%M:%f', 'now'))
);
"""


def build_dsn(environ: Optional[Mapping[str, str]] = None) -> str:
    """Build a postgres-style connection string from DB_* settings."""
    env = os.environ if environ is None else environ
    return "postgres://{}:{}@{}:{}/{}".format(
        env.get("DB_USER", ""),
        env.get("DB_PASSWORD", ""),
        env.get("DB_HOST", ""),
        env.get("DB_PORT", ""),
        env.get("DB_NAME", ""),
    )


def connect_with_retry(
    connect: Callable[[str], T],
    dsn: str,
    attempts: int = 10,
    delay: float = 2.0,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Call connect(dsn) until it succeeds, waiting between failed attempts."""
    last_error: Optional[Exception] = None
    for _ in range(attempts):
        try:
            connection = connect(dsn)
        except Exception as exc:  # any driver failure counts as a failed attempt
            last_error = exc
            sleep(delay)
            continue
        log.info("Connection to the DB was successful.")
        return connection
    raise RepositoryError(f"Attempted to connect - but failed: {last_error}") from last_error


def open_database(path: Union[str, os.PathLike] = ":memory:") -> sqlite3.Connection:
    """Open a SQLite database, enable foreign keys and create the schema."""
    connection = sqlite3.connect(os.fspath(path), check_same_thread=False)
    connection.row_factory = sqlite3.Row
    connection.execute("PRAGMA foreign_keys = ON")
    connection.executescript(SCHEMA)
    connection.commit()
    return connection