"""Device registry stored in SQLite, with schema migrations."""

from __future__ import annotations

import logging
import os
import sqlite3
from typing import Union

log = logging.getLogger(__name__)

PathLike = Union[str, "os.PathLike[str]"]

_MIGRATIONS: tuple[str, ...] = (
    """
    CREATE TABLE devices (
        uuid TEXT PRIMARY KEY NOT NULL,
        last_seen_at TIMESTAMP
    );
    """,
)

LATEST_VERSION = len(_MIGRATIONS)


def open_database(path: PathLike) -> sqlite3.Connection:
    """Open the database at ``path`` and bring its schema up to date."""
    conn = sqlite3.connect(
        os.fspath(path), isolation_level=None, check_same_thread=False
    )
    try:
        _perform_migrations(conn, _current_migration(conn))
    except BaseException:
        conn.close()
        raise
    return conn


def _current_migration(conn: sqlite3.Connection) -> int:
    log.debug("Checking for migrations")
    exists = conn.execute(
        "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = 'migrations'"
    ).fetchone()
    if exists:
        row = conn.execute("SELECT version FROM migrations").fetchone()
        if row is None:
            raise sqlite3.DatabaseError("migrations table holds no version")
        return int(row[0])
    conn.executescript(
        "CREATE TABLE migrations (version INTEGER);"
        "INSERT INTO migrations (version) VALUES (0);"
    )
    return 0


def _perform_migrations(conn: sqlite3.Connection, current_version: int) -> None:
    for version in range(current_version + 1, LATEST_VERSION + 1):
        _perform_migration(conn, version)


def _perform_migration(conn: sqlite3.Connection, version: int) -> None:
    try:
        conn.executescript(_MIGRATIONS[version - 1])
    except sqlite3.Error as exc:
        log.error("Couldn't update database. %s", exc)
        raise
    conn.execute("UPDATE migrations SET version = ?", (version,))


def is_device_known(conn: sqlite3.Connection, uuid: str) -> bool:
    """Return whether a device with ``uuid`` has been registered."""
    row = conn.execute("SELECT 1 FROM devices WHERE uuid = ?", (uuid,)).fetchone()
    return row is not None


def register_device(conn: sqlite3.Connection, uuid: str) -> None:
    """Record the device, creating it if needed, and stamp when it was seen."""
    conn.execute("INSERT OR IGNORE INTO devices (uuid) VALUES (?)", (uuid,))
    conn.execute(
        "UPDATE devices SET last_seen_at = CURRENT_TIMESTAMP WHERE uuid = ?",
        (uuid,),
    )