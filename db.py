"""
db.py
SQLite helpers + initialization (creates DB/tables, inserts default users, security codes, etc.)
"""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime

import config

logger = logging.getLogger(__name__)

DB_FILE = config.DB_PATH


@contextmanager
def get_conn():
    conn = sqlite3.connect(DB_FILE, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    # cascades (event -> dues/transactions) need this on every connection
    conn.execute("PRAGMA foreign_keys = ON")
    try:
        yield conn
        conn.commit()
    finally:
        conn.close()


def execute(sql: str, params: tuple = ()) -> int:
    with get_conn() as conn:
        cur = conn.execute(sql, params)
        return cur.lastrowid


def execute_rowcount(sql: str, params: tuple = ()) -> int:
    with get_conn() as conn:
        cur = conn.execute(sql, params)
        return cur.rowcount


def executemany(sql: str, seq_of_params: list[tuple]) -> None:
    with get_conn() as conn:
        conn.executemany(sql, seq_of_params)


def fetch_one(sql: str, params: tuple = ()):
    with get_conn() as conn:
        cur = conn.execute(sql, params)
        return cur.fetchone()


def fetch_all(sql: str, params: tuple = ()) -> list[sqlite3.Row]:
    with get_conn() as conn:
        cur = conn.execute(sql, params)
        return cur.fetchall()


def _create_tables() -> None:
    execute(
        """
        CREATE TABLE IF NOT EXISTS users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            username TEXT NOT NULL UNIQUE,
            password_hash TEXT NOT NULL,
            role TEXT NOT NULL CHECK(role IN ('admin','user')),
            created_at TEXT NOT NULL
        )
        """
    )

    execute(
        """
        CREATE TABLE IF NOT EXISTS commissions (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            description TEXT
        )
        """
    )

    execute(
        """
        CREATE TABLE IF NOT EXISTS members (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            first_name TEXT NOT NULL,
            last_name TEXT NOT NULL,
            gender TEXT NOT NULL CHECK(gender IN ('Male','Female')),
            age INTEGER NOT NULL CHECK(age >= 0),
            phone TEXT NOT NULL DEFAULT '',
            address TEXT NOT NULL DEFAULT '',
            function TEXT NOT NULL DEFAULT '',
            position TEXT NOT NULL DEFAULT '',
            commission_id INTEGER,
            commission_role TEXT CHECK(commission_role IN ('president','vice-president','member')),
            created_at TEXT NOT NULL,
            FOREIGN KEY(commission_id) REFERENCES commissions(id) ON DELETE SET NULL
        )
        """
    )

    execute(
        """
        CREATE TABLE IF NOT EXISTS events (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            date TEXT NOT NULL,
            cotisation_homme REAL NOT NULL DEFAULT 0 CHECK(cotisation_homme >= 0),
            cotisation_femme REAL NOT NULL DEFAULT 0 CHECK(cotisation_femme >= 0),
            status TEXT NOT NULL CHECK(status IN ('upcoming','ongoing','completed')),
            description TEXT
        )
        """
    )

    # member_id carries no FK: dues history survives member deletion
    execute(
        """
        CREATE TABLE IF NOT EXISTS cotisations (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            member_id INTEGER NOT NULL,
            event_id INTEGER NOT NULL,
            amount REAL NOT NULL,
            paid_amount REAL NOT NULL DEFAULT 0,
            is_paid INTEGER NOT NULL DEFAULT 0,
            paid_at TEXT,
            UNIQUE(member_id, event_id),
            FOREIGN KEY(event_id) REFERENCES events(id) ON DELETE CASCADE
        )
        """
    )

    execute(
        """
        CREATE TABLE IF NOT EXISTS transactions (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            event_id INTEGER NOT NULL,
            type TEXT NOT NULL CHECK(type IN ('income','expense')),
            category TEXT NOT NULL,
            amount REAL NOT NULL,
            description TEXT NOT NULL DEFAULT '',
            date TEXT NOT NULL,
            FOREIGN KEY(event_id) REFERENCES events(id) ON DELETE CASCADE
        )
        """
    )

    execute(
        """
        CREATE TABLE IF NOT EXISTS report_history (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            type TEXT NOT NULL CHECK(type IN ('event','annual')),
            name TEXT NOT NULL,
            event_id INTEGER,
            year TEXT,
            created_at TEXT NOT NULL
        )
        """
    )

    # Key/value settings (force password change, security codes)
    execute(
        """
        CREATE TABLE IF NOT EXISTS app_settings (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL
        )
        """
    )


def get_setting(key: str, default: str | None = None) -> str | None:
    row = fetch_one("SELECT value FROM app_settings WHERE key = ?", (key,))
    if row:
        return str(row["value"])
    return default


def set_setting(key: str, value: str) -> None:
    execute(
        """
        INSERT INTO app_settings(key, value) VALUES(?, ?)
        ON CONFLICT(key) DO UPDATE SET value=excluded.value
        """,
        (key, value),
    )


def init_db(default_admin_hash: str, default_user_hash: str) -> None:
    """
    Initialize the database.
    - Create tables
    - Insert default users (admin/admin123, user/user123) if no user exists
    - Force password change on first admin login
    - Seed security codes from configuration
    """
    _create_tables()

    user = fetch_one("SELECT id FROM users LIMIT 1")
    if not user:
        now = datetime.now().isoformat(timespec="seconds")
        executemany(
            "INSERT INTO users(username, password_hash, role, created_at) VALUES(?,?,?,?)",
            [
                ("admin", default_admin_hash, "admin", now),
                ("user", default_user_hash, "user", now),
            ],
        )
        set_setting("force_password_change", "1")
        logger.info("Database initialized at %s with default users", DB_FILE)
    else:
        # ensure setting exists
        if get_setting("force_password_change") is None:
            set_setting("force_password_change", "0")

    if get_setting("archive_code") is None:
        set_setting("archive_code", config.DEFAULT_ARCHIVE_CODE)
    if get_setting("reset_code") is None:
        set_setting("reset_code", config.DEFAULT_RESET_CODE)


def is_force_password_change() -> bool:
    return get_setting("force_password_change") == "1"


def clear_force_password_change() -> None:
    set_setting("force_password_change", "0")


def get_security_codes() -> dict[str, str]:
    return {
        "archive_code": get_setting("archive_code", config.DEFAULT_ARCHIVE_CODE),
        "reset_code": get_setting("reset_code", config.DEFAULT_RESET_CODE),
    }


def update_security_codes(archive_code: str | None = None, reset_code: str | None = None) -> None:
    if archive_code is not None:
        set_setting("archive_code", archive_code)
    if reset_code is not None:
        set_setting("reset_code", reset_code)
    logger.info("Security codes updated")
