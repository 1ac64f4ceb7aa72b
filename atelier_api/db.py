# atelier_api/db.py
# SQLite persistence layer: connection helper + idempotent schema setup

import sqlite3
from pathlib import Path as FsPath
from typing import Generator

from atelier_api import config


def database_path() -> str:
    """Resolve DATABASE_PATH (relative paths live next to this package)."""
    path = FsPath(config.DATABASE_PATH)
    if not path.is_absolute():
        path = FsPath(__file__).resolve().parent / path
    return str(path)


def connect() -> sqlite3.Connection:
    """
    Open a SQLite connection with Row factory and FK enforcement.

    Foreign keys are per-connection in SQLite, so every connection must
    turn them on for ON DELETE SET NULL / CASCADE to apply.
    """
    conn = sqlite3.connect(database_path(), check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def get_db() -> Generator[sqlite3.Connection, None, None]:
    """FastAPI dependency: one connection per request, always closed."""
    conn = connect()
    try:
        yield conn
    finally:
        conn.close()


def init_db() -> None:
    conn = connect()
    cur = conn.cursor()

    cur.execute(
        """
        CREATE TABLE IF NOT EXISTS offices (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            email TEXT NOT NULL UNIQUE,
            created_at TEXT DEFAULT CURRENT_TIMESTAMP
        )
        """
    )

    cur.execute(
        """
        CREATE TABLE IF NOT EXISTS users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            username TEXT NOT NULL UNIQUE,
            email TEXT NOT NULL,
            role TEXT NOT NULL DEFAULT 'architect'
                CHECK (role IN ('admin', 'architect', 'intern', 'financial', 'marketing')),
            office_id INTEGER REFERENCES offices (id) ON DELETE CASCADE,
            is_active INTEGER NOT NULL DEFAULT 1,
            created_at TEXT DEFAULT CURRENT_TIMESTAMP
        )
        """
    )
    cur.execute("CREATE INDEX IF NOT EXISTS idx_users_office_id ON users(office_id)")

    cur.execute(
        """
        CREATE TABLE IF NOT EXISTS projects (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            office_id INTEGER NOT NULL REFERENCES offices (id) ON DELETE CASCADE,
            name TEXT NOT NULL,
            created_at TEXT DEFAULT CURRENT_TIMESTAMP
        )
        """
    )
    cur.execute("CREATE INDEX IF NOT EXISTS idx_projects_office_id ON projects(office_id)")

    cur.execute(
        """
        CREATE TABLE IF NOT EXISTS task_statuses (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            office_id INTEGER NOT NULL REFERENCES offices (id) ON DELETE CASCADE,
            name TEXT NOT NULL,
            color TEXT,
            status_order INTEGER NOT NULL DEFAULT 0,
            created_at TEXT DEFAULT CURRENT_TIMESTAMP,
            UNIQUE (office_id, name)
        )
        """
    )
    cur.execute("CREATE INDEX IF NOT EXISTS idx_task_statuses_office_order ON task_statuses(office_id, status_order)")

    cur.execute(
        """
        CREATE TABLE IF NOT EXISTS tasks (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            office_id INTEGER NOT NULL REFERENCES offices (id) ON DELETE CASCADE,
            title TEXT NOT NULL,
            description TEXT,
            status_id INTEGER REFERENCES task_statuses (id) ON DELETE SET NULL,
            priority TEXT NOT NULL DEFAULT 'medium' CHECK (priority IN ('low', 'medium', 'high')),
            due_date TEXT,
            assigned_to INTEGER REFERENCES users (id) ON DELETE SET NULL,
            project_id INTEGER REFERENCES projects (id) ON DELETE CASCADE,
            parent_task_id INTEGER REFERENCES tasks (id) ON DELETE CASCADE,
            created_at TEXT DEFAULT CURRENT_TIMESTAMP
        )
        """
    )
    cur.execute("CREATE INDEX IF NOT EXISTS idx_tasks_office_id ON tasks(office_id)")
    cur.execute("CREATE INDEX IF NOT EXISTS idx_tasks_status_id ON tasks(status_id)")
    cur.execute("CREATE INDEX IF NOT EXISTS idx_tasks_parent_task_id ON tasks(parent_task_id)")

    conn.commit()
    conn.close()

    if config.IS_DEV:
        print(f"[DB] Schema ready at {database_path()}")
