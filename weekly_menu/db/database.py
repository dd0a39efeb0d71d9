"""SQLite database connection management and schema initialization.

Provides a single-file database at ~/.weekly_menu/weekly_menu.db.
Every public function that needs a connection should call get_connection(),
use it, and close it in a finally block.
"""

import os
import sqlite3
from pathlib import Path


def get_db_path() -> Path:
    """Return the active DB path.

    Priority order:
    1. DB_PATH environment variable (used by Docker / local dev / tests)
    2. Default ~/.weekly_menu/weekly_menu.db
    """
    env_url = os.environ.get("DB_PATH")
    if env_url:
        p = Path(env_url)
        p.parent.mkdir(parents=True, exist_ok=True)
        return p
    db_dir = Path.home() / ".weekly_menu"
    db_dir.mkdir(exist_ok=True)
    return db_dir / "weekly_menu.db"


def get_connection(db_path: Path = None) -> sqlite3.Connection:
    """Return a new SQLite connection with Row factory and foreign keys enabled.

    Callers are responsible for closing the connection when done.
    """
    if db_path is None:
        db_path = get_db_path()
    conn = sqlite3.connect(str(db_path))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def init_db(db_path: Path = None) -> None:
    """Create all tables if they don't already exist.

    Called once at application startup from app/main.py.
    Tables: users, recipes, meal_plans, cached_recipes, settings.
    """
    conn = get_connection(db_path)
    try:
        conn.executescript("""
            CREATE TABLE IF NOT EXISTS users (
                id            INTEGER PRIMARY KEY AUTOINCREMENT,
                username      TEXT NOT NULL UNIQUE,
                password_hash TEXT NOT NULL,
                created_at    TEXT DEFAULT CURRENT_TIMESTAMP
            );

            CREATE TABLE IF NOT EXISTS recipes (
                id          INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id     INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
                name        TEXT NOT NULL,
                category    TEXT NOT NULL,
                description TEXT,
                ingredients TEXT NOT NULL DEFAULT '[]',
                steps       TEXT NOT NULL DEFAULT '[]',
                servings    INTEGER NOT NULL DEFAULT 2 CHECK (servings >= 1),
                created_at  TEXT DEFAULT CURRENT_TIMESTAMP,
                updated_at  TEXT DEFAULT CURRENT_TIMESTAMP
            );

            CREATE TABLE IF NOT EXISTS meal_plans (
                id          INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id     INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
                recipe_id   INTEGER NOT NULL REFERENCES recipes(id) ON DELETE CASCADE,
                day_of_week INTEGER NOT NULL CHECK (day_of_week BETWEEN 0 AND 6),
                meal_type   TEXT NOT NULL,
                week_start  TEXT NOT NULL,
                created_at  TEXT DEFAULT CURRENT_TIMESTAMP,
                UNIQUE (user_id, week_start, day_of_week, meal_type)
            );

            CREATE TABLE IF NOT EXISTS cached_recipes (
                id            INTEGER PRIMARY KEY AUTOINCREMENT,
                dish_name     TEXT NOT NULL UNIQUE,
                title         TEXT NOT NULL,
                description   TEXT,
                ingredients   TEXT NOT NULL DEFAULT '[]',
                steps         TEXT NOT NULL DEFAULT '[]',
                base_servings INTEGER NOT NULL DEFAULT 2,
                created_by    INTEGER REFERENCES users(id) ON DELETE SET NULL,
                created_at    TEXT DEFAULT CURRENT_TIMESTAMP
            );

            CREATE TABLE IF NOT EXISTS settings (
                key   TEXT PRIMARY KEY,
                value TEXT
            );

            CREATE INDEX IF NOT EXISTS idx_recipes_user ON recipes(user_id);
            CREATE INDEX IF NOT EXISTS idx_meal_plans_week ON meal_plans(user_id, week_start);
        """)
        conn.commit()
    finally:
        conn.close()
