"""Application configuration: environment variables plus the settings table.

Environment (loaded from .env by app/main.py via python-dotenv):
    DB_PATH              SQLite file (see db/database.py).
    SECRET_KEY           session cookie signing key.
    LOG_LEVEL            logging level name, default INFO.
    AI_API_URL           chat-completion endpoint, default DeepSeek.
    AI_API_KEY           bearer credential; the settings table value wins.
    AI_MODEL             model name, default deepseek-chat.
    AI_TIMEOUT           request timeout in seconds, default 60.
    UNSCALED_QUALIFIERS  comma-separated amount qualifiers that never scale.

Known settings table keys:
    ai_api_key  API key for recipe drafts (stored as-is, never logged).
"""

import os
from typing import Optional

from weekly_menu.db.database import get_connection

DEFAULT_AI_API_URL = "https://api.deepseek.com/chat/completions"
DEFAULT_AI_MODEL = "deepseek-chat"
DEFAULT_AI_TIMEOUT = 60.0


def get_setting(key: str, default: str = None) -> str:
    """Return the value for a settings key, or default if not found."""
    conn = get_connection()
    try:
        row = conn.execute("SELECT value FROM settings WHERE key = ?", (key,)).fetchone()
        return row["value"] if row else default
    finally:
        conn.close()


def set_setting(key: str, value: str) -> None:
    """Insert or update a settings key-value pair (upsert)."""
    conn = get_connection()
    try:
        conn.execute(
            "INSERT INTO settings (key, value) VALUES (?, ?) ON CONFLICT(key) DO UPDATE SET value=excluded.value",
            (key, value),
        )
        conn.commit()
    finally:
        conn.close()


def ai_api_key() -> Optional[str]:
    """Key saved on the Settings page, falling back to AI_API_KEY."""
    return get_setting("ai_api_key") or os.environ.get("AI_API_KEY") or None


def ai_api_url() -> str:
    return os.environ.get("AI_API_URL") or DEFAULT_AI_API_URL


def ai_model() -> str:
    return os.environ.get("AI_MODEL") or DEFAULT_AI_MODEL


def ai_timeout() -> float:
    try:
        return float(os.environ.get("AI_TIMEOUT", DEFAULT_AI_TIMEOUT))
    except ValueError:
        return DEFAULT_AI_TIMEOUT


def unscaled_qualifiers() -> Optional[tuple[str, ...]]:
    """Qualifiers from UNSCALED_QUALIFIERS, or None to use the built-in set."""
    raw = os.environ.get("UNSCALED_QUALIFIERS", "")
    parts = tuple(p.strip() for p in raw.split(",") if p.strip())
    return parts or None
