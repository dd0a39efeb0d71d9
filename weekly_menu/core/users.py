"""User accounts: sign up, password check, lookup.

Passwords are stored as bcrypt hashes; the plain password never touches the
database.
"""

import sqlite3
from typing import Optional

import bcrypt

from weekly_menu.db.database import get_connection
from weekly_menu.db.models import User

MIN_PASSWORD_LENGTH = 6


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))


def create(username: str, password: str) -> int:
    """Create a user and return its ID.

    Raises ValueError for an empty username, a short password, or a taken
    username.
    """
    username = (username or "").strip()
    if not username:
        raise ValueError("Username is required")
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    conn = get_connection()
    try:
        cursor = conn.execute(
            "INSERT INTO users (username, password_hash) VALUES (?, ?)",
            (username, hash_password(password)),
        )
        conn.commit()
        return cursor.lastrowid
    except sqlite3.IntegrityError:
        raise ValueError("Username is already taken")
    finally:
        conn.close()


def get(user_id: int) -> Optional[User]:
    """Return a user by ID, or None if not found."""
    conn = get_connection()
    try:
        row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
        return User(**dict(row)) if row else None
    finally:
        conn.close()


def authenticate(username: str, password: str) -> Optional[User]:
    """Return the user when the credentials match, else None."""
    conn = get_connection()
    try:
        row = conn.execute(
            "SELECT * FROM users WHERE username = ?", ((username or "").strip(),)
        ).fetchone()
    finally:
        conn.close()
    if row is None or not password:
        return None
    user = User(**dict(row))
    return user if verify_password(password, user.password_hash) else None
