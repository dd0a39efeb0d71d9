import os
from typing import Optional

from fastapi import HTTPException, Request
from itsdangerous import BadSignature, URLSafeTimedSerializer

SESSION_COOKIE = "wm_session"
SESSION_MAX_AGE = 60 * 60 * 24 * 7  # 7 days


def _get_signer() -> URLSafeTimedSerializer:
    key = os.environ.get("SECRET_KEY", "dev-secret-change-in-production")
    return URLSafeTimedSerializer(key, salt="weekly-menu-session")


def create_session_token(user_id: int) -> str:
    return _get_signer().dumps({"uid": user_id})


def verify_session_token(token: str) -> Optional[int]:
    """Return the user ID carried by a valid, unexpired token, else None."""
    try:
        data = _get_signer().loads(token, max_age=SESSION_MAX_AGE)
    except BadSignature:
        return None
    uid = data.get("uid") if isinstance(data, dict) else None
    return uid if isinstance(uid, int) else None


def current_user_id(request: Request) -> Optional[int]:
    """The logged-in user's ID, set on request.state by the auth middleware."""
    return getattr(request.state, "user_id", None)


# Paths that don't require auth
_PUBLIC_PREFIXES = ("/login", "/signup", "/static")


def is_public(path: str) -> bool:
    return any(path.startswith(p) for p in _PUBLIC_PREFIXES)


def require_user(request: Request) -> int:
    """Dependency for routes that act on the current user's data."""
    user_id = current_user_id(request)
    if user_id is None:
        raise HTTPException(status_code=401)
    return user_id
