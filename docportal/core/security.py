"""
core/security.py
----------------
Password hashing and session-cookie signing.

Design decisions:
  - bcrypt via passlib; the cost factor comes from settings (10 matches the
    hashes already stored by existing deployments, tests drop it to 4).
  - The session cookie carries only an opaque session id wrapped in a
    signed JWT (sid + exp). Claims stay server-side in the SessionStore, so
    a stolen secret key alone cannot mint an admin session.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from docportal.core.config import Settings


# ── Password Utilities ────────────────────────────────────────────────────────

class PasswordHasher:
    """One-way adaptive hash with a fresh random salt per call."""

    def __init__(self, rounds: int = 10) -> None:
        self._context = CryptContext(
            schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds
        )

    def hash(self, plain: str) -> str:
        """Return a bcrypt hash of the plain-text password."""
        return self._context.hash(plain)

    def verify(self, plain: str, hashed: str) -> bool:
        """
        Constant-time comparison of plain password against stored hash.
        A malformed stored hash counts as a mismatch.
        """
        try:
            return self._context.verify(plain, hashed)
        except (ValueError, TypeError):
            return False


# ── Session cookie ────────────────────────────────────────────────────────────

def sign_session_id(
    session_id: str,
    settings: Settings,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Wrap an opaque session id in a signed, expiring token for the cookie.

    Args:
        session_id: Key into the SessionStore.
        settings: Supplies SECRET_KEY, ALGORITHM and the default lifetime.
        expires_delta: Optional custom expiry.

    Returns:
        Signed JWT string.
    """
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(seconds=settings.SESSION_TTL_SECONDS))
    payload: Dict[str, Any] = {"sid": session_id, "exp": expire, "iat": now}
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def read_session_id(cookie_value: str, settings: Settings) -> Optional[str]:
    """Return the session id from a cookie, or None if it is invalid or expired."""
    try:
        payload = jwt.decode(
            cookie_value, settings.SECRET_KEY, algorithms=[settings.ALGORITHM]
        )
    except JWTError:
        return None
    sid = payload.get("sid")
    return sid if isinstance(sid, str) and sid else None
