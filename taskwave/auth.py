from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import bcrypt
from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt

from .config import settings
from .exceptions import AuthError
from .models import TokenClaims

# Bearer token from the Authorization header; missing tokens are reported by
# verify_token so the error envelope stays consistent.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/login", auto_error=False)


# --- Password helpers (bcrypt, no passlib) ---

def hash_password(password: str) -> str:
    """Return a salted bcrypt hash for the given plain password."""
    if not isinstance(password, str):
        raise TypeError("password must be a string")
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain_password: str, password_hash: str) -> bool:
    """Verify a plain password against its bcrypt hash."""
    try:
        return bcrypt.checkpw(
            plain_password.encode("utf-8"),
            password_hash.encode("utf-8"),
        )
    except (TypeError, ValueError, AttributeError):
        return False


# --- JWT helpers ---

def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def get_access_token_ttl_minutes() -> int:
    """
    Return access token TTL in minutes, parsed safely from settings.
    Falls back to 7 days if env contains an invalid value.
    """
    try:
        return int(settings.JWT_EXPIRE_MIN)
    except (TypeError, ValueError):
        return 60 * 24 * 7


def create_access_token(user: Dict[str, Any]) -> str:
    """
    Create a signed JWT for a user record or public projection.
    - Claims: sub/id, username, email and exp.
    - The token is not revoked by logout or password change; it simply
      expires after the TTL.
    """
    minutes = get_access_token_ttl_minutes()
    payload: Dict[str, Any] = {
        "sub": str(user["id"]),
        "id": str(user["id"]),
        "username": user["username"],
        "email": user["email"],
        "exp": _now_utc() + timedelta(minutes=minutes),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def verify_token(token: str | None) -> TokenClaims:
    """Decode a bearer token and return its claims without touching storage."""
    if not token:
        raise AuthError("Access token required", status_code=401)
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
        payload.setdefault("id", payload.get("sub"))
        return TokenClaims.model_validate(payload)
    except (JWTError, ValueError) as exc:
        raise AuthError("Invalid or expired token", status_code=403) from exc


def get_current_claims(token: str | None = Depends(oauth2_scheme)) -> TokenClaims:
    """FastAPI dependency: verified claims of the caller."""
    return verify_token(token)
