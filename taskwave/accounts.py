# PURPOSE: register, login and current-user lookups over the users collection.

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

from .auth import create_access_token, hash_password, verify_password
from .exceptions import AuthError, ConflictError, NotFoundError, ValidationError
from .models import TokenClaims, UserPublic
from .store import CollectionStore

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


def now_iso() -> str:
    """UTC timestamp in the persisted format, e.g. 2025-01-31T09:15:00.123Z."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def new_id() -> str:
    return uuid.uuid4().hex


def to_public(user: Dict[str, Any]) -> UserPublic:
    """Public projection of a stored user; never includes the hash."""
    return UserPublic(id=user["id"], username=user["username"], email=user["email"])


def find_user(store: CollectionStore, *, user_id: Optional[str] = None, email: Optional[str] = None):
    """Return the first user matching id or email, or None."""
    for user in store.load():
        if user_id is not None and user.get("id") == user_id:
            return user
        if email is not None and user.get("email") == email:
            return user
    return None


def register(
    store: CollectionStore, username: Optional[str], email: Optional[str], password: Optional[str]
) -> Tuple[str, UserPublic]:
    """Create a user and return (token, public user)."""
    if not (username and username.strip()) or not (email and email.strip()) or not password:
        raise ValidationError("All fields are required")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

    # Hash outside the store lock; bcrypt is the slow part.
    password_hash = hash_password(password)

    with store.mutate() as users:
        if any(u.get("email") == email for u in users):
            raise ConflictError("User with this email already exists")
        if any(u.get("username") == username for u in users):
            raise ConflictError("Username already taken")
        user = {
            "id": new_id(),
            "username": username,
            "email": email,
            "password": password_hash,
            "createdAt": now_iso(),
        }
        users.append(user)

    logger.info("user registered id=%s username=%s", user["id"], username)
    return create_access_token(user), to_public(user)


def login(store: CollectionStore, email: Optional[str], password: Optional[str]) -> Tuple[str, UserPublic]:
    """Check credentials and return (token, public user).

    Unknown email and wrong password fail with the same message.
    """
    if not email or not password:
        raise ValidationError("Email and password are required")

    user = find_user(store, email=email)
    if user is None or not verify_password(password, user.get("password", "")):
        logger.info("login failed email=%s", email)
        raise AuthError("Invalid email or password", status_code=401)

    logger.info("login ok id=%s", user["id"])
    return create_access_token(user), to_public(user)


def current_user(store: CollectionStore, claims: TokenClaims) -> UserPublic:
    """Re-read the caller's record; the token alone does not prove it still exists."""
    user = find_user(store, user_id=claims.id)
    if user is None:
        raise NotFoundError("User not found")
    return to_public(user)
