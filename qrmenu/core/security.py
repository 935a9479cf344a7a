"""
Password hashing and signed tokens.

Access tokens and sign-up confirmation tokens are HS256 JWTs signed with
SECRET_KEY. The `purpose` claim keeps one kind from being accepted as the
other.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt

from qrmenu.core.config import get_settings

ALGORITHM = "HS256"
ACCESS_PURPOSE = "access"
CONFIRM_PURPOSE = "confirm"


def get_password_hash(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def create_token(
    subject: str,
    purpose: str,
    expires_delta: timedelta,
    extra: Optional[dict] = None,
) -> str:
    """Sign a token for `subject` (an owner id) valid for `expires_delta`."""
    now = datetime.now(timezone.utc)
    payload = {
        "sub": subject,
        "purpose": purpose,
        "iat": now,
        "exp": now + expires_delta,
        **(extra or {}),
    }
    return jwt.encode(payload, get_settings().secret_key, algorithm=ALGORITHM)


def create_access_token(owner_id: str) -> str:
    settings = get_settings()
    return create_token(
        owner_id,
        ACCESS_PURPOSE,
        timedelta(minutes=settings.access_token_expire_minutes),
    )


def decode_token(token: str, purpose: str) -> Optional[str]:
    """
    Verify a token and return its subject.

    Returns None for expired, tampered or wrong-purpose tokens.
    """
    try:
        payload = jwt.decode(token, get_settings().secret_key, algorithms=[ALGORITHM])
    except jwt.InvalidTokenError:
        return None

    if payload.get("purpose") != purpose:
        return None
    return payload.get("sub")
