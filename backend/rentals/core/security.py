# rentals/core/security.py

import re
import uuid
from datetime import datetime, timedelta
from typing import Any, Dict

from jose import jwt, JWTError
from passlib.context import CryptContext

from rentals.core.config import settings

# --------------------------------------
# Password hashing config
# --------------------------------------
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

# 8+ chars, at least one lower, upper, digit and special character
PASSWORD_PATTERN = re.compile(
    r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&])[A-Za-z\d@$!%*?&]{8,}$"
)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def is_strong_password(password: str) -> bool:
    return bool(PASSWORD_PATTERN.match(password))


# --------------------------------------
# Token creation helpers
# --------------------------------------

def _create_token(
    user_id: int,
    role: str,
    expires_delta: timedelta,
    *,
    secret_key: str,
    token_type: str,
) -> str:
    now = datetime.utcnow()
    to_encode = {
        "sub": str(user_id),
        "role": role,
        "iat": now,
        "exp": now + expires_delta,
        "type": token_type,
        "jti": uuid.uuid4().hex,
    }
    return jwt.encode(to_encode, secret_key, algorithm=settings.JWT_ALGORITHM)


def create_access_token(user_id: int, role: str) -> str:
    return _create_token(
        user_id,
        role,
        timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
        secret_key=settings.JWT_SECRET_KEY,
        token_type="access",
    )


def create_refresh_token(user_id: int, role: str) -> str:
    return _create_token(
        user_id,
        role,
        timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
        secret_key=settings.JWT_REFRESH_SECRET_KEY,
        token_type="refresh",
    )


# --------------------------------------
# Token verification helpers
# --------------------------------------

def _decode(token: str, secret_key: str, token_type: str) -> Dict[str, Any]:
    payload = jwt.decode(token, secret_key, algorithms=[settings.JWT_ALGORITHM])
    if payload.get("type") != token_type:
        raise JWTError("Invalid token type")
    if not payload.get("sub"):
        raise JWTError("Missing subject in token")
    return payload


def verify_access_token(token: str) -> Dict[str, Any]:
    """
    Decode and validate an *access* token.
    Used by get_current_user.
    """
    return _decode(token, settings.JWT_SECRET_KEY, "access")


def verify_refresh_token(token: str) -> Dict[str, Any]:
    return _decode(token, settings.JWT_REFRESH_SECRET_KEY, "refresh")
