# pulse/utils/security.py
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import bcrypt
import jwt

from pulse.utils.settings import (
    BCRYPT_ROUNDS,
    JWT_ALGORITHM,
    JWT_SECRET,
    RESET_TOKEN_TTL_MINUTES,
    TOKEN_TTL_DAYS,
)

PASSWORD_RESET_PURPOSE = "password_reset"

#bcrypt only looks at the first 72 bytes and refuses anything longer
MAX_PASSWORD_BYTES = 72


def password_too_long(password: str) -> bool:
    return len(password.encode("utf-8")) > MAX_PASSWORD_BYTES


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str | None) -> bool:
    #federated accounts have no hash at all
    if not password_hash or password_too_long(password):
        return False
    return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))


def _encode(claims: Dict[str, Any], ttl: timedelta) -> str:
    now = datetime.now(timezone.utc)
    payload = {**claims, "iat": now, "exp": now + ttl}
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)


def create_access_token(claims: Dict[str, Any]) -> str:
    return _encode(claims, timedelta(days=TOKEN_TTL_DAYS))


def create_reset_token(user_id: int, email: str) -> str:
    return _encode(
        {"user_id": user_id, "email": email, "purpose": PASSWORD_RESET_PURPOSE},
        timedelta(minutes=RESET_TOKEN_TTL_MINUTES),
    )


def decode_token(token: str) -> Dict[str, Any]:
    """Raises jwt.ExpiredSignatureError / jwt.InvalidTokenError."""
    return jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
