from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import bcrypt
from jose import ExpiredSignatureError, JWTError, jwt
from pydantic import BaseModel
from pydantic import ValidationError as PayloadValidationError
from starlette import status

from .config import settings
from .errors import AuthError, ValidationError

ALGORITHM = "HS256"
AUDIENCE = "wellbeing-extension"
ISSUER = "wellbeing-tracker"
ACCESS_TOKEN_TYPE = "access"

# bcrypt only looks at the first 72 bytes of a password.
BCRYPT_MAX_BYTES = 72


class TokenPayload(BaseModel):
    sub: str
    exp: datetime
    iat: datetime
    typ: str
    aud: str
    iss: str


def _now() -> datetime:
    return datetime.now(tz=timezone.utc)


def hash_password(password: str) -> str:
    encoded = password.encode("utf-8")
    if len(encoded) > BCRYPT_MAX_BYTES:
        raise ValidationError(f"Password must be at most {BCRYPT_MAX_BYTES} bytes")
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(encoded, salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    encoded = password.encode("utf-8")
    if len(encoded) > BCRYPT_MAX_BYTES or not password_hash:
        return False
    try:
        return bcrypt.checkpw(encoded, password_hash.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash.
        return False


def issue_access_token(user_id: int, expires_delta: timedelta | None = None) -> str:
    now = _now()
    delta = expires_delta if expires_delta is not None else timedelta(hours=settings.JWT_ACCESS_TTL_HOURS)
    payload: dict[str, Any] = {
        "sub": str(user_id),
        "iat": int(now.timestamp()),
        "exp": int((now + delta).timestamp()),
        "typ": ACCESS_TOKEN_TYPE,
        "aud": AUDIENCE,
        "iss": ISSUER,
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=ALGORITHM)


def verify_token(token: str) -> int:
    """Return the user id carried by ``token``.

    Raises ``AuthError`` with a 403 status when the token is malformed,
    tampered with, expired, or not an access token.
    """

    forbidden = status.HTTP_403_FORBIDDEN
    try:
        decoded = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[ALGORITHM],
            audience=AUDIENCE,
            issuer=ISSUER,
        )
    except ExpiredSignatureError as exc:
        raise AuthError("Token has expired", status_code=forbidden) from exc
    except JWTError as exc:
        raise AuthError("Invalid token", status_code=forbidden) from exc
    try:
        payload = TokenPayload.model_validate(decoded)
    except PayloadValidationError as exc:
        raise AuthError("Invalid token payload", status_code=forbidden) from exc
    if payload.typ != ACCESS_TOKEN_TYPE:
        raise AuthError("Invalid token type", status_code=forbidden)
    try:
        return int(payload.sub)
    except ValueError as exc:
        raise AuthError("Invalid token subject", status_code=forbidden) from exc
