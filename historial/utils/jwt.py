# historial/utils/jwt.py
from datetime import datetime, timedelta, timezone
from typing import Iterable, Tuple
from uuid import uuid4

from jose import jwt, JWTError

from historial.core.config import settings
from historial.core.errors import Unauthorized


def create_access_token(
    *,
    user_id: str,
    username: str,
    email: str,
    full_name: str,
    roles: Iterable[str],
) -> Tuple[str, datetime]:
    """
    Signed, time-limited bearer token. Returns (token, expires_at UTC).
    """
    now = datetime.now(timezone.utc)
    expires_at = now + timedelta(hours=settings.JWT_EXPIRATION_HOURS)
    payload = {
        "sub": user_id,
        "unique_name": username,
        "email": email,
        "jti": uuid4().hex,
        "full_name": full_name,
        "roles": list(roles),
        "iss": settings.JWT_ISSUER,
        "aud": settings.JWT_AUDIENCE,
        "iat": now,
        "exp": expires_at,
    }
    token = jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALG)
    return token, expires_at


def decode_access_token(raw_token: str) -> dict:
    try:
        return jwt.decode(
            raw_token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALG],
            audience=settings.JWT_AUDIENCE,
            issuer=settings.JWT_ISSUER,
        )
    except JWTError:
        raise Unauthorized("Invalid token")
