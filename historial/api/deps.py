# historial/api/deps.py
from __future__ import annotations

from typing import Generator, Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session, selectinload

from historial.core.errors import Forbidden, Unauthorized
from historial.db.session import SessionLocal
from historial.models.role import ADMIN_ROLE
from historial.models.user import User
from historial.utils.jwt import decode_access_token


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _extract_bearer(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    parts = authorization.split()
    if len(parts) == 2 and parts[0].lower() == "bearer":
        return parts[1]
    return None


def current_user(
    authorization: Optional[str] = Header(None),
    db: Session = Depends(get_db),
) -> User:
    raw = _extract_bearer(authorization)
    if not raw:
        raise Unauthorized("Missing token")

    payload = decode_access_token(raw)
    user_id = payload.get("sub")
    if not user_id:
        raise Unauthorized("Invalid token payload")

    user: Optional[User] = (
        db.query(User)
        .options(selectinload(User.roles))
        .filter(User.id == user_id)
        .first()
    )
    if not user:
        raise Unauthorized("User not found")
    if not user.is_active:
        raise Forbidden("User inactive")
    return user


def require_admin(user: User = Depends(current_user)) -> User:
    if not user.has_role(ADMIN_ROLE):
        raise Forbidden("Forbidden: admin only")
    return user
