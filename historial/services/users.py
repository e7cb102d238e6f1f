# FILE: historial/services/users.py
from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from historial.core.errors import Forbidden, InvalidArgument, NotFound
from historial.core.security import hash_password, verify_password
from historial.models.role import ADMIN_ROLE, USER_ROLE, Role
from historial.models.user import User
from historial.schemas.auth import LoginIn, LoginOut
from historial.schemas.user import RegisterIn, UserOut, UserUpdate
from historial.utils.jwt import create_access_token

logger = logging.getLogger(__name__)

DEFAULT_ROLES = {
    ADMIN_ROLE: "Full access, manages users",
    USER_ROLE: "Clinical staff",
}


def ensure_roles(db: Session) -> None:
    """Create missing default roles; safe to run multiple times."""
    existing = {r.name for r in db.query(Role).all()}
    for name, description in DEFAULT_ROLES.items():
        if name not in existing:
            db.add(Role(name=name, description=description))
    db.commit()


def _role(db: Session, name: str) -> Role:
    r = db.query(Role).filter(Role.name == name).first()
    if not r:
        ensure_roles(db)
        r = db.query(Role).filter(Role.name == name).one()
    return r


def _query_users(db: Session):
    return db.query(User).options(selectinload(User.roles))


def get_user(db: Session, user_id: str) -> Optional[User]:
    return _query_users(db).filter(User.id == str(user_id)).first()


def list_users(db: Session) -> List[User]:
    return _query_users(db).order_by(User.username.asc()).all()


def to_out(u: User) -> UserOut:
    return UserOut(
        id=u.id,
        username=u.username,
        email=u.email,
        first_name=u.first_name,
        middle_name=u.middle_name,
        last_name=u.last_name,
        second_last_name=u.second_last_name,
        full_name=u.full_name,
        roles=u.role_names,
        is_active=bool(u.is_active),
    )


def login(db: Session, payload: LoginIn) -> Optional[LoginOut]:
    """Token + profile for valid credentials, None otherwise."""
    user = _query_users(db).filter(User.username == payload.username).first()
    if not user or not user.is_active:
        logger.warning("Login attempt with invalid username: %s",
                       payload.username)
        return None

    if not verify_password(payload.password, user.password_hash):
        logger.warning("Failed login attempt for user: %s", payload.username)
        return None

    token, expires_at = create_access_token(
        user_id=user.id,
        username=user.username,
        email=user.email,
        full_name=user.full_name,
        roles=user.role_names,
    )
    logger.info("User %s logged in", user.username)
    return LoginOut(
        token=token,
        username=user.username,
        email=user.email,
        full_name=user.full_name,
        roles=user.role_names,
        expires_at=expires_at,
    )


def _create(db: Session, payload: RegisterIn, role_name: str) -> User:
    if db.query(User).filter(User.email == payload.email).first():
        raise InvalidArgument("This email already exists")
    if db.query(User).filter(User.username == payload.username).first():
        raise InvalidArgument("This username already exists")

    u = User(
        username=payload.username,
        email=payload.email,
        password_hash=hash_password(payload.password),
        first_name=payload.first_name,
        middle_name=payload.middle_name,
        last_name=payload.last_name,
        second_last_name=payload.second_last_name,
        is_active=True,
    )
    u.roles = [_role(db, role_name)]
    db.add(u)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise InvalidArgument("Create failed")
    db.refresh(u)
    return u


def create_admin_user(db: Session, payload: RegisterIn) -> User:
    u = _create(db, payload, ADMIN_ROLE)
    logger.info("Admin user %s created", u.username)
    return u


def create_user(db: Session, payload: RegisterIn, me: User) -> User:
    if not me.has_role(ADMIN_ROLE):
        raise Forbidden("Not authorized to create users")
    u = _create(db, payload, USER_ROLE)
    logger.info("User %s created by admin %s", u.username, me.username)
    return u


def update_user(db: Session, user_id: str, payload: UserUpdate) -> User:
    u = get_user(db, user_id)
    if not u:
        raise NotFound("User not found")

    clash = (db.query(User).filter(User.email == payload.email,
                                   User.id != u.id).first())
    if clash:
        raise InvalidArgument("This email already exists")

    u.first_name = payload.first_name
    u.middle_name = payload.middle_name
    u.last_name = payload.last_name
    u.second_last_name = payload.second_last_name
    u.email = payload.email
    if payload.password:
        u.password_hash = hash_password(payload.password)

    db.commit()
    db.refresh(u)
    return u


def delete_user(db: Session, user_id: str) -> bool:
    u = db.get(User, str(user_id))
    if not u:
        raise NotFound("User not found")
    db.delete(u)
    db.commit()
    logger.info("User %s deleted", user_id)
    return True
