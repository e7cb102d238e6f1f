# historial/db/init_db.py
from __future__ import annotations

import argparse
import logging
from typing import Optional

from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from historial.core.config import settings
from historial.core.security import hash_password
from historial.db.base import Base
from historial.db.session import SessionLocal, engine as default_engine
from historial.models import Role, User  # noqa: F401  (registers all tables)
from historial.models.role import ADMIN_ROLE
from historial.services.users import ensure_roles

logger = logging.getLogger(__name__)


def create_tables(eng: Optional[Engine] = None) -> None:
    Base.metadata.create_all(bind=eng or default_engine)


def seed_default_admin(db: Session) -> None:
    """
    Seed the bootstrap admin account ONLY when no user exists yet.
    """
    if db.query(User).first():
        return
    admin_role = db.query(Role).filter(Role.name == ADMIN_ROLE).one()
    u = User(
        username=settings.DEFAULT_ADMIN_USERNAME,
        email=settings.DEFAULT_ADMIN_EMAIL,
        password_hash=hash_password(settings.DEFAULT_ADMIN_PASSWORD),
        first_name="Administrador",
        last_name="Sistema",
        is_active=True,
    )
    u.roles = [admin_role]
    db.add(u)
    db.commit()
    logger.info("Seeded default admin user %s", u.username)


def init_db(db: Session, *, seed_users: Optional[bool] = None) -> None:
    ensure_roles(db)
    if settings.SEED_DEFAULT_USERS if seed_users is None else seed_users:
        seed_default_admin(db)


def main() -> None:
    parser = argparse.ArgumentParser(description="Create tables and seed roles")
    parser.add_argument("--seed-admin",
                        action="store_true",
                        help="also create the default admin account")
    args = parser.parse_args()

    logging.basicConfig(level=settings.LOG_LEVEL)
    create_tables()
    db = SessionLocal()
    try:
        init_db(db, seed_users=args.seed_admin or None)
    finally:
        db.close()


if __name__ == "__main__":
    main()
