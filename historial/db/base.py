# historial/db/base.py
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """All tables (users, roles, patients, history, attachments, counters) inherit from this."""
    pass
