# FILE: historial/models/record_counter.py
from sqlalchemy import Column, Integer

from historial.db.base import Base


class RecordNumberCounter(Base):
    """One row per calendar year; the last suffix handed out for that year."""

    __tablename__ = "record_number_counters"
    __table_args__ = {
        "mysql_engine": "InnoDB",
        "mysql_charset": "utf8mb4",
        "mysql_collate": "utf8mb4_unicode_ci",
    }

    year = Column(Integer, primary_key=True, autoincrement=False)
    counter = Column(Integer, nullable=False, default=0)
