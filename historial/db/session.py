# historial/db/session.py
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from historial.core.config import settings


def _is_sqlite(uri: str) -> bool:
    return uri.startswith("sqlite")


def make_engine(uri: str) -> Engine:
    if _is_sqlite(uri):
        eng = create_engine(
            uri,
            connect_args={"check_same_thread": False, "timeout": 30},
            future=True,
        )

        # SQLite has no row locks; take the database write lock at BEGIN so the
        # counter read-increment-write behaves like SELECT ... FOR UPDATE.
        @event.listens_for(eng, "connect")
        def _sqlite_connect(dbapi_conn, _record):
            dbapi_conn.isolation_level = None
            dbapi_conn.execute("PRAGMA foreign_keys=ON")

        @event.listens_for(eng, "begin")
        def _sqlite_begin(conn):
            conn.exec_driver_sql("BEGIN IMMEDIATE")

        return eng

    return create_engine(
        uri,
        pool_pre_ping=True,
        pool_recycle=280,
        pool_size=10,
        max_overflow=20,
        future=True,
    )


def make_session_factory(eng: Engine) -> sessionmaker:
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=eng,
        future=True,
    )


engine: Engine = make_engine(settings.SQLALCHEMY_DATABASE_URI)

SessionLocal = make_session_factory(engine)
