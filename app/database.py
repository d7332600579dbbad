# app/database.py
from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine, Session

from app.core.config import get_settings

settings = get_settings()

# ---------------------------------------------------------
# Supabase Postgres connection (via pooler)
#
# - sslmode=require   : enforce SSL when running in the cloud
# - pool_size=5       : each order submission holds one connection for
#                       the length of its commit transaction
# - max_overflow=0    : do not open extra connections beyond the pool
# - pool_pre_ping=True: validate connections before using them
#
# SQLite (local dev / tests):
# - every transaction starts with BEGIN IMMEDIATE, so two writers never
#   interleave and the conditional counter updates stay atomic.
# ---------------------------------------------------------


def _with_sslmode(db_url: str) -> str:
    # Append sslmode=require if it is not already present
    if "sslmode=" in db_url:
        return db_url
    if "?" in db_url:
        return db_url + "&sslmode=require"
    return db_url + "?sslmode=require"


def _enable_sqlite_immediate_transactions(engine: Engine) -> None:
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        # Hand transaction control to SQLAlchemy instead of pysqlite.
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def build_engine(db_url: str) -> Engine:
    """
    Create an engine for the given URL.

    Postgres URLs get SSL and a small pool; SQLite URLs get thread-safe
    connections and serialised write transactions.
    """
    if db_url.startswith("sqlite"):
        extra = {}
        if db_url in ("sqlite://", "sqlite:///:memory:"):
            # One shared connection, otherwise each checkout sees an empty DB
            extra["poolclass"] = StaticPool
        engine = create_engine(
            db_url,
            echo=False,
            connect_args={"check_same_thread": False, "timeout": 30},
            **extra,
        )
        _enable_sqlite_immediate_transactions(engine)
        return engine

    return create_engine(
        _with_sslmode(db_url),
        echo=False,        # set to True if you want to debug SQL queries
        pool_pre_ping=True,
        pool_size=5,
        max_overflow=0,
    )


engine = build_engine(settings.DATABASE_URL)


def create_db_and_tables(bind: Engine | None = None) -> None:
    """
    Create all tables defined in SQLModel metadata if they do not exist.

    This is called once on application startup.
    """
    SQLModel.metadata.create_all(bind or engine)


def get_session():
    """
    FastAPI dependency that yields a SQLModel Session.

    Usage:

        from fastapi import Depends

        @router.get("/example")
        def example_endpoint(session: Session = Depends(get_session)):
            ...
    """
    with Session(engine) as session:
        yield session
