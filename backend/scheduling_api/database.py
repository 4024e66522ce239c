from pathlib import Path

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker

from .config import settings


def build_engine(url: str) -> Engine:
    """
    Create an engine for the given URL.

    SQLite gets three connection tweaks:
    - check_same_thread=False, since FastAPI runs sync endpoints in a thread pool
    - foreign keys switched on
    - transactions open as plain (deferred) BEGIN, so reads never wait on a
      writer; sessions marked with begin_write() open with BEGIN IMMEDIATE
      instead, which serializes writers between their reads and their insert
    """
    if not url.startswith("sqlite"):
        return create_engine(url, pool_pre_ping=True)

    engine = create_engine(
        url,
        connect_args={
            "check_same_thread": False,
            "timeout": settings.sqlite_busy_timeout_seconds,
        },
    )

    @event.listens_for(engine, "connect")
    def configure_sqlite(dbapi_connection, _):
        # pysqlite must not emit its own BEGIN; see do_begin below
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def do_begin(conn):
        mode = conn.get_execution_options().get("sqlite_begin", "DEFERRED")
        conn.exec_driver_sql(f"BEGIN {mode}")

    return engine


def begin_write(db: Session) -> None:
    """
    Open the session's transaction as a writer.

    Must be the first statement of the transaction. On SQLite this takes the
    write lock up front (BEGIN IMMEDIATE), waiting up to the busy timeout for
    other writers; other backends ignore the option.
    """
    db.connection(execution_options={"sqlite_begin": "IMMEDIATE"})


def make_session_factory(bind: Engine) -> sessionmaker:
    # rows stay readable after commit without reopening a (locking) transaction
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        bind=bind,
    )


engine = build_engine(settings.resolved_database_url)

# SessionLocal: the main way to talk to the database
SessionLocal = make_session_factory(engine)


def init_db(bind: Engine | None = None) -> None:
    """Create missing tables (and the SQLite data directory)."""
    from .models.tables import Base

    bind = bind or engine
    url = make_url(str(bind.url))
    if url.get_backend_name() == "sqlite" and url.database and url.database != ":memory:":
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)

    Base.metadata.create_all(bind)


# FastAPI dependency
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
