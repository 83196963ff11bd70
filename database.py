import logging
from contextlib import contextmanager

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from config import Config

logger = logging.getLogger(__name__)


def make_engine(url, **kwargs):
    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    return create_engine(url, echo=Config.SQL_ECHO, **kwargs)


engine = make_engine(Config.DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


# SQLite only honours ON DELETE CASCADE with foreign_keys=ON
@event.listens_for(Engine, "connect")
def set_sqlite_pragma(dbapi_connection, connection_record):
    if type(dbapi_connection).__module__.startswith("sqlite3"):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def transaction(db):
    """Unit of work: everything inside the block commits together or not at all."""
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise


def reset_sequences(db, tables):
    """Move id sequences past the highest stored id after explicit-id inserts.

    SQLite hands out max(rowid) + 1 for tables without AUTOINCREMENT, so only
    PostgreSQL needs its serial sequences bumped.
    """
    if db.get_bind().dialect.name != "postgresql":
        return
    for table in tables:
        db.execute(text(
            f"SELECT setval(pg_get_serial_sequence('{table}', 'id'), "
            f"COALESCE((SELECT MAX(id) FROM {table}), 0) + 1, false)"
        ))
    logger.debug("Sequences reset for %s", ", ".join(tables))
