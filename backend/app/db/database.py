from contextlib import contextmanager
import logging

from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, DeclarativeBase, Session
from app.config.environment import DB_USER, DB_PASSWORD, DB_HOST, DB_PORT, DB_NAME, USE_SQLITE, SQLITE_PATH

logger = logging.getLogger(__name__)

class Base(DeclarativeBase):
    pass

if USE_SQLITE:
    SQLALCHEMY_DATABASE_URL = f"sqlite:///{SQLITE_PATH}"
    connect_args = {"check_same_thread": False}
else:
    SQLALCHEMY_DATABASE_URL = f"postgresql://{DB_USER}:{DB_PASSWORD}@{DB_HOST}:{DB_PORT}/{DB_NAME}"
    connect_args = {}

engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args=connect_args)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def enable_sqlite_foreign_keys(target_engine):
    """SQLite ignores ON DELETE CASCADE unless foreign keys are switched on per connection."""
    @event.listens_for(target_engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


if USE_SQLITE:
    enable_sqlite_foreign_keys(engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def atomic(session: Session):
    """Commit everything done inside the block as one transaction, or nothing."""
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
