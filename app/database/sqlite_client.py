import logging
import os
from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.engine.url import make_url
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from app.config import settings

logger = logging.getLogger(__name__)

Base = declarative_base()


def _apply_sqlite_pragmas(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode = WAL")
    cursor.execute("PRAGMA synchronous = NORMAL")
    cursor.execute("PRAGMA busy_timeout = 5000")
    cursor.execute("PRAGMA foreign_keys = ON")
    cursor.close()


class DatabaseClient:
    _engine: Engine = None
    _session_factory: sessionmaker = None

    @classmethod
    def get_engine(cls) -> Engine:
        if cls._engine is None:
            connect_args = {"check_same_thread": False} if settings.is_sqlite else {}
            cls._engine = create_engine(
                settings.database_url,
                echo=settings.database_echo,
                connect_args=connect_args,
            )
            if settings.is_sqlite:
                event.listen(cls._engine, "connect", _apply_sqlite_pragmas)
        return cls._engine

    @classmethod
    def get_session_factory(cls) -> sessionmaker:
        if cls._session_factory is None:
            cls._session_factory = sessionmaker(
                bind=cls.get_engine(), autocommit=False, autoflush=False, expire_on_commit=False
            )
        return cls._session_factory

    @classmethod
    def database_path(cls) -> str:
        """Filesystem path of the SQLite database, or "" for non-file databases."""
        if not settings.is_sqlite:
            return ""
        return make_url(settings.database_url).database or ""

    @classmethod
    def reset_client(cls):
        if cls._engine is not None:
            cls._engine.dispose()
        cls._engine = None
        cls._session_factory = None


def init_db() -> None:
    """Create the data directory and all tables."""
    # Import models so they register on Base.metadata
    from app.modules.users import models as _users  # noqa: F401
    from app.modules.groups import models as _groups  # noqa: F401
    from app.modules.schedule import models as _schedule  # noqa: F401
    from app.modules.lecture_notes import models as _notes  # noqa: F401

    path = DatabaseClient.database_path()
    if path and path != ":memory:":
        directory = os.path.dirname(os.path.abspath(path))
        os.makedirs(directory, exist_ok=True)
    Base.metadata.create_all(bind=DatabaseClient.get_engine())
    logger.info("Database initialised at %s", path or settings.database_url)


def get_db() -> Generator[Session, None, None]:
    db = DatabaseClient.get_session_factory()()
    try:
        yield db
    finally:
        db.close()
