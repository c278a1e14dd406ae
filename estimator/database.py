"""Database configuration and initialization."""
import logging
import threading
from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

# Create SQLAlchemy base
Base = declarative_base()


class Database:
    """
    Owner of the engine and session factory for one SQLite database file.

    Opened once by the application factory, handed to the store and the
    editing sessions, and closed at shutdown.
    """

    def __init__(self, database_uri: str, echo: bool = False):
        self.database_uri = database_uri
        connect_args = {}
        engine_kwargs = {'echo': echo}

        if database_uri.startswith('sqlite'):
            # Autosave timers write from their own threads
            connect_args['check_same_thread'] = False
            if database_uri in ('sqlite://', 'sqlite:///:memory:'):
                engine_kwargs['poolclass'] = StaticPool

        self.engine: Engine = create_engine(database_uri, connect_args=connect_args, **engine_kwargs)
        self._session_factory = sessionmaker(bind=self.engine, autoflush=False, expire_on_commit=False)
        self.write_lock = threading.RLock()

        if database_uri.startswith('sqlite'):
            event.listen(self.engine, 'connect', _enable_sqlite_foreign_keys)

    def create_all(self) -> None:
        """Create every table known to the declarative base."""
        from estimator import models  # noqa: F401  (register models)
        Base.metadata.create_all(self.engine)

    def new_session(self):
        return self._session_factory()

    @contextmanager
    def session_scope(self):
        """Transactional scope: commit on success, rollback on error."""
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def close(self) -> None:
        logger.info("[DB] Disposing engine for %s", self.database_uri)
        self.engine.dispose()

    @property
    def file_path(self):
        """Filesystem path of the SQLite file, None for in-memory databases."""
        database = self.engine.url.database
        if not database or database == ':memory:':
            return None
        return database


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def init_db(app) -> Database:
    """Initialize database connection and attach it to the app."""
    database = Database(
        app.config['SQLALCHEMY_DATABASE_URI'],
        echo=app.config.get('SQLALCHEMY_ECHO', False),
    )
    database.create_all()

    if not hasattr(app, 'extensions'):
        app.extensions = {}
    app.extensions['database'] = database
    return database


def get_database(app=None) -> Database:
    """Get the database owned by the (current) application."""
    if app is None:
        from flask import current_app
        app = current_app
    database = app.extensions.get('database')
    if database is None:
        raise RuntimeError("Database not initialized.")
    return database
