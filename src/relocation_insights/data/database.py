"""
SQL engine and sessions for the relational storage backend.

DATABASE_URL picks the engine: PostgreSQL in deployments, a SQLite file
for local development and in-memory SQLite in tests.
"""

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError
from sqlalchemy.orm import sessionmaker, Session, DeclarativeBase
from sqlalchemy.pool import StaticPool

from relocation_insights.config import settings
from relocation_insights.logging_config import get_logger
from relocation_insights.exceptions import DatabaseConnectionError

logger = get_logger(__name__)


class Base(DeclarativeBase):
    pass


def _is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")


def redact_url(url: str) -> str:
    """Database URL with the password masked, safe for logs and error details."""
    try:
        return make_url(url).render_as_string(hide_password=True)
    except ArgumentError:
        return url.split("@")[-1]


def _enable_sqlite_foreign_keys(engine) -> None:
    # ON DELETE CASCADE on saved_locations needs this per connection
    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def create_db_engine(database_url: str | None = None):
    """
    Create and verify an engine for the location store.

    Args:
        database_url: Overrides DATABASE_URL.

    Raises:
        DatabaseConnectionError: The database cannot be reached.
    """
    url = database_url or settings.database.url
    logger.info("Connecting to %s", redact_url(url))

    try:
        if _is_sqlite(url):
            engine = create_engine(
                url,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
            _enable_sqlite_foreign_keys(engine)
        else:
            engine = create_engine(
                url,
                pool_size=settings.database.pool_size,
                max_overflow=settings.database.max_overflow,
                pool_pre_ping=True,
            )

        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return engine

    except Exception as e:
        raise DatabaseConnectionError(
            message=f"Failed to connect to database: {e}",
            details={"url": redact_url(url)},
        ) from e


def create_session_factory(engine=None) -> sessionmaker[Session]:
    """Sessions for SqlLocationRepository; records stay readable after commit."""
    if engine is None:
        engine = create_db_engine()
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


def init_db(engine=None) -> None:
    """Create the locations, users and saved_locations tables if missing."""
    if engine is None:
        engine = create_db_engine()

    import relocation_insights.data.models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    logger.info("Location store tables ready")
