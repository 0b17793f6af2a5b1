"""Database configuration and session management.

SQLite is the default store. Each connection is switched to WAL mode so
readers are not blocked while a registration upsert is being written, and
foreign keys are enforced. Any other SQLAlchemy URL (e.g. PostgreSQL) is
used as-is without the SQLite pragmas.
"""

from sqlalchemy import event as sa_event
from sqlmodel import Session, SQLModel, create_engine

from reunion.core.config import settings

is_sqlite = settings.database_url.startswith("sqlite")

# FastAPI may hand a session to a different thread than the one that
# opened its connection.
connect_args = {"check_same_thread": False} if is_sqlite else {}

engine = create_engine(
    settings.database_url,
    connect_args=connect_args,
    echo=settings.debug,  # Log SQL statements when DEBUG=true
)


if is_sqlite:

    @sa_event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        """Configure SQLite pragmas on each new connection.

        These settings are connection-level, not database-level, so they must
        be set each time a new connection is established from the pool.
        """
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def create_db_and_tables():
    """Create all database tables."""
    SQLModel.metadata.create_all(engine)


def get_session():
    """Dependency for getting database session."""
    with Session(engine) as session:
        yield session
