from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base


Base = declarative_base()


def build_engine(database_url: str) -> Engine:
    """Create the process-wide engine for ``database_url``.

    Statements run in short auto-committed transactions, so the driver's
    default pool sizing is kept.
    """

    if database_url.startswith("sqlite"):
        # SQLite requires check_same_thread=False for usage across threads
        return create_engine(database_url, connect_args={"check_same_thread": False})
    return create_engine(database_url, pool_pre_ping=True)
