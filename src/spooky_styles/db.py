import logging
from functools import lru_cache

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.orm import declarative_base

from spooky_styles.core.config import config

logger = logging.getLogger(__name__)

Base = declarative_base()


@lru_cache()
def get_engine() -> Engine:
    """Build the pooled engine once per process."""
    db = config.database
    engine = create_engine(
        db.url,
        pool_size=db.pool_size,
        max_overflow=db.max_overflow,
        pool_timeout=db.pool_timeout,
        pool_recycle=db.pool_recycle,
        pool_pre_ping=True,
        echo=db.echo,
        future=True,
    )
    logger.info(f"Database engine created (pool_size={db.pool_size})")
    return engine


def get_connection() -> Connection:
    """Check a connection out of the pool. Use as a context manager."""
    return get_engine().connect()


def ping_database() -> bool:
    """Run SELECT 1; raises SQLAlchemyError when the database is unreachable."""
    with get_connection() as conn:
        return conn.execute(text("SELECT 1")).scalar() == 1


def init_db() -> None:
    """Create every table declared under spooky_styles.tables."""
    import spooky_styles.tables  # noqa: F401  registers models on Base.metadata

    with get_engine().begin() as conn:
        conn.execute(text('CREATE EXTENSION IF NOT EXISTS "pgcrypto"'))
    Base.metadata.create_all(get_engine())
    logger.info("Database schema created")
