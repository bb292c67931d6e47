"""Database session management"""
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from migration.errors import FatalConfigError


def create_db_engine(database_url: str) -> Engine:
    """
    Create engine for the shop database.

    Raises:
        FatalConfigError: If the URL is invalid or the database is unreachable
    """
    try:
        engine = create_engine(
            database_url,
            pool_pre_ping=True,  # Verify connections before using
            pool_recycle=3600,   # Recycle connections after 1 hour
        )
        # Verify connection before any row is processed
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, ValueError) as e:
        raise FatalConfigError(f"Cannot connect to database: {e}") from e
    return engine


def create_session_factory(engine: Engine) -> sessionmaker:
    """Create session factory bound to engine"""
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)
