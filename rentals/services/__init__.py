"""Database connection and session management."""

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from rentals.services.config import get_settings


def create_db_engine(database_url: str, echo: bool = False) -> Engine:
    """Create an engine; SQLite uses StaticPool for simplicity in dev/test."""
    if database_url.startswith("sqlite"):
        return create_engine(
            database_url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(database_url, echo=echo, pool_pre_ping=True)


_settings = get_settings()
engine = create_db_engine(_settings.database_url, echo=_settings.database_echo)

# Create session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


__all__ = [
    "engine",
    "SessionLocal",
    "create_db_engine",
]
