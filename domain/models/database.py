"""
Database configuration and session management.
"""

import logging
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool
from app.config import settings

logger = logging.getLogger("tablepos.database")

# Create SQLAlchemy Base
Base = declarative_base()


def build_engine(url: str, echo: bool = False):
    """Create an engine; in-memory SQLite is shared across threads for local runs and tests."""
    if url.startswith("sqlite"):
        return create_engine(
            url,
            echo=echo,
            future=True,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(url, echo=echo, future=True, pool_pre_ping=True)


# Create engine
engine = build_engine(settings.postgres_db_url, echo=settings.db_echo)

# Create session factory
SessionLocal = sessionmaker(bind=engine, future=True, expire_on_commit=False)


def init_database():
    """Initialize database schema"""
    with engine.begin() as conn:
        Base.metadata.create_all(bind=conn)
        logger.info("Database tables created successfully")


def get_db_session():
    """Get database session (for FastAPI dependency injection)"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
