"""Database engine, session factory and schema bootstrap"""

from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from credshield_gateway.config import settings
from credshield_gateway.infrastructure.database.models import Base


def build_engine(database_url: str) -> Engine:
    """
    Postgres gets a bounded connection pool; SQLite (local runs) is shared
    across the request threadpool.
    """
    if database_url.startswith("sqlite"):
        return create_engine(database_url, connect_args={"check_same_thread": False})
    return create_engine(
        database_url,
        pool_pre_ping=True,  # Verify connections before using
        pool_size=10,
        max_overflow=10,
        pool_recycle=3600,
    )


engine = build_engine(settings.database_url)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(bind: Engine = engine) -> None:
    """Create missing tables and the partial unique indexes"""
    Base.metadata.create_all(bind=bind)


def get_db() -> Iterator[Session]:
    """Dependency injection for database sessions; uncommitted work is rolled back"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.rollback()
        db.close()
