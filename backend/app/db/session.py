"""
Database session management.
"""
import logging
from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker, Session
from app.core.config import settings
from app.core.exceptions import StorageFailure
from app.db.base import Base

logger = logging.getLogger(__name__)

engine = create_engine(
    settings.DATABASE_URL,
    echo=settings.DB_ECHO,
    pool_pre_ping=True,
    pool_recycle=3600
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Session:
    """Dependency for getting database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    """Initialize database tables."""
    Base.metadata.create_all(bind=engine)


def commit_or_raise(db: Session, action: str = "save changes") -> None:
    """Commit the session; on failure roll back and raise StorageFailure."""
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error(f"Failed to {action}: {exc}", exc_info=True)
        raise StorageFailure() from exc
