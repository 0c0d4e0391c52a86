"""
Declarative base and shared columns for all models.
"""
from sqlalchemy import Column, Integer, DateTime
from sqlalchemy.orm import declarative_base
from app.core.utils import utcnow

Base = declarative_base()


class BaseModel(Base):
    """Abstract model with surrogate key and timestamps."""
    __abstract__ = True

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
