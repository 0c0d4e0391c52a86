"""Models package - Import all models for SQLAlchemy registration."""
from app.models.user import User
from app.models.trip import Trip, TripShare, TripStatus, ActivityType, BudgetTier

__all__ = [
    "User",
    "Trip",
    "TripShare",
    "TripStatus",
    "ActivityType",
    "BudgetTier",
]
