"""
Trip model for itinerary plans.
"""
from sqlalchemy import (
    Column, String, Date, Boolean, Float, JSON, Enum as SQLEnum, ForeignKey, Integer,
    UniqueConstraint
)
from sqlalchemy.orm import relationship, validates
from app.db.base import BaseModel
import enum


class TripStatus(str, enum.Enum):
    """Trip status enumeration."""
    DRAFT = "draft"
    PLANNED = "planned"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ActivityType(str, enum.Enum):
    """Activity category enumeration."""
    SIGHTSEEING = "sightseeing"
    DINING = "dining"
    ACCOMMODATION = "accommodation"
    ADVENTURE = "adventure"
    TRANSPORT = "transport"


class BudgetTier(str, enum.Enum):
    """Canonical budget tiers."""
    UNDER_500 = "Under $500"
    FROM_500 = "$500 - $1,000"
    FROM_1000 = "$1,000 - $2,500"
    FROM_2500 = "$2,500 - $5,000"
    FROM_5000 = "$5,000 - $10,000"
    ABOVE_10000 = "Above $10,000"


DEFAULT_BUDGET = BudgetTier.FROM_1000.value

LEGACY_BUDGET_ALIASES = {
    "low": BudgetTier.UNDER_500.value,
    "mid": BudgetTier.FROM_1000.value,
    "high": BudgetTier.FROM_5000.value,
}

_CANONICAL_BUDGETS = {tier.value for tier in BudgetTier}


def normalize_budget(value) -> str:
    """
    Map any client-supplied budget onto a canonical tier.

    Exact canonical values are kept, the legacy Low/Mid/High labels are mapped
    case-insensitively, and everything else (including None) falls back to the
    default tier. Never raises.
    """
    if not isinstance(value, str):
        return DEFAULT_BUDGET
    budget = value.strip()
    if budget in _CANONICAL_BUDGETS:
        return budget
    return LEGACY_BUDGET_ALIASES.get(budget.lower(), DEFAULT_BUDGET)


class Trip(BaseModel):
    """Trip model owned by exactly one user."""
    __tablename__ = "trips"

    owner_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    destination = Column(String(200), nullable=False, index=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    budget = Column(String(50), nullable=False, default=DEFAULT_BUDGET)
    interests = Column(JSON, nullable=False, default=list)
    itinerary = Column(JSON, nullable=False, default=list)  # List of day dicts
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    status = Column(SQLEnum(TripStatus, values_callable=lambda e: [m.value for m in e]),
                    default=TripStatus.DRAFT, nullable=False, index=True)
    is_public = Column(Boolean, default=False, nullable=False, index=True)

    # Relationships
    owner = relationship("User", back_populates="trips")
    shares = relationship("TripShare", back_populates="trip", cascade="all, delete-orphan")

    @validates("budget")
    def validate_budget(self, key, value):
        return normalize_budget(value)

    @property
    def shared_with(self) -> list:
        return [share.user_id for share in self.shares]

    @property
    def coordinates(self):
        if self.latitude is None or self.longitude is None:
            return None
        return {"lat": self.latitude, "lng": self.longitude}


class TripShare(BaseModel):
    """Junction table for trips shared with other users."""
    __tablename__ = "trip_shares"
    __table_args__ = (UniqueConstraint("trip_id", "user_id", name="uq_trip_share"),)

    trip_id = Column(Integer, ForeignKey("trips.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    # Relationships
    trip = relationship("Trip", back_populates="shares")
