"""
Pydantic schemas for Trip entity.
"""
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing import Any, List, Optional
from datetime import date, datetime
from app.models.trip import ActivityType, TripStatus, DEFAULT_BUDGET, normalize_budget
from app.schemas.user import OwnerSummary


class Coordinates(BaseModel):
    model_config = ConfigDict(extra="forbid")

    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)


class Activity(BaseModel):
    """One activity within a day."""
    model_config = ConfigDict(extra="forbid")

    id: str = Field(min_length=1)
    time: str
    activity: str = Field(min_length=1)
    type: ActivityType = ActivityType.SIGHTSEEING
    location: Optional[str] = None
    notes: Optional[str] = None
    coordinates: Optional[Coordinates] = None
    rating: Optional[str] = None
    order: int = 1


class Day(BaseModel):
    """One day of an itinerary."""
    model_config = ConfigDict(extra="forbid")

    day_number: int = Field(ge=1)
    date: date
    activities: List[Activity] = []
    weather: Optional[Any] = None


class TripBase(BaseModel):
    """Fields shared by trip create and update."""
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)


class TripCreate(TripBase):
    """Schema for trip creation. The owner always comes from the session."""
    destination: str = Field(min_length=1, max_length=200)
    start_date: date
    end_date: date
    budget: str = DEFAULT_BUDGET
    interests: List[str] = []
    itinerary: List[Day] = []
    coordinates: Optional[Coordinates] = None
    status: TripStatus = TripStatus.DRAFT
    is_public: bool = False
    shared_with: List[int] = []

    @field_validator("budget", mode="before")
    @classmethod
    def normalize_budget_value(cls, v):
        return normalize_budget(v)

    @model_validator(mode="after")
    def check_dates(self):
        if self.start_date > self.end_date:
            raise ValueError("start_date must be on or before end_date")
        return self


class TripUpdate(TripBase):
    """Schema for trip update; only supplied fields are changed."""
    destination: Optional[str] = Field(default=None, min_length=1, max_length=200)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    budget: Optional[str] = None
    interests: Optional[List[str]] = None
    itinerary: Optional[List[Day]] = None
    coordinates: Optional[Coordinates] = None
    status: Optional[TripStatus] = None
    is_public: Optional[bool] = None
    shared_with: Optional[List[int]] = None

    @field_validator("budget", mode="before")
    @classmethod
    def normalize_budget_value(cls, v):
        if v is None:
            return v
        return normalize_budget(v)


class TripResponse(BaseModel):
    """Schema for trip response."""
    id: int
    owner_id: int
    destination: str
    start_date: date
    end_date: date
    budget: str
    interests: List[str]
    itinerary: List[Day]
    coordinates: Optional[Coordinates] = None
    status: TripStatus
    is_public: bool
    shared_with: List[int]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class PublicTripResponse(TripResponse):
    """Trip response with the owner's public details."""
    owner: OwnerSummary


class TripListResponse(BaseModel):
    results: int
    total: int
    page: int
    page_size: int
    trips: List[TripResponse]


class PublicTripListResponse(TripListResponse):
    trips: List[PublicTripResponse]
