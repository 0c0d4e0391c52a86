"""
Pydantic schemas for itinerary generation.
"""
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing import List, Optional
from datetime import date
from app.models.trip import DEFAULT_BUDGET, normalize_budget
from app.schemas.trip import Coordinates, Day


class ItineraryRequest(BaseModel):
    """Form data for generating an itinerary."""
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    destination: str = Field(min_length=1, max_length=200)
    start_date: date
    end_date: date
    budget: str = DEFAULT_BUDGET
    interests: List[str] = []

    @field_validator("budget", mode="before")
    @classmethod
    def normalize_budget_value(cls, v):
        return normalize_budget(v)

    @model_validator(mode="after")
    def check_dates(self):
        if self.start_date > self.end_date:
            raise ValueError("start_date must be on or before end_date")
        return self

    @property
    def days(self) -> int:
        return (self.end_date - self.start_date).days + 1


class ItineraryResponse(BaseModel):
    """Generated plan, ready to be saved as a trip."""
    destination: str
    start_date: date
    end_date: date
    budget: str
    interests: List[str]
    coordinates: Optional[Coordinates] = None
    itinerary: List[Day]
