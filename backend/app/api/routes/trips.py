"""
Trip management routes.
"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional
from app.db.session import get_db
from app.models.user import User
from app.models.trip import TripStatus
from app.schemas.trip import (
    TripCreate, TripUpdate, TripResponse, PublicTripResponse,
    TripListResponse, PublicTripListResponse
)
from app.services import trip_service
from app.services.trip_service import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from app.core.utils import format_response
from app.api.dependencies import get_current_user

router = APIRouter(prefix="/trips", tags=["trips"])


def _trip_data(trip) -> dict:
    return {"trip": TripResponse.model_validate(trip).model_dump(mode="json")}


@router.get("/public")
def list_public_trips(
    destination: Optional[str] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    db: Session = Depends(get_db)
):
    """List public trips of all users. No authentication required."""
    trips, total = trip_service.get_public_trips(db, destination=destination, page=page, page_size=page_size)
    data = PublicTripListResponse(
        results=len(trips),
        total=total,
        page=page,
        page_size=page_size,
        trips=[PublicTripResponse.model_validate(trip) for trip in trips]
    )
    return format_response(data.model_dump(mode="json"))


@router.post("", status_code=status.HTTP_201_CREATED)
def create_trip(
    trip_data: TripCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Create a new trip owned by the current user."""
    trip = trip_service.create_trip(current_user.id, trip_data, db)
    return format_response(_trip_data(trip), "Trip created successfully")


@router.get("")
def list_trips(
    trip_status: Optional[TripStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    page_size: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List trips for current user, newest first."""
    trips, total = trip_service.get_my_trips(
        current_user.id, db, status=trip_status, page=page, page_size=page_size
    )
    data = TripListResponse(
        results=len(trips),
        total=total,
        page=page,
        page_size=page_size,
        trips=[TripResponse.model_validate(trip) for trip in trips]
    )
    return format_response(data.model_dump(mode="json"))


@router.get("/{trip_id}")
def get_trip(
    trip_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get trip details."""
    trip = trip_service.get_trip(current_user.id, trip_id, db)
    return format_response(_trip_data(trip))


@router.put("/{trip_id}")
def update_trip(
    trip_id: int,
    trip_data: TripUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Update a trip."""
    trip = trip_service.update_trip(current_user.id, trip_id, trip_data, db)
    return format_response(_trip_data(trip), "Trip updated successfully")


@router.delete("/{trip_id}")
def delete_trip(
    trip_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Delete a trip."""
    trip_service.delete_trip(current_user.id, trip_id, db)
    return format_response(message="Trip deleted successfully")
