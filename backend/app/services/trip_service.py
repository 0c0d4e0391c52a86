"""
Trip service: ownership-scoped trip storage and budget normalization.

Every lookup that reads, changes or deletes a single trip filters on both
the trip id and the owner id, so another user's trip is reported exactly
like a missing one.
"""
import logging
from typing import List, Optional, Tuple
from sqlalchemy import select
from sqlalchemy.orm import Session, joinedload
from app.core.exceptions import NotFound, ValidationError
from app.db.session import commit_or_raise
from app.models.trip import Trip, TripShare, TripStatus, normalize_budget
from app.models.user import User
from app.schemas.trip import Coordinates, Day, TripCreate, TripUpdate

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


def _dump_days(days: List[Day]) -> list:
    """Serialize itinerary days for the JSON column."""
    return [day.model_dump(mode="json") for day in days]


def _set_coordinates(trip: Trip, coordinates: Optional[Coordinates]) -> None:
    if coordinates is None:
        trip.latitude = None
        trip.longitude = None
    else:
        trip.latitude = coordinates.lat
        trip.longitude = coordinates.lng


def _check_shared_with(owner_id: int, user_ids: List[int], db: Session) -> List[int]:
    """Validate share targets: existing users other than the owner, without duplicates."""
    ids = list(dict.fromkeys(user_ids))
    if owner_id in ids:
        raise ValidationError("A trip cannot be shared with its owner")
    if ids:
        found = {row[0] for row in db.query(User.id).filter(User.id.in_(ids)).all()}
        missing = [user_id for user_id in ids if user_id not in found]
        if missing:
            logger.info(f"Rejected shared_with with unknown user ids for owner {owner_id}")
            raise ValidationError("Invalid shared_with")
    return ids


def _check_paging(page: int, page_size: int) -> None:
    if page < 1:
        raise ValidationError("page must be at least 1")
    if not 1 <= page_size <= MAX_PAGE_SIZE:
        raise ValidationError(f"page_size must be between 1 and {MAX_PAGE_SIZE}")


def create_trip(owner_id: int, trip_data: TripCreate, db: Session) -> Trip:
    """Create a trip owned by the authenticated user."""
    shared_with = _check_shared_with(owner_id, trip_data.shared_with, db)

    trip = Trip(
        owner_id=owner_id,
        destination=trip_data.destination,
        start_date=trip_data.start_date,
        end_date=trip_data.end_date,
        budget=normalize_budget(trip_data.budget),
        interests=list(trip_data.interests),
        itinerary=_dump_days(trip_data.itinerary),
        status=trip_data.status,
        is_public=trip_data.is_public
    )
    _set_coordinates(trip, trip_data.coordinates)
    trip.shares = [TripShare(user_id=user_id) for user_id in shared_with]

    db.add(trip)
    commit_or_raise(db, "create trip")
    db.refresh(trip)
    logger.info(f"Created trip {trip.id} for user {owner_id}")
    return trip


def get_my_trips(
    owner_id: int,
    db: Session,
    status: Optional[TripStatus] = None,
    page: int = 1,
    page_size: int = DEFAULT_PAGE_SIZE
) -> Tuple[List[Trip], int]:
    """List the owner's trips, newest first."""
    _check_paging(page, page_size)
    query = db.query(Trip).filter(Trip.owner_id == owner_id)
    if status:
        query = query.filter(Trip.status == status)

    total = query.count()
    trips = query.order_by(Trip.created_at.desc(), Trip.id.desc()).offset(
        (page - 1) * page_size
    ).limit(page_size).all()
    return trips, total


def get_trip(owner_id: int, trip_id: int, db: Session) -> Trip:
    trip = db.query(Trip).filter(
        Trip.id == trip_id,
        Trip.owner_id == owner_id
    ).first()
    if not trip:
        raise NotFound("Trip not found")
    return trip


def update_trip(owner_id: int, trip_id: int, trip_data: TripUpdate, db: Session) -> Trip:
    """Apply a partial update; omitted fields keep their values."""
    trip = get_trip(owner_id, trip_id, db)
    fields = trip_data.model_fields_set

    start_date = trip_data.start_date or trip.start_date
    end_date = trip_data.end_date or trip.end_date
    if start_date > end_date:
        raise ValidationError("start_date must be on or before end_date")

    shared_with = None
    if trip_data.shared_with is not None:
        shared_with = _check_shared_with(owner_id, trip_data.shared_with, db)

    for field in ("destination", "start_date", "end_date", "interests", "status", "is_public"):
        value = getattr(trip_data, field)
        if field in fields and value is not None:
            setattr(trip, field, value)

    if trip_data.budget is not None:
        trip.budget = normalize_budget(trip_data.budget)
    if trip_data.itinerary is not None:
        trip.itinerary = _dump_days(trip_data.itinerary)
    if "coordinates" in fields:
        _set_coordinates(trip, trip_data.coordinates)

    if shared_with is not None:
        keep = set(shared_with)
        trip.shares = [share for share in trip.shares if share.user_id in keep]
        existing = {share.user_id for share in trip.shares}
        trip.shares.extend(
            TripShare(user_id=user_id) for user_id in shared_with if user_id not in existing
        )

    commit_or_raise(db, "update trip")
    db.refresh(trip)
    logger.info(f"Updated trip {trip.id}")
    return trip


def delete_trip(owner_id: int, trip_id: int, db: Session) -> None:
    trip = get_trip(owner_id, trip_id, db)
    db.delete(trip)
    commit_or_raise(db, "delete trip")
    logger.info(f"Deleted trip {trip_id} of user {owner_id}")


def get_public_trips(
    db: Session,
    destination: Optional[str] = None,
    page: int = 1,
    page_size: int = DEFAULT_PAGE_SIZE
) -> Tuple[List[Trip], int]:
    """
    List public trips of all users, newest first.

    ``destination`` is matched as a case-insensitive substring; LIKE
    wildcards in it are matched literally.
    """
    _check_paging(page, page_size)
    query = db.query(Trip).filter(Trip.is_public.is_(True))
    if destination and destination.strip():
        term = destination.strip().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        query = query.filter(Trip.destination.ilike(f"%{term}%", escape="\\"))

    total = query.count()
    trips = query.options(joinedload(Trip.owner)).order_by(
        Trip.created_at.desc(), Trip.id.desc()
    ).offset((page - 1) * page_size).limit(page_size).all()
    return trips, total


def delete_trips_for_owner(owner_id: int, db: Session) -> int:
    """
    Delete all trips owned by a user and their shares.

    Does not commit; the caller owns the transaction.
    """
    trip_ids = select(Trip.id).where(Trip.owner_id == owner_id)
    db.query(TripShare).filter(TripShare.trip_id.in_(trip_ids)).delete(
        synchronize_session=False
    )
    deleted = db.query(Trip).filter(Trip.owner_id == owner_id).delete(synchronize_session=False)
    return deleted


def remove_user_from_shares(user_id: int, db: Session) -> int:
    """Drop a user from every trip shared with them. Does not commit."""
    return db.query(TripShare).filter(TripShare.user_id == user_id).delete(synchronize_session=False)
