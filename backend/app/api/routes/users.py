"""
User profile and preference routes.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.db.session import get_db
from app.schemas.user import UserResponse, ProfileUpdate, PreferencesUpdate
from app.models.user import User
from app.services import account_service
from app.core.utils import format_response
from app.api.dependencies import get_current_user

router = APIRouter(prefix="/users", tags=["users"])


@router.put("/profile")
def update_profile(
    profile: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Update display name or profile picture."""
    user = account_service.update_profile(
        current_user, db, name=profile.name, profile_picture=profile.profile_picture
    )
    return format_response(
        {"user": UserResponse.model_validate(user).model_dump(mode="json")},
        "Profile updated successfully"
    )


@router.put("/preferences")
def update_preferences(
    preferences: PreferencesUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Update currency, language or theme."""
    user = account_service.update_preferences(
        current_user, db,
        currency=preferences.currency,
        language=preferences.language,
        theme=preferences.theme
    )
    return format_response(
        {"user": UserResponse.model_validate(user).model_dump(mode="json")},
        "Preferences updated successfully"
    )
