"""
Authentication routes: registration, OTP verification, login, Google sign in,
password reset and account management.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from app.db.session import get_db
from app.schemas.user import (
    RegisterRequest, VerifyOTPRequest, LoginRequest, EmailRequest, GoogleAuthRequest,
    ResetPasswordRequest, AuthResponse, UserResponse, PendingVerificationResponse
)
from app.models.user import User
from app.services import account_service
from app.core.utils import format_response
from app.api.dependencies import get_current_user

router = APIRouter(prefix="/auth", tags=["auth"])


def _auth_data(user: User, token: str) -> dict:
    return AuthResponse(user=UserResponse.model_validate(user), token=token).model_dump(mode="json")


def _pending_data(user: User) -> dict:
    return PendingVerificationResponse(
        email=user.email,
        otp_expires_at=user.otp_expire
    ).model_dump(mode="json")


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(user_data: RegisterRequest, db: Session = Depends(get_db)):
    """Register a new user and email a verification code. No token is issued."""
    user = await account_service.register(user_data.name, user_data.email, user_data.password, db)
    return format_response(
        _pending_data(user),
        "OTP sent to your email. Please check your inbox."
    )


@router.post("/verify-otp")
def verify_otp(payload: VerifyOTPRequest, db: Session = Depends(get_db)):
    """Verify the emailed code; logs the user in on success."""
    user, token = account_service.verify_otp(payload.email, payload.otp, db)
    return format_response(
        _auth_data(user, token),
        "Email verified successfully. Your account has been created."
    )


@router.post("/login")
def login(credentials: LoginRequest, db: Session = Depends(get_db)):
    """Login and get JWT token."""
    user, token = account_service.login(credentials.email, credentials.password, db)
    return format_response(_auth_data(user, token), "Login successful")


@router.post("/resend-verification")
async def resend_verification(payload: EmailRequest, db: Session = Depends(get_db)):
    """Send a fresh verification code."""
    user = await account_service.resend_verification(payload.email, db)
    return format_response(
        _pending_data(user),
        "OTP sent to your email. Please check your inbox."
    )


@router.post("/google")
def google_auth(payload: GoogleAuthRequest, db: Session = Depends(get_db)):
    """Sign in or sign up with a Google identity."""
    user, token = account_service.federated_login(
        payload.name, payload.email, payload.google_id, payload.picture, db
    )
    return format_response(_auth_data(user, token), "Google authentication successful")


@router.post("/forgot-password")
async def forgot_password(payload: EmailRequest, db: Session = Depends(get_db)):
    """Email a password reset link if the account exists."""
    await account_service.request_password_reset(payload.email, db)
    return format_response(
        message="If an account exists for this email, a password reset link has been sent."
    )


@router.post("/reset-password")
def reset_password(payload: ResetPasswordRequest, db: Session = Depends(get_db)):
    """Set a new password using a reset token."""
    account_service.reset_password(payload.token, payload.password, db)
    return format_response(message="Password has been reset. Please login.")


@router.get("/me")
def get_me(current_user: User = Depends(get_current_user)):
    """Get current user information."""
    return format_response({"user": UserResponse.model_validate(current_user).model_dump(mode="json")})


@router.delete("/account")
def delete_account(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Delete the current user and all of their trips."""
    account_service.delete_account(current_user.id, db)
    return format_response(message="Account and all associated data deleted successfully")
