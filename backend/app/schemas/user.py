"""
Pydantic schemas for User entity and authentication flows.
"""
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from typing import Literal, Optional
from datetime import datetime


class RequestModel(BaseModel):
    """Base for request bodies: unknown fields are rejected."""
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)


class RegisterRequest(RequestModel):
    """Schema for user registration."""
    name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(min_length=6)


class VerifyOTPRequest(RequestModel):
    """Schema for OTP verification."""
    email: EmailStr
    otp: str = Field(min_length=1, max_length=10)


class LoginRequest(RequestModel):
    """Schema for user login."""
    email: EmailStr
    password: str = Field(min_length=1)


class EmailRequest(RequestModel):
    """Schema for requests identified by email only (resend, forgot password)."""
    email: EmailStr


class GoogleAuthRequest(RequestModel):
    """Schema for federated (Google) sign in."""
    name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    google_id: str = Field(min_length=1, max_length=255)
    picture: Optional[str] = Field(default=None, max_length=500)


class ResetPasswordRequest(RequestModel):
    """Schema for completing a password reset."""
    token: str = Field(min_length=1)
    password: str = Field(min_length=6)


class ProfileUpdate(RequestModel):
    """Schema for profile update."""
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    profile_picture: Optional[str] = Field(default=None, max_length=500)


class PreferencesUpdate(RequestModel):
    """Schema for preferences update."""
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)
    language: Optional[str] = Field(default=None, min_length=2, max_length=10)
    theme: Optional[Literal["light", "dark", "auto"]] = None

    @field_validator("currency")
    @classmethod
    def upper_currency(cls, v):
        return v.upper() if v else v


class Preferences(BaseModel):
    currency: str = "USD"
    language: str = "en"
    theme: str = "auto"


class UserResponse(BaseModel):
    """Public projection of a user; never includes credentials or pending codes."""
    id: int
    name: str
    email: str
    email_verified: bool
    profile_picture: Optional[str] = None
    preferences: Preferences
    created_at: datetime

    class Config:
        from_attributes = True


class OwnerSummary(BaseModel):
    """Minimal owner projection attached to public trips."""
    id: int
    name: str
    email: str

    class Config:
        from_attributes = True


class AuthResponse(BaseModel):
    """Schema for a successful login or verification."""
    user: UserResponse
    token: str
    token_type: str = "bearer"


class PendingVerificationResponse(BaseModel):
    """Returned by register/resend; no token until the OTP is verified."""
    email: str
    otp_expires_at: datetime
