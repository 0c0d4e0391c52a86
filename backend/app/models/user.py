"""
User model for accounts, email verification and preferences.
"""
from sqlalchemy import Column, String, Boolean, DateTime
from sqlalchemy.orm import relationship
from app.db.base import BaseModel


class User(BaseModel):
    """Registered account. Unverified until the emailed OTP is confirmed."""
    __tablename__ = "users"

    name = Column(String(100), nullable=False)
    # Stored lower-cased; the unique index resolves concurrent registrations
    email = Column(String(255), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)
    google_id = Column(String(255), unique=True, nullable=True)
    email_verified = Column(Boolean, default=False, nullable=False)

    # Pending verification
    otp = Column(String(10), nullable=True)
    otp_expire = Column(DateTime, nullable=True)

    # Pending password reset (SHA-256 digest of the mailed token)
    reset_password_token = Column(String(64), nullable=True, index=True)
    reset_password_expire = Column(DateTime, nullable=True)

    profile_picture = Column(String(500), nullable=True)

    # Preferences
    currency = Column(String(3), default="USD", nullable=False)
    language = Column(String(10), default="en", nullable=False)
    theme = Column(String(10), default="auto", nullable=False)

    # Relationships (deletion is handled by account_service.delete_account)
    trips = relationship("Trip", back_populates="owner", passive_deletes=True)

    @property
    def preferences(self) -> dict:
        return {"currency": self.currency, "language": self.language, "theme": self.theme}
