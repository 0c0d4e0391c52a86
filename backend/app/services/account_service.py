"""
Account lifecycle service: registration, OTP verification, login,
federated sign in, password reset and account deletion.

An account is created unverified with a pending OTP and becomes verified
exactly once. Nothing in this module moves a verified account back to the
unverified state, and session tokens are only issued for verified accounts.
"""
import logging
from datetime import timedelta
from typing import Optional, Tuple
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool
from app.core.config import settings
from app.core.exceptions import (
    AlreadyExists, AlreadyVerified, DispatchFailure, EmailNotVerified, Expired,
    InvalidCredentialOrCode, InvalidCredentials, NotFound, StorageFailure, ValidationError
)
from app.core.security import (
    create_access_token, generate_otp, generate_reset_token, generate_unusable_password,
    get_password_hash, hash_token, otp_matches, verify_password
)
from app.core.utils import normalize_email, utcnow
from app.db.session import commit_or_raise
from app.models.user import User
from app.services import email_service, trip_service

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


def get_user_by_email(email: str, db: Session) -> Optional[User]:
    return db.query(User).filter(User.email == normalize_email(email)).first()


def issue_session_token(user: User) -> str:
    """Mint a session token bound to the user id."""
    return create_access_token(data={"sub": str(user.id)})


def _issue_otp(user: User) -> None:
    user.otp = generate_otp()
    user.otp_expire = utcnow() + timedelta(minutes=settings.OTP_EXPIRE_MINUTES)


def _clear_otp(user: User) -> None:
    user.otp = None
    user.otp_expire = None


def _check_registration_input(name: str, password: str) -> str:
    name = (name or "").strip()
    if not name:
        raise ValidationError("Name is required")
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    return name


def _save_registration(name: str, email: str, password: str, db: Session) -> Tuple[User, bool]:
    """Create or refresh the unverified account; returns the user and whether it is new."""
    user = get_user_by_email(email, db)
    if user and user.email_verified:
        raise AlreadyExists()

    if user:
        user.name = name
        user.hashed_password = get_password_hash(password)
        _issue_otp(user)
        commit_or_raise(db, "update unverified user")
        db.refresh(user)
        logger.info(f"Re-issued verification code for unverified user {user.id}")
        return user, False

    user = User(
        name=name,
        email=email,
        hashed_password=get_password_hash(password),
        email_verified=False
    )
    _issue_otp(user)
    db.add(user)
    try:
        db.commit()
    except IntegrityError as exc:
        # Lost a race with a concurrent registration for the same email
        db.rollback()
        logger.warning(f"Duplicate registration rejected by unique index for {email}")
        raise AlreadyExists() from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error(f"Failed to create user: {exc}", exc_info=True)
        raise StorageFailure() from exc
    db.refresh(user)
    logger.info(f"Created unverified user {user.id}")
    return user, True


def _discard_user(user: User, db: Session) -> None:
    db.delete(user)
    commit_or_raise(db, "remove unverifiable user")


async def register(name: str, email: str, password: str, db: Session) -> User:
    """
    Register a user and email a verification code.

    A verified account with the same email fails with AlreadyExists. An
    unverified one is treated as a retry: its name and password are replaced
    and a fresh OTP is sent. If the email cannot be sent, a newly created
    account is removed again, while a retried account keeps its new OTP so the
    caller can ask for a resend. No session token is issued here.

    Store and hashing work runs in the threadpool; only the email send is
    awaited on the event loop.
    """
    name = _check_registration_input(name, password)
    email = normalize_email(email)

    user, created = await run_in_threadpool(_save_registration, name, email, password, db)

    try:
        await email_service.send_otp_email(user.email, user.name, user.otp)
    except DispatchFailure:
        if not created:
            raise
        user_id = user.id
        logger.warning(f"Removing user {user_id} after failed verification email")
        try:
            await run_in_threadpool(_discard_user, user, db)
        except StorageFailure:
            logger.error(f"Could not remove unverified user {user_id}; it stays pending until resend or retry")
        raise
    return user


def verify_otp(email: str, otp: str, db: Session) -> Tuple[User, str]:
    """Confirm the emailed code, activate the account and log it in."""
    user = get_user_by_email(email, db)
    if not user:
        raise InvalidCredentialOrCode()

    if user.email_verified:
        raise AlreadyVerified()

    if not otp_matches(user.otp, otp):
        raise InvalidCredentialOrCode()

    if user.otp_expire is None or user.otp_expire < utcnow():
        raise Expired()

    user.email_verified = True
    _clear_otp(user)
    commit_or_raise(db, "verify user")
    db.refresh(user)
    logger.info(f"User {user.id} verified email")

    return user, issue_session_token(user)


def login(email: str, password: str, db: Session) -> Tuple[User, str]:
    user = get_user_by_email(email, db)
    if not user:
        raise InvalidCredentials()

    # Checked before the password: unverified accounts never log in
    if not user.email_verified:
        raise EmailNotVerified()

    if not verify_password(password, user.hashed_password):
        raise InvalidCredentials()

    return user, issue_session_token(user)


def federated_login(
    name: str,
    email: str,
    google_id: str,
    picture: Optional[str],
    db: Session
) -> Tuple[User, str]:
    """
    Sign in with an identity already proven by Google.

    Existing accounts get the Google id attached if they have none; an
    existing different binding is left untouched. Unknown emails get a new,
    pre-verified account whose password is an unusable random secret.
    """
    name = (name or "").strip()
    google_id = (google_id or "").strip()
    if not name or not email or not google_id:
        raise ValidationError("Name, email and Google id are required")
    email = normalize_email(email)

    user = get_user_by_email(email, db)
    if user is None:
        # The Google subject is stable even if the email on the account changed
        user = db.query(User).filter(User.google_id == google_id).first()

    if user is None:
        user = User(
            name=name,
            email=email,
            hashed_password=get_password_hash(generate_unusable_password()),
            google_id=google_id,
            email_verified=True,
            profile_picture=picture
        )
        db.add(user)
        try:
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            logger.warning(f"Concurrent federated sign up rejected for {email}")
            raise AlreadyExists() from exc
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error(f"Failed to create federated user: {exc}", exc_info=True)
            raise StorageFailure() from exc
        db.refresh(user)
        logger.info(f"Created federated user {user.id}")
        return user, issue_session_token(user)

    if not user.google_id:
        bound = db.query(User).filter(User.google_id == google_id, User.id != user.id).first()
        if bound is None:
            user.google_id = google_id
        else:
            logger.warning(f"Google id already bound to user {bound.id}; not attaching to user {user.id}")
    elif user.google_id != google_id:
        logger.warning(f"User {user.id} is bound to a different Google id; keeping existing binding")

    if not user.email_verified:
        # Google proved the address; the pending password was never confirmed by its owner
        user.email_verified = True
        user.hashed_password = get_password_hash(generate_unusable_password())
        _clear_otp(user)
        logger.info(f"User {user.id} verified through Google sign in")

    if not user.profile_picture and picture:
        user.profile_picture = picture

    commit_or_raise(db, "update federated user")
    db.refresh(user)
    return user, issue_session_token(user)


def _reissue_otp(email: str, db: Session) -> User:
    user = get_user_by_email(email, db)
    if not user:
        raise NotFound("User not found")
    if user.email_verified:
        raise AlreadyVerified()

    _issue_otp(user)
    commit_or_raise(db, "reissue verification code")
    db.refresh(user)
    return user


async def resend_verification(email: str, db: Session) -> User:
    user = await run_in_threadpool(_reissue_otp, email, db)
    logger.info(f"Resending verification code to user {user.id}")
    await email_service.send_otp_email(user.email, user.name, user.otp)
    return user


def _store_reset_token(email: str, db: Session) -> Optional[Tuple[User, str]]:
    user = get_user_by_email(email, db)
    if not user or not user.email_verified:
        return None

    token = generate_reset_token()
    user.reset_password_token = hash_token(token)
    user.reset_password_expire = utcnow() + timedelta(minutes=settings.PASSWORD_RESET_EXPIRE_MINUTES)
    commit_or_raise(db, "store password reset token")
    db.refresh(user)
    return user, token


async def request_password_reset(email: str, db: Session) -> None:
    """
    Email a reset link to a verified account.

    Unknown or unverified emails return silently so the response does not
    reveal which addresses are registered.
    """
    stored = await run_in_threadpool(_store_reset_token, email, db)
    if stored is None:
        logger.info("Password reset requested for unknown or unverified email")
        return

    user, token = stored
    await email_service.send_password_reset_email(user.email, user.name, token)


def reset_password(token: str, password: str, db: Session) -> User:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

    user = db.query(User).filter(User.reset_password_token == hash_token(token)).first()
    if not user:
        raise InvalidCredentialOrCode("Invalid or expired reset token")
    if user.reset_password_expire is None or user.reset_password_expire < utcnow():
        raise Expired("Password reset link has expired. Please request a new one.")

    user.hashed_password = get_password_hash(password)
    user.reset_password_token = None
    user.reset_password_expire = None
    commit_or_raise(db, "reset password")
    db.refresh(user)
    logger.info(f"User {user.id} reset password")
    return user


def update_profile(user: User, db: Session, name: Optional[str] = None,
                   profile_picture: Optional[str] = None) -> User:
    if name is not None:
        user.name = name
    if profile_picture is not None:
        user.profile_picture = profile_picture or None
    commit_or_raise(db, "update profile")
    db.refresh(user)
    return user


def update_preferences(user: User, db: Session, currency: Optional[str] = None,
                       language: Optional[str] = None, theme: Optional[str] = None) -> User:
    if currency is not None:
        user.currency = currency
    if language is not None:
        user.language = language
    if theme is not None:
        user.theme = theme
    commit_or_raise(db, "update preferences")
    db.refresh(user)
    return user


def delete_account(user_id: int, db: Session) -> int:
    """
    Delete a user together with every trip they own.

    Trips and shares are removed before the user row, all in one transaction;
    if anything fails nothing is deleted. Returns the number of trips removed.
    """
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFound("User not found")

    try:
        trip_service.remove_user_from_shares(user_id, db)
        deleted_trips = trip_service.delete_trips_for_owner(user_id, db)
        db.delete(user)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error(f"Failed to delete account {user_id}: {exc}", exc_info=True)
        raise StorageFailure("Failed to delete account") from exc

    logger.info(f"Deleted user {user_id} and {deleted_trips} trips")
    return deleted_trips
