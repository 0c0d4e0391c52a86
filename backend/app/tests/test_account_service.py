"""
Tests for the account lifecycle service.
"""
import asyncio
from datetime import date
import pytest
from sqlalchemy.exc import SQLAlchemyError
from app.core.exceptions import (
    AlreadyExists, AlreadyVerified, DispatchFailure, EmailNotVerified, InvalidCredentialOrCode,
    NotFound, StorageFailure, ValidationError
)
from app.core.security import decode_access_token, get_password_hash
from app.models.trip import Trip, TripShare
from app.models.user import User
from app.schemas.trip import TripCreate
from app.services import account_service, trip_service


def make_verified_user(db, email: str, name: str = "User") -> User:
    user = User(name=name, email=email, hashed_password=get_password_hash("secret1"), email_verified=True)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def test_register_then_verify_issues_token_for_user(db, outbox):
    user = asyncio.run(account_service.register("Ana", "ana@x.com", "secret1", db))
    assert user.email_verified is False

    verified, token = account_service.verify_otp("ana@x.com", outbox.last_otp("ana@x.com"), db)
    assert verified.id == user.id
    assert decode_access_token(token)["sub"] == str(user.id)

    with pytest.raises(AlreadyVerified):
        account_service.verify_otp("ana@x.com", outbox.last_otp("ana@x.com"), db)


def test_register_validates_input(db, outbox):
    with pytest.raises(ValidationError):
        asyncio.run(account_service.register("", "ana@x.com", "secret1", db))
    with pytest.raises(ValidationError):
        asyncio.run(account_service.register("Ana", "ana@x.com", "12345", db))
    assert outbox.messages == []


def test_concurrent_registration_loses_to_unique_index(db, outbox, monkeypatch):
    # Another request inserted the row after this one looked the email up
    db.add(User(name="First", email="ana@x.com", hashed_password=get_password_hash("secret1")))
    db.commit()
    monkeypatch.setattr(account_service, "get_user_by_email", lambda email, db: None)

    with pytest.raises(AlreadyExists):
        asyncio.run(account_service.register("Second", "ana@x.com", "secret1", db))

    assert db.query(User).filter(User.email == "ana@x.com").count() == 1
    assert outbox.messages == []


def test_login_unverified_fails_regardless_of_password(db, outbox):
    asyncio.run(account_service.register("Ana", "ana@x.com", "secret1", db))
    for password in ("secret1", "bad-password"):
        with pytest.raises(EmailNotVerified):
            account_service.login("ana@x.com", password, db)


def test_verify_unknown_account(db):
    with pytest.raises(InvalidCredentialOrCode):
        account_service.verify_otp("ghost@x.com", "123456", db)


def test_resend_unknown_account(db, outbox):
    with pytest.raises(NotFound):
        asyncio.run(account_service.resend_verification("ghost@x.com", db))


def test_delete_account_cascades_trips_and_shares(db):
    owner = make_verified_user(db, "owner@x.com")
    friend = make_verified_user(db, "friend@x.com")
    other = make_verified_user(db, "other@x.com")

    for destination in ("Paris", "Lisbon"):
        trip_service.create_trip(
            owner.id,
            TripCreate(destination=destination, start_date=date(2026, 6, 1), end_date=date(2026, 6, 5),
                       shared_with=[friend.id]),
            db
        )
    kept = trip_service.create_trip(
        other.id,
        TripCreate(destination="Oslo", start_date=date(2026, 6, 1), end_date=date(2026, 6, 2),
                   shared_with=[owner.id]),
        db
    )

    removed = account_service.delete_account(owner.id, db)

    assert removed == 2
    assert db.query(Trip).filter(Trip.owner_id == owner.id).count() == 0
    assert db.query(User).filter(User.id == owner.id).count() == 0
    assert db.query(TripShare).filter(TripShare.user_id == owner.id).count() == 0
    assert db.query(Trip).filter(Trip.id == kept.id).count() == 1


def test_delete_account_failure_keeps_everything(db, monkeypatch):
    owner = make_verified_user(db, "owner@x.com")
    trip_service.create_trip(
        owner.id,
        TripCreate(destination="Paris", start_date=date(2026, 6, 1), end_date=date(2026, 6, 5)),
        db
    )

    def broken(owner_id, db):
        raise SQLAlchemyError("disk full")

    monkeypatch.setattr(trip_service, "delete_trips_for_owner", broken)

    with pytest.raises(StorageFailure):
        account_service.delete_account(owner.id, db)

    assert db.query(User).filter(User.id == owner.id).count() == 1
    assert db.query(Trip).filter(Trip.owner_id == owner.id).count() == 1


def test_delete_unknown_account(db):
    with pytest.raises(NotFound):
        account_service.delete_account(999, db)


def test_update_profile_and_preferences(db):
    user = make_verified_user(db, "ana@x.com", name="Ana")
    account_service.update_profile(user, db, name="Ana B", profile_picture="https://img/a.png")
    account_service.update_preferences(user, db, currency="EUR", theme="dark")

    db.refresh(user)
    assert user.name == "Ana B"
    assert user.profile_picture == "https://img/a.png"
    assert user.preferences == {"currency": "EUR", "language": "en", "theme": "dark"}


def test_failed_cleanup_after_dispatch_failure_keeps_original_error(db, outbox, monkeypatch, caplog):
    def broken(user, db):
        raise StorageFailure("Failed to remove unverifiable user")

    monkeypatch.setattr(account_service, "_discard_user", broken)
    outbox.fail = True

    with pytest.raises(DispatchFailure):
        asyncio.run(account_service.register("Ana", "ana@x.com", "secret1", db))

    assert "Could not remove unverified user" in caplog.text
    user = db.query(User).filter(User.email == "ana@x.com").one()
    assert user.email_verified is False


def test_dispatch_failure_removes_new_account(db, outbox):
    outbox.fail = True
    with pytest.raises(DispatchFailure):
        asyncio.run(account_service.register("Ana", "ana@x.com", "secret1", db))
    assert db.query(User).count() == 0
