"""
Shared route dependencies.
"""
from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session
from app.core.exceptions import EmailNotVerified, Unauthenticated
from app.core.security import decode_access_token
from app.db.session import get_db
from app.models.user import User

bearer_scheme = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db)
) -> User:
    """Resolve the user from the ``Authorization: Bearer <token>`` header."""
    if credentials is None:
        raise Unauthenticated("Not authorized, no token")

    payload = decode_access_token(credentials.credentials)
    if not payload or "sub" not in payload:
        raise Unauthenticated("Invalid or expired token")

    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError):
        raise Unauthenticated("Invalid or expired token")

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise Unauthenticated("User no longer exists")
    if not user.email_verified:
        raise EmailNotVerified()

    return user
