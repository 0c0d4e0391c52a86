"""
Security utilities for JWT authentication, password hashing and one-time codes.
"""
from datetime import datetime, timedelta
from typing import Optional
import hashlib
import secrets
import bcrypt
from jose import JWTError, jwt
from app.core.config import settings


def _pre_hash_password(password: str) -> bytes:
    """
    Pre-hash password with SHA256 to support passwords longer than 72 bytes.
    Returns bytes (32 bytes) which is well under bcrypt's 72-byte limit.
    """
    return hashlib.sha256(password.encode('utf-8')).digest()


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    pre_hashed = _pre_hash_password(plain_password)
    try:
        return bcrypt.checkpw(pre_hashed, hashed_password.encode('utf-8'))
    except ValueError:
        # Malformed hash in storage
        return False


def get_password_hash(password: str) -> str:
    """
    Hash a password.
    Pre-hashes with SHA256 first to support passwords longer than 72 bytes.
    """
    pre_hashed = _pre_hash_password(password)
    salt = bcrypt.gensalt()
    hashed = bcrypt.hashpw(pre_hashed, salt)
    return hashed.decode('utf-8')


def generate_unusable_password() -> str:
    """Random secret for accounts that never log in with a password."""
    return secrets.token_urlsafe(48)


def generate_otp(length: Optional[int] = None) -> str:
    """Generate a numeric one-time code without a leading zero."""
    length = length or settings.OTP_LENGTH
    low = 10 ** (length - 1)
    return str(low + secrets.randbelow(9 * low))


def otp_matches(expected: Optional[str], supplied: str) -> bool:
    """Constant-time comparison of a stored code with a supplied one."""
    if not expected:
        return False
    return secrets.compare_digest(expected.encode('utf-8'), supplied.strip().encode('utf-8'))


def generate_reset_token() -> str:
    return secrets.token_urlsafe(32)


def hash_token(token: str) -> str:
    """Digest stored in place of a raw reset token."""
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT access token."""
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(days=settings.ACCESS_TOKEN_EXPIRE_DAYS)
    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    return encoded_jwt


def decode_access_token(token: str) -> Optional[dict]:
    """Decode and verify a JWT token."""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        return payload
    except JWTError:
        return None
