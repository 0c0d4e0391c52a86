"""
Utility functions for the application.
"""
from typing import Any, Dict, Optional
from datetime import datetime, timezone


def utcnow() -> datetime:
    """Naive UTC timestamp, matching what the database columns store."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def normalize_email(email: str) -> str:
    """Emails are unique case-insensitively, so store them trimmed and lower-cased."""
    return email.strip().lower()


def format_response(data: Any = None, message: Optional[str] = None) -> Dict[str, Any]:
    """Format API response."""
    response: Dict[str, Any] = {"status": "success"}
    if message:
        response["message"] = message
    if data is not None:
        response["data"] = data
    return response


def format_error(message: str, details: Any = None) -> Dict[str, Any]:
    """Format error response."""
    response = {"status": "error", "message": message}
    if details:
        response["details"] = details
    return response
