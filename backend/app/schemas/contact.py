"""
Pydantic schemas for the contact form.
"""
from pydantic import BaseModel, ConfigDict, EmailStr, Field


class ContactRequest(BaseModel):
    """Schema for contact form submission."""
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    subject: str = Field(min_length=1, max_length=200)
    message: str = Field(min_length=1, max_length=5000)
    issue_type: str = Field(default="general", max_length=50)
