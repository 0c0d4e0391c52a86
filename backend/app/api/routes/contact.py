"""
Contact form route.
"""
from fastapi import APIRouter
from app.schemas.contact import ContactRequest
from app.services import email_service
from app.core.utils import format_response

router = APIRouter(prefix="/contact", tags=["contact"])


@router.post("")
async def submit_contact_form(form: ContactRequest):
    """Forward a contact form submission to support. No authentication required."""
    await email_service.send_contact_email(
        name=form.name,
        email=form.email,
        subject=form.subject,
        message=form.message,
        issue_type=form.issue_type
    )
    return format_response(
        message="Your message has been sent successfully. We will get back to you soon."
    )
