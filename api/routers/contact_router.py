import logging
from datetime import datetime, timezone

from fastapi import APIRouter, BackgroundTasks
from fastapi.responses import JSONResponse

from api.schemas.ContactSchema import ContactSubmission
from email_service.smtp_service import send_contact_confirmation_email, send_contact_email

logger = logging.getLogger(__name__)

contact_router = APIRouter(tags=["contact"])


def _send_confirmation(submission: ContactSubmission):
    try:
        send_contact_confirmation_email(name=submission.name, email=submission.email, message=submission.message)
    except Exception:
        logger.exception("Confirmation email to %s failed", submission.email)


@contact_router.post("/api/contact")
def submit_contact(submission: ContactSubmission, background_tasks: BackgroundTasks):
    """Email the contact request to staff. Submissions are not stored."""
    logger.info(
        "Contact request received: %s",
        {**submission.model_dump(), "receivedAt": datetime.now(timezone.utc).isoformat()},
    )

    try:
        send_contact_email(
            name=submission.name,
            email=submission.email,
            service=submission.service,
            message=submission.message,
            phone=submission.phone,
        )
    except Exception as exc:
        logger.exception("Failed to send contact email")
        return JSONResponse(
            status_code=500,
            content={"status": "error", "error": "Failed to send email", "details": str(exc)},
        )

    background_tasks.add_task(_send_confirmation, submission)
    return {"status": "ok", "message": "Message received and emailed. We'll reach out soon."}
