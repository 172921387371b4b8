import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from fastapi.responses import JSONResponse

from api.dependencies.auth import require_admin
from api.schemas.InquirySchema import InquirySubmission
from dbase.collections.InquiryCollection import InquiryCollection
from email_service.smtp_service import send_inquiry_confirmation_email, send_inquiry_email

logger = logging.getLogger(__name__)

inquiry_router = APIRouter(tags=["inquiry"])


def _send_confirmation(inquiry: dict):
    try:
        send_inquiry_confirmation_email(inquiry)
    except Exception:
        logger.exception("Inquiry confirmation email to %s failed", inquiry["email"])


@inquiry_router.post("/api/inquiry")
def create_inquiry(inquiry: InquirySubmission, background_tasks: BackgroundTasks):
    """Email staff, then store the inquiry even if the email failed."""
    data = inquiry.model_dump()
    logger.info("Inquiry received from %s: %s", inquiry.email, inquiry.subject)

    email_error = None
    try:
        send_inquiry_email(data)
    except Exception as exc:
        email_error = str(exc)
        logger.exception("Inquiry email failed, saving anyway")

    try:
        InquiryCollection().create(data, email_error=email_error)
    except Exception as exc:
        logger.exception("Failed to store inquiry")
        return JSONResponse(
            status_code=500,
            content={"status": "error", "error": "Failed to save submission", "details": str(exc)},
        )

    background_tasks.add_task(_send_confirmation, data)

    if email_error:
        message = "Inquiry received, but email notification failed. We'll still reach out."
    else:
        message = "Inquiry received. We'll reach out soon. A confirmation email has been sent to you."
    return {"status": "ok", "message": message}


@inquiry_router.get("/api/admin/inquiries")
def list_inquiries(_admin: dict = Depends(require_admin)):
    return {"success": True, "items": InquiryCollection().list()}


@inquiry_router.delete("/api/admin/inquiries/{inquiry_id}")
def delete_inquiry(inquiry_id: str, _admin: dict = Depends(require_admin)):
    try:
        deleted = InquiryCollection().delete(inquiry_id)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid ID format")
    if not deleted:
        raise HTTPException(status_code=404, detail="Inquiry not found")
    return {"success": True, "status": "ok"}


@inquiry_router.put("/api/admin/inquiries/{inquiry_id}/toggle-read")
def toggle_inquiry_read(inquiry_id: str, _admin: dict = Depends(require_admin)):
    try:
        updated = InquiryCollection().toggle_read(inquiry_id)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid ID format")
    if not updated:
        raise HTTPException(status_code=404, detail="Inquiry not found")
    return {"success": True, "data": updated}
