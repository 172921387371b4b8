import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse, PlainTextResponse

from email_service.smtp_service import send_test_email

logger = logging.getLogger(__name__)

health_router = APIRouter(tags=["health"])


@health_router.get("/", response_class=PlainTextResponse)
def read_root():
    return "Codivra API is running"


@health_router.get("/health")
def health():
    return {"status": "ok"}


@health_router.get("/test-email")
def test_email():
    """Send a test message through the configured SMTP server."""
    try:
        message_id = send_test_email()
    except Exception as exc:
        logger.exception("/test-email failed")
        return JSONResponse(status_code=500, content={"status": "error", "error": str(exc)})
    return {"status": "ok", "messageId": message_id}
