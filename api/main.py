import logging
import os
import re
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.routers.admin_router import admin_router, seed_default_admin
from api.routers.careers_router import careers_router
from api.routers.chatbot_router import chatbot_router
from api.routers.contact_router import contact_router
from api.routers.health_router import health_router
from api.routers.inquiry_router import inquiry_router
from dbase.collections.AdminCollection import AdminCollection
from dbase.collections.EmailOtpCollection import EmailOtpCollection
from dbase.driver import reset_clients
from email_service.smtp_service import is_email_configured

load_dotenv()

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


def allowed_origins() -> list:
    return [origin.strip() for origin in os.getenv("CORS_ORIGIN", "").split(",") if origin.strip()]


@asynccontextmanager
async def lifespan(_app: FastAPI):
    if is_email_configured():
        logger.info("SMTP configured for %s", os.getenv("SMTP_HOST", "smtp.gmail.com"))
    else:
        logger.info("SMTP credentials not configured. Email notifications disabled.")

    try:
        AdminCollection().ensure_indexes()
        EmailOtpCollection().ensure_indexes()
    except Exception:
        logger.exception("Failed to create database indexes")

    try:
        seed_default_admin()
    except Exception:
        logger.exception("Failed to seed default admin")

    yield
    reset_clients()


app = FastAPI(title="Codivra API", lifespan=lifespan)

_origins = allowed_origins()
app.add_middleware(
    CORSMiddleware,
    allow_origins=_origins or ["*"],
    allow_credentials=bool(_origins),
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Validation errors ───────────────────────────────────────────────────────

_LOCATIONS = ("body", "query", "path", "header")


def _label(field: str) -> str:
    words = re.sub(r"(?<!^)(?=[A-Z])", " ", field).replace("_", " ")
    return words.capitalize()


def _error_message(field: str, error: dict) -> str:
    error_type = error.get("type", "")
    ctx = error.get("ctx") or {}
    if not field:
        return error.get("msg", "Invalid input")
    if error_type == "missing":
        return f"{_label(field)} is required"
    if error_type == "string_too_short":
        return f"{_label(field)} must be at least {ctx.get('min_length')} characters"
    if error_type.startswith("url_"):
        return f"{_label(field)} must be a valid URL"
    if field == "email" and error_type == "value_error":
        return "Please provide a valid email"
    return error.get("msg", "Invalid value")


def flatten_validation_errors(errors) -> dict:
    """Group pydantic errors by top-level field, the way the SPA expects them."""
    form_errors = []
    field_errors = {}
    for error in errors:
        loc = [part for part in error.get("loc", ()) if part not in _LOCATIONS]
        field = loc[0] if loc and isinstance(loc[0], str) else ""
        message = _error_message(field, error)
        if field:
            field_errors.setdefault(field, []).append(message)
        else:
            form_errors.append(message)
    return {"formErrors": form_errors, "fieldErrors": field_errors}


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid input", "issues": flatten_validation_errors(exc.errors())},
    )


app.include_router(health_router)
app.include_router(contact_router)
app.include_router(careers_router)
app.include_router(inquiry_router)
app.include_router(admin_router)
app.include_router(chatbot_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", 4000)))
