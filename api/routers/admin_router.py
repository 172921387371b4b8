import logging
import os

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from pymongo.errors import DuplicateKeyError

from api.dependencies.auth import (
    create_access_token,
    hash_password,
    public_admin,
    require_admin,
    verify_password,
)
from api.schemas.AdminSchema import (
    AdminChangePassword,
    AdminLogin,
    AdminUpdateCredentials,
    EmailOtpRequest,
    EmailOtpVerify,
    normalize_email,
)
from api.services import otp_service
from dbase.collections.AdminCollection import AdminCollection

logger = logging.getLogger(__name__)

admin_router = APIRouter(prefix="/api/admin", tags=["admin"])

OTP_ERROR_STATUS = {
    otp_service.OtpCooldownError: status.HTTP_429_TOO_MANY_REQUESTS,
    otp_service.OtpAttemptsExceededError: status.HTTP_429_TOO_MANY_REQUESTS,
    otp_service.OtpNotVerifiedError: status.HTTP_403_FORBIDDEN,
}


def _otp_http_error(exc: otp_service.OtpError) -> HTTPException:
    return HTTPException(
        status_code=OTP_ERROR_STATUS.get(type(exc), status.HTTP_400_BAD_REQUEST),
        detail=str(exc),
    )


def seed_default_admin() -> None:
    """Create the first admin from ADMIN_EMAIL / ADMIN_PASSWORD when none exists."""
    email = normalize_email(os.getenv("ADMIN_EMAIL") or "")
    password = os.getenv("ADMIN_PASSWORD")
    if not email or not password:
        logger.info("ADMIN_EMAIL / ADMIN_PASSWORD not set, skipping admin seed")
        return

    admins = AdminCollection()
    if admins.count():
        logger.info("Admin account already exists, skipping seed")
        return

    admins.create(email=email, password_hash=hash_password(password))
    logger.info("Default admin created: %s", email)


def _current_admin(claims: dict) -> dict:
    try:
        admin = AdminCollection().get_by_id(claims["sub"])
    except ValueError:
        admin = None
    if not admin:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Admin not found")
    return admin


# ── Auth ────────────────────────────────────────────────────────────────────

@admin_router.post("/login")
def login(credentials: AdminLogin):
    admins = AdminCollection()
    admin = admins.get_by_email(credentials.email)

    if not admin or not verify_password(credentials.password, admin.get("password_hash", "")):
        logger.warning("Failed login attempt for %s", credentials.email)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    if admin.get("is_active") is False:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="This admin account has been deactivated")

    admins.touch_login(admin["id"])
    logger.info("Admin login: %s", admin["email"])
    return {"token": create_access_token(admin), "user": public_admin(admin)}


@admin_router.get("/me")
def me(claims: dict = Depends(require_admin)):
    admin = _current_admin(claims)
    return {"success": True, "user": {**public_admin(admin), "last_login": admin.get("last_login")}}


@admin_router.post("/change-password")
def change_password(body: AdminChangePassword, claims: dict = Depends(require_admin)):
    admin = _current_admin(claims)
    if not verify_password(body.old_password, admin.get("password_hash", "")):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Old password is incorrect")

    AdminCollection().update(admin["id"], {"password_hash": hash_password(body.new_password)})
    logger.info("Password changed for %s", admin["email"])
    return {"success": True, "message": "Password changed successfully"}


# ── Email OTP ───────────────────────────────────────────────────────────────

@admin_router.post("/send-email-otp")
def send_email_otp(body: EmailOtpRequest, claims: dict = Depends(require_admin)):
    """Mail a one-time code to the address the admin wants to switch to."""
    admin = _current_admin(claims)
    if body.email == admin["email"]:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="New email must differ from the current one")

    owner = AdminCollection().get_by_email(body.email)
    if owner and owner["id"] != admin["id"]:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email is already in use")

    try:
        challenge = otp_service.issue_otp(admin["id"], body.email)
    except otp_service.OtpError as exc:
        raise _otp_http_error(exc)
    except Exception as exc:
        logger.exception("Failed to send OTP email to %s", body.email)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"success": False, "error": "Failed to send OTP email", "details": str(exc)},
        )

    return {"success": True, "message": "OTP sent", "expires_at": challenge["expires_at"].isoformat()}


@admin_router.post("/verify-email-otp")
def verify_email_otp(body: EmailOtpVerify, claims: dict = Depends(require_admin)):
    admin = _current_admin(claims)
    try:
        otp_service.verify_otp(admin["id"], body.email, body.otp)
    except otp_service.OtpError as exc:
        raise _otp_http_error(exc)
    return {"success": True, "verified": True, "message": "OTP verified"}


@admin_router.post("/update-credentials")
def update_credentials(body: AdminUpdateCredentials, claims: dict = Depends(require_admin)):
    """Change email and/or password. A new email needs a verified OTP for exactly that address."""
    if not body.email and not body.password:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="At least one of email or password must be provided",
        )

    admin = _current_admin(claims)
    admins = AdminCollection()
    updates = {}
    challenge = None

    if body.email and body.email != admin["email"]:
        owner = admins.get_by_email(body.email)
        if owner and owner["id"] != admin["id"]:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email is already in use")
        try:
            challenge = otp_service.consume_verified_otp(admin["id"], body.email)
        except otp_service.OtpError as exc:
            logger.warning("Rejected unverified email change for admin %s", admin["id"])
            raise _otp_http_error(exc)
        updates["email"] = body.email

    if body.password:
        updates["password_hash"] = hash_password(body.password)

    if not updates:
        return {
            "success": True,
            "message": "Nothing to update",
            "updated": {"email": admin["email"]},
            "token": create_access_token(admin),
        }

    try:
        updated = admins.update(admin["id"], updates)
    except Exception as exc:
        if challenge:
            otp_service.restore_otp(challenge)
        if isinstance(exc, DuplicateKeyError):
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email is already in use")
        raise

    if not updated:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Admin not found")
    logger.info("Credentials updated for admin %s (%s)", admin["id"], ", ".join(sorted(updates)))
    return {
        "success": True,
        "message": "Admin credentials updated successfully",
        "updated": {"email": updated["email"]},
        "token": create_access_token(updated),
    }
