"""
One-time codes that prove ownership of a new admin email address.

Per admin the flow is Idle -> OtpSent -> OtpVerified -> CredentialsUpdated.
Sending a new code always discards the previous challenge, so entering a
different address starts over. A verified challenge may be re-verified while it
stays within the verified window, and is spent exactly once by
`consume_verified_otp`.
"""

import hashlib
import hmac
import logging
import os
import secrets
from datetime import datetime, timedelta

from pymongo.errors import DuplicateKeyError, PyMongoError

from dbase.collections.EmailOtpCollection import EmailOtpCollection
from email_service.smtp_service import send_otp_email

logger = logging.getLogger(__name__)


class OtpError(ValueError):
    """Base class for every rejected OTP operation."""


class OtpCooldownError(OtpError):
    pass


class OtpNotFoundError(OtpError):
    pass


class OtpExpiredError(OtpError):
    pass


class OtpInvalidError(OtpError):
    pass


class OtpAttemptsExceededError(OtpError):
    pass


class OtpNotVerifiedError(OtpError):
    pass


def _setting(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


def generate_code() -> str:
    return f"{secrets.randbelow(10 ** 6):06d}"


def hash_code(code: str) -> str:
    return hashlib.sha256(code.encode("utf-8")).hexdigest()


def issue_otp(admin_id: str, email: str) -> dict:
    """Create a fresh challenge for `email` and mail the code to it.

    The previous challenge is overwritten in one conditional write, so two
    concurrent sends cannot both slip past the resend cooldown. If delivery
    fails the challenge is removed again and the error propagates.
    """
    otps = EmailOtpCollection()
    now = datetime.utcnow()
    cooldown = timedelta(seconds=_setting("OTP_RESEND_COOLDOWN_SECONDS", 60))
    ttl_minutes = _setting("OTP_TTL_MINUTES", 10)
    code = generate_code()
    fields = {
        "email": email,
        "code_hash": hash_code(code),
        "created_at": now,
        "expires_at": now + timedelta(minutes=ttl_minutes),
    }

    if otps.get_for_admin(admin_id):
        challenge = otps.renew(admin_id, not_after=now - cooldown, **fields)
    else:
        try:
            challenge = otps.create(admin_id, **fields)
        except DuplicateKeyError:
            challenge = None
    if challenge is None:
        raise OtpCooldownError("Please wait before requesting another code")

    try:
        send_otp_email(email, code, ttl_minutes)
    except Exception:
        otps.delete(challenge["_id"])
        raise

    logger.info("OTP issued for admin %s to %s", admin_id, email)
    return challenge


def _verify_again(otps: EmailOtpCollection, challenge: dict, code: str) -> dict:
    # Already verified: only the verified window applies and guesses are not counted
    verified_ttl = timedelta(minutes=_setting("OTP_VERIFIED_TTL_MINUTES", 15))
    if challenge["verified_at"] + verified_ttl < datetime.utcnow():
        otps.delete(challenge["_id"])
        raise OtpExpiredError("OTP expired")
    if not hmac.compare_digest(challenge["code_hash"], hash_code(code)):
        raise OtpInvalidError("Invalid OTP")
    return challenge


def verify_otp(admin_id: str, email: str, code: str) -> dict:
    otps = EmailOtpCollection()
    challenge = otps.get_for_admin(admin_id)
    if not challenge or challenge["email"] != email:
        raise OtpNotFoundError("No pending OTP for this email")

    if challenge.get("verified_at") is not None:
        return _verify_again(otps, challenge, code)

    if datetime.utcnow() > challenge["expires_at"]:
        otps.delete_unverified(challenge["_id"])
        raise OtpExpiredError("OTP expired")

    max_attempts = _setting("OTP_MAX_ATTEMPTS", 5)
    claimed = otps.claim_attempt(challenge["_id"], max_attempts)
    if claimed is None:
        otps.delete_unverified(challenge["_id"])
        raise OtpAttemptsExceededError("Too many attempts, request a new code")
    if claimed.get("verified_at") is not None:
        return _verify_again(otps, claimed, code)

    if not hmac.compare_digest(claimed["code_hash"], hash_code(code)):
        logger.warning("Wrong OTP for admin %s (%s attempts)", admin_id, claimed["attempts"])
        if claimed["attempts"] >= max_attempts:
            otps.delete_unverified(claimed["_id"])
            raise OtpAttemptsExceededError("Too many attempts, request a new code")
        raise OtpInvalidError("Invalid OTP")

    otps.mark_verified(claimed["_id"])
    logger.info("OTP verified for admin %s (%s)", admin_id, email)
    return claimed


def consume_verified_otp(admin_id: str, email: str) -> dict:
    """Spend the verified challenge bound to exactly this admin and email."""
    otps = EmailOtpCollection()
    challenge = otps.take_verified(admin_id, email)
    if not challenge:
        raise OtpNotVerifiedError("Email change requires OTP verification")

    verified_ttl = timedelta(minutes=_setting("OTP_VERIFIED_TTL_MINUTES", 15))
    if challenge["verified_at"] + verified_ttl < datetime.utcnow():
        raise OtpNotVerifiedError("OTP verification expired, request a new code")
    return challenge


def restore_otp(challenge: dict) -> None:
    """Put back a consumed challenge when the credential write it guarded failed."""
    try:
        EmailOtpCollection().restore(challenge)
    except PyMongoError:
        logger.exception("Could not restore OTP for admin %s", challenge["admin_id"])
