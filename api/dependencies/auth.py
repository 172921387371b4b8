"""
Admin authentication dependency for FastAPI.

Admins log in with email and password (bcrypt hashes stored in the `admins`
collection) and receive an HS256 JWT. The token is passed back as a Bearer
token in the Authorization header.
Use `require_admin` as a FastAPI dependency on any route that must be admin-only.

Configuration:
  - JWT_SECRET           signing key (required)
  - JWT_EXPIRES_MINUTES  token lifetime, defaults to 7 days
"""

import logging
import os
from datetime import datetime, timedelta, timezone

import bcrypt
import jwt
from dotenv import load_dotenv
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

load_dotenv()

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"

# ---------------------------------------------------------------------------
# Passwords
# ---------------------------------------------------------------------------


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed hash in the database
        return False


# ---------------------------------------------------------------------------
# Tokens
# ---------------------------------------------------------------------------


def _jwt_secret() -> str:
    secret = os.getenv("JWT_SECRET")
    if not secret:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="JWT_SECRET is not configured on the server.",
        )
    return secret


def create_access_token(admin: dict) -> str:
    expires_minutes = int(os.getenv("JWT_EXPIRES_MINUTES", str(7 * 24 * 60)))
    payload = {
        "sub": admin["id"],
        "email": admin["email"],
        "name": admin.get("name"),
        "role": "admin",
        "exp": datetime.now(timezone.utc) + timedelta(minutes=expires_minutes),
    }
    return jwt.encode(payload, _jwt_secret(), algorithm=JWT_ALGORITHM)


def public_admin(admin: dict) -> dict:
    return {
        "id": admin["id"],
        "email": admin["email"],
        "role": "admin",
        "name": admin.get("name"),
    }


# ---------------------------------------------------------------------------
# Bearer-token extraction scheme
# ---------------------------------------------------------------------------

_bearer_scheme = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


# ---------------------------------------------------------------------------
# Dependency
# ---------------------------------------------------------------------------

async def require_admin(
    creds: HTTPAuthorizationCredentials | None = Depends(_bearer_scheme),
) -> dict:
    """
    FastAPI dependency that:
    1. Extracts the Bearer token from the `Authorization` header.
    2. Verifies its signature and expiry.
    3. Returns the decoded claims (`sub` is the admin id, plus `email`, `role`).

    Raises 401 if the token is missing, invalid or not an admin token.
    """
    if creds is None:
        raise _unauthorized("Authorization header missing")

    try:
        claims = jwt.decode(creds.credentials, _jwt_secret(), algorithms=[JWT_ALGORITHM])
    except jwt.InvalidTokenError:
        raise _unauthorized("Invalid or expired token")

    if claims.get("role") != "admin" or not claims.get("sub"):
        raise _unauthorized("Admin privileges required")

    return claims
