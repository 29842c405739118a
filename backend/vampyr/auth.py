"""Bearer-token authentication for the user side of player linking.

Accounts and login live in the account service; this module only verifies
the access tokens it issues and resolves them to active users.
"""
from datetime import timedelta
from typing import Optional
import logging
import time
from uuid import UUID
from jose import JWTError, jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from .config import settings
from .database import get_db
from .domain_errors import store_unavailable
from .models import User

logger = logging.getLogger(__name__)

# Bearer token scheme
security = HTTPBearer()


def _credentials_error(detail: str = "Could not validate credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT access token (dev seeding and tests; production tokens come from the account service)."""
    to_encode = data.copy()
    now = int(time.time())
    if expires_delta:
        exp = now + int(expires_delta.total_seconds())
    else:
        exp = now + int(settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES) * 60
    to_encode.update({"exp": exp, "iat": now, "type": "access"})
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> dict:
    """Decode JWT token."""
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
            options={"verify_exp": False},
        )
    except JWTError:
        raise _credentials_error()

    now = int(time.time())
    exp = payload.get("exp")
    if exp is None:
        raise _credentials_error()
    try:
        exp_int = int(exp)
    except (TypeError, ValueError):
        raise _credentials_error()
    if now > exp_int + int(settings.JWT_LEEWAY_SECONDS):
        raise _credentials_error("Token expired")

    iat = payload.get("iat")
    if iat is not None:
        try:
            iat_int = int(iat)
        except (TypeError, ValueError):
            raise _credentials_error()
        # Reject tokens issued far in the future (clock skew / malicious tokens).
        if iat_int > now + int(settings.JWT_LEEWAY_SECONDS):
            raise _credentials_error()
    return payload


def _parse_token_subject(payload: dict) -> UUID:
    """Parse and validate JWT subject as UUID."""
    sub = payload.get("sub")
    if not sub:
        raise _credentials_error()
    try:
        return UUID(str(sub))
    except ValueError:
        raise _credentials_error()


def _get_token_version(payload: dict) -> int:
    """Return token version from JWT payload (legacy tokens default to 0)."""
    ver = payload.get("ver", 0)
    try:
        return int(ver)
    except (TypeError, ValueError):
        raise _credentials_error()


def _assert_token_not_revoked(user: User, payload: dict) -> None:
    if user.token_version != _get_token_version(payload):
        raise _credentials_error("Token has been revoked")


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    """Get current authenticated user."""
    payload = decode_token(credentials.credentials)

    if payload.get("type") != "access":
        raise _credentials_error("Invalid token type")

    user_id = _parse_token_subject(payload)
    try:
        user = db.query(User).filter(User.id == user_id, User.is_active == True).first()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to load token user")
        raise store_unavailable() from exc
    if user is None:
        logger.warning("auth.reject user=%s reason=not_found_or_inactive", user_id)
        raise _credentials_error("User not found or inactive")

    _assert_token_not_revoked(user, payload)
    return user
