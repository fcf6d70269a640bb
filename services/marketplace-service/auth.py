"""
auth.py - Principal resolution and role gating

The bearer credential is an HS256 JWT whose payload carries ``userId``. The
resolver verifies it and loads the user; the role gate is a pure predicate
over the resolved principal.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

import jwt
from sqlalchemy.orm import Session

from errors import ForbiddenError, UnauthenticatedError
from models import User

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"


def issue_token(user_id: str, secret: str, expires_in: timedelta = timedelta(days=7)) -> str:
    """Sign a token for a user; used by the seed script and tests."""
    payload = {
        "userId": user_id,
        "exp": datetime.now(timezone.utc) + expires_in,
    }
    return jwt.encode(payload, secret, algorithm=JWT_ALGORITHM)


def extract_bearer_token(authorization: Optional[str]) -> str:
    if not authorization or not authorization.startswith("Bearer "):
        raise UnauthenticatedError("No token provided. Please login first.")
    token = authorization.split(" ", 1)[1].strip()
    if not token:
        raise UnauthenticatedError("No token provided. Please login first.")
    return token


class PrincipalResolver:
    """Turns a bearer credential into an active User."""

    def __init__(self, secret: str):
        self.secret = secret

    def resolve(self, db: Session, authorization: Optional[str]) -> User:
        token = extract_bearer_token(authorization)

        try:
            payload = jwt.decode(token, self.secret, algorithms=[JWT_ALGORITHM])
        except jwt.ExpiredSignatureError:
            raise UnauthenticatedError("Token expired. Please login again.")
        except jwt.InvalidTokenError as e:
            logger.info(f"Rejected invalid token: {e}")
            raise UnauthenticatedError("Invalid token. Please login again.")

        user_id = payload.get("userId")
        user = db.get(User, user_id) if user_id else None
        if not user:
            raise UnauthenticatedError("User not found. Please login again.")

        if not user.is_active:
            raise ForbiddenError("Account is deactivated. Please contact support.")

        return user


def authorize(principal: User, allowed_roles: Iterable[str]) -> None:
    """Raise ForbiddenError unless the principal holds one of the roles."""
    allowed = list(allowed_roles)
    if principal.role not in allowed:
        raise ForbiddenError(f"Access denied. Only {', '.join(allowed)} can access this resource.")
