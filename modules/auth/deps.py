"""
Auth Module - Dependencies
===========================
FastAPI dependencies for user authentication and authorization.
These are injected into route handlers via Depends().

NOTE: The token is read from the access_token cookie first, then from an
"Authorization: Bearer" header.
"""

from typing import Optional

from fastapi import Request, Depends, HTTPException, status
from sqlalchemy.orm import Session

from config.database import get_db
from config.settings import AUTH_COOKIE_NAME
from common.helpers import safe_int
from common.security import decode_token
from modules.user.models import User


def _token_from_request(request: Request) -> Optional[str]:
    token = request.cookies.get(AUTH_COOKIE_NAME)
    if token:
        return token
    authorization = request.headers.get("authorization", "")
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    return None


def get_current_user(request: Request, db: Session = Depends(get_db)) -> Optional[User]:
    """
    Identify the current user from the cookie or Bearer token.
    Returns User object or None.
    """
    token = _token_from_request(request)
    if not token:
        return None

    payload = decode_token(token)
    if not payload:
        return None

    user_id = safe_int(payload.get("sub"))
    if not user_id:
        return None

    return db.query(User).filter(User.id == user_id, User.is_active == True).first()  # noqa: E712


def require_login(request: Request, user=Depends(get_current_user)) -> User:
    """Require any authenticated active user. Raises 401 if not logged in."""
    if not user:
        detail = "Invalid token" if _token_from_request(request) else "Access denied, no token provided"
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)
    return user


def require_admin(user=Depends(require_login)) -> User:
    """Only allow admin users. Raises 403 otherwise."""
    if not user.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return user


def require_seller_or_admin(user=Depends(require_login)) -> User:
    """Allow sellers and admins (catalog writers). Raises 403 otherwise."""
    if not user.can_sell:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Seller or admin access required")
    return user
