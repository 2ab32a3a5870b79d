# app/core/auth.py
import logging
import uuid
from typing import Any

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from sqlmodel import Session

from app.core.config import get_settings
from app.core.errors import AdminRequired, Unauthorized
from app.database import get_session
from app.models.user import User

logger = logging.getLogger(__name__)

# auto_error=False: a missing header reaches require_auth, which owns the 401
bearer_scheme = HTTPBearer(auto_error=False)


def decode_access_token(token: str) -> dict[str, Any]:
    """
    Verify a Supabase access token and return its claims.

    Signature and `exp` are checked against SUPABASE_JWT_SECRET;
    `aud` is not, since Supabase issues several audiences.

    Raises:
        Unauthorized: bad signature, malformed or expired token.
    """
    settings = get_settings()
    try:
        return jwt.decode(
            token,
            settings.SUPABASE_JWT_SECRET,
            algorithms=[settings.SUPABASE_JWT_ALG],
            options={"verify_aud": False},
        )
    except JWTError:
        raise Unauthorized("Invalid or expired token")


def _default_name_from_claims(payload: dict[str, Any], email: str) -> str:
    """
    Display name for a freshly provisioned profile: the provider's
    full_name metadata if present, else the local part of the email.
    """
    metadata = payload.get("user_metadata") or {}
    full_name = (metadata.get("full_name") or metadata.get("name") or "").strip()
    if full_name:
        return full_name[:50]
    if "@" in email:
        return email.split("@", 1)[0]
    return email


def _provision_user(
    session: Session,
    user_id: uuid.UUID,
    email: str,
    payload: dict[str, Any],
) -> User:
    """First authenticated request: mirror the identity as a 'user' profile."""
    metadata = payload.get("user_metadata") or {}
    user = User(
        id=user_id,
        email=email,
        name=_default_name_from_claims(payload, email),
        image_url=metadata.get("avatar_url"),
        role="user",
    )
    session.add(user)
    session.commit()
    session.refresh(user)
    logger.info("Provisioned profile for %s", email)
    return user


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    session: Session = Depends(get_session),
) -> User | None:
    """
    Resolve the caller's profile from the bearer token.

    No header means a guest (None). The token `sub` is the profile's
    primary key; unknown subjects are provisioned on the spot. Promotion
    to admin happens out of band.
    """
    if credentials is None:
        return None

    payload = decode_access_token(credentials.credentials)
    sub = payload.get("sub")
    email = payload.get("email")
    if not sub or not email:
        raise Unauthorized("Token missing sub/email")

    try:
        user_id = uuid.UUID(sub)
    except ValueError:
        raise Unauthorized("Invalid sub in token")

    user = session.get(User, user_id)
    if user is None:
        user = _provision_user(session, user_id, email, payload)
    return user


def require_auth(user: User | None = Depends(get_current_user)) -> User:
    """Route guard: any signed-in user, 401 for guests."""
    if user is None:
        raise Unauthorized()
    return user


def require_admin(user: User = Depends(require_auth)) -> User:
    """Route guard: role == 'admin', 403 otherwise."""
    if user.role != "admin":
        raise AdminRequired()
    return user
