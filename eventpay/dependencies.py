import logging
import secrets
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException, Query, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from eventpay.config import EventConfig, get_event_config, settings
from eventpay.db import get_db
from eventpay.models.profile import Profile
from eventpay.models.user import User

logger = logging.getLogger(__name__)

# auto_error=False allows us to handle missing auth ourselves with 401 instead of 403
security = HTTPBearer(auto_error=False)


@dataclass
class Authorization:
    user: User
    profile: Optional[Profile]
    is_admin: bool


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """Extract and validate JWT token, return current user."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    if credentials is None:
        raise credentials_exception

    try:
        payload = jwt.decode(
            credentials.credentials,
            settings.secret_key,
            algorithms=[settings.algorithm],
        )
        user_id_str: str | None = payload.get("sub")
        if user_id_str is None:
            raise credentials_exception
        user_id = int(user_id_str)
    except (JWTError, ValueError):
        raise credentials_exception

    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise credentials_exception

    return user


def authorize(user: User, db: Session, config: EventConfig) -> Authorization:
    """An admin is either on the configured admin allowlist or flagged on their profile."""
    profile = db.query(Profile).filter(Profile.user_id == user.id).first()
    is_admin = (user.email or "").lower() in config.admin_emails or bool(profile and profile.is_admin)
    return Authorization(user=user, profile=profile, is_admin=is_admin)


async def get_authorization(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    config: EventConfig = Depends(get_event_config),
) -> Authorization:
    return authorize(current_user, db, config)


async def require_admin(
    authorization: Authorization = Depends(get_authorization),
) -> Authorization:
    if not authorization.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return authorization


async def get_current_profile(
    authorization: Authorization = Depends(get_authorization),
) -> Profile:
    if authorization.profile is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No guest profile linked to this account",
        )
    return authorization.profile


async def verify_cron_request(
    request: Request,
    token: Optional[str] = Query(default=None),
) -> None:
    """
    Allow the scheduled trigger in when it presents the cron secret as a
    bearer token or ?token= query parameter. A trusted cron user agent is
    only honoured when CRON_TRUSTED_USER_AGENT is set explicitly. With no
    secret configured every caller is allowed.
    """
    user_agent = request.headers.get("user-agent", "")
    if settings.cron_trusted_user_agent and settings.cron_trusted_user_agent in user_agent:
        return

    expected = settings.cron_secret
    if not expected:
        logger.warning("CRON_SECRET not configured, accepting unauthenticated cron request")
        return

    auth_header = request.headers.get("authorization") or ""
    provided = auth_header[len("Bearer "):] if auth_header.startswith("Bearer ") else None
    provided = provided or token

    if not provided or not secrets.compare_digest(provided.encode(), expected.encode()):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )
