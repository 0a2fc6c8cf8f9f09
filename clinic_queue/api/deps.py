from fastapi import Depends, HTTPException, status, Request
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from typing import Optional, List

from ..core.config import settings
from ..core.database import get_db, get_redis
from ..core.security import (
    security, verify_token, AuthenticationError,
    AuthorizationError, Identity, StaffRole, STAFF_ROLES
)
from ..models.staff import StaffProfile
from ..services.clinic_settings_service import ClinicConfig, load_clinic_config

async def get_current_identity(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> Identity:
    """Verified identity from the bearer header, falling back to the identity cookie."""
    token = credentials.credentials if credentials else request.cookies.get(settings.AUTH_COOKIE_NAME)
    if not token:
        raise AuthenticationError()

    token_payload = verify_token(token)
    if not token_payload or not token_payload.sub:
        raise AuthenticationError("Your session has expired. Please sign in again.")

    return Identity(user_id=token_payload.sub, email=token_payload.email)

# Role-based access control dependencies
def require_role(allowed_roles: List[StaffRole]):
    """Create a dependency that requires a staff directory entry with one of the roles."""
    def role_checker(
        identity: Identity = Depends(get_current_identity),
        db: Session = Depends(get_db)
    ) -> StaffProfile:
        staff = db.query(StaffProfile).filter(
            StaffProfile.user_id == identity.user_id
        ).first()
        if not staff or staff.role not in allowed_roles:
            raise AuthorizationError()
        return staff

    return role_checker

get_staff_member = require_role(STAFF_ROLES)

def get_clinic_config(db: Session = Depends(get_db)) -> ClinicConfig:
    """Clinic settings for the request; a missing row is a 500, never a default."""
    return load_clinic_config(db)

# Rate limiting dependency
def rate_limit_check(
    identity: Identity = Depends(get_current_identity),
    redis_client = Depends(get_redis)
) -> None:
    """Fixed-window limit on write requests per identity."""
    if not settings.RATE_LIMIT_ENABLED:
        return

    key = f"rate_limit:{identity.user_id}"

    current_requests = redis_client.get(key)
    if current_requests is None:
        redis_client.setex(key, settings.RATE_LIMIT_WINDOW_SECONDS, 1)
    else:
        if int(current_requests) >= settings.RATE_LIMIT_REQUESTS:
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail="Too many requests. Please try again later."
            )
        redis_client.incr(key)
