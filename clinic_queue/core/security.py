from datetime import datetime, timedelta
from typing import List, Optional, Union
from jose import JWTError, jwt
from fastapi import HTTPException, status
from fastapi.security import HTTPBearer
from pydantic import BaseModel
from enum import Enum

from .config import settings

# Bearer is optional: the identity cookie is accepted as a fallback
security = HTTPBearer(auto_error=False)

class StaffRole(str, Enum):
    STAFF = "staff"
    DOCTOR = "doctor"
    ADMIN = "admin"

STAFF_ROLES = [StaffRole.STAFF, StaffRole.DOCTOR, StaffRole.ADMIN]

class TokenPayload(BaseModel):
    sub: Optional[str] = None
    email: Optional[str] = None
    role: Optional[str] = None
    exp: Optional[int] = None
    aud: Optional[Union[str, List[str]]] = None

class Identity(BaseModel):
    """Verified identity asserted by the external identity provider."""
    user_id: str
    email: Optional[str] = None

# JWT utilities
def create_access_token(
    subject: str,
    email: Optional[str] = None,
    expires_delta: Optional[timedelta] = None
) -> str:
    """Mint an identity token the way the identity provider does.

    Used by local tooling and the test suite; production tokens come
    from the provider itself.
    """
    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(
            minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES
        )

    to_encode = {"sub": subject, "exp": expire, "role": "authenticated"}
    if email:
        to_encode["email"] = email
    if settings.AUTH_JWT_AUDIENCE:
        to_encode["aud"] = settings.AUTH_JWT_AUDIENCE

    return jwt.encode(
        to_encode,
        settings.AUTH_JWT_SECRET,
        algorithm=settings.AUTH_JWT_ALGORITHM
    )

def verify_token(token: str) -> Optional[TokenPayload]:
    """Verify and decode an identity token."""
    try:
        if settings.AUTH_JWT_AUDIENCE:
            payload = jwt.decode(
                token,
                settings.AUTH_JWT_SECRET,
                algorithms=[settings.AUTH_JWT_ALGORITHM],
                audience=settings.AUTH_JWT_AUDIENCE,
            )
        else:
            payload = jwt.decode(
                token,
                settings.AUTH_JWT_SECRET,
                algorithms=[settings.AUTH_JWT_ALGORITHM],
                options={"verify_aud": False},
            )

        return TokenPayload(**payload)

    except JWTError:
        return None

# Security exceptions
class AuthenticationError(HTTPException):
    def __init__(self, detail: str = "Please sign in again to continue"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )

class AuthorizationError(HTTPException):
    def __init__(self, detail: str = "You do not have access to this page"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
        )
