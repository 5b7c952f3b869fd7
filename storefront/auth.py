import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from jose import jwt as jose_jwt

from .config import ACCESS_TOKEN_EXPIRE_MINUTES, SECRET_KEY

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"

security = HTTPBearer()
optional_security = HTTPBearer(auto_error=False)


@dataclass
class CurrentUser:
    """Authenticated subject taken from a verified bearer token"""

    id: str
    email: Optional[str] = None
    role: Optional[str] = None


def create_access_token(data: dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT token

    Args:
        data: Claims to encode in the token (needs "sub")
        expires_delta: Token expiration time (default ACCESS_TOKEN_EXPIRE_MINUTES)
    """
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jose_jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def verify_access_token(token: str) -> Optional[dict[str, Any]]:
    """
    Verify and decode a JWT token

    Returns:
        Decoded payload if valid, None if invalid or expired
    """
    try:
        return jose_jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError as e:
        logger.warning(f"JWT verification failed: {e}")
        return None


def _user_from_token(token: str) -> Optional[CurrentUser]:
    payload = verify_access_token(token)
    if not payload or not payload.get("sub"):
        return None
    return CurrentUser(id=str(payload["sub"]), email=payload.get("email"), role=payload.get("role"))


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> CurrentUser:
    user = _user_from_token(credentials.credentials)
    if not user:
        raise HTTPException(
            status_code=401,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(optional_security),
) -> Optional[CurrentUser]:
    """Like get_current_user, but anonymous (or invalid) callers get None"""
    if not credentials:
        return None
    return _user_from_token(credentials.credentials)
