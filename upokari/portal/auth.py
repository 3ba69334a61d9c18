"""
Bearer-token guard for the write endpoints.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from upokari.utils.logger import get_logger

log = get_logger(__name__)

_ALGORITHM = "HS256"
_bearer = HTTPBearer(auto_error=False)


def create_token(user_id: str, secret: str, expires_in: timedelta = timedelta(days=1)) -> str:
    """Issue a signed token carrying *user_id*."""
    payload = {"userId": user_id, "exp": datetime.now(timezone.utc) + expires_in}
    return jwt.encode(payload, secret, algorithm=_ALGORITHM)


def verify_token(token: str, secret: str) -> Optional[str]:
    """Return the ``userId`` of a valid token, None otherwise."""
    try:
        payload = jwt.decode(token, secret, algorithms=[_ALGORITHM])
    except jwt.PyJWTError as exc:
        log.warning("Rejected token: %s", exc)
        return None
    user_id = payload.get("userId")
    return str(user_id) if user_id else None


def verify_auth_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
) -> str:
    """FastAPI dependency: the authenticated user id, or 401."""
    if credentials is None:
        raise HTTPException(status_code=401, detail="Unauthorized")
    user_id = verify_token(credentials.credentials, request.app.state.config.JWT_SECRET)
    if user_id is None:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return user_id
