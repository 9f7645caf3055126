import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from .config import AUTH_ALGORITHM, AUTH_COOKIE_NAME, AUTH_SECRET

logger = logging.getLogger(__name__)

# Cookie sessions are allowed too, so a missing header is not an error by itself
security = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class SessionContext:
    user_id: str
    is_admin: bool = False


def verify_session_token(token: str) -> Optional[SessionContext]:
    """Decode a session JWT issued by the auth service; None when invalid or expired"""
    try:
        payload = jwt.decode(token, AUTH_SECRET, algorithms=[AUTH_ALGORITHM])
    except JWTError as e:
        logger.debug(f"Session token rejected: {e}")
        return None

    user_id = payload.get("userId")
    if not isinstance(user_id, str) or not user_id.strip():
        logger.warning("⚠️ Session token without userId")
        return None
    return SessionContext(user_id=user_id, is_admin=bool(payload.get("isAdmin")))


def get_token_from_request(
    request: Request, credentials: Optional[HTTPAuthorizationCredentials]
) -> Optional[str]:
    if credentials and credentials.scheme.lower() == "bearer" and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(AUTH_COOKIE_NAME)


async def require_session(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> SessionContext:
    """FastAPI dependency: the caller's session, or 401"""
    token = get_token_from_request(request, credentials)
    if not token:
        raise HTTPException(status_code=401, detail="Unauthorized")

    session = verify_session_token(token)
    if not session:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return session
