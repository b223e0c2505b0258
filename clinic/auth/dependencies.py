"""
FastAPI dependencies for settings, sessions and bearer-token authentication.
"""
import logging
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from ..config import Settings
from ..core.security import verify_access_token
from ..database import get_db
from .exceptions import InvalidTokenException
from .models import User
from .service import get_user_by_id

logger = logging.getLogger(__name__)

# OAuth2 scheme for JWT token authentication
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/login", auto_error=False)


def get_settings(request: Request) -> Settings:
    """Settings the application was created with."""
    return request.app.state.settings


def _unauthorized() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> User:
    """
    Get current authenticated user from JWT token.

    Expired, malformed and badly signed tokens are logged with their reason
    but all reach the caller as the same 401.

    Raises:
        HTTPException: If the token is missing or invalid, or the account no longer exists
    """
    if not token:
        raise _unauthorized()

    try:
        payload = verify_access_token(token, settings.secret_key, settings.algorithm)
    except InvalidTokenException as e:
        logger.warning(f"Rejected session token ({e.reason}): {e.detail}")
        raise _unauthorized() from e

    user = get_user_by_id(db, payload.account_id)
    if user is None:
        logger.warning(f"Rejected session token: account {payload.account_id} not found")
        raise _unauthorized()

    return user
