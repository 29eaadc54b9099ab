"""Request-scoped dependencies shared by the API routers."""
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from taskmanager.config import Settings
from taskmanager.database import get_db
from taskmanager.errors import AuthenticationError, AuthorizationError
from taskmanager.models import User
from taskmanager.security import decode_access_token
from taskmanager.storage import AttachmentStorage

bearer_scheme = HTTPBearer(auto_error=False)


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_storage(request: Request) -> AttachmentStorage:
    return request.app.state.storage


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> User:
    """Resolve the bearer token to a user that still exists."""
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Access token required")

    user_id = decode_access_token(credentials.credentials, settings)
    user = db.get(User, user_id)
    if user is None:
        raise AuthenticationError("Invalid token - user not found")
    return user


def require_admin(current_user: User = Depends(get_current_user)) -> User:
    if not current_user.is_admin:
        raise AuthorizationError("Admin access required")
    return current_user
