from typing import Any, Optional

from fastapi import Depends, HTTPException, Request, status

from .config import settings
from .extensions import db
from .models import User
from .security import decode_access_token


def get_db() -> Any:
    """Dependency to provide a database session."""
    try:
        yield db.session
    finally:
        db.remove_session()


def _token_from_request(request: Request) -> Optional[str]:
    header = request.headers.get("Authorization", "")
    scheme, _, credentials = header.partition(" ")
    if scheme.lower() == "bearer" and credentials:
        return credentials.strip()
    return request.cookies.get(settings.AUTH_COOKIE_NAME)


def get_current_user(request: Request, session=Depends(get_db)) -> Optional[User]:
    """Resolves the user from a bearer token or the auth cookie."""
    token = _token_from_request(request)
    if not token:
        return None

    payload = decode_access_token(token)
    if not payload:
        return None

    user_id = payload.get("sub")
    if not user_id:
        return None

    return session.get(User, int(user_id))


def require_user(current_user: Optional[User] = Depends(get_current_user)) -> User:
    """Dependency that ensures a user is authenticated."""
    if current_user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return current_user


def require_role(*roles: str):
    """Dependency factory that ensures a user has one of the required roles."""
    def role_checker(user: User = Depends(require_user)):
        if user.role not in roles:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Permission denied")
        return user
    return role_checker


require_student = require_role("student")
require_faculty = require_role("faculty")
