import logging

from fastapi import APIRouter, Depends, Form, HTTPException, Response, status
from sqlalchemy.orm import Session

from app.config import settings
from app.dependencies import get_db, require_user
from app.models import User
from app.schemas.auth import TokenResponse
from app.schemas.user import UserResponse
from app.security import create_access_token, verify_and_update_password

log = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=TokenResponse, name="auth.login")
def login_action(
    response: Response,
    email: str = Form(...),
    password: str = Form(...),
    session: Session = Depends(get_db),
):
    """Checks credentials and issues a JWT, returned in the body and as a cookie."""
    user = session.query(User).filter(User.email == email.lower().strip()).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    verified, new_hash = verify_and_update_password(password, user.password_hash)
    if not verified:
        log.info("Failed login for %s", user.email)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    if new_hash:
        user.password_hash = new_hash
        session.commit()

    token = create_access_token(data={"sub": str(user.id), "role": user.role})
    response.set_cookie(
        key=settings.AUTH_COOKIE_NAME,
        value=token,
        httponly=True,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        samesite="lax",
        secure=settings.AUTH_COOKIE_SECURE,
    )
    return TokenResponse(access_token=token)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT, name="auth.logout")
def logout():
    response = Response(status_code=status.HTTP_204_NO_CONTENT)
    response.delete_cookie(settings.AUTH_COOKIE_NAME)
    return response


@router.get("/me", response_model=UserResponse, name="auth.me")
def me(current_user: User = Depends(require_user)):
    return current_user
