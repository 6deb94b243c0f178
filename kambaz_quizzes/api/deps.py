"""FastAPI dependencies shared across routes."""

import uuid
from datetime import datetime, timezone

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from kambaz_quizzes.core.security import decode_access_token
from kambaz_quizzes.db.models import User
from kambaz_quizzes.db.session import get_db
from kambaz_quizzes.schemas.user import Actor, Role

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/users/login")


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    """Resolve the bearer token to an active user, or 401."""
    payload = decode_access_token(token)
    if payload is None:
        raise _unauthorized("Invalid or expired token")
    try:
        user_id = uuid.UUID(payload.get("sub", ""))
    except ValueError:
        raise _unauthorized("Invalid token payload") from None

    user = db.get(User, user_id)
    if user is None or not user.is_active:
        raise _unauthorized("User not found or inactive")
    return user


def get_actor(current_user: User = Depends(get_current_user)) -> Actor:
    """The caller as the core sees it: an id and a role."""
    return Actor(user_id=current_user.id, role=Role(current_user.role.value))


def require_faculty(actor: Actor = Depends(get_actor)) -> Actor:
    if not actor.is_faculty:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Faculty access required")
    return actor


def require_student(actor: Actor = Depends(get_actor)) -> Actor:
    if not actor.is_student:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Student access required")
    return actor


def get_now() -> datetime:
    """Current UTC time; tests override this to freeze the clock."""
    return datetime.now(timezone.utc)
