from __future__ import annotations

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from . import models, sessions
from .config import Settings
from .database import get_db
from .users import UserStore


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_user_store(db: Session = Depends(get_db)) -> UserStore:
    return UserStore(db)


def get_current_user(
    request: Request,
    settings: Settings = Depends(get_settings),
    store: UserStore = Depends(get_user_store),
) -> models.User:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={
            "detail": "Could not validate session",
            "error_code": "invalid_session",
        },
    )

    session = sessions.read_session_token(
        settings, request.cookies.get(settings.session_cookie_name)
    )
    if session is None:
        raise credentials_exception
    user = store.get(session.user_id)
    if user is None:
        raise credentials_exception
    return user
