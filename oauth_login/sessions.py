from __future__ import annotations

import secrets
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
from jwt import InvalidTokenError
from starlette.responses import Response

from . import schemas
from .config import Settings

SESSION_TOKEN_TYPE = "session"  # nosec B105


def new_state_token() -> str:
    return secrets.token_urlsafe(16)


def states_match(expected: str | None, received: str | None) -> bool:
    if not expected or not received:
        return False
    return secrets.compare_digest(expected.encode("utf-8"), received.encode("utf-8"))


def create_session_token(
    settings: Settings, user_id: int, *, now: datetime | None = None
) -> str:
    issued_at = now or datetime.now(timezone.utc)
    payload: dict[str, Any] = {
        "user_id": user_id,
        "token_type": SESSION_TOKEN_TYPE,
        "iss": settings.token_issuer,
        "iat": issued_at,
        "exp": issued_at + timedelta(hours=settings.session_expire_hours),
        "jti": uuid.uuid4().hex,
    }
    return jwt.encode(payload, settings.secret_key, algorithm=settings.algorithm)


def read_session_token(settings: Settings, token: str | None) -> schemas.SessionData | None:
    if not token:
        return None
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.algorithm],
            issuer=settings.token_issuer,
            options={"require": ["exp", "iss", "user_id", "token_type"]},
        )
    except InvalidTokenError:
        return None

    if payload.get("token_type") != SESSION_TOKEN_TYPE:
        return None
    try:
        return schemas.SessionData(user_id=int(payload["user_id"]))
    except (TypeError, ValueError):
        return None


def set_state_cookie(response: Response, settings: Settings, state: str) -> None:
    # Lax so the cookie rides along on the provider's top-level redirect back.
    response.set_cookie(
        settings.oauth_state_cookie_name,
        state,
        max_age=settings.oauth_state_expire_seconds,
        path="/",
        secure=settings.session_cookie_secure,
        httponly=True,
        samesite="lax",
    )


def clear_state_cookie(response: Response, settings: Settings) -> None:
    response.delete_cookie(
        settings.oauth_state_cookie_name,
        path="/",
        secure=settings.session_cookie_secure,
        httponly=True,
        samesite="lax",
    )


def set_session_cookie(response: Response, settings: Settings, token: str) -> None:
    max_age = settings.session_expire_hours * 3600
    response.set_cookie(
        settings.session_cookie_name,
        token,
        max_age=max_age,
        expires=datetime.now(timezone.utc) + timedelta(seconds=max_age),
        path="/",
        domain=settings.session_cookie_domain,
        secure=settings.session_cookie_secure,
        httponly=True,
        samesite=settings.session_cookie_samesite,  # type: ignore[arg-type]
    )


def clear_session_cookie(response: Response, settings: Settings) -> None:
    response.delete_cookie(
        settings.session_cookie_name,
        path="/",
        domain=settings.session_cookie_domain,
        secure=settings.session_cookie_secure,
        httponly=True,
        samesite=settings.session_cookie_samesite,  # type: ignore[arg-type]
    )
