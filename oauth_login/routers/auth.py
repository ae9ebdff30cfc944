from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import PlainTextResponse, RedirectResponse

from .. import identity, models, oauth_external, sessions
from ..config import Settings
from ..deps import get_settings, get_user_store
from ..errors import AuthFlowError, StateMismatch, auth_flow_problem, http_problem
from ..users import UserStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Authentication"])


def _oauth_client(
    provider: str, request: Request, settings: Settings
) -> oauth_external.GitHubClient:
    return oauth_external.get_oauth_client(
        settings,
        provider,
        redirect_uri=oauth_external.callback_url(settings, request, provider),
    )


def _complete_login(
    client: oauth_external.GitHubClient,
    store: UserStore,
    code: Optional[str],
    error: Optional[str],
    error_description: Optional[str],
) -> models.User:
    if error or error_description:
        logger.warning(
            "provider rejected authorization: %s (%s)", error, error_description
        )
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "detail": "OAuth authentication failed",
                "error_code": "oauth_provider_error",
            },
        )
    if not code:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "detail": "OAuth callback is missing code",
                "error_code": "oauth_code_missing",
            },
        )
    return identity.complete_callback(client, store, code=code)


@router.get("/auth/{provider}")
def oauth_login(
    provider: str,
    request: Request,
    settings: Settings = Depends(get_settings),
):
    client = _oauth_client(provider, request, settings)
    state = sessions.new_state_token()
    response = RedirectResponse(
        client.build_authorization_url(state),
        status_code=status.HTTP_307_TEMPORARY_REDIRECT,
    )
    sessions.set_state_cookie(response, settings, state)
    return response


@router.get("/auth/{provider}/callback")
def oauth_callback(
    provider: str,
    request: Request,
    state: Optional[str] = None,
    code: Optional[str] = None,
    error: Optional[str] = None,
    error_description: Optional[str] = None,
    settings: Settings = Depends(get_settings),
    store: UserStore = Depends(get_user_store),
):
    client = _oauth_client(provider, request, settings)

    saved_state = request.cookies.get(settings.oauth_state_cookie_name)
    if not saved_state:
        raise StateMismatch("state cookie is missing")
    if not sessions.states_match(saved_state, state):
        raise StateMismatch("state parameter does not match cookie")

    # The state is spent from here on, whatever the outcome.
    try:
        user = _complete_login(client, store, code, error, error_description)
    except AuthFlowError as exc:
        response = auth_flow_problem(request, exc)
    except HTTPException as exc:
        response = http_problem(request, exc)
    else:
        logger.info("user %s authenticated via %s", user.id, provider)
        response = RedirectResponse(
            settings.client_app_url, status_code=status.HTTP_307_TEMPORARY_REDIRECT
        )
        sessions.set_session_cookie(
            response, settings, sessions.create_session_token(settings, int(user.id))
        )
    sessions.clear_state_cookie(response, settings)
    return response


@router.get("/logout", response_class=PlainTextResponse)
def logout(settings: Settings = Depends(get_settings)):
    response = PlainTextResponse("Logged out", status_code=status.HTTP_200_OK)
    sessions.clear_session_cookie(response, settings)
    return response
