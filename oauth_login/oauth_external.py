from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlencode

import httpx
from fastapi import HTTPException, Request, status

from .config import Settings
from .errors import ExchangeError, ProfileFetchError

logger = logging.getLogger(__name__)

_GITHUB_API_VERSION = "2022-11-28"
_GITHUB_SCOPES = ("read:user", "user:email")
_SUPPORTED_PROVIDERS = {"github"}


@dataclass(frozen=True)
class ExternalProfile:
    external_id: str
    name: str | None
    email: str | None
    avatar_url: str | None


def _oauth_error(
    detail: str,
    *,
    error_code: str,
    status_code: int = status.HTTP_400_BAD_REQUEST,
) -> HTTPException:
    return HTTPException(
        status_code=status_code,
        detail={"detail": detail, "error_code": error_code},
    )


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.lower() in {"true", "1", "yes"}
    if isinstance(value, int):
        return value != 0
    return False


def _optional_str(value: Any) -> str | None:
    if isinstance(value, str) and value:
        return value
    return None


class GitHubClient:
    """Authorization Code client for GitHub's OAuth app endpoints."""

    provider = "github"

    def __init__(self, settings: Settings, *, redirect_uri: str) -> None:
        self.settings = settings
        self.redirect_uri = redirect_uri
        self.client_id = str(settings.github_client_id)
        self.client_secret = str(settings.github_client_secret)
        self.timeout = settings.provider_timeout_seconds
        self.api_url = settings.github_api_url.rstrip("/")

    def _api_headers(self, access_token: str) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {access_token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": _GITHUB_API_VERSION,
        }

    def build_authorization_url(self, state: str) -> str:
        params = {
            "response_type": "code",
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "scope": " ".join(_GITHUB_SCOPES),
            "state": state,
        }
        return f"{self.settings.github_authorize_url}?{urlencode(params)}"

    def exchange_code(self, code: str) -> str:
        payload = {
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "code": code,
            "redirect_uri": self.redirect_uri,
        }
        try:
            response = httpx.post(
                self.settings.github_token_url,
                data=payload,
                headers={"Accept": "application/json"},
                timeout=self.timeout,
            )
        except httpx.HTTPError as exc:
            raise ExchangeError(f"token endpoint unreachable: {exc}") from exc

        try:
            token_payload = response.json()
        except ValueError as exc:
            raise ExchangeError("token endpoint returned invalid JSON") from exc
        if not isinstance(token_payload, dict):
            raise ExchangeError("token endpoint returned a non-object body")

        if response.status_code >= 400 or "error" in token_payload:
            reason = token_payload.get("error_description") or token_payload.get("error")
            raise ExchangeError(
                f"code exchange rejected ({response.status_code}): {reason or 'unknown'}"
            )

        access_token = token_payload.get("access_token")
        if not isinstance(access_token, str) or not access_token:
            raise ExchangeError("token endpoint did not return an access token")
        return access_token

    def _get_json(self, path: str, access_token: str) -> Any:
        response = httpx.get(
            f"{self.api_url}{path}",
            headers=self._api_headers(access_token),
            timeout=self.timeout,
        )
        if response.status_code >= 400:
            raise ValueError(f"GET {path} returned {response.status_code}")
        return response.json()

    def fetch_profile(self, access_token: str) -> ExternalProfile:
        try:
            payload = self._get_json("/user", access_token)
        except httpx.HTTPError as exc:
            raise ProfileFetchError(f"profile endpoint unreachable: {exc}") from exc
        except ValueError as exc:
            raise ProfileFetchError(f"profile lookup failed: {exc}") from exc
        if not isinstance(payload, dict):
            raise ProfileFetchError("profile response was not an object")

        raw_id = payload.get("id")
        profile = ExternalProfile(
            external_id=str(raw_id) if raw_id is not None else "",
            name=_optional_str(payload.get("name")),
            email=_optional_str(payload.get("email")),
            avatar_url=_optional_str(payload.get("avatar_url")),
        )
        if profile.email:
            return profile

        return ExternalProfile(
            external_id=profile.external_id,
            name=profile.name,
            email=self.fetch_primary_email(access_token),
            avatar_url=profile.avatar_url,
        )

    def fetch_primary_email(self, access_token: str) -> str | None:
        """Look up the account's primary address; failures yield ``None``."""

        try:
            payload = self._get_json("/user/emails", access_token)
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("could not fetch GitHub email list: %s", exc)
            return None

        if not isinstance(payload, list):
            logger.warning("GitHub email list was not a list")
            return None
        primaries = [
            item
            for item in payload
            if isinstance(item, dict) and _to_bool(item.get("primary"))
        ]
        primaries.sort(key=lambda item: not _to_bool(item.get("verified")))
        for item in primaries:
            email = _optional_str(item.get("email"))
            if email:
                return email
        return None


def callback_url(settings: Settings, request: Request, provider: str) -> str:
    if settings.github_redirect_url:
        return settings.github_redirect_url
    base = str(request.base_url).rstrip("/")
    return f"{base}/auth/{provider}/callback"


def get_oauth_client(
    settings: Settings, provider: str, *, redirect_uri: str
) -> GitHubClient:
    if provider not in _SUPPORTED_PROVIDERS:
        raise _oauth_error(
            f"Unsupported OAuth provider: {provider}",
            error_code="oauth_provider_unsupported",
            status_code=status.HTTP_404_NOT_FOUND,
        )
    if not settings.github_client_id or not settings.github_client_secret:
        raise _oauth_error(
            f"OAuth provider '{provider}' is not configured",
            error_code="oauth_provider_not_configured",
            status_code=status.HTTP_404_NOT_FOUND,
        )
    return GitHubClient(settings, redirect_uri=redirect_uri)
