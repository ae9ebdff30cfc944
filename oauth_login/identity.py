from __future__ import annotations

import logging

from . import models
from .errors import InvalidProfile
from .oauth_external import ExternalProfile, GitHubClient
from .users import UserStore

logger = logging.getLogger(__name__)


def find_or_create_user(store: UserStore, profile: ExternalProfile) -> models.User:
    """Map an external profile onto a local user.

    The provider is authoritative for display attributes, so an existing row
    has its name, email and avatar overwritten on every login. The external
    id is only ever written when the row is created.
    """
    if not profile.external_id:
        raise InvalidProfile("external profile has no id")

    user = store.find_by_external_id(profile.external_id)
    if user is not None:
        user.name = profile.name  # type: ignore[assignment]
        user.email = profile.email  # type: ignore[assignment]
        user.avatar_url = profile.avatar_url  # type: ignore[assignment]
        user = store.update(user)
        logger.info("updated user %s from external id %s", user.id, profile.external_id)
        return user

    user = store.create(
        models.User(
            external_id=profile.external_id,
            name=profile.name,
            email=profile.email,
            avatar_url=profile.avatar_url,
        )
    )
    logger.info("created user %s for external id %s", user.id, profile.external_id)
    return user


def complete_callback(client: GitHubClient, store: UserStore, *, code: str) -> models.User:
    access_token = client.exchange_code(code)
    profile = client.fetch_profile(access_token)
    return find_or_create_user(store, profile)
