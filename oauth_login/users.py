from __future__ import annotations

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import models
from .errors import StoreError


class UserStore:
    """Persistence boundary for :class:`models.User`.

    ``find_by_external_id`` returns ``None`` for a missing row; a genuine
    database fault is raised as :class:`StoreError`.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    def find_by_external_id(self, external_id: str) -> models.User | None:
        try:
            return (
                self.db.query(models.User)
                .filter(models.User.external_id == external_id)
                .first()
            )
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StoreError(f"user lookup failed: {exc}") from exc

    def get(self, user_id: int) -> models.User | None:
        try:
            return self.db.get(models.User, user_id)
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StoreError(f"user lookup failed: {exc}") from exc

    def create(self, user: models.User) -> models.User:
        self.db.add(user)
        return self._commit(user, action="create")

    def update(self, user: models.User) -> models.User:
        return self._commit(user, action="update")

    def _commit(self, user: models.User, *, action: str) -> models.User:
        try:
            self.db.commit()
            self.db.refresh(user)
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StoreError(f"user {action} failed: {exc}") from exc
        return user
