"""Page-token access to the learner directory."""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Iterator

from sqlalchemy import select
from sqlalchemy.orm import Session

from vocab_stats.config import settings
from vocab_stats.db.models.user import User
from vocab_stats.utils.exceptions import ValidationError


@dataclass(slots=True)
class UserPage:
    """One page of users plus the token for the next page, if any."""

    users: list[User] = field(default_factory=list)
    page_token: str | None = None


class UserDirectory:
    """List every known learner in stable id order."""

    def __init__(self, db: Session, *, page_size: int | None = None) -> None:
        self.db = db
        self.page_size = page_size or settings.USER_DIRECTORY_PAGE_SIZE

    def list_users(self, page_size: int | None = None, page_token: str | None = None) -> UserPage:
        size = page_size or self.page_size
        stmt = select(User).order_by(User.id).limit(size)
        if page_token:
            try:
                after = uuid.UUID(page_token)
            except ValueError as exc:
                raise ValidationError("Invalid page token", details={"page_token": page_token}) from exc
            stmt = stmt.where(User.id > after)

        users = list(self.db.scalars(stmt))
        next_token = str(users[-1].id) if len(users) == size else None
        return UserPage(users=users, page_token=next_token)

    def iter_users(self) -> Iterator[User]:
        page = self.list_users()
        yield from page.users
        while page.page_token:
            page = self.list_users(page_token=page.page_token)
            yield from page.users

    def list_all_users(self) -> list[User]:
        return list(self.iter_users())
