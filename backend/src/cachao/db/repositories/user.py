"""Repository for user profiles."""

from __future__ import annotations

from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from cachao.db.models import User
from cachao.db.repositories.base import BaseRepository
from cachao.utils.validators import normalize_nickname


class UserRepository(BaseRepository[User]):
    """Repository for users keyed by Cognito subject."""

    def __init__(self, session: Session):
        """Initialize the repository.

        Args:
            session: SQLAlchemy session for database operations.
        """
        super().__init__(session, User)

    def find_by_nickname(self, nickname: str) -> Optional[User]:
        """Find a user by nickname (stored lower-case)."""
        query = select(User).where(User.nickname == normalize_nickname(nickname))
        return self._session.execute(query).scalar_one_or_none()

    def nickname_taken(
        self,
        nickname: str,
        exclude_sub: Optional[str] = None,
    ) -> bool:
        """Return True when another user already holds ``nickname``."""
        user = self.find_by_nickname(nickname)
        if user is None:
            return False
        return user.cognito_sub != exclude_sub

    def upsert(
        self,
        cognito_sub: str,
        email: Optional[str],
        name: Optional[str],
    ) -> User:
        """Create the user row or refresh its email and name.

        An existing name is kept when ``name`` is empty.
        """
        user = self.get_by_id(cognito_sub)
        if user is None:
            return self.create(User(cognito_sub=cognito_sub, email=email, name=name))
        if email:
            user.email = email
        if name:
            user.name = name
        return self.update(user)
