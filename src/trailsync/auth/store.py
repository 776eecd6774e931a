"""Credential store — users, password hashes, and live refresh tokens.

Learn: The session manager never touches SQL directly. It asks the store
for users and hands them back to be persisted. Emails are lowercased on
every write and lookup, which is what makes the unique constraint on
users.email case-insensitive.
"""

import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from trailsync.db.models import User
from trailsync.errors import InternalError


def normalize_email(email: str) -> str:
    return email.strip().lower()


class UserStore:
    """Persistence for User rows, scoped to one request session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_email(self, email: str) -> Optional[User]:
        try:
            result = await self.db.execute(
                select(User).where(User.email == normalize_email(email))
            )
        except SQLAlchemyError as e:
            raise InternalError(str(e)) from e
        return result.scalars().first()

    async def get(self, user_id: str | uuid.UUID) -> Optional[User]:
        """Fetch a user by id. A malformed id simply matches nobody."""
        if not isinstance(user_id, uuid.UUID):
            try:
                user_id = uuid.UUID(str(user_id))
            except ValueError:
                return None
        try:
            return await self.db.get(User, user_id)
        except SQLAlchemyError as e:
            raise InternalError(str(e)) from e

    async def create(
        self,
        email: str,
        password_hash: str,
        username: str,
        profile_picture: Optional[str] = None,
    ) -> User:
        """Insert a user with no refresh tokens. Flushes, does not commit."""
        user = User(
            email=normalize_email(email),
            password_hash=password_hash,
            username=username,
            profile_picture=profile_picture,
            refresh_tokens=[],
        )
        self.db.add(user)
        try:
            await self.db.flush()
        except SQLAlchemyError as e:
            raise InternalError(str(e)) from e
        return user

    async def save(self, user: User) -> User:
        """Commit pending changes to the user."""
        self.db.add(user)
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise InternalError(str(e)) from e
        return user

    async def rollback(self) -> None:
        await self.db.rollback()
