"""Generic persistence operations over one ORM model.

Learn: Entity services (users, posts, comments) compose a
CrudRepository instead of inheriting from a base controller. The
repository knows how to list, fetch, create, update, and delete rows;
the entity service wraps those calls with identity and ownership rules.

Any SQLAlchemyError is rolled back and re-raised as InternalError (500).
"""

import uuid
from typing import Any, Generic, Optional, TypeVar

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from trailsync.db.models import Base
from trailsync.errors import InternalError

ModelT = TypeVar("ModelT", bound=Base)


class CrudRepository(Generic[ModelT]):
    """get / get_by_id / create / update / delete for a single model."""

    def __init__(self, db: AsyncSession, model: type[ModelT]):
        self.db = db
        self.model = model

    async def _fail(self, e: SQLAlchemyError) -> None:
        await self.db.rollback()
        raise InternalError(str(e)) from e

    async def commit(self) -> None:
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self._fail(e)

    async def list(self, **filters: Any) -> list[ModelT]:
        """All rows matching the equality filters; None values are ignored."""
        criteria = {k: v for k, v in filters.items() if v is not None}
        q = select(self.model).filter_by(**criteria).order_by(self.model.created_at)
        try:
            result = await self.db.execute(q)
        except SQLAlchemyError as e:
            await self._fail(e)
        return list(result.scalars().all())

    async def get_by_id(self, obj_id: uuid.UUID) -> Optional[ModelT]:
        try:
            return await self.db.get(self.model, obj_id)
        except SQLAlchemyError as e:
            await self._fail(e)

    async def create(self, commit: bool = True, **fields: Any) -> ModelT:
        obj = self.model(**fields)
        self.db.add(obj)
        try:
            await self.db.flush()
        except SQLAlchemyError as e:
            await self._fail(e)
        if commit:
            await self.commit()
        return obj

    async def update(
        self, obj: ModelT, fields: dict[str, Any], commit: bool = True
    ) -> ModelT:
        for key, value in fields.items():
            setattr(obj, key, value)
        try:
            await self.db.flush()
        except SQLAlchemyError as e:
            await self._fail(e)
        if commit:
            await self.commit()
        return obj

    async def delete(self, obj: ModelT, commit: bool = True) -> ModelT:
        try:
            await self.db.delete(obj)
            await self.db.flush()
        except SQLAlchemyError as e:
            await self._fail(e)
        if commit:
            await self.commit()
        return obj

    async def delete_where(self, *criteria: Any, **filters: Any) -> None:
        """Bulk delete without loading rows. Does not commit."""
        stmt = delete(self.model).filter_by(**filters)
        if criteria:
            stmt = stmt.where(*criteria)
        try:
            await self.db.execute(stmt)
        except SQLAlchemyError as e:
            await self._fail(e)
