"""
Generic CRUD gateway bound to one mapped table.

Every domain service composes one of these. Backend failures are rolled
back and surfaced as StorageError; nothing here retries.
"""

import logging
from typing import Any, Dict, Generic, List, Optional, Type, TypeVar

from fastapi import status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, MultipleResultsFound, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from postal.app.core.exceptions import StorageError

logger = logging.getLogger("postal.storage")

ModelT = TypeVar("ModelT")

# Generated on insert, never accepted from callers
GENERATED_FIELDS = ("id", "created_at")


class CrudRepository(Generic[ModelT]):
    """
    list / get / create / update / delete for one table.

    Args:
        db: Session the repository runs its statements in
        model: Declarative model class of the bound table
    """

    def __init__(self, db: AsyncSession, model: Type[ModelT]):
        self.db = db
        self.model = model
        self.table_name = model.__tablename__

    def newest_first(self, query):
        """Apply the default ordering: creation time descending."""
        return query.order_by(self.model.created_at.desc(), self.model.id.desc())

    async def list_all(self) -> List[ModelT]:
        return await self.fetch_all(self.newest_first(select(self.model)), "fetching")

    async def get_by_id(self, item_id: int) -> Optional[ModelT]:
        return await self.get_one_by("id", item_id)

    async def get_one_by(self, column: str, value: Any) -> Optional[ModelT]:
        """
        Single-row lookup on any column.

        Returns None when nothing matches and fails when more than one row
        matches; ambiguous matches are never resolved by picking one.
        """
        query = select(self.model).where(getattr(self.model, column) == value)
        try:
            result = await self.db.execute(query)
            return result.scalar_one_or_none()
        except MultipleResultsFound:
            raise StorageError(
                f"Error fetching {self.table_name}: more than one row matched {column}={value!r}"
            )
        except SQLAlchemyError as e:
            await self._fail("fetching", e)

    async def fetch_all(self, query, verb: str = "fetching") -> List[ModelT]:
        """Run a select built by a service and return the mapped rows."""
        try:
            result = await self.db.execute(query)
            return list(result.scalars().unique().all())
        except SQLAlchemyError as e:
            await self._fail(verb, e)

    async def create(self, fields: Dict[str, Any], commit: bool = True) -> ModelT:
        """
        Insert a row.

        With ``commit=False`` the row is only flushed; the caller finishes
        the transaction with :meth:`commit`.
        """
        item = self.model(**{k: v for k, v in fields.items() if k not in GENERATED_FIELDS})
        try:
            self.db.add(item)
            await self._finish(item, commit)
        except SQLAlchemyError as e:
            await self._fail("creating", e)
        logger.info("Created %s row", self.table_name, extra={"table": self.table_name, "row_id": item.id})
        return item

    async def update(self, item_id: int, fields: Dict[str, Any], commit: bool = True) -> ModelT:
        item = await self.get_by_id(item_id)
        if item is None:
            raise StorageError(
                f"Error updating {self.table_name}: no row with id {item_id}",
                status_code=status.HTTP_404_NOT_FOUND,
            )

        for field, value in fields.items():
            if field not in GENERATED_FIELDS:
                setattr(item, field, value)

        try:
            await self._finish(item, commit)
        except SQLAlchemyError as e:
            await self._fail("updating", e)
        logger.info(
            "Updated %s row", self.table_name,
            extra={"table": self.table_name, "row_id": item_id, "fields": sorted(fields)}
        )
        return item

    async def delete(self, item_id: int) -> None:
        item = await self.get_by_id(item_id)
        if item is None:
            # Deleting a missing row is not an error for the store
            return
        try:
            await self.db.delete(item)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self._fail("deleting", e)
        logger.info("Deleted %s row", self.table_name, extra={"table": self.table_name, "row_id": item_id})

    async def commit(self) -> None:
        """Commit writes staged with ``commit=False``; any failure undoes all of them."""
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self._fail("saving", e)

    async def _finish(self, item: ModelT, commit: bool) -> None:
        if commit:
            await self.db.commit()
            await self.db.refresh(item)
        else:
            await self.db.flush()

    async def _fail(self, verb: str, error: SQLAlchemyError):
        await self.db.rollback()
        logger.warning("Storage failure %s %s: %s", verb, self.table_name, error)
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        if isinstance(error, IntegrityError):
            status_code = status.HTTP_409_CONFLICT
        detail = getattr(error, "orig", None) or error
        raise StorageError(f"Error {verb} {self.table_name}: {detail}", status_code=status_code)
