"""
User service: CRUD on the users table plus lookups by email and privilege.
"""

from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from postal.app.db.repository import CrudRepository
from postal.app.models.user import User


class UserService:

    def __init__(self, db: AsyncSession):
        self.repository = CrudRepository(db, User)

    async def list_all(self) -> List[User]:
        return await self.repository.list_all()

    async def get_by_id(self, user_id: int) -> Optional[User]:
        return await self.repository.get_by_id(user_id)

    async def create(self, fields: Dict[str, Any], commit: bool = True) -> User:
        return await self.repository.create(fields, commit)

    async def update(self, user_id: int, fields: Dict[str, Any], commit: bool = True) -> User:
        if "priv" in fields:
            fields = {**fields, "priv": bool(fields["priv"])}
        return await self.repository.update(user_id, fields, commit)

    async def delete(self, user_id: int) -> None:
        await self.repository.delete(user_id)

    async def get_by_email(self, email: str) -> Optional[User]:
        return await self.repository.get_one_by("email", email)

    async def get_by_privilege(self, priv: bool) -> List[User]:
        query = self.repository.newest_first(select(User).where(User.priv == priv))
        return await self.repository.fetch_all(query)
