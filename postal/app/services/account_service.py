"""
Account service: sign-up, sign-in, password changes and profile edits.

Accounts hold credentials only. Sign-up also writes the matching User
profile row with the privilege flag forced to False.
"""

import logging
from typing import Any, Dict, Optional, Tuple

from fastapi import status
from sqlalchemy.ext.asyncio import AsyncSession

from postal.app.core.exceptions import AuthenticationError, StorageError
from postal.app.core.security import get_password_hash, verify_password
from postal.app.db.repository import CrudRepository
from postal.app.models.account import Account
from postal.app.models.user import User
from postal.app.services.user_service import UserService

logger = logging.getLogger("postal.auth")


class AccountService:

    def __init__(self, db: AsyncSession):
        self.repository = CrudRepository(db, Account)
        self.users = UserService(db)

    async def get_by_email(self, email: str) -> Optional[Account]:
        return await self.repository.get_one_by("email", email)

    async def email_taken(self, email: str) -> bool:
        """An email is taken while either an account or a profile row still uses it."""
        return await self.get_by_email(email) is not None or await self.users.get_by_email(email) is not None

    async def sign_up(self, email: str, password: str, address: str = "") -> User:
        """
        Register credentials and create the profile row in one transaction.

        Raises:
            StorageError: 409 if the email already has an account or profile
        """
        if await self.email_taken(email):
            raise StorageError("Email already registered", status_code=status.HTTP_409_CONFLICT)

        await self.repository.create({"email": email, "hashed_password": get_password_hash(password)}, commit=False)
        user = await self.users.create({"email": email, "address": address, "priv": False}, commit=False)
        await self.repository.commit()
        logger.info("Signed up", extra={"user_id": user.id})
        return user

    async def sign_in(self, email: str, password: str) -> Tuple[Account, User]:
        """
        Check credentials and resolve the profile row.

        Raises:
            AuthenticationError: unknown email or wrong password
            StorageError: 404 if the credentials are fine but no profile row exists
        """
        account = await self.get_by_email(email)
        if account is None or not verify_password(password, account.hashed_password):
            logger.info("Login failed", extra={"email": email})
            raise AuthenticationError("Invalid login credentials")

        user = await self.users.get_by_email(email)
        if user is None:
            raise StorageError("No user record found for this email.", status_code=status.HTTP_404_NOT_FOUND)
        return account, user

    async def change_password(self, email: str, new_password: str) -> None:
        account = await self.get_by_email(email)
        if account is None:
            raise AuthenticationError("Session account no longer exists")
        await self.repository.update(account.id, {"hashed_password": get_password_hash(new_password)})

    async def update_profile(self, user_id: int, fields: Dict[str, Any]) -> User:
        """
        Edit a profile row, keeping the login email in step.

        The profile and the account are written in one transaction, so a
        failed email change leaves both rows as they were.

        Raises:
            StorageError: 404 for an unknown user, 409 if the new email is taken
        """
        user = await self.users.get_by_id(user_id)
        if user is None:
            raise StorageError(
                f"Error updating users: no row with id {user_id}", status_code=status.HTTP_404_NOT_FOUND
            )

        old_email = user.email
        new_email = fields.get("email")
        if new_email is not None and new_email != old_email:
            if await self.email_taken(new_email):
                raise StorageError("Email already registered", status_code=status.HTTP_409_CONFLICT)
            account = await self.get_by_email(old_email)
            if account is not None:
                await self.repository.update(account.id, {"email": new_email}, commit=False)

        user = await self.users.update(user_id, fields, commit=False)
        await self.repository.commit()
        logger.info("Profile updated", extra={"user_id": user_id, "fields": sorted(fields)})
        return user
