"""
Admin settings controller: user management and the shipping method catalogue.
"""

from typing import Any, Dict, List, Optional

from postal.app.core.exceptions import InsufficientPermissionsError
from postal.app.core.token_revocation import revoke_account_tokens
from postal.app.dashboards.base import View
from postal.app.dashboards.validation import validate_method_edit, validate_method_form
from postal.app.schemas.dashboard import AdminSettingsView
from postal.app.schemas.shipping_method import ShippingMethodResponse
from postal.app.schemas.user import UserResponse
from postal.app.services.account_service import AccountService
from postal.app.services.shipping_method_service import ShippingMethodService
from postal.app.services.user_service import UserService


class AdminSettings(View):

    def __init__(self, session_factory, viewer, redis_client=None):
        if not viewer.priv:
            raise InsufficientPermissionsError()
        super().__init__(session_factory, viewer)
        self.redis_client = redis_client
        self.users: List[UserResponse] = []
        self.methods: List[ShippingMethodResponse] = []

    async def fetch(self) -> None:
        users, methods = await self.gather(
            lambda db: UserService(db).list_all(),
            lambda db: ShippingMethodService(db).list_all(),
        )
        self.users = [UserResponse.model_validate(u) for u in users]
        self.methods = [ShippingMethodResponse.model_validate(m) for m in methods]

    async def update_user(self, user_id: int, fields: Dict[str, Any]) -> Optional[UserResponse]:
        """Edit email, address or the privilege flag of any user."""
        async def action():
            user = await self.with_session(lambda db: AccountService(db).update_profile(user_id, fields))
            updated = UserResponse.model_validate(user)
            self.users = [updated if u.id == user_id else u for u in self.users]
            return updated
        return await self.run(action)

    async def delete_user(self, user_id: int) -> bool:
        """
        Delete a user's profile row.

        Their shipments stay, with the sender reference cleared. The account
        remains but every token issued for it stops working.
        """
        async def action():
            async def remove(db):
                user = await UserService(db).get_by_id(user_id)
                await UserService(db).delete(user_id)
                return user

            removed = await self.with_session(remove)
            if removed is not None and self.redis_client is not None:
                await revoke_account_tokens(self.redis_client, removed.email)
            self.users = [u for u in self.users if u.id != user_id]
            return True
        return bool(await self.run(action))

    async def create_method(self, name: Optional[str], cost: Optional[float]) -> Optional[ShippingMethodResponse]:
        async def action():
            fields = validate_method_form(name, cost)
            method = await self.with_session(lambda db: ShippingMethodService(db).create(fields))
            created = ShippingMethodResponse.model_validate(method)
            self.methods = self.methods + [created]
            return created
        return await self.run(action)

    async def update_method(self, method_id: int, fields: Dict[str, Any]) -> Optional[ShippingMethodResponse]:
        async def action():
            checked = validate_method_edit(fields)
            method = await self.with_session(lambda db: ShippingMethodService(db).update(method_id, checked))
            updated = ShippingMethodResponse.model_validate(method)
            self.methods = [updated if m.id == method_id else m for m in self.methods]
            return updated
        return await self.run(action)

    async def delete_method(self, method_id: int) -> bool:
        """Remove a method; shipments that used it keep a null reference."""
        async def action():
            await self.with_session(lambda db: ShippingMethodService(db).delete(method_id))
            self.methods = [m for m in self.methods if m.id != method_id]
            return True
        return bool(await self.run(action))

    def snapshot(self) -> AdminSettingsView:
        return AdminSettingsView(
            state=self.state.value,
            error=self.error,
            users=self.users if self.loaded else [],
            methods=self.methods if self.loaded else [],
        )
