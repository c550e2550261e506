"""
User settings controller: profile edits and password changes.
"""

from typing import Optional

from postal.app.core.jwt import create_access_token
from postal.app.dashboards.base import View
from postal.app.dashboards.validation import validate_password_change
from postal.app.schemas.dashboard import UserSettingsView
from postal.app.schemas.user import UserResponse
from postal.app.services.account_service import AccountService


class UserSettings(View):

    def __init__(self, session_factory, viewer):
        super().__init__(session_factory, viewer)
        self.profile: Optional[UserResponse] = None
        self.success: Optional[str] = None
        self.access_token: Optional[str] = None

    async def fetch(self) -> None:
        # The viewer was resolved by the session guard already
        self.profile = UserResponse.model_validate(self.viewer)

    def _reset_messages(self) -> None:
        self.error = None
        self.success = None

    async def update_profile(self, address: Optional[str] = None, email: Optional[str] = None) -> Optional[UserResponse]:
        """
        Save the viewer's own address and/or email.

        Changing the email re-keys the login, so a fresh token is issued.
        """
        self._reset_messages()
        fields = {}
        if address is not None:
            fields["address"] = address
        if email is not None and email != self.viewer.email:
            fields["email"] = email

        async def action():
            user = await self.with_session(lambda db: AccountService(db).update_profile(self.viewer.id, fields))
            if "email" in fields:
                self.access_token = create_access_token(data={"sub": user.email, "user_id": user.id})
            self.viewer = user
            self.profile = UserResponse.model_validate(user)
            self.success = "Profile updated successfully!"
            return self.profile
        return await self.run(action)

    async def change_password(self, new_password: str, confirm_password: str) -> bool:
        self._reset_messages()

        async def action():
            password = validate_password_change(new_password, confirm_password)
            await self.with_session(lambda db: AccountService(db).change_password(self.viewer.email, password))
            self.success = "Password updated successfully!"
            return True
        return bool(await self.run(action))

    def snapshot(self) -> UserSettingsView:
        return UserSettingsView(
            state=self.state.value,
            error=self.error,
            success=self.success,
            profile=self.profile,
            access_token=self.access_token,
        )
