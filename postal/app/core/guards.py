"""
Route guards.

Every protected route runs the same single step: resolve the session,
then assert the role the route needs.
"""

from fastapi import Depends

from postal.app.core.dependencies import SessionContext, get_current_session
from postal.app.core.exceptions import InsufficientPermissionsError


def assert_role(session: SessionContext, admin_only: bool) -> SessionContext:
    """
    Enforce the privilege flag.

    Only admin-only routes are gated; admins may use every user route.

    Raises:
        InsufficientPermissionsError: 403 redirecting to the user dashboard
    """
    if admin_only and not session.is_admin:
        raise InsufficientPermissionsError()
    return session


def require_session(admin_only: bool = False):
    """
    Dependency factory: resolve session, assert role.

    Usage:
        @router.get("/admin/dashboard")
        async def admin_dashboard(session: SessionContext = Depends(require_session(admin_only=True))):
            ...
    """
    async def session_checker(session: SessionContext = Depends(get_current_session)) -> SessionContext:
        return assert_role(session, admin_only)

    return session_checker


require_admin = require_session(admin_only=True)
require_user = require_session()
