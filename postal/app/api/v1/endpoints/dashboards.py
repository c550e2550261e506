"""
Dashboard API endpoints.

Each request mounts a controller for the signed-in viewer, loads it, runs
at most one action and answers with the controller's snapshot. Action
failures are part of the snapshot (state ``error`` plus the message), so
these routes answer 200 once the session guard has passed.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import async_sessionmaker

from postal.app.core.dependencies import SessionContext
from postal.app.core.guards import require_admin, require_user
from postal.app.core.redis_client import get_redis
from postal.app.dashboards.admin import AdminDashboard, AdminTab
from postal.app.dashboards.admin_settings import AdminSettings
from postal.app.dashboards.base import View
from postal.app.dashboards.filters import LifecycleBucket, ShipmentFilter
from postal.app.dashboards.user import UserDashboard
from postal.app.dashboards.user_settings import UserSettings
from postal.app.db.session import get_session_factory
from postal.app.schemas.dashboard import (
    AdminCreateShipment, AdminDashboardView, AdminSettingsView, MethodEdit,
    PasswordEdit, ProfileEdit, StatusChange, UserDashboardView, UserEdit,
    UserSettingsView,
)
from postal.app.schemas.shipment import ShipmentDraft
from postal.app.services.change_feed import ChangeFeed, get_change_feed

admin_router = APIRouter(prefix="/admin", tags=["Admin - Dashboard"])
user_router = APIRouter(prefix="/user", tags=["User - Dashboard"])


async def mount(view: View) -> bool:
    """Load a view; returns False when the initial fetch failed."""
    await view.load()
    return view.loaded


def shipment_filter(
    status: Optional[str] = Query(None, description="Exact status to keep"),
    search: str = Query("", description="Case-insensitive text over id, sender email, address and status"),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
) -> ShipmentFilter:
    return ShipmentFilter(status=status or None, search=search, start_date=start_date, end_date=end_date)


async def admin_dashboard(
    admin: SessionContext = Depends(require_admin),
    session_factory: async_sessionmaker = Depends(get_session_factory),
    feed: ChangeFeed = Depends(get_change_feed),
) -> AdminDashboard:
    return AdminDashboard(session_factory, admin.user, feed)


async def user_dashboard(
    session: SessionContext = Depends(require_user),
    session_factory: async_sessionmaker = Depends(get_session_factory),
    feed: ChangeFeed = Depends(get_change_feed),
) -> UserDashboard:
    return UserDashboard(session_factory, session.user, feed)


# ---------- Admin dashboard ----------

@admin_router.get("/dashboard", response_model=AdminDashboardView)
async def view_admin_dashboard(
    tab: AdminTab = Query(AdminTab.DASHBOARD),
    filters: ShipmentFilter = Depends(shipment_filter),
    dashboard: AdminDashboard = Depends(admin_dashboard),
):
    """Counters, the filtered shipments table, users and methods."""
    await mount(dashboard)
    dashboard.select_tab(tab)
    dashboard.set_filter(filters)
    return dashboard.snapshot()


@admin_router.get("/dashboard/shipments/{shipment_id}", response_model=AdminDashboardView)
async def select_admin_shipment(
    shipment_id: int = Path(...),
    dashboard: AdminDashboard = Depends(admin_dashboard),
):
    if await mount(dashboard):
        dashboard.select_tab(AdminTab.SHIPMENTS)
        dashboard.select(shipment_id)
    return dashboard.snapshot()


@admin_router.post("/dashboard/shipments", response_model=AdminDashboardView)
async def admin_create_shipment(
    draft: AdminCreateShipment,
    dashboard: AdminDashboard = Depends(admin_dashboard),
):
    if await mount(dashboard):
        dashboard.select_tab(AdminTab.SHIPMENTS)
        await dashboard.create_shipment(draft)
    return dashboard.snapshot()


@admin_router.patch("/dashboard/shipments/{shipment_id}/status", response_model=AdminDashboardView)
async def admin_update_status(
    shipment_id: int = Path(...),
    change: StatusChange = ...,
    dashboard: AdminDashboard = Depends(admin_dashboard),
):
    if await mount(dashboard):
        dashboard.select_tab(AdminTab.SHIPMENTS)
        dashboard.select(shipment_id)
        await dashboard.update_status(shipment_id, change.status)
    return dashboard.snapshot()


@admin_router.patch("/dashboard/methods/{method_id}", response_model=AdminDashboardView)
async def admin_edit_method(
    method_id: int = Path(...),
    edit: MethodEdit = ...,
    dashboard: AdminDashboard = Depends(admin_dashboard),
):
    if await mount(dashboard):
        dashboard.select_tab(AdminTab.SETTINGS)
        await dashboard.update_shipping_method(method_id, edit.model_dump(exclude_none=True))
    return dashboard.snapshot()


# ---------- Admin settings ----------

async def admin_settings(
    admin: SessionContext = Depends(require_admin),
    session_factory: async_sessionmaker = Depends(get_session_factory),
    redis_client=Depends(get_redis),
) -> AdminSettings:
    return AdminSettings(session_factory, admin.user, redis_client)


@admin_router.get("/settings", response_model=AdminSettingsView)
async def view_admin_settings(settings_view: AdminSettings = Depends(admin_settings)):
    await mount(settings_view)
    return settings_view.snapshot()


@admin_router.patch("/settings/users/{user_id}", response_model=AdminSettingsView)
async def admin_edit_user(
    user_id: int = Path(...),
    edit: UserEdit = ...,
    settings_view: AdminSettings = Depends(admin_settings),
):
    if await mount(settings_view):
        await settings_view.update_user(user_id, edit.model_dump(exclude_none=True))
    return settings_view.snapshot()


@admin_router.delete("/settings/users/{user_id}", response_model=AdminSettingsView)
async def admin_delete_user(
    user_id: int = Path(...),
    settings_view: AdminSettings = Depends(admin_settings),
):
    if await mount(settings_view):
        await settings_view.delete_user(user_id)
    return settings_view.snapshot()


@admin_router.post("/settings/methods", response_model=AdminSettingsView)
async def admin_add_method(
    edit: MethodEdit,
    settings_view: AdminSettings = Depends(admin_settings),
):
    if await mount(settings_view):
        await settings_view.create_method(edit.name, edit.cost)
    return settings_view.snapshot()


@admin_router.patch("/settings/methods/{method_id}", response_model=AdminSettingsView)
async def admin_update_method(
    method_id: int = Path(...),
    edit: MethodEdit = ...,
    settings_view: AdminSettings = Depends(admin_settings),
):
    if await mount(settings_view):
        await settings_view.update_method(method_id, edit.model_dump(exclude_none=True))
    return settings_view.snapshot()


@admin_router.delete("/settings/methods/{method_id}", response_model=AdminSettingsView)
async def admin_delete_method(
    method_id: int = Path(...),
    settings_view: AdminSettings = Depends(admin_settings),
):
    if await mount(settings_view):
        await settings_view.delete_method(method_id)
    return settings_view.snapshot()


# ---------- User dashboard ----------

@user_router.get("/dashboard", response_model=UserDashboardView)
async def view_user_dashboard(
    tab: LifecycleBucket = Query(LifecycleBucket.ACTIVE),
    dashboard: UserDashboard = Depends(user_dashboard),
):
    """The viewer's own shipments in the chosen lifecycle tab."""
    await mount(dashboard)
    dashboard.select_tab(tab)
    return dashboard.snapshot()


@user_router.post("/dashboard/shipments", response_model=UserDashboardView)
async def user_create_shipment(
    draft: ShipmentDraft,
    dashboard: UserDashboard = Depends(user_dashboard),
):
    if await mount(dashboard):
        await dashboard.create_shipment(draft)
    return dashboard.snapshot()


@user_router.post("/dashboard/shipments/{shipment_id}/cancel", response_model=UserDashboardView)
async def user_cancel_shipment(
    shipment_id: int = Path(...),
    confirm: bool = Query(False, description="Without confirmation the shipment is only staged"),
    dashboard: UserDashboard = Depends(user_dashboard),
):
    """
    Two-step cancel.

    The first call stages the shipment and returns it as ``pending_cancel``;
    repeating it with ``confirm=true`` sets the status to cancelled.
    """
    if await mount(dashboard):
        if dashboard.request_cancel(shipment_id) is not None and confirm:
            await dashboard.confirm_cancel()
    return dashboard.snapshot()


@user_router.get("/dashboard/track/{shipment_id}", response_model=UserDashboardView)
async def user_track_shipment(
    shipment_id: int = Path(...),
    dashboard: UserDashboard = Depends(user_dashboard),
):
    if await mount(dashboard):
        await dashboard.track(shipment_id)
    return dashboard.snapshot()


# ---------- User settings ----------

async def user_settings(
    session: SessionContext = Depends(require_user),
    session_factory: async_sessionmaker = Depends(get_session_factory),
) -> UserSettings:
    return UserSettings(session_factory, session.user)


@user_router.get("/settings", response_model=UserSettingsView)
async def view_user_settings(settings_view: UserSettings = Depends(user_settings)):
    await mount(settings_view)
    return settings_view.snapshot()


@user_router.patch("/settings/profile", response_model=UserSettingsView)
async def user_edit_profile(
    edit: ProfileEdit,
    settings_view: UserSettings = Depends(user_settings),
):
    if await mount(settings_view):
        await settings_view.update_profile(address=edit.address, email=edit.email)
    return settings_view.snapshot()


@user_router.patch("/settings/password", response_model=UserSettingsView)
async def user_change_password(
    edit: PasswordEdit,
    settings_view: UserSettings = Depends(user_settings),
):
    if await mount(settings_view):
        await settings_view.change_password(edit.new_password, edit.confirm_password)
    return settings_view.snapshot()
