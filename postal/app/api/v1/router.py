"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from postal.app.api.v1.endpoints import (
    auth, users, shipping_methods, shipments, dashboards, live_updates
)

router = APIRouter()

# Session endpoints
router.include_router(auth.router)

# Resource endpoints
router.include_router(users.router)
router.include_router(shipping_methods.router)
router.include_router(shipments.router)

# Dashboard controllers
router.include_router(dashboards.admin_router)
router.include_router(dashboards.user_router)

# Live updates
router.include_router(live_updates.router)
