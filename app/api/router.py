"""
Main API router aggregating all endpoint modules.
"""

from fastapi import APIRouter

from app.api import admin, ai, catalog, dashboard, notifications, tickets

# Create main API router with /api prefix
api_router = APIRouter(prefix="/api")

# Include all sub-routers
api_router.include_router(tickets.router)
api_router.include_router(catalog.router)
api_router.include_router(notifications.router)
api_router.include_router(dashboard.router)
api_router.include_router(ai.router)
api_router.include_router(admin.router)
