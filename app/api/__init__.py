"""
API endpoints module.
"""

from app.api import admin, ai, catalog, dashboard, notifications, tickets
from app.api.router import api_router

__all__ = [
    "admin",
    "ai",
    "catalog",
    "dashboard",
    "notifications",
    "tickets",
    "api_router",
]
