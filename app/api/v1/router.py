"""
API Router v1

Combines all route modules.
"""

from fastapi import APIRouter

from app.api.v1.routes import location, hikes, sharing, contacts

api_router = APIRouter()

api_router.include_router(location.router, tags=["Location"])
api_router.include_router(hikes.router, tags=["Hikes"])
api_router.include_router(sharing.router, tags=["Sharing"])
api_router.include_router(contacts.router, tags=["Emergency contacts"])
