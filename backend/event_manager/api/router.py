"""
Central API router that aggregates all route modules.
"""

from fastapi import APIRouter

from event_manager.api.routes import events, registrations, users

api_router = APIRouter(prefix="/api")
api_router.include_router(users.router)
# Registration paths are fixed strings under /events; include them first so
# they are matched before the /events/{event_id} routes.
api_router.include_router(registrations.router)
api_router.include_router(events.router)
