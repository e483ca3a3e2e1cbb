"""
Shared FastAPI dependencies.
"""

from fastapi import Request

from event_manager.db.session import get_db
from event_manager.services.cache_service import EventCache

__all__ = ["get_db", "get_cache"]


def get_cache(request: Request) -> EventCache:
    """The cache built in the lifespan, or a disabled one if none was set up."""
    cache = getattr(request.app.state, "cache", None)
    return cache if cache is not None else EventCache(None)
