from event_manager.models.user import User
from event_manager.models.event import Event
from event_manager.models.registration import Registration

__all__ = ["User", "Event", "Registration"]
