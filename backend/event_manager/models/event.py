"""
Event model.

Key design decisions:
- No denormalised seat counter: remaining capacity is always derived from
  COUNT(event_registrations), read under the event row lock
- Capacity bounded to [1, 1000] by a CHECK constraint as the last line of defence
- Composite index on (date_time, location) matches the upcoming-events ordering
"""

from sqlalchemy import CheckConstraint, Column, DateTime, Index, Integer, String
from sqlalchemy.orm import relationship

from event_manager.db.base import Base

MAX_CAPACITY = 1000


class Event(Base):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    date_time = Column(DateTime(timezone=True), nullable=False)
    location = Column(String(255), nullable=False)
    capacity = Column(Integer, nullable=False)

    registrations = relationship(
        "Registration",
        back_populates="event",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        CheckConstraint(
            f"capacity > 0 AND capacity <= {MAX_CAPACITY}",
            name="check_event_capacity_range",
        ),
        Index("ix_events_date_time_location", "date_time", "location"),
    )

    def __repr__(self) -> str:
        return f"<Event(id={self.id}, title={self.title}, capacity={self.capacity})>"
