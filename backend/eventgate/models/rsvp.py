"""RSVP ORM model."""
import enum

from sqlalchemy import CheckConstraint, Column, DateTime, Integer, String, UniqueConstraint
from sqlalchemy.sql import func

from eventgate.database import Base

GUEST_NAME_MAX_LENGTH = 100
EVENT_ID_MAX_LENGTH = 100


class RSVPStatus(str, enum.Enum):
    yes = "yes"
    no = "no"
    maybe = "maybe"


class RSVP(Base):
    __tablename__ = "rsvps"
    __table_args__ = (
        # Upsert relies on this constraint as its conflict target.
        UniqueConstraint("event_id", "guest_name", name="uq_rsvps_event_guest"),
        CheckConstraint("status IN ('yes', 'no', 'maybe')", name="ck_rsvps_status"),
        {"sqlite_autoincrement": True},
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    event_id = Column(String(EVENT_ID_MAX_LENGTH), nullable=False, index=True)
    guest_name = Column(String(GUEST_NAME_MAX_LENGTH), nullable=False)
    status = Column(String(10), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    def __repr__(self) -> str:
        return f"<RSVP {self.guest_name!r} {self.status} ({self.event_id})>"
