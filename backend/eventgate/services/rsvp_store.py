"""RSVP persistence and aggregation.

One row per (event_id, guest_name). Writes go through a single
``INSERT ... ON CONFLICT DO UPDATE`` so the unique pair is enforced by the
table itself, the surrogate ``id`` survives resubmission, and concurrent
writers for the same pair serialize on the database's write lock (last
commit wins).
"""
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Iterator

from sqlalchemy import delete, func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from eventgate.errors import StorageError, ValidationError
from eventgate.models.rsvp import GUEST_NAME_MAX_LENGTH, RSVP, RSVPStatus

logger = logging.getLogger(__name__)

_UPSERT_DIALECTS = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class RSVPCounts:
    yes: int = 0
    no: int = 0
    maybe: int = 0

    @property
    def total(self) -> int:
        return self.yes + self.no + self.maybe

    def as_dict(self) -> dict[str, int]:
        return {"yes": self.yes, "no": self.no, "maybe": self.maybe, "total": self.total}


class RSVPStore:
    """RSVP table operations bound to one SQLAlchemy session."""

    def __init__(self, db: Session, clock: Callable[[], datetime] = _utcnow) -> None:
        self._db = db
        self._clock = clock

    @contextmanager
    def _guard(self, action: str) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as exc:
            self._db.rollback()
            logger.error("RSVP storage failure during %s: %s", action, exc.__class__.__name__)
            raise StorageError() from exc

    def upsert(self, event_id: str, guest_name: str, status: RSVPStatus | str) -> None:
        """Insert the guest's response, or replace status and timestamp in place.

        ``guest_name`` is trimmed here so every caller shares one identity
        key; an empty or over-long name raises ValidationError.
        """
        guest_name = guest_name.strip()
        if not guest_name or len(guest_name) > GUEST_NAME_MAX_LENGTH:
            raise ValidationError([{
                "field": "guestName",
                "message": f"Guest name is required and must be 1-{GUEST_NAME_MAX_LENGTH} characters",
            }])
        values = {
            "event_id": event_id,
            "guest_name": guest_name,
            "status": RSVPStatus(status).value,
            "created_at": self._clock(),
        }
        dialect = self._db.get_bind().dialect.name
        insert = _UPSERT_DIALECTS.get(dialect)
        if insert is None:
            logger.error("RSVP upsert is not supported on the %s dialect", dialect)
            raise StorageError()

        with self._guard("upsert"):
            stmt = insert(RSVP).values(**values)
            stmt = stmt.on_conflict_do_update(
                index_elements=["event_id", "guest_name"],
                set_={"status": stmt.excluded.status, "created_at": stmt.excluded.created_at},
            )
            self._db.execute(stmt)
            self._db.commit()
        logger.info("RSVP '%s' recorded for event %s", values["status"], event_id)

    def list_for_event(self, event_id: str) -> list[RSVP]:
        """All responses for the event, most recent first."""
        with self._guard("list"):
            return list(
                self._db.execute(
                    select(RSVP)
                    .where(RSVP.event_id == event_id)
                    .order_by(RSVP.created_at.desc(), RSVP.id.desc())
                ).scalars()
            )

    def counts_for_event(self, event_id: str) -> RSVPCounts:
        with self._guard("count"):
            rows = self._db.execute(
                select(RSVP.status, func.count(RSVP.id))
                .where(RSVP.event_id == event_id)
                .group_by(RSVP.status)
            ).all()
        return RSVPCounts(**{status: count for status, count in rows})

    def clear_all(self) -> int:
        """Delete every RSVP for every event. Administrative use only."""
        with self._guard("clear"):
            result = self._db.execute(delete(RSVP))
            self._db.commit()
        logger.warning("Cleared %d RSVP records", result.rowcount)
        return result.rowcount
