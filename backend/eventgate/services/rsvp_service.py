"""RSVP submit/list orchestration over the RSVP store.

Input is validated here as well as at the HTTP boundary so non-HTTP callers
get the same guarantees: nothing malformed reaches storage.
"""
import logging

from eventgate.errors import ValidationError
from eventgate.models.rsvp import EVENT_ID_MAX_LENGTH, GUEST_NAME_MAX_LENGTH, RSVP, RSVPStatus
from eventgate.services.rsvp_store import RSVPCounts, RSVPStore

logger = logging.getLogger(__name__)


def _validate(event_id: str, guest_name: str, status: str) -> tuple[str, str, RSVPStatus]:
    details = []

    event_id = event_id.strip() if isinstance(event_id, str) else ""
    if not event_id or len(event_id) > EVENT_ID_MAX_LENGTH:
        details.append({"field": "eventId", "message": "Event ID is required"})

    guest_name = guest_name.strip() if isinstance(guest_name, str) else ""
    if not guest_name or len(guest_name) > GUEST_NAME_MAX_LENGTH:
        details.append({
            "field": "guestName",
            "message": f"Guest name is required and must be 1-{GUEST_NAME_MAX_LENGTH} characters",
        })

    try:
        parsed_status = RSVPStatus(status)
    except ValueError:
        parsed_status = None
        details.append({"field": "status", "message": "Status must be yes, no, or maybe"})

    if details:
        logger.info("Rejected RSVP input: %s", ", ".join(d["field"] for d in details))
        raise ValidationError(details)
    return event_id, guest_name, parsed_status


def submit_rsvp(store: RSVPStore, event_id: str, guest_name: str, status: str) -> RSVPCounts:
    """Record a guest's response and return the event's fresh counts."""
    event_id, guest_name, parsed_status = _validate(event_id, guest_name, status)
    store.upsert(event_id, guest_name, parsed_status)
    return store.counts_for_event(event_id)


def list_rsvps(store: RSVPStore, event_id: str) -> tuple[list[RSVP], RSVPCounts]:
    return store.list_for_event(event_id), store.counts_for_event(event_id)
