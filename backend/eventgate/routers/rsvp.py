"""RSVP routes.

These are public unless RSVP_REQUIRE_TOKEN is set: no token is needed to
submit or list responses for an event.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status

from eventgate.deps import get_rsvp_store, get_rsvp_viewer
from eventgate.schemas.rsvp import RSVPCountsOut, RSVPCreate, RSVPListResponse, RSVPOut, RSVPSubmitResponse
from eventgate.services import rsvp_service
from eventgate.services.credential_store import EventIdentity
from eventgate.services.rsvp_store import RSVPStore

logger = logging.getLogger(__name__)
router = APIRouter()


def _check_event_access(viewer: Optional[EventIdentity], event_id: str) -> None:
    if viewer is not None and viewer.id != event_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Token does not grant access to this event")


@router.post("", response_model=RSVPSubmitResponse)
def submit_rsvp(
    payload: RSVPCreate,
    store: RSVPStore = Depends(get_rsvp_store),
    viewer: Optional[EventIdentity] = Depends(get_rsvp_viewer),
):
    """Submit or change a guest's RSVP; returns the event's updated counts."""
    _check_event_access(viewer, payload.event_id)
    counts = rsvp_service.submit_rsvp(store, payload.event_id, payload.guest_name, payload.status)
    return RSVPSubmitResponse(counts=RSVPCountsOut(**counts.as_dict()))


@router.get("/{event_id}", response_model=RSVPListResponse)
def list_rsvps(
    event_id: str,
    store: RSVPStore = Depends(get_rsvp_store),
    viewer: Optional[EventIdentity] = Depends(get_rsvp_viewer),
):
    """List an event's RSVPs, most recent first, with counts."""
    _check_event_access(viewer, event_id)
    records, counts = rsvp_service.list_rsvps(store, event_id)
    return RSVPListResponse(
        rsvps=[RSVPOut.model_validate(r) for r in records],
        counts=RSVPCountsOut(**counts.as_dict()),
    )
