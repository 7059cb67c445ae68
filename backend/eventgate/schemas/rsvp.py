"""Pydantic schemas for RSVPs. Wire names are camelCase."""
from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, ConfigDict, StringConstraints
from pydantic.alias_generators import to_camel

from eventgate.models.rsvp import EVENT_ID_MAX_LENGTH, GUEST_NAME_MAX_LENGTH, RSVPStatus

CAMEL_CONFIG = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class RSVPCreate(BaseModel):
    model_config = CAMEL_CONFIG

    event_id: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=EVENT_ID_MAX_LENGTH)]
    guest_name: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=GUEST_NAME_MAX_LENGTH)]
    status: RSVPStatus


class RSVPOut(BaseModel):
    model_config = CAMEL_CONFIG

    id: int
    event_id: str
    guest_name: str
    status: RSVPStatus
    created_at: datetime


class RSVPCountsOut(BaseModel):
    yes: int
    no: int
    maybe: int
    total: int


class RSVPSubmitResponse(BaseModel):
    success: bool = True
    message: str = "RSVP submitted successfully"
    counts: RSVPCountsOut


class RSVPListResponse(BaseModel):
    success: bool = True
    rsvps: list[RSVPOut]
    counts: RSVPCountsOut
