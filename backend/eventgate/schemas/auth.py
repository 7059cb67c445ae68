"""Pydantic schemas for login and token verification."""
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, StringConstraints
from pydantic.alias_generators import to_camel


class LoginRequest(BaseModel):
    password: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)]


class EventOut(BaseModel):
    """Public view of an event. There is deliberately no password field."""

    id: str
    title: str
    date: str
    time: str
    location: str
    theme: str
    description: Optional[str] = None


class LoginResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    success: bool = True
    token: str
    expires_in: str
    event: EventOut


class VerifyResponse(BaseModel):
    valid: bool = True
    event: EventOut
