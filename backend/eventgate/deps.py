"""FastAPI dependencies wiring request handlers to app-scoped components."""
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from eventgate.database import get_db
from eventgate.errors import InvalidTokenError
from eventgate.services.access_gate import AccessGate
from eventgate.services.credential_store import EventIdentity
from eventgate.services.rsvp_store import RSVPStore

# auto_error=False so a missing header becomes our own 401 "invalid" body
bearer_scheme = HTTPBearer(auto_error=False)


def get_access_gate(request: Request) -> AccessGate:
    return request.app.state.access_gate


def get_rsvp_store(db: Session = Depends(get_db)) -> RSVPStore:
    return RSVPStore(db)


def get_bearer_token(credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)) -> str:
    if credentials is None or not credentials.credentials:
        raise InvalidTokenError()
    return credentials.credentials


def get_current_event(
    token: str = Depends(get_bearer_token),
    gate: AccessGate = Depends(get_access_gate),
) -> EventIdentity:
    """Validate the bearer token and return the event it unlocks."""
    return gate.verify(token)


def get_rsvp_viewer(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    gate: AccessGate = Depends(get_access_gate),
) -> Optional[EventIdentity]:
    """Token check for RSVP routes, enforced only when RSVP_REQUIRE_TOKEN is set.

    RSVPs are public by default: anyone may submit or list responses for any
    event id without a token.
    """
    if not request.app.state.settings.RSVP_REQUIRE_TOKEN:
        return None
    if credentials is None or not credentials.credentials:
        raise InvalidTokenError()
    return gate.verify(credentials.credentials)
