"""Login / token verification routes."""
import logging

from fastapi import APIRouter, Depends

from eventgate.deps import get_access_gate, get_current_event
from eventgate.schemas.auth import EventOut, LoginRequest, LoginResponse, VerifyResponse
from eventgate.services.access_gate import AccessGate
from eventgate.services.credential_store import EventIdentity

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/login", response_model=LoginResponse)
async def login(payload: LoginRequest, gate: AccessGate = Depends(get_access_gate)):
    """Exchange an event password for a bearer token and the event's public details."""
    result = await gate.login(payload.password)
    return LoginResponse(
        token=result.token,
        expires_in=result.expires_in,
        event=EventOut(**result.event.public_view()),
    )


@router.api_route("/verify", methods=["GET", "POST"], response_model=VerifyResponse)
def verify(event: EventIdentity = Depends(get_current_event)):
    """Check a bearer token; returns the event it unlocks."""
    return VerifyResponse(event=EventOut(**event.public_view()))
