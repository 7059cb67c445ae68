"""Login and token verification for the password-gated event pages."""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Awaitable, Callable

import anyio
from starlette.concurrency import run_in_threadpool

from eventgate.errors import InvalidCredentialsError, InvalidTokenError
from eventgate.services.credential_store import CredentialStore, EventIdentity
from eventgate.services.token_service import TokenIssuer

logger = logging.getLogger(__name__)

DEFAULT_FAILED_LOGIN_DELAY = 1.0


@dataclass(frozen=True)
class LoginResult:
    token: str
    expires_in: str
    expires_at: datetime
    event: EventIdentity


class AccessGate:
    """Composes the credential store and token issuer.

    ``failed_login_delay`` is the brute-force throttle: with no username to
    lock out, every wrong password costs the caller this many seconds. The
    bcrypt scan runs on a worker thread; the wait is an event-loop timer, so
    it holds neither a lock nor a worker thread.
    """

    def __init__(
        self,
        credentials: CredentialStore,
        tokens: TokenIssuer,
        failed_login_delay: float = DEFAULT_FAILED_LOGIN_DELAY,
        expires_in_label: str = "1h",
        sleep: Callable[[float], Awaitable[None]] = anyio.sleep,
    ) -> None:
        self._credentials = credentials
        self._tokens = tokens
        self.failed_login_delay = failed_login_delay
        self._expires_in_label = expires_in_label
        self._sleep = sleep

    async def login(self, password: str) -> LoginResult:
        event = await run_in_threadpool(self._credentials.verify, password)
        if event is None:
            logger.info("Failed login attempt")
            if self.failed_login_delay > 0:
                await self._sleep(self.failed_login_delay)
            raise InvalidCredentialsError()

        issued = self._tokens.issue(event.id)
        logger.info("Issued access token for event %s", event.id)
        return LoginResult(
            token=issued.token,
            expires_in=self._expires_in_label,
            expires_at=issued.expires_at,
            event=event,
        )

    def verify(self, token: str) -> EventIdentity:
        event_id = self._tokens.verify(token)
        event = self._credentials.get(event_id)
        if event is None:
            # Same answer as a bad signature so the catalog layout stays private.
            raise InvalidTokenError()
        return event
