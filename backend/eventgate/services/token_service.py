"""Signed, time-bound access tokens (JWT, HS256).

Tokens are stateless: the server keeps no record of what it issued, so a
token stops working only when it expires or the secret is rotated.
"""
import logging
import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable

import jwt

from eventgate.errors import ConfigError, ExpiredTokenError, InvalidTokenError

logger = logging.getLogger(__name__)

_DURATION_RE = re.compile(r"^\s*(\d+)\s*([smhd]?)\s*$")
_DURATION_UNITS = {"": 1, "s": 1, "m": 60, "h": 3600, "d": 86400}


def parse_duration(value: str) -> timedelta:
    """Parse ``"90"``, ``"30m"``, ``"1h"`` or ``"7d"`` into a timedelta."""
    match = _DURATION_RE.match(value)
    if not match:
        raise ConfigError(f"Invalid token lifetime: {value!r}")
    amount, unit = match.groups()
    return timedelta(seconds=int(amount) * _DURATION_UNITS[unit])


@dataclass(frozen=True)
class IssuedToken:
    token: str
    issued_at: datetime
    expires_at: datetime


class TokenIssuer:
    """Mints and verifies tokens binding an event id."""

    def __init__(
        self,
        secret: str,
        expires_in: timedelta = timedelta(hours=1),
        algorithm: str = "HS256",
        issuer: str = "events-site",
        audience: str = "events-site-client",
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        if not secret:
            raise ConfigError("JWT_SECRET is not configured")
        if expires_in <= timedelta(0):
            raise ConfigError("Token lifetime must be positive")
        self._secret = secret
        self.expires_in = expires_in
        self._algorithm = algorithm
        self._issuer = issuer
        self._audience = audience
        self._clock = clock

    def issue(self, event_id: str) -> IssuedToken:
        issued_at = self._clock().replace(microsecond=0)
        expires_at = issued_at + self.expires_in
        token = jwt.encode(
            {
                "eventId": event_id,
                "iat": issued_at,
                "exp": expires_at,
                "iss": self._issuer,
                "aud": self._audience,
            },
            self._secret,
            algorithm=self._algorithm,
        )
        return IssuedToken(token=token, issued_at=issued_at, expires_at=expires_at)

    def verify(self, token: str) -> str:
        """Return the token's event id.

        Raises:
            ExpiredTokenError: signature is good but ``exp`` has passed.
            InvalidTokenError: anything else wrong with the token.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                audience=self._audience,
                issuer=self._issuer,
                options={"require": ["exp", "iat", "eventId"]},
            )
        except jwt.ExpiredSignatureError as exc:
            raise ExpiredTokenError() from exc
        except jwt.InvalidTokenError as exc:
            logger.info("Rejected token: %s", exc.__class__.__name__)
            raise InvalidTokenError() from exc

        event_id = payload["eventId"]
        if not isinstance(event_id, str) or not event_id:
            raise InvalidTokenError()
        return event_id
