"""Event identities and shared-password verification.

Passwords are shared secrets handed to every guest of an event, so the only
thing the caller supplies is the password: ``verify`` scans every event's
bcrypt hash and returns the first match.
"""
from dataclasses import dataclass, field
from typing import Iterable, Optional

import bcrypt

from eventgate.errors import ConfigError

# bcrypt only consumes the first 72 bytes of its input
BCRYPT_MAX_BYTES = 72


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(password: str, rounds: int = 12) -> str:
    return bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt(rounds=rounds)).decode("ascii")


def check_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(_password_bytes(password), password_hash.encode("ascii"))
    except ValueError:
        # Not a bcrypt hash; catalog loading rejects these, so treat as no match.
        return False


@dataclass(frozen=True)
class EventIdentity:
    id: str
    title: str
    password_hash: str = field(repr=False)
    date: str = ""
    time: str = ""
    location: str = ""
    theme: str = ""
    description: Optional[str] = None

    def public_view(self) -> dict:
        """Every attribute except the password hash."""
        return {
            "id": self.id,
            "title": self.title,
            "date": self.date,
            "time": self.time,
            "location": self.location,
            "theme": self.theme,
            "description": self.description,
        }


class CredentialStore:
    """Read-only catalog of events keyed by id."""

    def __init__(self, events: Iterable[EventIdentity]) -> None:
        self._events: dict[str, EventIdentity] = {}
        for event in events:
            if event.id in self._events:
                raise ConfigError(f"Duplicate event id in catalog: {event.id}")
            self._events[event.id] = event

    def __len__(self) -> int:
        return len(self._events)

    def get(self, event_id: str) -> Optional[EventIdentity]:
        return self._events.get(event_id)

    def verify(self, password: str) -> Optional[EventIdentity]:
        """Return the event whose hash matches ``password``, or None."""
        for event in self._events.values():
            if check_password(password, event.password_hash):
                return event
        return None
