"""Builds the read-only event catalog once at startup.

The catalog comes from ``EVENT_CATALOG_PATH`` (a JSON list) when set, else
from ``DEFAULT_EVENTS``. Entries carry either a plaintext ``password``, hashed
here, or a precomputed bcrypt ``passwordHash``.
"""
import json
import logging
from pathlib import Path
from typing import Any, Iterable

from eventgate.config import Settings
from eventgate.errors import ConfigError
from eventgate.services.credential_store import CredentialStore, EventIdentity, hash_password

logger = logging.getLogger(__name__)

DEFAULT_EVENTS: list[dict[str, Any]] = [
    {
        "id": "midnight-gala",
        "title": "Midnight Gala",
        "date": "2024-09-15",
        "time": "23:00",
        "location": "The Obsidian Ballroom",
        "theme": "theme",
        "password": "shadows",
        "description": "Join us for an unforgettable night where shadows dance with light. "
                       "An evening of timeless elegance in the city's most exclusive ballroom.",
    },
    {
        "id": "golden-circle",
        "title": "The Golden Circle",
        "date": "2024-10-01",
        "time": "20:00",
        "location": "Private Residence",
        "theme": "theme",
        "password": "midas",
        "description": "An intimate gathering for the elite. Network with industry titans and "
                       "visionaries in an atmosphere of refined luxury and golden splendor.",
    },
    {
        "id": "crimson-society",
        "title": "Crimson Society",
        "date": "2024-10-20",
        "time": "21:30",
        "location": "The Ruby Chamber",
        "theme": "theme",
        "password": "phoenix",
        "description": "A night of intensity and sophistication. Experience luxury beyond "
                       "imagination where passion meets power in the city's most prestigious venue.",
    },
    {
        "id": "sapphire-summit",
        "title": "Sapphire Summit",
        "date": "2024-11-10",
        "time": "19:00",
        "location": "Crystal Tower Penthouse",
        "theme": "theme",
        "password": "azure",
        "description": "The pinnacle of exclusive networking. Connect with tomorrow's leaders "
                       "today in a space where cutting-edge innovation meets timeless tradition.",
    },
]

_REQUIRED_FIELDS = ("id", "title")


def _build_identity(entry: dict[str, Any], rounds: int) -> EventIdentity:
    missing = [name for name in _REQUIRED_FIELDS if not entry.get(name)]
    if missing:
        raise ConfigError(f"Catalog entry missing {', '.join(missing)}")

    if entry.get("passwordHash"):
        password_hash = entry["passwordHash"]
        if not password_hash.startswith("$2"):
            raise ConfigError(f"Event {entry['id']} has a passwordHash that is not bcrypt")
    elif entry.get("password"):
        password_hash = hash_password(entry["password"], rounds=rounds)
    else:
        raise ConfigError(f"Event {entry['id']} has no password")

    return EventIdentity(
        id=entry["id"],
        title=entry["title"],
        password_hash=password_hash,
        date=entry.get("date", ""),
        time=entry.get("time", ""),
        location=entry.get("location", ""),
        theme=entry.get("theme", ""),
        description=entry.get("description"),
    )


def build_catalog(entries: Iterable[dict[str, Any]], rounds: int = 12) -> CredentialStore:
    return CredentialStore(_build_identity(entry, rounds) for entry in entries)


def load_entries(path: str) -> list[dict[str, Any]]:
    try:
        entries = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise ConfigError(f"Cannot read event catalog {path}: {exc}") from exc
    if not isinstance(entries, list) or not all(isinstance(e, dict) for e in entries):
        raise ConfigError(f"Event catalog {path} must be a JSON list of objects")
    return entries


def load_catalog(settings: Settings) -> CredentialStore:
    entries = load_entries(settings.EVENT_CATALOG_PATH) if settings.EVENT_CATALOG_PATH else DEFAULT_EVENTS
    catalog = build_catalog(entries, rounds=settings.BCRYPT_ROUNDS)
    logger.info("Initialized %d events with secure password hashing", len(catalog))
    return catalog
