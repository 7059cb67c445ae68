"""Tests for credentials, tokens, the access gate and the auth routes.

Covers:
- bcrypt verification by password only, no-match vs configuration errors
- Token issue/verify round trip, expiry vs invalid distinction
- Failed-login delay policy
- Login / verify endpoints never exposing the password hash
"""
import time
from datetime import datetime, timedelta, timezone

import anyio
import httpx
import jwt
import pytest

from eventgate.catalog import build_catalog
from eventgate.database import Base
from eventgate.errors import (
    ConfigError,
    ExpiredTokenError,
    InvalidCredentialsError,
    InvalidTokenError,
)
from eventgate.services.access_gate import AccessGate
from eventgate.services.credential_store import CredentialStore, EventIdentity, check_password, hash_password
from eventgate.services.token_service import TokenIssuer, parse_duration
from tests.conftest import TEST_EVENTS, TEST_SECRET, login


@pytest.fixture
def catalog():
    return build_catalog(TEST_EVENTS, rounds=4)


@pytest.fixture
def issuer():
    return TokenIssuer(TEST_SECRET)


def _issuer_at(moment):
    return TokenIssuer(TEST_SECRET, clock=lambda: moment)


class TestCredentialStore:
    def test_matching_password_returns_event(self, catalog):
        event = catalog.verify("shadows")
        assert event is not None
        assert event.id == "midnight-gala"
        assert catalog.verify("midas").id == "golden-circle"

    def test_unknown_password_returns_none(self, catalog):
        assert catalog.verify("wrong") is None
        assert catalog.verify("Shadows") is None

    def test_hash_is_salted_bcrypt(self):
        first, second = hash_password("shadows", rounds=4), hash_password("shadows", rounds=4)
        assert first.startswith("$2")
        assert first != second
        assert check_password("shadows", first)
        assert check_password("shadows", second)

    def test_non_bcrypt_hash_never_matches(self):
        assert check_password("shadows", "not-a-hash") is False

    def test_duplicate_event_ids_rejected(self):
        event = EventIdentity(id="dup", title="Dup", password_hash=hash_password("x", rounds=4))
        with pytest.raises(ConfigError):
            CredentialStore([event, event])

    def test_public_view_has_no_hash(self, catalog):
        view = catalog.get("midnight-gala").public_view()
        assert "password_hash" not in view
        assert "passwordHash" not in view
        assert view["title"] == "Midnight Gala"

    def test_hash_not_in_repr(self, catalog):
        event = catalog.get("midnight-gala")
        assert event.password_hash not in repr(event)


class TestCatalogLoading:
    def test_precomputed_hash_accepted(self):
        password_hash = hash_password("secret", rounds=4)
        catalog = build_catalog([{"id": "e", "title": "E", "passwordHash": password_hash}])
        assert catalog.verify("secret").id == "e"

    @pytest.mark.parametrize("entry", [
        {"id": "e", "title": "E"},
        {"title": "E", "password": "x"},
        {"id": "e", "title": "E", "passwordHash": "plaintext"},
    ])
    def test_bad_entries_rejected(self, entry):
        with pytest.raises(ConfigError):
            build_catalog([entry], rounds=4)


class TestTokenIssuer:
    def test_round_trip_recovers_event(self, issuer):
        issued = issuer.issue("midnight-gala")
        assert issuer.verify(issued.token) == "midnight-gala"
        assert issued.expires_at - issued.issued_at == timedelta(hours=1)

    def test_payload_claims(self, issuer):
        issued = issuer.issue("midnight-gala")
        claims = jwt.decode(issued.token, options={"verify_signature": False})
        assert claims["eventId"] == "midnight-gala"
        assert claims["iss"] == "events-site"
        assert claims["aud"] == "events-site-client"
        assert claims["exp"] - claims["iat"] == 3600

    def test_expired_token_is_expired_not_invalid(self):
        two_hours_ago = datetime.now(timezone.utc) - timedelta(hours=2)
        token = _issuer_at(two_hours_ago).issue("midnight-gala").token
        with pytest.raises(ExpiredTokenError):
            TokenIssuer(TEST_SECRET).verify(token)

    def test_short_lived_token_expires(self):
        issuer = TokenIssuer(TEST_SECRET, expires_in=timedelta(seconds=2))
        token = issuer.issue("midnight-gala").token
        assert issuer.verify(token) == "midnight-gala"
        time.sleep(3.1)
        with pytest.raises(ExpiredTokenError):
            issuer.verify(token)

    def test_wrong_secret_is_invalid(self, issuer):
        token = TokenIssuer("another-secret-another-secret-another").issue("midnight-gala").token
        with pytest.raises(InvalidTokenError):
            issuer.verify(token)

    @pytest.mark.parametrize("token", ["", "garbage", "a.b.c"])
    def test_malformed_is_invalid(self, issuer, token):
        with pytest.raises(InvalidTokenError):
            issuer.verify(token)

    def test_tampered_payload_is_invalid(self, issuer):
        header, _, signature = issuer.issue("midnight-gala").token.split(".")
        forged = jwt.encode({"eventId": "golden-circle"}, "x" * 32, algorithm="HS256").split(".")[1]
        with pytest.raises(InvalidTokenError):
            issuer.verify(f"{header}.{forged}.{signature}")

    def test_wrong_audience_is_invalid(self, issuer):
        other = TokenIssuer(TEST_SECRET, audience="someone-else")
        with pytest.raises(InvalidTokenError):
            issuer.verify(other.issue("midnight-gala").token)

    def test_missing_event_claim_is_invalid(self, issuer):
        now = datetime.now(timezone.utc)
        token = jwt.encode(
            {"iat": now, "exp": now + timedelta(hours=1), "iss": "events-site", "aud": "events-site-client"},
            TEST_SECRET,
            algorithm="HS256",
        )
        with pytest.raises(InvalidTokenError):
            issuer.verify(token)

    def test_empty_secret_is_config_error(self):
        with pytest.raises(ConfigError):
            TokenIssuer("")

    @pytest.mark.parametrize("value, expected", [
        ("1h", timedelta(hours=1)),
        ("30m", timedelta(minutes=30)),
        ("45s", timedelta(seconds=45)),
        ("7d", timedelta(days=7)),
        ("900", timedelta(seconds=900)),
    ])
    def test_parse_duration(self, value, expected):
        assert parse_duration(value) == expected

    def test_parse_duration_rejects_garbage(self):
        with pytest.raises(ConfigError):
            parse_duration("soon")


class RecordingSleep:
    def __init__(self):
        self.calls = []

    async def __call__(self, seconds):
        self.calls.append(seconds)


class TestAccessGate:
    def test_login_issues_token_for_matching_event(self, catalog, issuer):
        gate = AccessGate(catalog, issuer, failed_login_delay=0)
        result = anyio.run(gate.login, "midas")
        assert result.event.id == "golden-circle"
        assert result.expires_in == "1h"
        assert gate.verify(result.token).id == "golden-circle"

    def test_failed_login_sleeps_for_configured_delay(self, catalog, issuer):
        sleep = RecordingSleep()
        gate = AccessGate(catalog, issuer, failed_login_delay=1.0, sleep=sleep)
        with pytest.raises(InvalidCredentialsError):
            anyio.run(gate.login, "wrong")
        assert sleep.calls == [1.0]

    def test_successful_login_does_not_sleep(self, catalog, issuer):
        sleep = RecordingSleep()
        gate = AccessGate(catalog, issuer, failed_login_delay=1.0, sleep=sleep)
        anyio.run(gate.login, "shadows")
        assert sleep.calls == []

    def test_failed_login_latency_at_least_delay(self, catalog, issuer):
        gate = AccessGate(catalog, issuer, failed_login_delay=0.3)
        started = time.monotonic()
        with pytest.raises(InvalidCredentialsError):
            anyio.run(gate.login, "wrong")
        assert time.monotonic() - started >= 0.3

    def test_failed_logins_wait_concurrently(self, catalog, issuer):
        gate = AccessGate(catalog, issuer, failed_login_delay=0.5)
        failures = []

        async def attempt():
            try:
                await gate.login("wrong")
            except InvalidCredentialsError:
                failures.append(True)

        async def burst():
            async with anyio.create_task_group() as tg:
                for _ in range(20):
                    tg.start_soon(attempt)

        started = time.monotonic()
        anyio.run(burst)
        assert len(failures) == 20
        assert time.monotonic() - started < 5.0

    def test_token_for_removed_event_is_invalid(self, catalog, issuer):
        token = issuer.issue("retired-event").token
        gate = AccessGate(catalog, issuer, failed_login_delay=0)
        with pytest.raises(InvalidTokenError):
            gate.verify(token)


class TestLoginRoute:
    def test_login_success(self, client):
        data = login(client, "shadows")
        assert data["success"] is True
        assert data["expiresIn"] == "1h"
        assert data["event"]["id"] == "midnight-gala"
        assert data["event"]["title"] == "Midnight Gala"
        assert data["token"]

    def test_login_response_never_contains_hash(self, client, app):
        resp = client.post("/api/auth/login", json={"password": "shadows"})
        password_hash = app.state.catalog.get("midnight-gala").password_hash
        assert password_hash not in resp.text
        assert "passwordHash" not in resp.text
        assert "password_hash" not in resp.text

    def test_login_trims_password(self, client):
        assert login(client, "  midas ")["event"]["id"] == "golden-circle"

    def test_wrong_password(self, client):
        resp = client.post("/api/auth/login", json={"password": "nope"})
        assert resp.status_code == 401
        assert resp.json() == {"error": "invalid password"}

    @pytest.mark.parametrize("payload", [{}, {"password": ""}, {"password": "x" * 101}])
    def test_invalid_input(self, client, payload):
        resp = client.post("/api/auth/login", json=payload)
        assert resp.status_code == 400
        assert resp.json()["error"] == "validation failed"


class TestLoginDelay:
    @pytest.fixture
    def settings(self, settings):
        return settings.model_copy(update={"FAILED_LOGIN_DELAY_SECONDS": 0.25})

    def test_failed_login_is_delayed(self, client):
        started = time.monotonic()
        resp = client.post("/api/auth/login", json={"password": "wrong"})
        assert resp.status_code == 401
        assert time.monotonic() - started >= 0.25


class TestLoginDelayIsolation:
    """Failed-login waits must not starve unrelated requests."""

    @pytest.fixture
    def settings(self, settings):
        return settings.model_copy(update={"FAILED_LOGIN_DELAY_SECONDS": 2.0})

    def test_rsvp_list_stays_fast_during_failed_login_burst(self, app):
        Base.metadata.create_all(bind=app.state.engine)

        async def scenario():
            transport = httpx.ASGITransport(app=app)
            async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as ac:
                statuses = []

                async def wrong_login():
                    resp = await ac.post("/api/auth/login", json={"password": "wrong"})
                    statuses.append(resp.status_code)

                async with anyio.create_task_group() as tg:
                    for _ in range(45):
                        tg.start_soon(wrong_login)
                    await anyio.sleep(0.3)
                    started = time.monotonic()
                    resp = await ac.get("/api/rsvp/event1")
                    elapsed = time.monotonic() - started
            return resp, elapsed, statuses

        resp, elapsed, statuses = anyio.run(scenario)
        assert resp.status_code == 200
        assert elapsed < 1.0
        assert statuses == [401] * 45


class TestVerifyRoute:
    def test_verify_with_valid_token(self, client):
        token = login(client)["token"]
        for method in (client.get, client.post):
            resp = method("/api/auth/verify", headers={"Authorization": f"Bearer {token}"})
            assert resp.status_code == 200
            body = resp.json()
            assert body["valid"] is True
            assert body["event"]["id"] == "midnight-gala"
            assert "passwordHash" not in resp.text

    def test_missing_header_is_invalid(self, client):
        resp = client.get("/api/auth/verify")
        assert resp.status_code == 401
        assert resp.json() == {"error": "invalid"}
        assert resp.headers["www-authenticate"] == "Bearer"

    def test_garbage_token_is_invalid(self, client):
        resp = client.get("/api/auth/verify", headers={"Authorization": "Bearer not-a-token"})
        assert resp.status_code == 401
        assert resp.json() == {"error": "invalid"}

    def test_expired_token_is_expired(self, client):
        token = _issuer_at(datetime.now(timezone.utc) - timedelta(hours=2)).issue("midnight-gala").token
        resp = client.get("/api/auth/verify", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401
        assert resp.json() == {"error": "expired"}

    def test_token_for_unknown_event_is_invalid(self, client):
        token = TokenIssuer(TEST_SECRET).issue("not-in-catalog").token
        resp = client.get("/api/auth/verify", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401
        assert resp.json() == {"error": "invalid"}
