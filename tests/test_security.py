"""Tests for password hashing, token issuance/verification and header parsing."""

import base64
import json

import pytest

from task_manager_api.app.core.domain import Role
from task_manager_api.app.core.errors import (
    InvalidSignature,
    MalformedToken,
    TokenExpired,
    Unauthenticated,
)
from task_manager_api.app.core.security import (
    CredentialService,
    authenticate,
    format_duration,
    parse_bearer,
)
from task_manager_api.app.core.store import Store


class FakeClock:
    def __init__(self, now: float = 1_700_000_000):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def service(clock):
    return CredentialService("secret", token_ttl_seconds=3600, hash_iterations=1000, clock=clock)


class TestPasswords:
    def test_hash_is_not_plaintext_and_verifies(self, service):
        hashed = service.hash_password("hunter22")
        assert "hunter22" not in hashed
        assert hashed.startswith("pbkdf2_sha256$1000$")
        assert service.verify_password("hunter22", hashed)
        assert not service.verify_password("hunter23", hashed)

    def test_same_password_gets_different_salts(self, service):
        assert service.hash_password("abcdef") != service.hash_password("abcdef")

    def test_cost_travels_with_hash(self, service):
        stronger = CredentialService("secret", hash_iterations=2000)
        hashed = service.hash_password("abcdef")
        assert stronger.verify_password("abcdef", hashed)

    @pytest.mark.parametrize(
        "stored",
        ["", "not-a-hash", "md5$1$00$00", "pbkdf2_sha256$0$00$00", "pbkdf2_sha256$x$zz$zz"],
    )
    def test_unparseable_hash_never_verifies(self, service, stored):
        assert service.verify_password("anything", stored) is False


class TestTokens:
    def test_roundtrip_claims(self, service, clock):
        token = service.issue_token("u1", "a@b.co", Role.ADMIN)
        claims = service.verify_token(token)
        assert claims.sub == "u1"
        assert claims.email == "a@b.co"
        assert claims.role is Role.ADMIN
        assert claims.iat == int(clock.now)
        assert claims.exp == int(clock.now) + 3600

    def test_token_has_three_base64url_segments(self, service):
        token = service.issue_token("u1", "a@b.co", Role.USER)
        header_b64, payload_b64, signature_b64 = token.split(".")
        assert "=" not in token
        padded = header_b64 + "=" * (-len(header_b64) % 4)
        assert json.loads(base64.urlsafe_b64decode(padded)) == {"alg": "HS256", "typ": "JWT"}

    def test_expired_at_exact_exp(self, service, clock):
        token = service.issue_token("u1", "a@b.co", Role.USER, ttl=60)
        clock.now += 59
        service.verify_token(token)
        clock.now += 1
        with pytest.raises(TokenExpired) as exc_info:
            service.verify_token(token)
        assert exc_info.value.code == "TOKEN_EXPIRED"

    def test_other_secret_is_invalid_signature(self, service, clock):
        other = CredentialService("another-secret", clock=clock)
        token = other.issue_token("u1", "a@b.co", Role.USER)
        with pytest.raises(InvalidSignature):
            service.verify_token(token)

    def test_tampered_payload_is_invalid_signature(self, service):
        header, _, signature = service.issue_token("u1", "a@b.co", Role.USER).split(".")
        forged = base64.urlsafe_b64encode(
            json.dumps({"sub": "u1", "email": "a@b.co", "role": "admin", "iat": 0, "exp": 2_000_000_000}).encode()
        ).decode().rstrip("=")
        with pytest.raises(InvalidSignature):
            service.verify_token(f"{header}.{forged}.{signature}")

    @pytest.mark.parametrize("token", ["", "abc", "a.b", "a.b.c.d", "!!!.???.***"])
    def test_malformed(self, service, token):
        with pytest.raises(MalformedToken) as exc_info:
            service.verify_token(token)
        assert exc_info.value.code == "INVALID_TOKEN"

    def test_empty_secret_rejected(self):
        with pytest.raises(ValueError):
            CredentialService("")

    def test_expires_in_label(self, service):
        assert service.expires_in == "1h"


@pytest.mark.parametrize(
    "seconds,label",
    [(86400, "24h"), (3600, "1h"), (5400, "90m"), (45, "45s")],
)
def test_format_duration(seconds, label):
    assert format_duration(seconds) == label


class TestBearer:
    @pytest.mark.parametrize("header", [None, "", "   "])
    def test_missing(self, header):
        with pytest.raises(Unauthenticated) as exc_info:
            parse_bearer(header)
        assert exc_info.value.code == "NO_TOKEN"

    @pytest.mark.parametrize("header", ["Token abc", "Bearer", "Bearer a b", "abc"])
    def test_bad_format(self, header):
        with pytest.raises(Unauthenticated) as exc_info:
            parse_bearer(header)
        assert exc_info.value.code == "INVALID_TOKEN_FORMAT"

    def test_extracts_token(self):
        assert parse_bearer("Bearer abc.def.ghi") == "abc.def.ghi"


def test_authenticate_requires_existing_subject(service):
    store = Store(password_hasher=service.hash_password)
    user = store.create_user(name="Ann", email="ann@test.com", password="x", role=Role.USER)
    token = service.issue_token(user.id, user.email, user.role)

    assert authenticate(f"Bearer {token}", store, service).id == user.id

    store.delete_user(user.id)
    with pytest.raises(Unauthenticated) as exc_info:
        authenticate(f"Bearer {token}", store, service)
    assert exc_info.value.code == "USER_NOT_FOUND"
