"""Tests for the session cache."""

import base64
import json
import time

import pytest

from conftest import SESSION_DATA
from destream.cache.token_cache import TokenCache, token_expiry
from destream.models.session import Session


def _jwt(exp: int) -> str:
    def encode(data: dict) -> str:
        return base64.urlsafe_b64encode(json.dumps(data).encode()).decode().rstrip("=")

    return f"{encode({'alg': 'RS256', 'typ': 'JWT'})}.{encode({'exp': exp})}.signature"


def _session(token: str) -> Session:
    return Session(
        access_token=token,
        api_gateway_uri="https://euwe-1.api.microsoftstream.com/api/",
        api_gateway_version="1.4-private",
    )


class TestTokenExpiry:
    """Tests for reading the exp claim."""

    def test_jwt(self):
        assert token_expiry(_jwt(1700000000)) == 1700000000

    def test_opaque_token(self):
        assert token_expiry("opaque-token") is None

    def test_garbage_payload(self):
        assert token_expiry("a.!!!notbase64!!!.c") is None

    def test_payload_without_exp(self):
        payload = base64.urlsafe_b64encode(b'{"sub": "x"}').decode().rstrip("=")
        assert token_expiry(f"h.{payload}.s") is None

    @pytest.mark.parametrize("raw", [b'{"exp": Infinity}', b'{"exp": -Infinity}', b'{"exp": NaN}'])
    def test_non_finite_exp_counts_as_expired(self, raw):
        payload = base64.urlsafe_b64encode(raw).decode().rstrip("=")
        assert token_expiry(f"h.{payload}.s") == 0


class TestTokenCacheRead:
    """read() never raises and never has side effects."""

    def test_missing_file(self, tmp_path):
        cache = TokenCache(tmp_path / ".token_cache")
        assert cache.read() is None
        assert not (tmp_path / ".token_cache").exists()

    def test_invalid_json(self, tmp_path):
        path = tmp_path / ".token_cache"
        path.write_text("{not json")
        assert TokenCache(path).read() is None

    def test_schema_mismatch(self, tmp_path):
        path = tmp_path / ".token_cache"
        path.write_text(json.dumps({"AccessToken": "x"}))
        assert TokenCache(path).read() is None

    def test_unreadable_bytes(self, tmp_path):
        path = tmp_path / ".token_cache"
        path.write_bytes(b"\xff\xfe\x00garbage")
        assert TokenCache(path).read() is None

    def test_non_finite_exp(self, tmp_path):
        payload = base64.urlsafe_b64encode(b'{"exp": Infinity}').decode().rstrip("=")
        path = tmp_path / ".token_cache"
        TokenCache(path).write(_session(f"h.{payload}.s"))
        assert TokenCache(path).read() is None

    def test_expired_jwt(self, tmp_path):
        path = tmp_path / ".token_cache"
        cache = TokenCache(path, min_validity=120)
        cache.write(_session(_jwt(int(time.time()) + 60)))
        assert cache.read() is None

    def test_valid_jwt(self, tmp_path):
        path = tmp_path / ".token_cache"
        cache = TokenCache(path, min_validity=120)
        session = _session(_jwt(int(time.time()) + 3600))
        cache.write(session)
        assert cache.read() == session


class TestTokenCacheWrite:
    """write() is best effort."""

    def test_round_trip(self, tmp_path, session):
        cache = TokenCache(tmp_path / "nested" / ".token_cache")
        assert cache.write(session) is True
        assert cache.read() == session

    def test_file_uses_provider_field_names(self, tmp_path, session):
        path = tmp_path / ".token_cache"
        TokenCache(path).write(session)
        assert json.loads(path.read_text()) == SESSION_DATA

    def test_write_failure_returns_false(self, tmp_path, session):
        blocker = tmp_path / "blocker"
        blocker.write_text("a file, not a directory")
        cache = TokenCache(blocker / ".token_cache")
        assert cache.write(session) is False
