"""Tests for password hashing, access tokens and configuration loading."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from app.core.config import AuthConfig, load_settings, normalize_database_url
from app.core.exceptions import UnauthorizedException
from app.core.security import TokenService, hash_password, verify_password
from app.core.utils import add_months, parse_hhmm


class TestPasswords:
    def test_hash_and_verify(self, password_hash):
        assert verify_password("secret123", password_hash)
        assert not verify_password("secret124", password_hash)

    def test_hash_is_salted(self):
        assert hash_password("same-password") != hash_password("same-password")

    def test_missing_or_unknown_hash(self):
        assert not verify_password("x", None)
        assert not verify_password("x", "plain-text")


class TestTokenService:
    @pytest.fixture()
    def tokens(self):
        return TokenService(AuthConfig(jwt_secret="unit-secret", token_ttl_minutes=5))

    def test_round_trip_claims(self, tokens):
        issued = tokens.issue(42, "business")

        claims = tokens.decode(issued.access_token)

        assert claims.user_id == 42
        assert claims.role == "business"
        assert claims.jti == issued.claims.jti
        assert issued.expires_in == 300

    def test_each_token_has_unique_jti(self, tokens):
        assert tokens.issue(1, "normal").claims.jti != tokens.issue(1, "normal").claims.jti

    def test_wrong_secret_rejected(self, tokens):
        token = TokenService(AuthConfig(jwt_secret="other-secret")).issue(1, "normal").access_token

        with pytest.raises(UnauthorizedException):
            tokens.decode(token)

    def test_expired_token_rejected(self, tokens):
        expired = jwt.encode(
            {"sub": "1", "jti": "abc", "exp": datetime.now(timezone.utc) - timedelta(minutes=1)},
            "unit-secret",
            algorithm="HS256",
        )

        with pytest.raises(UnauthorizedException):
            tokens.decode(expired)

    def test_token_without_jti_rejected(self, tokens):
        token = jwt.encode(
            {"sub": "1", "exp": datetime.now(timezone.utc) + timedelta(minutes=1)},
            "unit-secret",
            algorithm="HS256",
        )

        with pytest.raises(UnauthorizedException):
            tokens.decode(token)


class TestConfig:
    @pytest.mark.parametrize(
        "url,expected",
        [
            ("postgres://u:p@db/app", "postgresql+psycopg://u:p@db/app"),
            ("postgresql://u:p@db/app", "postgresql+psycopg://u:p@db/app"),
            ("postgresql+psycopg://u:p@db/app", "postgresql+psycopg://u:p@db/app"),
            ("sqlite:///./x.db", "sqlite:///./x.db"),
        ],
    )
    def test_normalize_database_url(self, url, expected):
        assert normalize_database_url(url) == expected

    def test_production_requires_jwt_secret(self, monkeypatch):
        monkeypatch.setenv("ENVIRONMENT", "production")
        monkeypatch.setenv("JWT_SECRET", "")
        load_settings.cache_clear()
        try:
            with pytest.raises(ValueError):
                load_settings()
        finally:
            load_settings.cache_clear()

    def test_settings_from_env(self, monkeypatch):
        monkeypatch.setenv("ENVIRONMENT", "test")
        monkeypatch.setenv("DATABASE_URL", "postgres://u:p@localhost/dir")
        monkeypatch.setenv("CORS_ALLOWED_ORIGINS", "https://a.example, https://b.example")
        load_settings.cache_clear()
        try:
            settings = load_settings()
        finally:
            load_settings.cache_clear()

        assert settings.database_url == "postgresql+psycopg://u:p@localhost/dir"
        assert settings.cors_origins == ["https://a.example", "https://b.example"]
        assert settings.is_dev


class TestUtils:
    def test_parse_hhmm(self):
        assert parse_hhmm("09:30:00").strftime("%H:%M") == "09:30"
        assert parse_hhmm("25:00") is None
        assert parse_hhmm(None) is None

    def test_add_months_clamps_day(self):
        assert add_months(datetime(2026, 1, 31), 1) == datetime(2026, 2, 28)
        assert add_months(datetime(2026, 3, 15), 12) == datetime(2027, 3, 15)
