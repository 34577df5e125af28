"""
Unit tests for application settings.

Tests cover:
- Required JWT secret
- Defaults
- Validators and environment overrides
"""

import pytest
from pydantic import ValidationError

from marketplace_api.config import Settings, clear_settings_cache, get_settings

SECRET = "x" * 32


class TestSettings:
    """Tests for Settings."""

    def test_jwt_secret_is_required(self, monkeypatch):
        monkeypatch.delenv("MARKETPLACE_JWT_SECRET_KEY", raising=False)

        with pytest.raises(ValidationError):
            Settings(_env_file=None)

    def test_short_secret_rejected(self):
        with pytest.raises(ValidationError):
            Settings(jwt_secret_key="short", _env_file=None)

    def test_defaults(self):
        settings = Settings(jwt_secret_key=SECRET, _env_file=None)

        assert settings.api_prefix == "/api"
        assert settings.port == 5000
        assert settings.jwt_algorithm == "HS256"
        assert settings.jwt_access_token_expire_days == 30
        assert settings.password_bcrypt_rounds == 10
        assert settings.cors_origins == ["http://localhost:3000"]
        assert settings.is_production

    def test_environment_variables_override(self, monkeypatch):
        monkeypatch.setenv("MARKETPLACE_JWT_SECRET_KEY", SECRET)
        monkeypatch.setenv("MARKETPLACE_FRONTEND_URL", "https://shop.example.com")
        monkeypatch.setenv("MARKETPLACE_ENVIRONMENT", "Development")

        settings = Settings(_env_file=None)

        assert settings.cors_origins == ["https://shop.example.com"]
        assert settings.is_development

    @pytest.mark.parametrize(
        "field, value",
        [
            ("log_level", "verbose"),
            ("environment", "qa"),
            ("jwt_algorithm", "RS256"),
            ("log_format", "xml"),
            ("password_bcrypt_rounds", 3),
        ],
    )
    def test_invalid_values_rejected(self, field, value):
        with pytest.raises(ValidationError):
            Settings(jwt_secret_key=SECRET, _env_file=None, **{field: value})

    @pytest.mark.parametrize("prefix, expected", [("api/", "/api"), ("/v1/api/", "/v1/api"), ("/", "")])
    def test_api_prefix_normalized(self, prefix, expected):
        assert Settings(jwt_secret_key=SECRET, api_prefix=prefix, _env_file=None).api_prefix == expected

    def test_get_settings_is_cached(self, monkeypatch):
        monkeypatch.setenv("MARKETPLACE_JWT_SECRET_KEY", SECRET)
        clear_settings_cache()
        try:
            assert get_settings() is get_settings()
        finally:
            clear_settings_cache()
