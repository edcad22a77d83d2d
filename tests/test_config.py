"""Tests for application configuration."""

import pytest

from text2deck.config import Environment, Settings, get_settings


def _prod(**overrides) -> Settings:
    values = {
        "environment": Environment.PROD,
        "google_client_id": "1234.apps.googleusercontent.com",
        "google_client_secret": "GOCSPX-real-production-secret",
        "redis_url": "redis://redis:6379/0",
    }
    values.update(overrides)
    return Settings(**values)


class TestSettings:
    """Test Settings model and validation."""

    def test_default_settings_load_correctly(self):
        """Defaults match the documented values."""
        settings = Settings(environment=Environment.DEV)

        assert settings.debug is True  # Auto-set from DEV environment
        assert settings.auth_state_ttl_seconds == 600
        assert settings.session_ttl_seconds == 14 * 24 * 60 * 60
        assert settings.default_max_words == 50
        assert settings.default_max_chars == 500
        assert settings.session_cookie_name == "sid"
        assert settings.cookie_secure is True

    def test_is_dev_property_returns_true_for_test(self):
        settings = Settings(environment=Environment.TEST)
        assert settings.is_dev is True
        assert settings.is_prod is False

    def test_valid_production_settings(self):
        settings = _prod()
        assert settings.is_prod is True
        assert settings.is_dev is False

    def test_production_requires_client_id(self):
        with pytest.raises(RuntimeError, match="GOOGLE_CLIENT_ID"):
            _prod(google_client_id="")

    @pytest.mark.parametrize("secret", ["", "changeme", "SECRET"])
    def test_production_rejects_missing_or_placeholder_secret(self, secret):
        with pytest.raises(RuntimeError, match="GOOGLE_CLIENT_SECRET"):
            _prod(google_client_secret=secret)

    def test_production_requires_redis(self):
        """In-process storage would split sessions between workers."""
        with pytest.raises(RuntimeError, match="REDIS_URL"):
            _prod(redis_url="")

    def test_production_requires_secure_cookies(self):
        with pytest.raises(RuntimeError, match="COOKIE_SECURE"):
            _prod(cookie_secure=False)

    def test_provider_configured(self):
        assert _prod().provider_configured is True
        assert Settings(environment=Environment.TEST, google_client_id="").provider_configured is False

    def test_secret_not_in_repr(self):
        assert "GOCSPX-real-production-secret" not in repr(_prod())

    def test_reads_environment_variables(self, monkeypatch):
        monkeypatch.setenv("SESSION_COOKIE_NAME", "t2d_sid")
        monkeypatch.setenv("DEFAULT_MAX_WORDS", "25")

        settings = Settings(environment=Environment.TEST)

        assert settings.session_cookie_name == "t2d_sid"
        assert settings.default_max_words == 25

    def test_get_settings_is_cached(self):
        get_settings.cache_clear()
        assert get_settings() is get_settings()
        get_settings.cache_clear()

    def test_state_retention_outlives_state_lifetime(self):
        settings = Settings(environment=Environment.TEST, auth_state_ttl_seconds=300)
        assert settings.auth_state_retention_seconds == 600
