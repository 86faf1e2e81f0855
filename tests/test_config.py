"""
Tests for core.config module.
"""

import pytest


class TestSettings:
    """Tests for Settings class."""

    def test_required_token_loaded(self):
        """Test that the control bot token is loaded from environment."""
        from apkbuilder.core.config import Settings

        settings = Settings()
        assert settings.tg_token == "test_token_123"

    def test_default_values(self):
        """Test that default values are set correctly."""
        from apkbuilder.core.config import Settings

        settings = Settings()

        assert settings.github_api_url == "https://api.github.com"
        assert settings.workflow_path == ".github/workflows/android-build.yml"
        assert settings.workflow_branch == "main"
        assert settings.workflow_use_secrets is False
        assert settings.poll_initial_delay == 5.0
        assert settings.poll_interval == 10.0

    def test_workflow_file_name(self):
        """Dispatch uses the bare workflow file name."""
        from apkbuilder.core.config import Settings

        assert Settings().workflow_file == "android-build.yml"

    def test_api_url_trailing_slash_stripped(self, monkeypatch):
        monkeypatch.setenv("GITHUB_API_URL", "https://ghe.example.com/api/v3/")

        from apkbuilder.core.config import Settings
        settings = Settings()

        assert settings.github_api_url == "https://ghe.example.com/api/v3"

    def test_poll_cadence_configurable(self, monkeypatch):
        monkeypatch.setenv("POLL_INITIAL_DELAY", "0")
        monkeypatch.setenv("POLL_INTERVAL", "15")

        from apkbuilder.core.config import Settings
        settings = Settings()

        assert settings.poll_initial_delay == 0
        assert settings.poll_interval == 15

    def test_negative_interval_rejected(self, monkeypatch):
        from pydantic import ValidationError

        monkeypatch.setenv("POLL_INTERVAL", "-1")

        from apkbuilder.core.config import Settings
        with pytest.raises(ValidationError):
            Settings()

    def test_allowed_user_ids_parsed(self, monkeypatch):
        """Test ALLOWED_USER_IDS parsing."""
        monkeypatch.setenv("ALLOWED_USER_IDS", "123, 456 789 nope")

        from apkbuilder.core.config import Settings
        settings = Settings()

        assert settings.allowed_ids == {123, 456, 789}

    def test_empty_allowed_ids(self):
        from apkbuilder.core.config import Settings

        assert Settings().allowed_ids == set()
