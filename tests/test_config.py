"""Tests for configuration management module."""

import logging
import os
from datetime import timedelta
from unittest.mock import patch

import pytest

from roster_purifier.config import Settings, validate_settings_on_startup


class TestSettings:
    """Tests for the Settings class."""

    def test_default_values(self) -> None:
        """Test default configuration values."""
        with patch.dict(os.environ, {}, clear=True):
            settings = Settings(_env_file=None)

        assert settings.max_file_size_mb == 10
        assert settings.export_filename_prefix == "Processed_Roster_"
        assert settings.review_session_ttl_minutes == 60
        assert settings.log_level == "INFO"
        assert settings.debug is False
        assert settings.cors_origins == "*"
        assert settings.server_host == "0.0.0.0"
        assert settings.server_port == 8000

    def test_environment_variable_prefix(self) -> None:
        """Test that environment variables use ROSTER_ prefix."""
        env_vars = {
            "ROSTER_MAX_FILE_SIZE_MB": "25",
            "ROSTER_EXPORT_FILENAME_PREFIX": "Clean_",
            "ROSTER_LOG_LEVEL": "DEBUG",
        }
        with patch.dict(os.environ, env_vars, clear=True):
            settings = Settings(_env_file=None)

        assert settings.max_file_size_mb == 25
        assert settings.export_filename_prefix == "Clean_"
        assert settings.log_level == "DEBUG"

    def test_max_file_size_bytes_property(self) -> None:
        env_vars = {"ROSTER_MAX_FILE_SIZE_MB": "10"}
        with patch.dict(os.environ, env_vars, clear=True):
            settings = Settings(_env_file=None)

        assert settings.max_file_size_bytes == 10 * 1024 * 1024

    def test_review_session_ttl_property(self) -> None:
        env_vars = {"ROSTER_REVIEW_SESSION_TTL_MINUTES": "15"}
        with patch.dict(os.environ, env_vars, clear=True):
            settings = Settings(_env_file=None)

        assert settings.review_session_ttl == timedelta(minutes=15)

    def test_cors_origins_list_multiple(self) -> None:
        """Test CORS origins list with multiple origins."""
        env_vars = {
            "ROSTER_CORS_ORIGINS": "https://example.com, https://api.example.com"
        }
        with patch.dict(os.environ, env_vars, clear=True):
            settings = Settings(_env_file=None)

        assert settings.cors_origins_list == [
            "https://example.com",
            "https://api.example.com",
        ]

    def test_cors_origins_list_wildcard(self) -> None:
        with patch.dict(os.environ, {"ROSTER_CORS_ORIGINS": "*"}, clear=True):
            settings = Settings(_env_file=None)

        assert settings.cors_origins_list == ["*"]

    def test_log_level_int_property(self) -> None:
        """Test log_level_int computed property."""
        test_cases = [
            ("DEBUG", logging.DEBUG),
            ("INFO", logging.INFO),
            ("WARNING", logging.WARNING),
            ("ERROR", logging.ERROR),
            ("CRITICAL", logging.CRITICAL),
        ]

        for level_str, expected_int in test_cases:
            env_vars = {"ROSTER_LOG_LEVEL": level_str}
            with patch.dict(os.environ, env_vars, clear=True):
                settings = Settings(_env_file=None)
            assert settings.log_level_int == expected_int, f"Failed for {level_str}"

    def test_to_safe_dict(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            settings = Settings(_env_file=None)

        safe_dict = settings.to_safe_dict()

        assert safe_dict["max_file_size_mb"] == 10
        assert safe_dict["export_filename_prefix"] == "Processed_Roster_"
        assert safe_dict["review_session_ttl_minutes"] == 60


class TestSettingsValidation:
    """Tests for settings validation."""

    def test_lowercase_log_level_normalized(self) -> None:
        """Test lowercase log levels are normalized to uppercase."""
        env_vars = {"ROSTER_LOG_LEVEL": "debug"}
        with patch.dict(os.environ, env_vars, clear=True):
            settings = Settings(_env_file=None)
            assert settings.log_level == "DEBUG"

    def test_invalid_log_level_raises_error(self) -> None:
        env_vars = {"ROSTER_LOG_LEVEL": "INVALID"}
        with (
            patch.dict(os.environ, env_vars, clear=True),
            pytest.raises(ValueError, match="Invalid log level"),
        ):
            Settings(_env_file=None)

    def test_file_size_must_be_between_1_and_500(self) -> None:
        """Test file size limit validation."""
        for value in ("1000", "0"):
            env_vars = {"ROSTER_MAX_FILE_SIZE_MB": value}
            with (
                patch.dict(os.environ, env_vars, clear=True),
                pytest.raises(ValueError, match="between 1 and 500"),
            ):
                Settings(_env_file=None)

    def test_export_prefix_rejects_path_separators(self) -> None:
        for value in ("../Roster_", "out\\Roster_"):
            env_vars = {"ROSTER_EXPORT_FILENAME_PREFIX": value}
            with (
                patch.dict(os.environ, env_vars, clear=True),
                pytest.raises(ValueError, match="path separators"),
            ):
                Settings(_env_file=None)

    def test_session_ttl_must_be_positive(self) -> None:
        env_vars = {"ROSTER_REVIEW_SESSION_TTL_MINUTES": "0"}
        with (
            patch.dict(os.environ, env_vars, clear=True),
            pytest.raises(ValueError, match="at least 1"),
        ):
            Settings(_env_file=None)

    def test_port_must_be_valid(self) -> None:
        """Test port validation."""
        for value in ("70000", "0"):
            env_vars = {"ROSTER_SERVER_PORT": value}
            with (
                patch.dict(os.environ, env_vars, clear=True),
                pytest.raises(ValueError, match="between 1 and 65535"),
            ):
                Settings(_env_file=None)

    def test_valid_port(self) -> None:
        env_vars = {"ROSTER_SERVER_PORT": "8080"}
        with patch.dict(os.environ, env_vars, clear=True):
            settings = Settings(_env_file=None)
            assert settings.server_port == 8080


class TestValidateSettingsOnStartup:
    """Tests for the validate_settings_on_startup function."""

    def test_warns_about_permissive_cors_in_production(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Test warning for permissive CORS when not in debug mode."""
        env_vars = {"ROSTER_CORS_ORIGINS": "*", "ROSTER_DEBUG": "false"}
        with patch.dict(os.environ, env_vars, clear=True):
            settings = Settings(_env_file=None)

        with caplog.at_level(logging.WARNING):
            validate_settings_on_startup(settings)

        assert "CORS is configured to allow all origins" in caplog.text

    def test_no_cors_warning_in_debug_mode(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        env_vars = {"ROSTER_CORS_ORIGINS": "*", "ROSTER_DEBUG": "true"}
        with patch.dict(os.environ, env_vars, clear=True):
            settings = Settings(_env_file=None)

        with caplog.at_level(logging.WARNING):
            validate_settings_on_startup(settings)

        assert "CORS is configured to allow all origins" not in caplog.text

    def test_logs_configuration_summary(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        with patch.dict(os.environ, {}, clear=True):
            settings = Settings(_env_file=None)

        with caplog.at_level(logging.INFO):
            validate_settings_on_startup(settings)

        assert "Configuration loaded" in caplog.text
        assert "review_session_ttl_minutes=60" in caplog.text
