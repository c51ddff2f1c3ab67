"""Tests for School Library configuration.

These tests cover:
1. Default values
2. Environment variable loading
3. Field validation
4. Derived properties
"""

import os
from pathlib import Path
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from school_library.config import LibraryConfig, get_config, reset_config


@pytest.mark.usefixtures("clean_env")
class TestLibraryConfig:
    def test_default_configuration(self):
        config = LibraryConfig()

        assert config.server_name == "school-library"
        assert config.server_version == "0.1.0"
        assert config.transport == "stdio"
        assert config.database_path == Path("data/library.db").absolute()
        assert config.loan_period_days == 14
        assert config.recent_activity_limit == 10
        assert config.sqlite_busy_timeout == 5.0
        assert config.debug is False
        assert config.log_level == "INFO"

    def test_environment_variable_loading(self):
        env_vars = {
            "SCHOOL_LIBRARY_SERVER_NAME": "test-library",
            "SCHOOL_LIBRARY_SERVER_VERSION": "2.0.0",
            "SCHOOL_LIBRARY_DATABASE_PATH": "/tmp/test.db",
            "SCHOOL_LIBRARY_DEBUG": "true",
            "SCHOOL_LIBRARY_LOG_LEVEL": "DEBUG",
            "SCHOOL_LIBRARY_LOAN_PERIOD_DAYS": "21",
        }

        with patch.dict(os.environ, env_vars):
            config = LibraryConfig()

            assert config.server_name == "test-library"
            assert config.server_version == "2.0.0"
            assert config.database_path == Path("/tmp/test.db")
            assert config.debug is True
            assert config.log_level == "DEBUG"
            assert config.loan_period_days == 21

    def test_environment_names_are_case_insensitive(self):
        with patch.dict(os.environ, {"school_library_recent_activity_limit": "3"}):
            assert LibraryConfig().recent_activity_limit == 3

    def test_server_name_validation(self):
        for name in ["school-library", "lib-123", "abc"]:
            assert LibraryConfig(server_name=name).server_name == name

        invalid_names = [
            "School_Library",  # Uppercase not allowed
            "school library",  # Spaces not allowed
            "ab",  # Too short
            "a" * 51,  # Too long
        ]
        for name in invalid_names:
            with pytest.raises(ValidationError):
                LibraryConfig(server_name=name)

    def test_version_validation(self):
        for version in ["1.0.0", "0.1.0", "1.0.0-beta.1"]:
            assert LibraryConfig(server_version=version).server_version == version

        for version in ["1.0", "v1.0.0", "latest"]:
            with pytest.raises(ValidationError):
                LibraryConfig(server_version=version)

    def test_transport_validation(self):
        assert LibraryConfig(transport="stdio").transport == "stdio"
        with pytest.raises(ValidationError):
            LibraryConfig(transport="http")

    def test_circulation_limits(self):
        with pytest.raises(ValidationError):
            LibraryConfig(loan_period_days=0)
        with pytest.raises(ValidationError):
            LibraryConfig(loan_period_days=366)
        with pytest.raises(ValidationError):
            LibraryConfig(recent_activity_limit=0)
        with pytest.raises(ValidationError):
            LibraryConfig(recent_activity_limit=101)
        with pytest.raises(ValidationError):
            LibraryConfig(sqlite_busy_timeout=0)

    def test_log_level_validation(self):
        with pytest.raises(ValidationError):
            LibraryConfig(log_level="TRACE")

    def test_database_path_is_absolute(self):
        config = LibraryConfig(database_path="relative/library.db")
        assert config.database_path.is_absolute()
        assert config.database_path == Path("relative/library.db").absolute()

    def test_computed_properties(self):
        assert LibraryConfig(debug=False, log_level="INFO").is_development is False
        assert LibraryConfig(debug=True, log_level="INFO").is_development is True
        assert LibraryConfig(debug=False, log_level="DEBUG").is_development is True

        info = LibraryConfig().server_info
        assert info == {"name": "school-library", "version": "0.1.0", "transport": "stdio"}

    def test_database_url_generation(self, tmp_path):
        config = LibraryConfig(database_path=tmp_path / "lib.db")
        assert config.get_database_url() == f"sqlite:///{tmp_path / 'lib.db'}"


@pytest.mark.usefixtures("clean_env")
class TestConfigAccessors:
    def test_get_config_returns_same_instance(self):
        reset_config()
        assert get_config() is get_config()

    def test_reset_config_reloads_environment(self):
        reset_config()
        first = get_config()
        with patch.dict(os.environ, {"SCHOOL_LIBRARY_LOAN_PERIOD_DAYS": "30"}):
            reset_config()
            second = get_config()
        assert second is not first
        assert second.loan_period_days == 30
