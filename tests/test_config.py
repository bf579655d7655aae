"""Tests for uploadctl.core.config module."""

from __future__ import annotations

from pathlib import Path

import pytest

from uploadctl.core.config import Config, Profile
from uploadctl.core.defaults import DEFAULT_CHUNK_SIZE, DEFAULT_HTTP_TIMEOUT_SECONDS
from uploadctl.core.exceptions import ConfigurationError, ProfileNotFoundError

# =============================================================================
# Profile Tests
# =============================================================================


class TestProfile:
    """Tests for Profile dataclass."""

    def test_default_values(self):
        profile = Profile(url="https://uploads.example.org")
        assert profile.url == "https://uploads.example.org"
        assert profile.verify_ssl is True
        assert profile.timeout == DEFAULT_HTTP_TIMEOUT_SECONDS
        assert profile.destination is None
        assert profile.chunk_size == DEFAULT_CHUNK_SIZE == 50 * 1024 * 1024
        assert profile.abort_remote_on_cancel is True

    def test_to_dict_omits_empty_destination(self):
        data = Profile(url="https://uploads.example.org").to_dict()
        assert "destination" not in data
        assert data["chunk_size"] == DEFAULT_CHUNK_SIZE

    def test_from_dict(self):
        profile = Profile.from_dict(
            {
                "url": "https://uploads.example.org",
                "verify_ssl": False,
                "timeout": 30,
                "destination": "P1",
                "chunk_size": "1048576",
                "abort_remote_on_cancel": False,
            }
        )
        assert profile.verify_ssl is False
        assert profile.destination == "P1"
        assert profile.chunk_size == 1048576
        assert profile.abort_remote_on_cancel is False


# =============================================================================
# Config Tests
# =============================================================================


class TestConfig:
    """Tests for Config class."""

    def test_default_config(self):
        config = Config()
        assert config.default_profile == "default"
        assert config.output_format == "table"
        assert config.profiles == {}

    def test_load_from_yaml(self, temp_dir: Path, sample_config_yaml: str):
        config_path = temp_dir / "config.yaml"
        config_path.write_text(sample_config_yaml)

        config = Config.load(config_path)

        assert config.default_profile == "test"
        assert set(config.profiles) == {"test", "production"}

        test_profile = config.profiles["test"]
        assert test_profile.url == "https://uploads-test.example.org"
        assert test_profile.verify_ssl is False
        assert test_profile.timeout == 30
        assert test_profile.destination == "TESTPROJ"
        assert test_profile.chunk_size == 1048576

    def test_load_nonexistent_returns_default(self, temp_dir: Path):
        config = Config.load(temp_dir / "nonexistent.yaml")
        assert config.default_profile == "default"
        assert config.profiles == {}

    def test_load_empty_file_returns_default(self, temp_dir: Path):
        config_path = temp_dir / "config.yaml"
        config_path.write_text("")

        assert Config.load(config_path).default_profile == "default"

    def test_load_malformed_file_raises(self, temp_dir: Path):
        config_path = temp_dir / "config.yaml"
        config_path.write_text("profiles: [unclosed")

        with pytest.raises(ConfigurationError):
            Config.load(config_path)

    def test_get_profile(self):
        config = Config(
            default_profile="test",
            profiles={
                "test": Profile(url="https://test.example.org"),
                "prod": Profile(url="https://prod.example.org"),
            },
        )

        assert config.get_profile("prod").url == "https://prod.example.org"
        assert config.get_profile().url == "https://test.example.org"

    def test_get_profile_not_found(self):
        with pytest.raises(ProfileNotFoundError):
            Config(profiles={}).get_profile("nonexistent")

    def test_add_and_remove_profile(self):
        config = Config()
        config.add_profile("dev", "https://dev.example.org", destination="P1", chunk_size=1024)

        assert config.has_profile("dev")
        assert config.profiles["dev"].chunk_size == 1024
        assert config.remove_profile("dev") is True
        assert config.remove_profile("dev") is False

    def test_set_default_profile_requires_existing(self):
        config = Config(profiles={"a": Profile(url="https://a.example.org")})
        config.set_default_profile("a")
        assert config.default_profile == "a"

        with pytest.raises(ProfileNotFoundError):
            config.set_default_profile("b")

    def test_save_creates_parent_dirs(self, temp_dir: Path):
        config = Config(profiles={"test": Profile(url="https://test.example.org")})

        nested_path = temp_dir / "subdir" / "nested" / "config.yaml"
        config.save(nested_path)

        assert nested_path.exists()


# =============================================================================
# Environment Overrides
# =============================================================================


class TestEnvironmentOverrides:
    """Tests for UPLOADCTL_* environment variables."""

    def test_url_creates_default_profile(self, temp_dir: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("UPLOADCTL_URL", "https://env.example.org")
        monkeypatch.setenv("UPLOADCTL_VERIFY_SSL", "false")
        monkeypatch.setenv("UPLOADCTL_TIMEOUT", "12")

        config = Config.load(temp_dir / "nonexistent.yaml")

        profile = config.profiles["default"]
        assert profile.url == "https://env.example.org"
        assert profile.verify_ssl is False
        assert profile.timeout == 12

    def test_profile_destination_and_chunk_size(
        self, temp_dir: Path, sample_config_yaml: str, monkeypatch: pytest.MonkeyPatch
    ):
        config_path = temp_dir / "config.yaml"
        config_path.write_text(sample_config_yaml)
        monkeypatch.setenv("UPLOADCTL_PROFILE", "production")
        monkeypatch.setenv("UPLOADCTL_DESTINATION", "ENVPROJ")
        monkeypatch.setenv("UPLOADCTL_CHUNK_SIZE", "2048")

        config = Config.load(config_path)

        assert config.default_profile == "production"
        assert config.get_profile().destination == "ENVPROJ"
        assert config.get_profile().chunk_size == 2048

    def test_invalid_number_raises(self, temp_dir: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("UPLOADCTL_URL", "https://env.example.org")
        monkeypatch.setenv("UPLOADCTL_TIMEOUT", "soon")

        with pytest.raises(ConfigurationError):
            Config.load(temp_dir / "nonexistent.yaml")


# =============================================================================
# Integration Tests
# =============================================================================


class TestConfigIntegration:
    """Integration tests for config loading scenarios."""

    def test_roundtrip_save_load(self, temp_dir: Path):
        original = Config(
            default_profile="production",
            output_format="json",
            profiles={
                "development": Profile(
                    url="https://dev.example.org",
                    verify_ssl=False,
                    timeout=60,
                    destination="DEV",
                    chunk_size=1024,
                    abort_remote_on_cancel=False,
                ),
                "production": Profile(url="https://prod.example.org"),
            },
        )

        config_path = temp_dir / "config.yaml"
        original.save(config_path)
        loaded = Config.load(config_path)

        assert loaded.default_profile == original.default_profile
        assert loaded.output_format == original.output_format
        assert loaded.profiles == original.profiles
