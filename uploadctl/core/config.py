"""Configuration management for uploadctl.

Supports YAML profiles and environment variable overrides.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

from uploadctl.core.defaults import DEFAULT_CHUNK_SIZE, DEFAULT_HTTP_TIMEOUT_SECONDS
from uploadctl.core.exceptions import ConfigurationError, ProfileNotFoundError

# =============================================================================
# Constants
# =============================================================================

CONFIG_DIR = Path.home() / ".config" / "uploadctl"
CONFIG_FILE = CONFIG_DIR / "config.yaml"

# Environment variable names
ENV_URL = "UPLOADCTL_URL"
ENV_PROFILE = "UPLOADCTL_PROFILE"
ENV_VERIFY_SSL = "UPLOADCTL_VERIFY_SSL"
ENV_TIMEOUT = "UPLOADCTL_TIMEOUT"
ENV_DESTINATION = "UPLOADCTL_DESTINATION"
ENV_CHUNK_SIZE = "UPLOADCTL_CHUNK_SIZE"


def _env_bool(value: str) -> bool:
    return value.lower() in ("true", "1", "yes")


# =============================================================================
# Profile
# =============================================================================


@dataclass
class Profile:
    """Configuration profile for an upload server."""

    url: str
    verify_ssl: bool = True
    timeout: int = DEFAULT_HTTP_TIMEOUT_SECONDS
    destination: Optional[str] = None
    chunk_size: int = DEFAULT_CHUNK_SIZE
    abort_remote_on_cancel: bool = True

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        data: dict[str, Any] = {
            "url": self.url,
            "verify_ssl": self.verify_ssl,
            "timeout": self.timeout,
            "chunk_size": self.chunk_size,
            "abort_remote_on_cancel": self.abort_remote_on_cancel,
        }
        if self.destination:
            data["destination"] = self.destination
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Profile":
        """Create from dictionary."""
        return cls(
            url=data.get("url", ""),
            verify_ssl=data.get("verify_ssl", True),
            timeout=data.get("timeout", DEFAULT_HTTP_TIMEOUT_SECONDS),
            destination=data.get("destination"),
            chunk_size=int(data.get("chunk_size", DEFAULT_CHUNK_SIZE)),
            abort_remote_on_cancel=data.get("abort_remote_on_cancel", True),
        )


# =============================================================================
# Config
# =============================================================================


@dataclass
class Config:
    """Application configuration."""

    default_profile: str = "default"
    output_format: str = "table"
    profiles: dict[str, Profile] = field(default_factory=dict)

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "Config":
        """Load config from file with environment variable overrides.

        Priority (highest to lowest):
        1. Environment variables
        2. Config file
        3. Defaults

        Args:
            config_path: Optional path to config file.

        Returns:
            Loaded configuration.

        Raises:
            ConfigurationError: If the file exists but cannot be parsed.
        """
        path = config_path or CONFIG_FILE
        config = cls()

        if path.exists():
            try:
                with open(path) as f:
                    data = yaml.safe_load(f) or {}

                config.default_profile = data.get("default_profile", "default")
                config.output_format = data.get("output_format", "table")

                for name, pdata in (data.get("profiles") or {}).items():
                    config.profiles[name] = Profile.from_dict(pdata or {})
            except (OSError, yaml.YAMLError, AttributeError, TypeError, ValueError) as e:
                raise ConfigurationError(f"Failed to load config: {e}") from e

        # Environment variable overrides
        try:
            if url := os.getenv(ENV_URL):
                base = config.profiles.get("default")
                config.profiles["default"] = Profile(
                    url=url,
                    verify_ssl=_env_bool(os.getenv(ENV_VERIFY_SSL, "true")),
                    timeout=int(os.getenv(ENV_TIMEOUT, str(DEFAULT_HTTP_TIMEOUT_SECONDS))),
                    destination=base.destination if base else None,
                    chunk_size=base.chunk_size if base else DEFAULT_CHUNK_SIZE,
                    abort_remote_on_cancel=base.abort_remote_on_cancel if base else True,
                )

            if profile := os.getenv(ENV_PROFILE):
                config.default_profile = profile

            active = config.profiles.get(config.default_profile)
            if active is not None:
                if destination := os.getenv(ENV_DESTINATION):
                    active.destination = destination
                if chunk_size := os.getenv(ENV_CHUNK_SIZE):
                    active.chunk_size = int(chunk_size)
        except ValueError as e:
            raise ConfigurationError(f"Invalid environment override: {e}") from e

        return config

    def save(self, config_path: Optional[Path] = None) -> None:
        """Save config to file.

        Args:
            config_path: Optional path to config file.
        """
        path = config_path or CONFIG_FILE
        path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "default_profile": self.default_profile,
            "output_format": self.output_format,
            "profiles": {name: p.to_dict() for name, p in self.profiles.items()},
        }

        with open(path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)

    def get_profile(self, name: Optional[str] = None) -> Profile:
        """Get profile by name or default.

        Args:
            name: Profile name. If None, uses default_profile.

        Returns:
            Profile configuration.

        Raises:
            ProfileNotFoundError: If profile doesn't exist.
        """
        name = name or self.default_profile
        if name not in self.profiles:
            raise ProfileNotFoundError(name)
        return self.profiles[name]

    def has_profile(self, name: str) -> bool:
        """Check if profile exists."""
        return name in self.profiles

    def add_profile(
        self,
        name: str,
        url: str,
        verify_ssl: bool = True,
        timeout: int = DEFAULT_HTTP_TIMEOUT_SECONDS,
        destination: Optional[str] = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> Profile:
        """Add or update a profile.

        Args:
            name: Profile name.
            url: Upload server URL.
            verify_ssl: Whether to verify SSL certificates.
            timeout: Request timeout in seconds.
            destination: Default destination (project ID).
            chunk_size: Chunk size in bytes.

        Returns:
            Created profile.
        """
        profile = Profile(
            url=url,
            verify_ssl=verify_ssl,
            timeout=timeout,
            destination=destination,
            chunk_size=chunk_size,
        )
        self.profiles[name] = profile
        return profile

    def remove_profile(self, name: str) -> bool:
        """Remove a profile.

        Returns:
            True if removed, False if didn't exist.
        """
        if name in self.profiles:
            del self.profiles[name]
            return True
        return False

    def set_default_profile(self, name: str) -> None:
        """Set the default profile.

        Raises:
            ProfileNotFoundError: If profile doesn't exist.
        """
        if name not in self.profiles:
            raise ProfileNotFoundError(name)
        self.default_profile = name
