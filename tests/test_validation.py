"""Tests for uploadctl.core.validation module."""

from __future__ import annotations

from pathlib import Path

import pytest

from uploadctl.core.exceptions import (
    InvalidChunkSizeError,
    InvalidURLError,
    PathValidationError,
    ValidationError,
)
from uploadctl.core.validation import (
    validate_chunk_size,
    validate_destination,
    validate_path_exists,
    validate_server_url,
    validate_session_id,
    validate_timeout,
)

# =============================================================================
# URL Validation Tests
# =============================================================================


class TestValidateServerUrl:
    """Tests for validate_server_url."""

    def test_valid_https_url(self):
        assert validate_server_url("https://uploads.example.org") == "https://uploads.example.org"

    def test_valid_http_url(self):
        assert validate_server_url("http://localhost:8000") == "http://localhost:8000"

    def test_strips_trailing_slash(self):
        assert validate_server_url("https://uploads.example.org///") == "https://uploads.example.org"

    def test_strips_whitespace(self):
        assert validate_server_url("  https://uploads.example.org ") == "https://uploads.example.org"

    @pytest.mark.parametrize("url", ["", "   ", "uploads.example.org", "ftp://x.org", "https://"])
    def test_invalid_urls_raise(self, url: str):
        with pytest.raises(InvalidURLError):
            validate_server_url(url)


# =============================================================================
# Numeric Parameters
# =============================================================================


class TestValidateTimeout:
    """Tests for validate_timeout."""

    def test_accepts_numeric_strings(self):
        assert validate_timeout("2.5") == 2.5

    @pytest.mark.parametrize("value", [0, -1, "abc", None])
    def test_rejects_invalid(self, value):
        with pytest.raises(ValidationError, match="Invalid timeout"):
            validate_timeout(value)


class TestValidateChunkSize:
    """Tests for validate_chunk_size."""

    def test_accepts_positive_int(self):
        assert validate_chunk_size(1024) == 1024

    @pytest.mark.parametrize("value", [0, -5, 1.5, "1024", True, None])
    def test_rejects_non_positive_or_non_int(self, value):
        with pytest.raises(InvalidChunkSizeError):
            validate_chunk_size(value)


# =============================================================================
# Identifiers
# =============================================================================


class TestValidateDestination:
    """Tests for validate_destination."""

    def test_strips(self):
        assert validate_destination("  P1 ") == "P1"

    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_blank_raises(self, value):
        with pytest.raises(ValidationError) as exc_info:
            validate_destination(value)
        assert exc_info.value.field == "destination"


class TestValidateSessionId:
    """Tests for validate_session_id."""

    def test_valid(self):
        assert validate_session_id(" abc-123 ") == "abc-123"

    @pytest.mark.parametrize("value", [None, "", "  ", "a/b"])
    def test_invalid(self, value):
        with pytest.raises(ValidationError):
            validate_session_id(value)


# =============================================================================
# Path Validation
# =============================================================================


class TestValidatePathExists:
    """Tests for validate_path_exists."""

    def test_existing_file(self, temp_dir: Path):
        f = temp_dir / "a.bin"
        f.write_bytes(b"x")
        assert validate_path_exists(f, must_be_file=True) == f.resolve()

    def test_missing_raises(self, temp_dir: Path):
        with pytest.raises(PathValidationError, match="does not exist"):
            validate_path_exists(temp_dir / "nope")

    def test_directory_when_file_required(self, temp_dir: Path):
        assert validate_path_exists(temp_dir) == temp_dir.resolve()
        with pytest.raises(PathValidationError, match="not a regular file"):
            validate_path_exists(temp_dir, must_be_file=True)
