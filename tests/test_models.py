"""Tests for uploadctl.models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError as PydanticValidationError

from uploadctl.models.progress import (
    BatchProgress,
    BatchResult,
    BatchStatus,
    FileOutcome,
    UploadProgress,
    UploadStatus,
    percent,
)
from uploadctl.models.transfer import CompleteResponse, InitResponse, StatusResponse

# =============================================================================
# Progress
# =============================================================================


class TestPercent:
    """Tests for percent."""

    @pytest.mark.parametrize(
        "part,whole,expected",
        [(0, 10, 0), (1, 3, 33), (1, 8, 13), (2, 3, 67), (10, 10, 100), (5, 0, 0), (11, 10, 100)],
    )
    def test_rounds_half_up(self, part: int, whole: int, expected: int):
        assert percent(part, whole) == expected


class TestUploadStatus:
    """Tests for UploadStatus."""

    def test_terminal_states(self):
        terminal = {s for s in UploadStatus if s.is_terminal}
        assert terminal == {UploadStatus.COMPLETE, UploadStatus.ERROR, UploadStatus.CANCELLED}

    def test_active_states(self):
        assert not UploadStatus.IDLE.is_active
        assert UploadStatus.UPLOADING.is_active
        assert not UploadStatus.COMPLETE.is_active


class TestUploadProgress:
    """Tests for UploadProgress."""

    def test_fraction(self):
        snap = UploadProgress(UploadStatus.UPLOADING, "a.mp4", total_size=10, uploaded_size=4)
        assert snap.fraction == 0.4
        assert not snap.is_terminal

    def test_empty_file_fraction(self):
        assert UploadProgress(UploadStatus.UPLOADING, "a.mp4", total_size=0).fraction == 0.0
        assert UploadProgress(UploadStatus.COMPLETE, "a.mp4", total_size=0).fraction == 1.0

    def test_to_dict(self):
        data = UploadProgress(UploadStatus.ERROR, "a.mp4", total_size=3, error="boom").to_dict()
        assert data["status"] == "error"
        assert data["error"] == "boom"

    def test_is_frozen(self):
        snap = UploadProgress(UploadStatus.IDLE, "a.mp4", total_size=1)
        with pytest.raises(AttributeError):
            snap.uploaded_size = 1  # type: ignore[misc]


class TestBatchModels:
    """Tests for BatchProgress and BatchResult."""

    def test_finished_files(self):
        progress = BatchProgress(
            BatchStatus.UPLOADING, total_files=5, completed_files=2, failed_files=1, cancelled_files=1
        )
        assert progress.finished_files == 4
        assert progress.to_dict()["status"] == "uploading"

    def test_result_counts(self):
        result = BatchResult(
            outcomes=[
                FileOutcome("a", UploadStatus.COMPLETE, result_path="r/a"),
                FileOutcome("b", UploadStatus.ERROR, error="HTTP 500"),
                FileOutcome("c", UploadStatus.CANCELLED),
            ]
        )

        assert result.result_paths == ["r/a"]
        assert (result.succeeded, result.failed, result.cancelled) == (1, 1, 1)
        assert not result.success
        assert result.errors == ["b: HTTP 500"]

    def test_empty_result_is_success(self):
        assert BatchResult().success


# =============================================================================
# API Payloads
# =============================================================================


class TestTransferModels:
    """Tests for API response models."""

    def test_init_requires_upload_id(self):
        with pytest.raises(PydanticValidationError):
            InitResponse.model_validate({"upload_id": ""})

    def test_init_ignores_extra_fields(self):
        resp = InitResponse.model_validate({"upload_id": "s1", "chunk_size": 10, "other": 1})
        assert resp.to_dict() == {"upload_id": "s1", "chunk_size": 10}

    def test_complete_requires_file_path(self):
        with pytest.raises(PydanticValidationError):
            CompleteResponse.model_validate({"upload_id": "s1"})

    def test_status_null_chunks(self):
        resp = StatusResponse.model_validate(
            {"upload_id": "s1", "total_size": 3, "total_chunks": 1, "chunks_received": None}
        )
        assert resp.chunks_received == []
        assert resp.is_complete is False
