"""Tests for uploadctl.uploaders.batch."""

from __future__ import annotations

import threading

import httpx
import pytest

from uploadctl.core.exceptions import ValidationError
from uploadctl.models.progress import BatchProgress, BatchStatus, UploadStatus
from uploadctl.services.transfer import TransferService
from uploadctl.uploaders.batch import BatchUploader
from uploadctl.uploaders.common import UploadFile
from uploadctl.uploaders.session import UploadSession

from .conftest import FakeUploadServer

CHUNK = 5


def _factory(transfer: TransferService, destination: str | None = "P1"):
    def build(file: UploadFile) -> UploadSession:
        return UploadSession(
            transfer, file, destination=destination, chunk_size=CHUNK, abort_remote_on_cancel=False
        )

    return build


@pytest.fixture
def three_files(make_file) -> list[UploadFile]:
    return [make_file("a.mp4", 12), make_file("b.mp4", 12), make_file("c.mp4", 7)]


class TestBatchUploader:
    """Tests for sequential multi-file uploads."""

    def test_uploads_files_in_order(
        self, transfer: TransferService, fake_server: FakeUploadServer, three_files
    ):
        batch = BatchUploader(_factory(transfer))

        result = batch.upload_all(three_files)

        assert result.success
        assert result.result_paths == [
            "uploads/P1/a.mp4",
            "uploads/P1/b.mp4",
            "uploads/P1/c.mp4",
        ]
        assert [f["filename"] for f in fake_server.init_forms] == ["a.mp4", "b.mp4", "c.mp4"]

    def test_failed_file_does_not_stop_batch(
        self, transfer: TransferService, fake_server: FakeUploadServer, three_files
    ):
        fake_server.chunk_hook = lambda name, i: (
            httpx.Response(500, json={"detail": "disk full"}) if name == "b.mp4" and i == 1 else None
        )
        batch = BatchUploader(_factory(transfer))

        result = batch.upload_all(three_files)

        assert [o.status for o in result.outcomes] == [
            UploadStatus.COMPLETE,
            UploadStatus.ERROR,
            UploadStatus.COMPLETE,
        ]
        assert result.result_paths == ["uploads/P1/a.mp4", "uploads/P1/c.mp4"]
        assert "Chunk 1" in (result.outcomes[1].error or "")
        assert result.failed == 1
        assert not result.success

    def test_files_start_only_after_previous_finishes(
        self, transfer: TransferService, three_files
    ):
        batch = BatchUploader(_factory(transfer))
        sessions = batch.prepare(three_files)
        active_overlap: list[str] = []

        def check(key: str, snapshot) -> None:
            active = [k for k, s in sessions.items() if s.status.is_active]
            if len(active) > 1:
                active_overlap.append(key)

        batch.file_progress_callback = check
        batch.upload_all(three_files)

        assert active_overlap == []

    def test_progress_reports_counts_and_percentage(
        self, transfer: TransferService, fake_server: FakeUploadServer, three_files
    ):
        fake_server.chunk_hook = lambda name, i: (
            httpx.Response(500, json={"detail": "no"}) if name == "b.mp4" else None
        )
        snapshots: list[BatchProgress] = []
        batch = BatchUploader(_factory(transfer), progress_callback=snapshots.append)

        batch.upload_all(three_files)

        final = snapshots[-1]
        assert final.status == BatchStatus.COMPLETE
        assert final.total_files == 3
        assert final.completed_files == 2
        assert final.failed_files == 1
        assert final.percentage == 67
        assert final.current_file is None
        percentages = [s.percentage for s in snapshots]
        assert percentages == sorted(percentages)

    def test_percentage_reaches_100_when_all_succeed(
        self, transfer: TransferService, three_files
    ):
        snapshots: list[BatchProgress] = []
        batch = BatchUploader(_factory(transfer), progress_callback=snapshots.append)

        batch.upload_all(three_files)

        assert snapshots[-1].completed_files == 3
        assert snapshots[-1].percentage == 100

    def test_empty_batch_completes(self, transfer: TransferService):
        snapshots: list[BatchProgress] = []
        batch = BatchUploader(_factory(transfer), progress_callback=snapshots.append)

        result = batch.upload_all([])

        assert result.outcomes == []
        assert snapshots[-1].status == BatchStatus.COMPLETE
        assert snapshots[-1].percentage == 100

    def test_duplicate_files_rejected(self, transfer: TransferService, make_file):
        file = make_file("a.mp4", 4)

        with pytest.raises(ValidationError, match="twice"):
            BatchUploader(_factory(transfer)).prepare([file, file])

    def test_invalid_file_is_recorded_and_batch_continues(
        self, transfer: TransferService, fake_server: FakeUploadServer, three_files
    ):
        batch = BatchUploader(_factory(transfer, destination=None))

        result = batch.upload_all(three_files)

        assert all(o.status == UploadStatus.ERROR for o in result.outcomes)
        assert "destination" in (result.outcomes[0].error or "")
        assert fake_server.requests == []

    def test_sessions_keyed_by_resolved_path(self, transfer: TransferService, three_files):
        batch = BatchUploader(_factory(transfer))
        batch.prepare(three_files)

        assert list(batch.sessions) == [str(f.path) for f in three_files]
        assert batch.session_for(str(three_files[1].path)).file_name == "b.mp4"


class TestBatchCancel:
    """Tests for batch and per-file cancellation."""

    def test_cancel_file_skips_one_file(
        self, transfer: TransferService, fake_server: FakeUploadServer, three_files
    ):
        batch = BatchUploader(_factory(transfer))
        batch.prepare(three_files)

        assert batch.cancel_file(str(three_files[1].path)) is True
        result = batch.upload_all(three_files)

        assert [o.status for o in result.outcomes] == [
            UploadStatus.COMPLETE,
            UploadStatus.CANCELLED,
            UploadStatus.COMPLETE,
        ]
        assert [f["filename"] for f in fake_server.init_forms] == ["a.mp4", "c.mp4"]

    def test_cancel_file_while_running_file_reports_progress(
        self, transfer: TransferService, fake_server: FakeUploadServer, three_files
    ):
        batch = BatchUploader(_factory(transfer))
        sessions = batch.prepare(three_files)
        key_a, key_b = list(sessions)[:2]
        cancellers: list[threading.Thread] = []

        def on_file(key: str, snapshot) -> None:
            # Cancel b from another thread while a's snapshot is being delivered
            if key == key_a and snapshot.chunks_uploaded == 1 and not cancellers:
                canceller = threading.Thread(target=sessions[key_b].cancel)
                cancellers.append(canceller)
                canceller.start()
                canceller.join(2)

        batch.file_progress_callback = on_file
        results = []

        runner = threading.Thread(target=lambda: results.append(batch.upload_all(three_files)))
        runner.start()
        runner.join(10)

        assert not runner.is_alive()
        assert not cancellers[0].is_alive()
        assert [o.status for o in results[0].outcomes] == [
            UploadStatus.COMPLETE,
            UploadStatus.CANCELLED,
            UploadStatus.COMPLETE,
        ]
        assert [f["filename"] for f in fake_server.init_forms] == ["a.mp4", "c.mp4"]

    def test_cancel_file_unknown_path(self, transfer: TransferService, three_files):
        batch = BatchUploader(_factory(transfer))
        batch.prepare(three_files)

        assert batch.cancel_file("/nowhere/x.mp4") is False

    def test_cancel_stops_remaining_files(
        self, transfer: TransferService, fake_server: FakeUploadServer, three_files
    ):
        entered = threading.Event()
        release = threading.Event()

        def hook(name: str, i: int):
            if name == "b.mp4" and i == 0:
                entered.set()
                release.wait(5)
            return None

        fake_server.chunk_hook = hook
        snapshots: list[BatchProgress] = []
        batch = BatchUploader(_factory(transfer), progress_callback=snapshots.append)
        results = []

        runner = threading.Thread(target=lambda: results.append(batch.upload_all(three_files)))
        runner.start()
        try:
            assert entered.wait(5)
            batch.cancel()
            runner.join(5)
            assert not runner.is_alive()
        finally:
            release.set()

        result = results[0]
        assert [o.status for o in result.outcomes] == [
            UploadStatus.COMPLETE,
            UploadStatus.CANCELLED,
            UploadStatus.CANCELLED,
        ]
        assert result.result_paths == ["uploads/P1/a.mp4"]
        assert [f["filename"] for f in fake_server.init_forms] == ["a.mp4", "b.mp4"]
        assert snapshots[-1].status == BatchStatus.CANCELLED
        assert snapshots[-1].cancelled_files == 2
