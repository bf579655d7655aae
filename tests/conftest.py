"""Pytest configuration and fixtures for uploadctl tests."""

from __future__ import annotations

import re
import tempfile
import threading
from collections.abc import Callable
from pathlib import Path
from typing import Any, Generator, Optional

import httpx
import pytest

from uploadctl.core.client import UploadClient
from uploadctl.services.transfer import TransferService
from uploadctl.uploaders.common import UploadFile

BASE_URL = "https://uploads.example.org"

ChunkHook = Callable[[str, int], Optional[httpx.Response]]
SessionHook = Callable[[str], Optional[httpx.Response]]


# =============================================================================
# Fake Upload Server
# =============================================================================


def _parse_multipart(request: httpx.Request) -> dict[str, bytes]:
    """Split a multipart/form-data body into ``{field name: bytes}``."""
    match = re.search(r"boundary=([^;]+)", request.headers["content-type"])
    assert match, "multipart request without boundary"
    boundary = b"--" + match.group(1).strip('"').encode()

    fields: dict[str, bytes] = {}
    for part in request.content.split(boundary)[1:]:
        if part.startswith(b"--"):
            break
        head, _, body = part.lstrip(b"\r\n").partition(b"\r\n\r\n")
        name = re.search(rb'; name="([^"]*)"', head)
        if name:
            fields[name.group(1).decode()] = body[:-2] if body.endswith(b"\r\n") else body
    return fields


class FakeUploadServer:
    """In-memory chunked upload API, served through ``httpx.MockTransport``.

    ``chunk_hook`` runs before a chunk is stored, ``init_hook`` before a session
    is created (with the file name) and ``complete_hook`` before a session is
    finalized (with the session ID). Each may return a response to reject the
    request, or block to keep it in flight.
    """

    def __init__(self) -> None:
        self.sessions: dict[str, dict[str, Any]] = {}
        self.requests: list[tuple[str, str]] = []
        self.chunk_calls: list[tuple[str, int]] = []
        self.init_forms: list[dict[str, str]] = []
        self.init_content_types: list[str] = []
        self.chunk_hook: Optional[ChunkHook] = None
        self.init_hook: Optional[SessionHook] = None
        self.complete_hook: Optional[SessionHook] = None
        self.init_status: Optional[int] = None
        self._lock = threading.Lock()
        self._counter = 0

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def calls(self, method: str, prefix: str) -> list[str]:
        """Paths of recorded requests matching a method and path prefix."""
        return [p for m, p in self.requests if m == method and p.startswith(prefix)]

    def sent_indices(self, session_id: str) -> list[int]:
        return [i for sid, i in self.chunk_calls if sid == session_id]

    def assembled(self, session_id: str) -> bytes:
        session = self.sessions[session_id]
        return b"".join(session["chunks"][i] for i in range(session["total_chunks"]))

    # -------------------------------------------------------------------------
    # Routing
    # -------------------------------------------------------------------------

    def handler(self, request: httpx.Request) -> httpx.Response:
        request.read()
        path = request.url.path
        with self._lock:
            self.requests.append((request.method, path))

        if request.method == "GET" and path == "/api/v1/health":
            return httpx.Response(200, json={"status": "healthy"})
        if request.method == "POST" and path == "/api/v1/upload/init":
            return self._init(request)
        if request.method == "POST" and path.startswith("/api/v1/upload/chunk/"):
            return self._chunk(request, path.rsplit("/", 1)[1])
        if request.method == "POST" and path.startswith("/api/v1/upload/complete/"):
            return self._complete(path.rsplit("/", 1)[1])
        if request.method == "GET" and path.startswith("/api/v1/upload/status/"):
            return self._status(path.rsplit("/", 1)[1])
        if request.method == "DELETE" and path.startswith("/api/v1/upload/"):
            return self._delete(path.rsplit("/", 1)[1])
        return httpx.Response(404, json={"detail": "Not Found"})

    def _init(self, request: httpx.Request) -> httpx.Response:
        content_type = request.headers.get("content-type", "")
        self.init_content_types.append(content_type)
        if not content_type.startswith("multipart/form-data"):
            return httpx.Response(422, json={"detail": "Expected multipart form data"})

        form = {k: v.decode() for k, v in _parse_multipart(request).items()}
        self.init_forms.append(form)
        if self.init_status is not None:
            return httpx.Response(self.init_status, json={"detail": "Internal Server Error"})
        if self.init_hook is not None:
            rejected = self.init_hook(form["filename"])
            if rejected is not None:
                return rejected

        with self._lock:
            self._counter += 1
            session_id = f"sess-{self._counter}"
            self.sessions[session_id] = {
                "filename": form["filename"],
                "total_size": int(form["total_size"]),
                "total_chunks": int(form["total_chunks"]),
                "project_id": form.get("project_id"),
                "chunks": {},
                "file_path": None,
            }
        return httpx.Response(
            200,
            json={"upload_id": session_id, "chunk_size": 52428800, "message": "Upload initialized"},
        )

    def _chunk(self, request: httpx.Request, session_id: str) -> httpx.Response:
        session = self.sessions.get(session_id)
        if session is None:
            return httpx.Response(404, json={"detail": "Upload session not found"})

        fields = _parse_multipart(request)
        index = int(fields["chunk_index"])
        with self._lock:
            self.chunk_calls.append((session_id, index))

        if self.chunk_hook is not None:
            rejected = self.chunk_hook(session["filename"], index)
            if rejected is not None:
                return rejected

        session["chunks"][index] = fields["chunk"]
        return httpx.Response(
            200,
            json={
                "upload_id": session_id,
                "chunk_index": index,
                "chunks_received": len(session["chunks"]),
                "total_chunks": session["total_chunks"],
                "is_complete": len(session["chunks"]) == session["total_chunks"],
                "message": f"Chunk {index} received",
            },
        )

    def _complete(self, session_id: str) -> httpx.Response:
        session = self.sessions.get(session_id)
        if session is None:
            return httpx.Response(404, json={"detail": "Upload session not found"})
        if len(session["chunks"]) != session["total_chunks"]:
            return httpx.Response(400, json={"detail": "Missing chunks"})
        if self.complete_hook is not None:
            rejected = self.complete_hook(session_id)
            if rejected is not None:
                return rejected

        session["file_path"] = f"uploads/{session['project_id']}/{session['filename']}"
        return httpx.Response(
            200,
            json={
                "upload_id": session_id,
                "filename": session["filename"],
                "file_path": session["file_path"],
                "total_size": session["total_size"],
                "message": "Upload complete",
            },
        )

    def _status(self, session_id: str) -> httpx.Response:
        session = self.sessions.get(session_id)
        if session is None:
            return httpx.Response(404, json={"detail": "Upload session not found"})
        return httpx.Response(
            200,
            json={
                "upload_id": session_id,
                "filename": session["filename"],
                "total_size": session["total_size"],
                "total_chunks": session["total_chunks"],
                "chunks_received": sorted(session["chunks"]),
                "is_complete": session["file_path"] is not None,
                "file_path": session["file_path"],
            },
        )

    def _delete(self, session_id: str) -> httpx.Response:
        if self.sessions.pop(session_id, None) is None:
            return httpx.Response(404, json={"detail": "Upload session not found"})
        return httpx.Response(200, json={"message": "Upload cancelled"})


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep UPLOADCTL_* variables from the developer shell out of tests."""
    for name in (
        "UPLOADCTL_URL",
        "UPLOADCTL_PROFILE",
        "UPLOADCTL_VERIFY_SSL",
        "UPLOADCTL_TIMEOUT",
        "UPLOADCTL_DESTINATION",
        "UPLOADCTL_CHUNK_SIZE",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def fake_server() -> FakeUploadServer:
    """Fresh in-memory upload server."""
    return FakeUploadServer()


@pytest.fixture
def client(fake_server: FakeUploadServer) -> Generator[UploadClient, None, None]:
    """UploadClient wired to the fake server."""
    upload_client = UploadClient(base_url=BASE_URL, timeout=5, transport=fake_server.transport())
    yield upload_client
    upload_client.close()


@pytest.fixture
def transfer(client: UploadClient) -> TransferService:
    return TransferService(client)


@pytest.fixture
def make_file(temp_dir: Path) -> Callable[..., UploadFile]:
    """Factory writing a file of ``size`` patterned bytes."""

    def _make(name: str = "clip.mp4", size: int = 12) -> UploadFile:
        path = temp_dir / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(bytes(i % 251 for i in range(size)))
        return UploadFile.from_path(path)

    return _make


@pytest.fixture
def sample_config_yaml() -> str:
    """Sample config YAML content."""
    return """
default_profile: test
output_format: table

profiles:
  test:
    url: https://uploads-test.example.org
    verify_ssl: false
    timeout: 30
    destination: TESTPROJ
    chunk_size: 1048576

  production:
    url: https://uploads.example.org
    verify_ssl: true
    timeout: 60
"""


@pytest.fixture
def cli_env(
    temp_dir: Path, fake_server: FakeUploadServer, monkeypatch: pytest.MonkeyPatch
) -> Path:
    """Point the CLI at a temp config, a temp ledger, and the fake server.

    The default profile uploads to ``P1`` in 5-byte chunks; ``nodest`` has no
    destination.
    """
    config_path = temp_dir / "config" / "config.yaml"
    config_path.parent.mkdir(parents=True)
    config_path.write_text(
        f"""
default_profile: default
profiles:
  default:
    url: {BASE_URL}
    destination: P1
    chunk_size: 5
  nodest:
    url: {BASE_URL}
    chunk_size: 5
"""
    )
    monkeypatch.setattr("uploadctl.core.config.CONFIG_FILE", config_path)
    monkeypatch.setattr("uploadctl.core.ledger.LEDGER_FILE", temp_dir / "config" / "sessions.json")

    def make_client(**kwargs: Any) -> UploadClient:
        return UploadClient(transport=fake_server.transport(), **kwargs)

    monkeypatch.setattr("uploadctl.cli.common.UploadClient", make_client)
    return config_path
