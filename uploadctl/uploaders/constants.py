"""Shared constants for the upload core."""

from uploadctl.core.client import API_PREFIX
from uploadctl.core.defaults import DEFAULT_CHUNK_SIZE, DEFAULT_CONTENT_TYPE

# =============================================================================
# Chunking
# =============================================================================

# Chunk size used when none is configured (50 MiB)
CHUNK_SIZE = DEFAULT_CHUNK_SIZE

# Content type sent in init metadata when the file type can't be guessed
FALLBACK_CONTENT_TYPE = DEFAULT_CONTENT_TYPE

# =============================================================================
# Upload API endpoints
# =============================================================================

UPLOAD_INIT_PATH = f"{API_PREFIX}/upload/init"
UPLOAD_CHUNK_PATH = f"{API_PREFIX}/upload/chunk/{{session_id}}"
UPLOAD_COMPLETE_PATH = f"{API_PREFIX}/upload/complete/{{session_id}}"
UPLOAD_STATUS_PATH = f"{API_PREFIX}/upload/status/{{session_id}}"
UPLOAD_SESSION_PATH = f"{API_PREFIX}/upload/{{session_id}}"
