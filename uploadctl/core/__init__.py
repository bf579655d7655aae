"""Core modules for uploadctl."""

from uploadctl.core.client import UploadClient
from uploadctl.core.config import CONFIG_DIR, CONFIG_FILE, Config, Profile
from uploadctl.core.exceptions import (
    CancelledByUser,
    ChunkTransferError,
    CompletionError,
    ConfigurationError,
    ConnectionError,
    InitError,
    NetworkError,
    RequestFailedError,
    StatusQueryError,
    TransferError,
    UploadCtlError,
    UploadStateError,
    ValidationError,
)
from uploadctl.core.ledger import LedgerEntry, SessionLedger
from uploadctl.core.logging import LogContext, get_audit_logger, get_logger, setup_logging
from uploadctl.core.output import (
    OutputFormat,
    console,
    print_error,
    print_json,
    print_output,
    print_success,
    print_table,
    print_warning,
)
from uploadctl.core.validation import (
    validate_chunk_size,
    validate_destination,
    validate_path_exists,
    validate_server_url,
    validate_session_id,
    validate_timeout,
)

__all__ = [
    # Exceptions
    "UploadCtlError",
    "ConfigurationError",
    "ConnectionError",
    "NetworkError",
    "RequestFailedError",
    "ValidationError",
    "TransferError",
    "InitError",
    "ChunkTransferError",
    "CompletionError",
    "StatusQueryError",
    "CancelledByUser",
    "UploadStateError",
    # Validation
    "validate_server_url",
    "validate_timeout",
    "validate_chunk_size",
    "validate_destination",
    "validate_session_id",
    "validate_path_exists",
    # Config
    "Config",
    "Profile",
    "CONFIG_DIR",
    "CONFIG_FILE",
    # Client
    "UploadClient",
    # Ledger
    "SessionLedger",
    "LedgerEntry",
    # Output
    "OutputFormat",
    "print_output",
    "print_table",
    "print_json",
    "print_error",
    "print_warning",
    "print_success",
    "console",
    # Logging
    "get_logger",
    "get_audit_logger",
    "setup_logging",
    "LogContext",
]
