"""Upload commands for uploadctl."""

from __future__ import annotations

import sys
from typing import Any, Optional

import click

from uploadctl.cli.common import Context, ExitCode, global_options, handle_errors
from uploadctl.core.ledger import SessionLedger
from uploadctl.core.output import (
    OutputFormat,
    create_transfer_progress,
    print_error,
    print_info,
    print_key_value,
    print_output,
    print_success,
    print_warning,
)
from uploadctl.models.progress import BatchResult, BatchStatus, UploadProgress, UploadStatus
from uploadctl.services.uploads import BatchHandle, UploadHandle, UploadService
from uploadctl.uploaders.common import UploadFile, expand_upload_paths

MB = 1024 * 1024


def _chunk_bytes(chunk_size_mb: Optional[int], default: int) -> int:
    if chunk_size_mb is None:
        return default
    if chunk_size_mb <= 0:
        raise click.BadParameter("must be a positive number of MB", param_hint="--chunk-size")
    return chunk_size_mb * MB


def _wait(handle: UploadHandle | BatchHandle, *, abort_remote: Optional[bool] = None) -> Any:
    """Wait for a handle; Ctrl-C cancels it and waits for it to settle."""
    try:
        return handle.wait()
    except KeyboardInterrupt:
        print_warning("Interrupted, cancelling upload...")
        handle.cancel(abort_remote=abort_remote)
        return handle.wait()


# =============================================================================
# upload
# =============================================================================


@click.command("upload")
@click.argument("paths", nargs=-1, required=True, type=click.Path(exists=True))
@click.option("--destination", "-d", help="Destination project ID (defaults to profile destination)")
@click.option("--chunk-size", type=int, default=None, help="Chunk size in MB")
@click.option(
    "--keep-remote",
    is_flag=True,
    help="Keep cancelled sessions on the server so they can be resumed",
)
@global_options
@handle_errors
def upload(
    ctx: Context,
    paths: tuple[str, ...],
    destination: Optional[str],
    chunk_size: Optional[int],
    keep_remote: bool,
) -> None:
    """Upload files in chunks, one file at a time.

    Directories are expanded to the files they contain. Press Ctrl-C to
    cancel; with --keep-remote the interrupted session can be resumed later.

    Example:
        uploadctl upload clip.mp4 -d my-project
        uploadctl upload ./footage --chunk-size 10 --keep-remote
    """
    profile = ctx.get_profile()
    destination = destination or profile.destination
    chunk_bytes = _chunk_bytes(chunk_size, profile.chunk_size)
    abort_remote = profile.abort_remote_on_cancel and not keep_remote

    files = [UploadFile.from_path(p) for p in expand_upload_paths(paths)]
    if not files:
        raise click.ClickException("No files to upload")

    client = ctx.get_client()
    ledger = SessionLedger()
    service = UploadService(
        client, chunk_size=chunk_bytes, abort_remote_on_cancel=abort_remote
    )
    show_progress = ctx.output_format == OutputFormat.TABLE and not ctx.quiet
    recorded: set[str] = set()

    def remember(key: str, snap: UploadProgress) -> None:
        """Record each new remote session so it can be resumed."""
        if snap.session_id and key not in recorded:
            recorded.add(key)
            ledger.record(
                key,
                snap.session_id,
                total_size=snap.total_size,
                url=client.base_url,
                destination=destination,
                chunk_size=chunk_bytes,
            )

    try:
        if show_progress:
            with create_transfer_progress() as progress:
                tasks = {
                    str(f.path): progress.add_task(f.name, total=max(f.size, 1)) for f in files
                }

                def on_file_progress(key: str, snap: UploadProgress) -> None:
                    """Update the Rich progress bar for one file."""
                    remember(key, snap)
                    task_id = tasks.get(key)
                    if task_id is None:
                        return
                    completed = snap.uploaded_size if snap.total_size else snap.percentage / 100
                    description = snap.file_name
                    if snap.status in (UploadStatus.ERROR, UploadStatus.CANCELLED):
                        description = f"{snap.file_name} [{snap.status.value}]"
                    progress.update(task_id, completed=completed, description=description)

                handle = service.upload_all(files, destination, on_file_progress=on_file_progress)
                result: BatchResult = _wait(handle)
        else:
            handle = service.upload_all(files, destination, on_file_progress=remember)
            result = _wait(handle)
    finally:
        service.close()

    batch_cancelled = handle.progress.status == BatchStatus.CANCELLED

    # Finished and aborted sessions can't be resumed
    for outcome in result.outcomes:
        if outcome.success or (outcome.status == UploadStatus.CANCELLED and abort_remote):
            ledger.remove(outcome.file_path)

    rows = [
        {
            "file": outcome.file_path,
            "status": outcome.status.value,
            "session_id": outcome.session_id or "-",
            "result": outcome.result_path or outcome.error or "-",
        }
        for outcome in result.outcomes
    ]

    if ctx.output_format == OutputFormat.JSON:
        print_output(
            {
                "success": result.success,
                "duration_seconds": round(result.duration, 2),
                "succeeded": result.succeeded,
                "failed": result.failed,
                "cancelled": result.cancelled,
                "files": rows,
            },
            format=OutputFormat.JSON,
        )
    elif ctx.quiet:
        for path in result.result_paths:
            click.echo(path)
    else:
        if len(rows) > 1 or not result.success:
            print_output(
                rows,
                columns=["file", "status", "session_id", "result"],
                column_labels={"file": "File", "status": "Status", "session_id": "Session", "result": "Result"},
            )
        if result.success:
            print_success(
                f"Uploaded {result.succeeded} file(s) in {result.duration:.1f}s"
            )
            for path in result.result_paths:
                click.echo(path)
        else:
            print_error(
                f"{result.failed} failed, {result.cancelled} cancelled, "
                f"{result.succeeded} uploaded"
            )
            resumable = [
                o for o in result.outcomes
                if o.session_id and not o.success and ledger.get(o.file_path)
            ]
            for outcome in resumable:
                print_info(f"Resume with: uploadctl resume {outcome.file_path}")

    if result.success:
        return
    sys.exit(ExitCode.USER_CANCELLED if batch_cancelled else ExitCode.GENERAL_ERROR)


# =============================================================================
# resume
# =============================================================================


@click.command("resume")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.option("--session-id", "-s", help="Session ID (defaults to the recorded session)")
@click.option("--chunk-size", type=int, default=None, help="Chunk size in MB used by the session")
@global_options
@handle_errors
def resume(
    ctx: Context,
    path: str,
    session_id: Optional[str],
    chunk_size: Optional[int],
) -> None:
    """Resume an interrupted upload, sending only the missing chunks.

    Example:
        uploadctl resume clip.mp4
        uploadctl resume clip.mp4 --session-id 3f2a9c
    """
    profile = ctx.get_profile()
    client = ctx.get_client()
    ledger = SessionLedger()
    file = UploadFile.from_path(path)

    entry = ledger.find_by_session(session_id) if session_id else ledger.get(file.path, url=client.base_url)
    if session_id is None:
        if entry is None:
            raise click.ClickException(
                f"No interrupted upload recorded for {file.path}. Pass --session-id."
            )
        session_id = entry.session_id

    default_chunk = entry.chunk_size if entry and entry.chunk_size else profile.chunk_size
    service = UploadService(
        client,
        chunk_size=_chunk_bytes(chunk_size, default_chunk),
        abort_remote_on_cancel=False,
    )
    show_progress = ctx.output_format == OutputFormat.TABLE and not ctx.quiet

    try:
        if show_progress:
            with create_transfer_progress() as progress:
                task_id = progress.add_task(file.name, total=max(file.size, 1))

                def on_progress(snap: UploadProgress) -> None:
                    """Update the Rich progress bar."""
                    completed = snap.uploaded_size if snap.total_size else snap.percentage / 100
                    progress.update(task_id, completed=completed)

                handle = service.resume_upload(
                    session_id,
                    file,
                    destination=entry.destination if entry else None,
                    on_progress=on_progress,
                )
                _wait(handle)
        else:
            handle = service.resume_upload(
                session_id, file, destination=entry.destination if entry else None
            )
            _wait(handle)
    finally:
        service.close()

    snap = handle.progress
    if snap.status == UploadStatus.COMPLETE:
        ledger.remove(file.path)

    if ctx.output_format == OutputFormat.JSON:
        print_output(snap.to_dict(), format=OutputFormat.JSON)
    elif snap.status == UploadStatus.COMPLETE:
        if ctx.quiet:
            click.echo(snap.result_path)
        else:
            print_success(f"Uploaded {file.name}")
            click.echo(snap.result_path)
    elif snap.status == UploadStatus.CANCELLED:
        print_warning(f"Cancelled; resume again with: uploadctl resume {file.path}")
    else:
        print_error(snap.error or "Upload failed")

    if snap.status == UploadStatus.CANCELLED:
        sys.exit(ExitCode.USER_CANCELLED)
    if snap.status != UploadStatus.COMPLETE:
        sys.exit(ExitCode.GENERAL_ERROR)


# =============================================================================
# status / cancel / pending
# =============================================================================


@click.command("status")
@click.argument("session_id")
@global_options
@handle_errors
def status(ctx: Context, session_id: str) -> None:
    """Show the server's view of an upload session.

    Example:
        uploadctl status 3f2a9c
    """
    service = UploadService(ctx.get_client())
    try:
        remote = service.query_status(session_id)
    finally:
        service.close()

    data = remote.to_dict()
    if ctx.output_format == OutputFormat.JSON:
        print_output(data, format=OutputFormat.JSON)
    else:
        print_key_value(
            {
                "session_id": data["session_id"],
                "file": data["file_name"] or "-",
                "size": data["total_size"],
                "chunks": f"{len(remote.chunks_received)}/{data['total_chunks']}",
                "complete": data["is_complete"],
                "path": data["result_path"] or "-",
            },
            title="Upload Session",
        )


@click.command("cancel")
@click.argument("session_id")
@global_options
@handle_errors
def cancel(ctx: Context, session_id: str) -> None:
    """Abort an upload session on the server and forget it locally.

    Example:
        uploadctl cancel 3f2a9c
    """
    service = UploadService(ctx.get_client())
    try:
        accepted = service.cancel_remote(session_id)
    finally:
        service.close()

    if not accepted:
        print_error(f"Server did not cancel session {session_id}")
        sys.exit(ExitCode.GENERAL_ERROR)

    SessionLedger().remove_session(session_id)
    print_success(f"Cancelled session {session_id}")


@click.command("pending")
@global_options
@handle_errors
def pending(ctx: Context) -> None:
    """List interrupted uploads that can be resumed."""
    entries = SessionLedger().entries()

    rows = [
        {
            "session_id": e.session_id,
            "file": e.file_path,
            "size": e.total_size,
            "destination": e.destination or "-",
            "server": e.url,
            "created": e.created_at.strftime("%Y-%m-%d %H:%M"),
        }
        for e in entries
    ]

    if not rows and ctx.output_format == OutputFormat.TABLE and not ctx.quiet:
        print_info("No interrupted uploads")
        return

    print_output(
        rows,
        format=ctx.output_format,
        columns=["session_id", "file", "size", "destination", "server", "created"],
        column_labels={
            "session_id": "Session",
            "file": "File",
            "size": "Size",
            "destination": "Destination",
            "server": "Server",
            "created": "Created",
        },
        quiet=ctx.quiet,
        id_field="session_id",
    )
