"""Main CLI entry point for uploadctl."""

from __future__ import annotations

import click

from uploadctl import __version__
from uploadctl.cli.common import Context, ExitCode, global_options, handle_errors
from uploadctl.cli.config_cmd import config
from uploadctl.cli.upload import cancel, pending, resume, status, upload
from uploadctl.core.exceptions import ConnectionError
from uploadctl.core.output import OutputFormat, print_error, print_output, print_success

# =============================================================================
# Main CLI Group
# =============================================================================


@click.group()
@click.version_option(version=__version__, prog_name="uploadctl")
def cli() -> None:
    """uploadctl - Resumable chunked uploads.

    Upload large files in fixed-size chunks, watch progress, cancel at any
    point, and resume interrupted uploads where they stopped.

    Get started:

      uploadctl config init           # Create config file

      uploadctl upload clip.mp4 -d P1 # Upload a file

      uploadctl pending               # List resumable uploads

    Use --help on any command for more information.
    """
    pass


# =============================================================================
# Register Commands
# =============================================================================

cli.add_command(config)
cli.add_command(upload)
cli.add_command(resume)
cli.add_command(status)
cli.add_command(cancel)
cli.add_command(pending)


# =============================================================================
# Top-Level Commands
# =============================================================================


@cli.group()
def health() -> None:
    """Server health and connectivity checks."""
    pass


@health.command("ping")
@global_options
@handle_errors
def health_ping(ctx: Context) -> None:
    """Check server connectivity."""
    client = ctx.get_client()
    try:
        result = client.ping()
    except ConnectionError as e:
        print_error(str(e))
        raise SystemExit(ExitCode.NETWORK_ERROR)
    finally:
        client.close()

    if ctx.output_format == OutputFormat.JSON:
        print_output(result, format=OutputFormat.JSON)
        return

    print_success(f"Server reachable: {result['url']}")
    print_output(
        {
            "status": result["status"],
            "latency": f"{result['latency_ms']}ms",
        },
        format=OutputFormat.TABLE,
    )


# =============================================================================
# Entry Point
# =============================================================================


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
