"""Config commands for uploadctl."""

from __future__ import annotations

from typing import Optional

import click

from uploadctl.core.config import CONFIG_FILE, Config
from uploadctl.core.defaults import DEFAULT_CHUNK_SIZE, DEFAULT_HTTP_TIMEOUT_SECONDS
from uploadctl.core.exceptions import ConfigurationError, ValidationError
from uploadctl.core.output import (
    OutputFormat,
    print_error,
    print_key_value,
    print_output,
    print_success,
)
from uploadctl.core.validation import validate_server_url, validate_timeout

MB = 1024 * 1024


def _load() -> Config:
    try:
        return Config.load(CONFIG_FILE)
    except ConfigurationError as e:
        print_error(str(e))
        raise SystemExit(1)


@click.group()
def config() -> None:
    """Manage uploadctl configuration."""
    pass


@config.command("init")
@click.option("--url", prompt="Upload server URL", help="Upload server URL")
@click.option("--profile", default="default", help="Profile name")
@click.option("--destination", "-d", default=None, help="Default destination project ID")
@click.option(
    "--chunk-size",
    type=int,
    default=DEFAULT_CHUNK_SIZE // MB,
    show_default=True,
    help="Chunk size in MB",
)
@click.option(
    "--timeout",
    type=int,
    default=DEFAULT_HTTP_TIMEOUT_SECONDS,
    show_default=True,
    help="Request timeout in seconds",
)
@click.option("--no-verify-ssl", is_flag=True, help="Disable SSL verification")
@click.option("--force", is_flag=True, help="Overwrite an existing profile")
def config_init(
    url: str,
    profile: str,
    destination: Optional[str],
    chunk_size: int,
    timeout: int,
    no_verify_ssl: bool,
    force: bool,
) -> None:
    """Create or update a profile in the configuration file.

    Example:
        uploadctl config init --url https://uploads.example.org -d my-project
    """
    try:
        url = validate_server_url(url)
        validate_timeout(timeout)
        if chunk_size <= 0:
            raise ValidationError(
                f"Invalid chunk size: {chunk_size} MB", field="chunk_size", value=chunk_size
            )
    except ValidationError as e:
        print_error(str(e))
        raise SystemExit(1)

    cfg = _load() if CONFIG_FILE.exists() else Config()
    if cfg.has_profile(profile) and not force:
        print_error(f"Profile '{profile}' already exists. Use --force to overwrite.")
        raise SystemExit(1)

    cfg.add_profile(
        name=profile,
        url=url,
        verify_ssl=not no_verify_ssl,
        timeout=timeout,
        destination=destination,
        chunk_size=chunk_size * MB,
    )

    # First profile becomes the default
    if len(cfg.profiles) == 1:
        cfg.default_profile = profile

    cfg.save(CONFIG_FILE)

    print_success(f"Configuration saved to {CONFIG_FILE}")
    print_key_value(
        {
            "profile": profile,
            "url": url,
            "destination": destination or "-",
            "chunk_size": f"{chunk_size} MB",
        }
    )


@config.command("show")
@click.option("--output", "-o", type=click.Choice(["json", "table"]), default="table")
def config_show(output: str) -> None:
    """Show current configuration."""
    cfg = _load()

    if not cfg.profiles:
        print_error("No configuration found. Run 'uploadctl config init' first.")
        raise SystemExit(1)

    data = {
        "config_file": str(CONFIG_FILE),
        "default_profile": cfg.default_profile,
        "output_format": cfg.output_format,
        "profiles": list(cfg.profiles.keys()),
    }

    if output == "json":
        data["profile_details"] = {name: p.to_dict() for name, p in cfg.profiles.items()}
        print_output(data, format=OutputFormat.JSON)
        return

    print_key_value(data, title="Configuration")

    click.echo()
    for name, profile in cfg.profiles.items():
        marker = " (default)" if name == cfg.default_profile else ""
        click.echo(f"Profile: {name}{marker}")
        print_key_value(
            {
                "url": profile.url,
                "verify_ssl": profile.verify_ssl,
                "timeout": f"{profile.timeout}s",
                "destination": profile.destination or "-",
                "chunk_size": f"{profile.chunk_size / MB:g} MB",
                "abort_remote_on_cancel": profile.abort_remote_on_cancel,
            },
        )
        click.echo()


@config.command("use")
@click.argument("profile")
def config_use(profile: str) -> None:
    """Switch the active profile.

    Example:
        uploadctl config use production
    """
    cfg = _load()

    if not cfg.has_profile(profile):
        print_error(f"Profile '{profile}' not found.")
        click.echo(f"Available profiles: {', '.join(cfg.profiles.keys())}")
        raise SystemExit(1)

    cfg.set_default_profile(profile)
    cfg.save(CONFIG_FILE)

    print_success(f"Switched to profile '{profile}'")


@config.command("remove")
@click.argument("name")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
def config_remove(name: str, yes: bool) -> None:
    """Remove a profile.

    Example:
        uploadctl config remove staging
    """
    cfg = _load()

    if not cfg.has_profile(name):
        print_error(f"Profile '{name}' not found.")
        raise SystemExit(1)

    if name == cfg.default_profile:
        print_error("Cannot remove the default profile. Switch to another profile first.")
        raise SystemExit(1)

    if not yes:
        click.confirm(f"Remove profile '{name}'?", abort=True)

    cfg.remove_profile(name)
    cfg.save(CONFIG_FILE)

    print_success(f"Profile '{name}' removed")
