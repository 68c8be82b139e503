"""Loadout CLI for managing profiles and plugins from a terminal.

Drives the same library operations as the HTTP daemon, against the same
data directory, and starts the daemon itself.
"""

import logging
import sys
from pathlib import Path

import click
import uvicorn

from loadout_library.config import load_config
from loadout_library.models import PluginInstallStatus
from loadout_library.profiles import load_export

from .dependencies import get_container

STATUS_MARKERS = {
    PluginInstallStatus.INSTALLED: "✓",
    PluginInstallStatus.MISSING: "!",
    PluginInstallStatus.DISABLED: "-",
}


def _fail(message: str) -> None:
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


@click.group()
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
    default="warning",
    show_default=True,
    help="Logging verbosity",
)
def cli(log_level: str):
    """Loadout - Profile and plugin subscription management."""
    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


@cli.command()
@click.option("--host", default=None, help="Listen address (default: from config)")
@click.option("--port", type=int, default=None, help="Listen port (default: from config)")
def serve(host: str | None, port: int | None):
    """Run the loadoutd HTTP daemon in the foreground."""
    config = load_config()
    uvicorn.run(
        "loadoutd.main:app",
        host=host or config.host,
        port=port or config.port,
        log_level=config.log_level.lower(),
        workers=config.workers,
    )


# --- Profiles ---


@cli.command()
def profiles():
    """List subscribed profiles."""
    container = get_container()
    current = container.coordinator.current_profile
    for profile in container.coordinator.profiles:
        marker = "*" if profile.id == current.id else " "
        count = len(container.associations.get_plugins_in_profile(profile.id))
        click.echo(f"{marker} {profile.id:<20} {profile.name} ({count} plugin(s))")


@cli.command()
def catalog():
    """List built-in profile and plugin templates."""
    container = get_container()
    click.echo("Profiles:")
    for template in container.profile_catalog.get_all():
        subscribed = " (subscribed)" if container.store.is_profile_subscribed(template.id) else ""
        click.echo(f"  {template.id:<20} {template.name}{subscribed}")
    click.echo("Plugins:")
    for template in container.plugin_catalog.get_all():
        installed = " (installed)" if container.plugin_library.is_installed(template.id) else ""
        click.echo(f"  {template.id:<20} {template.name} {template.version}{installed}")


@cli.command()
@click.argument("profile_id")
def subscribe(profile_id: str):
    """Subscribe a built-in profile template."""
    container = get_container()
    if not container.profile_catalog.exists(profile_id):
        _fail(f"No built-in profile template '{profile_id}'")
    if not container.coordinator.subscribe_profile(profile_id):
        _fail(f"Could not subscribe profile '{profile_id}' (already subscribed?)")
    click.echo(f"Subscribed profile {profile_id}")


@cli.command()
@click.argument("profile_id")
def unsubscribe(profile_id: str):
    """Unsubscribe a profile and delete its data."""
    result = get_container().coordinator.unsubscribe_profile(profile_id)
    if not result.success:
        _fail(result.error_message or f"Could not unsubscribe profile '{profile_id}'")
    click.echo(f"Unsubscribed profile {profile_id}")
    if result.unsubscribed_plugins:
        click.echo(f"  Released plugins: {', '.join(result.unsubscribed_plugins)}")


@cli.command()
@click.argument("profile_id")
def switch(profile_id: str):
    """Make a profile the active one."""
    if not get_container().coordinator.switch_profile(profile_id):
        _fail(f"Could not switch to profile '{profile_id}'")
    click.echo(f"Switched to profile {profile_id}")


@cli.command("auto-switch")
@click.option("--process", "processes", multiple=True, help="Treat this process as running (repeatable)")
def auto_switch(processes: tuple[str, ...]):
    """Switch to the profile whose activation rules match running processes."""
    profile = get_container().coordinator.switch_for_processes(list(processes) if processes else None)
    if profile is None:
        click.echo("No profile change")
    else:
        click.echo(f"Switched to profile {profile.id}")


# --- Plugins ---


@cli.command()
@click.argument("profile_id")
def plugins(profile_id: str):
    """List a profile's plugin references and their status."""
    container = get_container()
    if container.coordinator.get_profile(profile_id) is None:
        _fail(f"Unknown profile '{profile_id}'")
    references = container.associations.get_plugins_in_profile(profile_id)
    if not references:
        click.echo("No plugins")
        return
    for ref in references:
        click.echo(f"{STATUS_MARKERS[ref.status]} {ref.plugin_id:<24} {ref.status.value}")


@cli.command()
@click.argument("profile_id")
@click.argument("plugin_ids", nargs=-1, required=True)
def add(profile_id: str, plugin_ids: tuple[str, ...]):
    """Reference plugins from a profile."""
    container = get_container()
    if container.coordinator.get_profile(profile_id) is None:
        _fail(f"Unknown profile '{profile_id}'")
    added = container.associations.add_plugins_to_profile(list(plugin_ids), profile_id)
    click.echo(f"Added {added} plugin(s) to {profile_id}")


@cli.command()
@click.argument("profile_id")
@click.argument("plugin_id")
def remove(profile_id: str, plugin_id: str):
    """Drop a plugin reference from a profile."""
    if not get_container().associations.remove_plugin_from_profile(plugin_id, profile_id):
        _fail(f"Plugin '{plugin_id}' is not referenced by '{profile_id}'")
    click.echo(f"Removed {plugin_id} from {profile_id}")


def _set_enabled(profile_id: str, plugin_id: str, enabled: bool) -> None:
    if not get_container().associations.set_plugin_enabled(profile_id, plugin_id, enabled):
        _fail(f"Plugin '{plugin_id}' is not referenced by '{profile_id}'")
    click.echo(f"{'Enabled' if enabled else 'Disabled'} {plugin_id} in {profile_id}")


@cli.command()
@click.argument("profile_id")
@click.argument("plugin_id")
def enable(profile_id: str, plugin_id: str):
    """Enable a plugin reference."""
    _set_enabled(profile_id, plugin_id, True)


@cli.command()
@click.argument("profile_id")
@click.argument("plugin_id")
def disable(profile_id: str, plugin_id: str):
    """Disable a plugin reference without removing it."""
    _set_enabled(profile_id, plugin_id, False)


@cli.command("install-missing")
@click.argument("profile_id")
def install_missing(profile_id: str):
    """Install a profile's missing plugins."""
    container = get_container()
    if container.coordinator.get_profile(profile_id) is None:
        _fail(f"Unknown profile '{profile_id}'")
    outcome = container.coordinator.install_missing_plugins(profile_id)
    if outcome.total == 0:
        click.echo("No missing plugins")
        return
    click.echo(f"Installed: {outcome.succeeded} succeeded, {outcome.failed} failed")
    if outcome.failed_ids:
        click.echo(f"  Failed: {', '.join(outcome.failed_ids)}", err=True)
        sys.exit(1)


# --- Transfer ---


@cli.command()
@click.argument("profile_id")
@click.argument("output", type=click.Path(dir_okay=False, path_type=Path))
def export(profile_id: str, output: Path):
    """Export a profile to a JSON file."""
    if not get_container().coordinator.export_profile_to_file(profile_id, output):
        _fail(f"Could not export profile '{profile_id}'")
    click.echo(f"Exported {profile_id} to {output}")


@cli.command("import")
@click.argument("source", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--overwrite", is_flag=True, help="Replace an existing profile with the same id")
def import_(source: Path, overwrite: bool):
    """Import a profile from an exported JSON file."""
    data = load_export(source)
    if data is None:
        _fail(f"{source} is not a valid profile export")

    result = get_container().coordinator.import_profile(data, overwrite=overwrite)
    if not result.is_success:
        hint = " (use --overwrite)" if result.profile_exists else ""
        _fail(f"{result.error_message}{hint}")

    click.echo(f"Imported profile {result.profile_id}")
    if result.missing_plugins:
        click.echo(f"  Missing plugins: {', '.join(result.missing_plugins)}")
        click.echo(f"  Run: loadout install-missing {result.profile_id}")


if __name__ == "__main__":
    cli()
