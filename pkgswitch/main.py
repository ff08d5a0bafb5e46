"""
pkgswitch — CLI entrypoint.

Usage:
    pkgswitch --help
    pkgswitch install ripgrep --version 14.1.0 --user
    pkgswitch switch ripgrep 13.0.0
    pkgswitch list --user
"""

from __future__ import annotations

import functools
import json
import os
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

import click

from pkgswitch import __version__
from pkgswitch.core.errors import NotFoundError, PkgSwitchError
from pkgswitch.core.observability.logging_config import (
    ENV_FILE,
    ENV_FILE_LEVEL,
    resolve_level,
    setup_logging,
)


@click.group()
@click.version_option(version=__version__, prog_name="pkgswitch")
@click.option("--verbose", "-V", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Only log errors.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to config.yml (default: ~/.config/pkgswitch/config.yml).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """pkgswitch — install and switch between versions of packages."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    setup_logging(
        level=resolve_level(verbose=verbose, quiet=quiet, debug=debug),
        log_file=os.environ.get(ENV_FILE),
        log_file_level=os.environ.get(ENV_FILE_LEVEL),
        quiet_third_party=not debug,
    )


def _context(ctx: click.Context):
    """Build (once) the runtime context for this invocation."""
    if "context" not in ctx.obj:
        from pkgswitch.core.config.loader import load_settings
        from pkgswitch.core.context import build_context

        settings = load_settings(ctx.obj.get("config_path"))
        mock = os.environ.get("PKGSWITCH_MOCK", "").lower() in ("1", "true", "yes")
        ctx.obj["context"] = build_context(settings, mock_mode=mock)
    return ctx.obj["context"]


def handle_errors(func: Callable[..., Any]) -> Callable[..., Any]:
    """Map pkgswitch errors to messages and exit codes.

    Not-found outcomes are reported and exit 0; every other error exits 1.
    """

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except NotFoundError as e:
            click.secho(f"⚠️  {e}", fg="red")
        except (PkgSwitchError, ValueError) as e:
            click.secho(f"❌ {e}", fg="red", err=True)
            sys.exit(1)

    return wrapper


# ── Install ─────────────────────────────────────────────────────


@cli.command()
@click.argument("name")
@click.option("--version", "-v", "version", default=None, help="Specific version to install.")
@click.option("--user", "-u", is_flag=True, help="Install as user package (not system-wide).")
@click.option("--installer", "-i", default=None, help="Installer to use (default: auto-detect).")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
@handle_errors
def install(
    ctx: click.Context,
    name: str,
    version: str | None,
    user: bool,
    installer: str | None,
    as_json: bool,
) -> None:
    """Install a package version."""
    from pkgswitch.core.use_cases.install import install_package

    context = _context(ctx)
    if not as_json:
        click.secho("📦 Installing package ", fg="green", nl=False)
        click.secho(name, fg="yellow", bold=True, nl=False)
        if version:
            click.echo(" version ", nl=False)
            click.secho(version, fg="cyan", nl=False)
        click.echo(" (user package)" if user else "")

    result = install_package(context, name, version=version, user=user, installer=installer)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        return

    click.echo(f"   Using package manager: {click.style(result.installer, fg='cyan')}")
    click.echo(f"   Path: {result.install_path}")
    for path in result.bin_paths:
        click.echo(f"   → {path}")
    if result.system != (not user):
        click.secho(f"   ℹ️  {name} keeps its recorded {('system' if result.system else 'user')} scope", fg="yellow")
    click.secho(f"✅ Successfully installed {name} {result.version}", fg="green")
    if result.active:
        click.echo(f"   Active version: {result.version}")


# ── Remove ──────────────────────────────────────────────────────


@cli.command()
@click.argument("name")
@click.option("--version", "-v", "version", default=None,
              help="Specific version to remove (default: all versions).")
@click.pass_context
@handle_errors
def remove(ctx: click.Context, name: str, version: str | None) -> None:
    """Remove a package, or one version of it."""
    from pkgswitch.core.use_cases.remove import remove_package

    context = _context(ctx)
    click.secho("🗑  Removing package ", fg="green", nl=False)
    click.secho(name, fg="yellow", bold=True, nl=False)
    click.echo(f" version {click.style(version, fg='cyan')}" if version else "")

    result = remove_package(context, name, version=version)

    for path in result.missing_paths:
        click.secho(f"   ⚠️  {path} was already gone", fg="yellow")
    if result.package_removed:
        click.secho(f"✅ Removed package {name}", fg="green")
    else:
        click.secho(f"✅ Removed version {', '.join(result.removed)} of {name}", fg="green")
    if result.promoted:
        click.echo(f"   Set {click.style(result.promoted, fg='cyan')} as the active version")


# ── Update ──────────────────────────────────────────────────────


@cli.command()
@click.argument("name", required=False)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
@handle_errors
def update(ctx: click.Context, name: str | None, as_json: bool) -> None:
    """Update one package, or all packages."""
    from pkgswitch.core.use_cases.update import update_packages

    context = _context(ctx)
    if not as_json:
        click.secho(f"🔄 Updating package {name}" if name else "🔄 Updating all packages", fg="green")

    report = update_packages(context, name)

    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2))
        return

    for pkg in report.updated:
        click.echo(f"   ✅ Updated {click.style(pkg, fg='yellow')}")
    for pkg, error in report.failed.items():
        click.secho(f"   ❌ Failed to update {pkg}: {error}", fg="red")
    if name and report.skipped:
        click.echo(f"   Nothing to update for {name} (no active version or installer recorded)")
    if not report.updated and not report.failed and not name:
        click.echo("   Nothing to update")


# ── List ────────────────────────────────────────────────────────


@cli.command("list")
@click.option("--system", "system_only", is_flag=True, help="Show system packages only.")
@click.option("--user", "user_only", is_flag=True, help="Show user packages only.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
@handle_errors
def list_cmd(ctx: click.Context, system_only: bool, user_only: bool, as_json: bool) -> None:
    """List installed packages."""
    from pkgswitch.core.use_cases.listing import list_packages

    report = list_packages(_context(ctx), system_only=system_only, user_only=user_only)

    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2))
        return

    if report.empty_message:
        click.secho(report.empty_message, fg="yellow")
        return

    for pkg in report.packages:
        click.secho(pkg.name, fg="green", bold=True, nl=False)
        click.echo(f" {click.style(pkg.scope, fg='cyan')} ({click.style(str(pkg.version_count), fg='yellow')})")
        for ver in pkg.versions:
            marker = click.style("* ", fg="green", bold=True) if ver.active else "  "
            click.echo(f"{marker}v{click.style(ver.label, fg='cyan')} - installed on {ver.install_date}")
        click.echo()


# ── Search ──────────────────────────────────────────────────────


@cli.command()
@click.argument("query")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
@handle_errors
def search(ctx: click.Context, query: str, as_json: bool) -> None:
    """Search every available installer for packages."""
    from pkgswitch.core.use_cases.search import search_packages

    report = search_packages(_context(ctx), query)

    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2))
        return

    for installer, hits in report.hits_by_installer().items():
        if installer in report.failures:
            click.secho(f"   ⚠️  {installer}: {report.failures[installer]}", fg="yellow")
            continue
        for hit in hits:
            click.secho(hit.name, fg="green", bold=True, nl=False)
            click.echo(f" - {hit.description} [{click.style(installer, fg='cyan')}]")

    if not report.found:
        click.secho(f"No packages found matching: {query}", fg="yellow")


# ── Switch ──────────────────────────────────────────────────────


@cli.command()
@click.argument("name")
@click.argument("version")
@click.pass_context
@handle_errors
def switch(ctx: click.Context, name: str, version: str) -> None:
    """Switch the active version of a package."""
    from pkgswitch.core.use_cases.switch import switch_version

    result = switch_version(_context(ctx), name, version)

    if result.changed:
        click.secho(f"✅ Switched {name} to version {version}", fg="green")
    else:
        click.echo(f"{name} is already at version {version}")


# ── Installers / history ────────────────────────────────────────


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
@handle_errors
def installers(ctx: click.Context, as_json: bool) -> None:
    """Show installers and whether they are available on this host."""
    context = _context(ctx)
    status = context.installers.installer_status()

    if as_json:
        click.echo(json.dumps(status, indent=2))
        return

    click.secho("🔧 Installers:", fg="cyan", bold=True)
    for info in status.values():
        icon = "✅" if info["available"] else "❌"
        note = " (disabled)" if info["disabled"] else ""
        click.echo(f"   {icon} {info['name']}{note}")


@cli.command()
@click.option("--limit", "-n", default=20, show_default=True, help="Number of entries.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
@handle_errors
def history(ctx: click.Context, limit: int, as_json: bool) -> None:
    """Show recent registry operations."""
    entries = _context(ctx).history.read_recent(limit)

    if as_json:
        click.echo(json.dumps([e.model_dump(mode="json") for e in entries], indent=2))
        return

    if not entries:
        click.secho("No operations recorded", fg="yellow")
        return

    colors = {"ok": "green", "partial": "yellow", "failed": "red"}
    for entry in entries:
        target = entry.package or "*"
        if entry.version:
            target += f" {entry.version}"
        click.echo(f"{entry.timestamp}  {entry.operation:<8} {target}  ", nl=False)
        click.secho(entry.status, fg=colors.get(entry.status, "white"))
        for err in entry.errors:
            click.echo(f"      {err}")


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
