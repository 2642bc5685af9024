"""Command-line interface.

Cargo runs ``cargo-outdated outdated [ARGS]`` for ``cargo outdated [ARGS]``,
so the check lives in the ``outdated`` subcommand. Exit codes: 0 when
everything is up to date, ``--exit-code`` when outdated packages were found,
1 on errors (and on registry failures with ``--strict``).
"""

from __future__ import annotations

import logging
from pathlib import Path

import click

from . import __init__conf__
from .analyzer import Analyzer, write_outdated_json
from .config import get_registry_settings
from .config_show import display_config
from .errors import CargoOutdatedError
from .report import display_report

logger = logging.getLogger(__name__)

CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}
_LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


def _configure_logging(verbosity: int) -> None:
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format=_LOG_FORMAT)
    logging.getLogger(__init__conf__.name).setLevel(level)


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__init__conf__.version, prog_name=__init__conf__.shell_command)
def cli() -> None:
    """Displays information about project dependency versions."""


@cli.command("outdated", context_settings=CONTEXT_SETTINGS)
@click.option("-p", "--package", "packages", multiple=True, metavar="PKG", help="Package to inspect for updates")
@click.option("-r", "--root", default=None, metavar="ROOT", help="Package to treat as the root package")
@click.option(
    "-d",
    "--depth",
    type=click.IntRange(min=0),
    default=None,
    help="How deep in the dependency chain to search (Defaults to all dependencies when omitted)",
)
@click.option("-R", "--root-deps-only", is_flag=True, help="Only check the direct dependencies of the root packages")
@click.option("--exit-code", type=int, default=0, show_default=True, help="The exit code to return on new versions found")
@click.option(
    "-m",
    "--manifest-path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Path to the Cargo.toml to use (Defaults to Cargo.toml in the current directory)",
)
@click.option(
    "-l",
    "--lockfile-path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Path to the Cargo.lock to use (Defaults to Cargo.lock next to the manifest)",
)
@click.option(
    "-o",
    "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Also write the report as JSON to this file",
)
@click.option("--strict", is_flag=True, help="Fail when any package could not be checked")
@click.option("-v", "--verbose", count=True, help="Print verbose output (repeat for debug output)")
@click.pass_context
def outdated_command(
    ctx: click.Context,
    packages: tuple[str, ...],
    root: str | None,
    depth: int | None,
    root_deps_only: bool,
    exit_code: int,
    manifest_path: Path | None,
    lockfile_path: Path | None,
    output: Path | None,
    strict: bool,
    verbose: int,
) -> None:
    """Check the lockfile for dependencies with newer versions."""
    if root_deps_only and depth is not None:
        raise click.UsageError("--root-deps-only cannot be combined with --depth")
    if packages and root:
        logger.warning("--root is ignored when --package is given")

    _configure_logging(verbose)
    settings = get_registry_settings()

    try:
        analyzer = Analyzer(
            index_url=settings.index_url,
            timeout=settings.timeout,
            concurrency=settings.concurrency,
            user_agent=settings.user_agent,
        )
        report = analyzer.check(
            manifest_path=manifest_path,
            lockfile_path=lockfile_path,
            packages=packages,
            root=root,
            depth=depth,
            root_deps_only=root_deps_only,
        )
    except (CargoOutdatedError, FileNotFoundError, ValueError) as exc:
        raise click.ClickException(str(exc)) from exc

    display_report(report)

    if output is not None:
        write_outdated_json(report, output)

    if strict and report.has_failures:
        ctx.exit(1)
    if not report.is_up_to_date:
        ctx.exit(exit_code)


@cli.command("config", context_settings=CONTEXT_SETTINGS)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["human", "json"], case_sensitive=False),
    default="human",
    show_default=True,
    help="Output format",
)
@click.option("--section", default=None, help="Show only this configuration section")
def config_command(output_format: str, section: str | None) -> None:
    """Show the merged configuration."""
    display_config(format=output_format, section=section)


@cli.command("info", context_settings=CONTEXT_SETTINGS)
def info_command() -> None:
    """Print package information."""
    __init__conf__.print_info()


def main() -> None:
    """Console script entry point."""
    cli(prog_name=__init__conf__.shell_command)


__all__ = [
    "cli",
    "main",
]
