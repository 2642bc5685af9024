"""Terminal rendering of outdated reports.

Purpose
-------
Turn an :class:`OutdatedReport` into the aligned table shown by the CLI,
or into the "up to date" message when nothing is outdated.

Contents
--------
* :func:`render_table` - Build the aligned table text
* :func:`display_report` - Echo the report and its failures
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

if TYPE_CHECKING:
    from .models import OutdatedReport
    from .semver import Version

PLACEHOLDER = "--"
HEADERS = ("Name", "Project Ver", "SemVer Compat", "Latest Ver")
UP_TO_DATE_MESSAGE = "All dependencies are up to date, yay!"
OUTDATED_HEADER = "The following dependencies have newer versions available:"


def _cell(version: Version | None) -> str:
    return PLACEHOLDER if version is None else str(version)


def render_table(report: OutdatedReport) -> str:
    """Render the outdated records as a column-aligned table.

    Example:
        >>> from cargo_outdated.models import OutdatedReport
        >>> render_table(OutdatedReport()).split()
        ['Name', 'Project', 'Ver', 'SemVer', 'Compat', 'Latest', 'Ver']
    """
    rows = [HEADERS]
    rows.extend(
        (record.name, str(record.project_ver), _cell(record.semver_ver), _cell(record.latest_ver))
        for record in report.records.values()
    )
    widths = [max(len(row[col]) for row in rows) for col in range(len(HEADERS))]
    lines = ["  ".join(cell.ljust(width) for cell, width in zip(row, widths)).rstrip() for row in rows]
    return "\n".join(lines)


def display_report(report: OutdatedReport) -> None:
    """Echo a report to stdout and per-package failures to stderr."""
    if report.is_up_to_date:
        click.echo(UP_TO_DATE_MESSAGE)
    else:
        click.echo(f"{OUTDATED_HEADER}\n")
        click.echo(render_table(report))

    if report.failures:
        click.echo(click.style(f"\nCould not check {len(report.failures)} package(s):", fg="yellow"), err=True)
        for failure in report.failures:
            click.echo(f"  {failure.name} {failure.version}: {failure.reason}", err=True)


__all__ = [
    "OUTDATED_HEADER",
    "PLACEHOLDER",
    "UP_TO_DATE_MESSAGE",
    "display_report",
    "render_table",
]
