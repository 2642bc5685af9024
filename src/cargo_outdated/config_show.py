"""Display of the merged configuration for the ``config`` CLI command.

Purpose
-------
Show the effective configuration loaded from defaults, config files, .env
files and environment variables, either TOML-like or as JSON. Keeps the CLI
layer thin by owning all formatting here.

Contents
--------
* :func:`display_config` – displays configuration in requested format
"""

from __future__ import annotations

import json
from typing import Any, cast

import click

from .config import get_config


def _format_value(value: Any) -> str:
    """Render a value the way it would be written in TOML."""
    if isinstance(value, str):
        return json.dumps(value)
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, dict)):
        return json.dumps(value)
    return str(value)


def _render_section(name: str, data: Any) -> list[str]:
    lines = [f"[{name}]"]
    if isinstance(data, dict):
        for key, value in cast(dict[str, Any], data).items():
            lines.append(f"{key} = {_format_value(value)}")
    else:
        lines.append(_format_value(data))
    return lines


def _selected_sections(config: Any, section: str | None) -> dict[str, Any]:
    """Return the sections to show, failing when a requested one is missing."""
    if section is None:
        return cast(dict[str, Any], config.as_dict())
    data = config.get(section, default={})
    if not data:
        click.echo(f"Section '{section}' not found or empty", err=True)
        raise SystemExit(1)
    return {section: data}


def display_config(*, format: str = "human", section: str | None = None) -> None:
    """Display the current merged configuration from all sources.

    Args:
        format: ``"human"`` for TOML-like output or ``"json"``.
        section: Optional section name to restrict the output to.

    Side Effects:
        Writes to stdout via click.echo(). Raises SystemExit(1) if the
        requested section does not exist.

    Example:
        >>> display_config(section="registry")  # doctest: +SKIP
        [registry]
        index_url = "https://index.crates.io"
        timeout = 30.0
        concurrency = 10
        user_agent = ""
    """
    sections = _selected_sections(get_config(), section)

    if format.lower() == "json":
        click.echo(json.dumps(sections, indent=2))
        return

    blocks = ["\n".join(_render_section(name, data)) for name, data in sections.items()]
    click.echo("\n\n".join(blocks))


__all__ = [
    "display_config",
]
