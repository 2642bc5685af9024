"""Static package metadata and configuration identifiers.

The values here are shared by the CLI (``info`` command, version option) and
by :mod:`cargo_outdated.config`, which uses the LAYEREDCONF_* identifiers to
locate platform-specific configuration directories.
"""

from __future__ import annotations

import click

name = "cargo_outdated"
title = "Displays information about Cargo project dependency versions"
version = "0.3.0"
homepage = "https://github.com/cargo-outdated-py/cargo-outdated"
author = "cargo-outdated contributors"
shell_command = "cargo-outdated"

# Identifiers consumed by lib_layered_config
LAYEREDCONF_VENDOR = "cargo-outdated"
LAYEREDCONF_APP = "cargo-outdated"
LAYEREDCONF_SLUG = "cargo-outdated"


def print_info() -> None:
    """Print the package metadata block."""
    fields = (
        ("name", name),
        ("title", title),
        ("version", version),
        ("homepage", homepage),
        ("author", author),
        ("shell_command", shell_command),
    )
    pad = max(len(label) for label, _ in fields)
    click.echo(f"Info for {name}:\n")
    for label, value in fields:
        click.echo(f"    {label.ljust(pad)} = {value}")


__all__ = [
    "LAYEREDCONF_APP",
    "LAYEREDCONF_SLUG",
    "LAYEREDCONF_VENDOR",
    "print_info",
]
