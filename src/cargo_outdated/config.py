"""Registry settings resolved through lib_layered_config.

Purpose
-------
Decide which sparse index to query, how long to wait for it and how many
requests may run at once. Values come from the bundled defaultconfig.toml,
overridden by app, host and user config files, .env files and environment
variables.

Contents
--------
* :func:`get_config` – the merged lib_layered_config object
* :func:`get_default_config_path` – location of the bundled defaults
* :func:`get_registry_settings` – settings for the index client and resolver

The vendor/app/slug triple lives in :mod:`cargo_outdated.__init__conf__`.

System Role
-----------
Only the CLI reads configuration. Library callers pass settings to
:class:`cargo_outdated.analyzer.Analyzer` directly.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from lib_layered_config import Config, read_config

from . import __init__conf__
from .registry import DEFAULT_INDEX_URL, DEFAULT_TIMEOUT, DEFAULT_USER_AGENT
from .resolver import DEFAULT_CONCURRENCY

logger = logging.getLogger(__name__)

# Environment variable prefix for native (short) env vars
_ENV_PREFIX = "CARGO_OUTDATED_"


def get_default_config_path() -> Path:
    """Locate defaultconfig.toml next to this module.

    Example:
        >>> path = get_default_config_path()
        >>> path.name
        'defaultconfig.toml'
        >>> path.exists()
        True
    """
    return Path(__file__).parent / "defaultconfig.toml"


@lru_cache(maxsize=1)
def get_config(*, start_dir: str | None = None) -> Config:
    """Read and merge every configuration layer for cargo-outdated.

    Later layers win: defaults, app, host, user, dotenv, env.

    Args:
        start_dir: Directory where .env lookup begins (cwd when None).

    Note:
        Cached (maxsize=1); call ``get_config.cache_clear()`` to reload.

    Example:
        >>> config = get_config()
        >>> config.get("nonexistent", default="fallback")
        'fallback'
    """
    return read_config(
        vendor=__init__conf__.LAYEREDCONF_VENDOR,
        app=__init__conf__.LAYEREDCONF_APP,
        slug=__init__conf__.LAYEREDCONF_SLUG,
        default_file=get_default_config_path(),
        start_dir=start_dir,
    )


@dataclass(frozen=True, slots=True)
class RegistrySettings:
    """Immutable settings for registry access.

    Attributes:
        index_url: Base URL of the sparse registry index.
        timeout: Maximum seconds to wait for a registry response.
        concurrency: Maximum number of simultaneous registry requests.
        user_agent: User-Agent header sent with every request.
    """

    index_url: str
    timeout: float
    concurrency: int
    user_agent: str


def get_registry_settings() -> RegistrySettings:
    """Get registry settings from configuration with environment variable overrides.

    Settings are resolved in the following precedence order (highest wins):
    1. Native environment variables (CARGO_OUTDATED_INDEX_URL, etc.)
    2. lib_layered_config environment variables (CARGO_OUTDATED___REGISTRY__*, etc.)
    3. User, host and application config files
    4. Default config (bundled defaultconfig.toml)

    Returns:
        RegistrySettings with resolved values.

    Example:
        >>> settings = get_registry_settings()
        >>> settings.concurrency
        10
    """
    config = get_config()
    section = config.get("registry", default={})

    index_url = section.get("index_url", DEFAULT_INDEX_URL)
    timeout = section.get("timeout", DEFAULT_TIMEOUT)
    concurrency = section.get("concurrency", DEFAULT_CONCURRENCY)
    user_agent = section.get("user_agent", "") or DEFAULT_USER_AGENT

    # Native environment variables have highest precedence
    if env_index := os.environ.get(f"{_ENV_PREFIX}INDEX_URL"):
        index_url = env_index

    if env_timeout := os.environ.get(f"{_ENV_PREFIX}TIMEOUT"):
        try:
            timeout = float(env_timeout)
        except ValueError:
            logger.warning("Ignoring invalid %sTIMEOUT=%r", _ENV_PREFIX, env_timeout)

    if env_concurrency := os.environ.get(f"{_ENV_PREFIX}CONCURRENCY"):
        try:
            concurrency = int(env_concurrency)
        except ValueError:
            logger.warning("Ignoring invalid %sCONCURRENCY=%r", _ENV_PREFIX, env_concurrency)

    return RegistrySettings(
        index_url=str(index_url),
        timeout=float(timeout),
        concurrency=int(concurrency),
        user_agent=str(user_agent),
    )


__all__ = [
    "RegistrySettings",
    "get_config",
    "get_default_config_path",
    "get_registry_settings",
]
