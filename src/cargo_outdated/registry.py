"""Registry access: the query interface and a crates.io sparse index client.

Purpose
-------
Answer one question for the outdated resolver: which versions of a crate
are published? Anything that implements :class:`Registry` can be plugged in;
:class:`CratesIndexRegistry` talks to the crates.io sparse index over HTTP.

Contents
--------
* :class:`Registry` - Protocol consumed by the resolver
* :class:`CratesIndexRegistry` - Async sparse index client with response cache
* :func:`index_path` - Path of a crate's file inside the index

System Role
-----------
The only component performing network I/O. Failures are reported as
:class:`~cargo_outdated.errors.RegistryUnavailable` so the resolver can keep
going with other packages.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol

import httpx
from pydantic import ValidationError

from . import __init__conf__
from .errors import RegistryUnavailable
from .schemas import IndexRecordSchema

if TYPE_CHECKING:
    from collections.abc import AsyncIterator
    from contextlib import AbstractAsyncContextManager

logger = logging.getLogger(__name__)

DEFAULT_INDEX_URL = "https://index.crates.io"
DEFAULT_TIMEOUT = 30.0
DEFAULT_USER_AGENT = f"{__init__conf__.shell_command}/{__init__conf__.version}"


class Registry(Protocol):
    """Capability to list the published versions of a package."""

    async def list_versions(self, name: str) -> frozenset[str]:
        """Return every published version string of ``name``.

        Raises:
            RegistryUnavailable: If the versions cannot be determined.
        """
        ...

    def session(self) -> AbstractAsyncContextManager[object]:
        """Scope within which consecutive lookups may share resources."""
        ...


def index_path(name: str) -> str:
    """Return the location of a crate inside a Cargo index.

    Follows Cargo's layout: one and two character names live under ``1/``
    and ``2/``, three character names under ``3/{first char}/``, and longer
    names under ``{chars 0-1}/{chars 2-3}/``. The path is lowercased.

    Example:
        >>> index_path("serde")
        'se/rd/serde'
        >>> index_path("syn")
        '3/s/syn'
    """
    lowered = name.lower()
    if not lowered:
        raise ValueError("crate name must not be empty")
    if len(lowered) <= 2:
        return f"{len(lowered)}/{lowered}"
    if len(lowered) == 3:
        return f"3/{lowered[0]}/{lowered}"
    return f"{lowered[:2]}/{lowered[2:4]}/{lowered}"


def _empty_cache() -> dict[str, frozenset[str]]:
    return {}


@dataclass
class CratesIndexRegistry:
    """Async client for a Cargo sparse registry index.

    Responses are memoized in :attr:`cache`, so evaluating several locked
    versions of the same crate costs a single request. The cache lives as
    long as the instance; nothing is persisted.

    Attributes:
        index_url: Base URL of the sparse index.
        timeout: Request timeout in seconds.
        user_agent: Value of the ``User-Agent`` header.
        transport: Optional httpx transport, used to inject mocks.
        cache: Published versions keyed by crate name.
    """

    index_url: str = DEFAULT_INDEX_URL
    timeout: float = DEFAULT_TIMEOUT
    user_agent: str = DEFAULT_USER_AGENT
    transport: httpx.AsyncBaseTransport | None = field(default=None, repr=False)
    cache: dict[str, frozenset[str]] = field(default_factory=_empty_cache, repr=False)
    _client: httpx.AsyncClient | None = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.timeout <= 0:
            raise ValueError(f"timeout must be positive, got {self.timeout}")
        self.index_url = self.index_url.rstrip("/")

    def _get_headers(self) -> dict[str, str]:
        return {
            "User-Agent": self.user_agent,
            "Accept": "text/plain, application/json",
        }

    def _new_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.timeout,
            headers=self._get_headers(),
            transport=self.transport,
            follow_redirects=True,
        )

    @asynccontextmanager
    async def session(self) -> AsyncIterator[httpx.AsyncClient]:
        """Share one HTTP client, and its connections, across the block.

        Nested sessions reuse the outer client. The client is closed when the
        outermost session exits.
        """
        if self._client is not None:
            yield self._client
            return
        client = self._new_client()
        self._client = client
        try:
            yield client
        finally:
            self._client = None
            await client.aclose()

    def url_for(self, name: str) -> str:
        """Return the index URL of crate ``name``."""
        return f"{self.index_url}/{index_path(name)}"

    async def list_versions(self, name: str) -> frozenset[str]:
        """Return the non-yanked versions of ``name`` published in the index.

        Raises:
            RegistryUnavailable: On transport errors, HTTP errors, unknown
                crates, or malformed index content.
        """
        if name in self.cache:
            logger.debug("Registry cache hit for %s", name)
            return self.cache[name]

        response = await self._fetch(name)
        versions = self._parse_index_response(name, response)
        self.cache[name] = versions
        return versions

    async def _fetch(self, name: str) -> httpx.Response:
        url = self.url_for(name)
        logger.debug("GET %s", url)
        async with self.session() as client:
            try:
                response = await client.get(url)
            except httpx.HTTPError as exc:
                raise RegistryUnavailable(name, f"request failed: {exc}") from exc

        if response.status_code == httpx.codes.NOT_FOUND:
            raise RegistryUnavailable(name, "crate not found in registry")
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise RegistryUnavailable(name, f"HTTP {response.status_code}") from exc
        return response

    def _parse_index_response(self, name: str, response: httpx.Response) -> frozenset[str]:
        versions: set[str] = set()
        for line_no, line in enumerate(response.text.splitlines(), start=1):
            if not line.strip():
                continue
            try:
                record = IndexRecordSchema.model_validate_json(line)
            except ValidationError as exc:
                raise RegistryUnavailable(name, f"malformed index record on line {line_no}") from exc
            if record.yanked:
                continue
            versions.add(record.vers)
        logger.debug("Registry lists %d version(s) of %s", len(versions), name)
        return frozenset(versions)


__all__ = [
    "CratesIndexRegistry",
    "DEFAULT_INDEX_URL",
    "DEFAULT_TIMEOUT",
    "DEFAULT_USER_AGENT",
    "Registry",
    "index_path",
]
