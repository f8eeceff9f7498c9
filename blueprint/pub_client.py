"""Async client for the pub.dev package API.

Used only by ``blueprint versions --latest`` to compare the canonical version
table against what is currently published.  Generation never talks to the
network.

Typical usage::

    client = PubClient()
    latest = await client.latest_versions(["dio", "hive"])
    print(latest["dio"].version)
"""

from __future__ import annotations

import asyncio
from typing import Iterable

import httpx
from pydantic import BaseModel, Field


class PubVersionResponse(BaseModel):
    """Structured result of one package lookup."""

    package: str = Field(..., description="Package name")
    version: str | None = Field(default=None, description="Latest published version")
    success: bool = Field(default=True, description="Whether the lookup succeeded")
    error: str | None = Field(default=None, description="Error message on failure")

    @property
    def caret_constraint(self) -> str | None:
        """``^x.y.z`` constraint for the latest version, if known."""
        return f"^{self.version}" if self.version else None


class PubClient:
    """Async client for ``https://pub.dev/api/packages/<name>``.

    Every lookup returns a :class:`PubVersionResponse`; network and HTTP
    failures are captured in the response instead of being raised.
    """

    def __init__(
        self,
        base_url: str = "https://pub.dev",
        timeout: int = 10,
        *,
        max_concurrency: int = 8,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_concurrency = max(1, max_concurrency)
        self._transport = transport

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _client(self) -> httpx.AsyncClient:
        """Return a fresh ``AsyncClient`` configured with our base URL and timeout."""
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(self.timeout, connect=5.0),
            headers={"Accept": "application/vnd.pub.v2+json"},
            transport=self._transport,
        )

    @staticmethod
    def _extract_version(data: dict) -> str | None:
        """Pull the latest version out of a ``/api/packages/<name>`` response."""
        latest = data.get("latest") or {}
        return latest.get("version")

    async def _fetch(self, client: httpx.AsyncClient, name: str) -> PubVersionResponse:
        try:
            response = await client.get(f"/api/packages/{name}")
            response.raise_for_status()
            version = self._extract_version(response.json())
        except httpx.ConnectError:
            return PubVersionResponse(
                package=name,
                success=False,
                error=f"Cannot connect to {self.base_url}",
            )
        except httpx.TimeoutException:
            return PubVersionResponse(
                package=name,
                success=False,
                error=f"Request to {self.base_url} timed out after {self.timeout}s.",
            )
        except httpx.HTTPStatusError as exc:
            return PubVersionResponse(
                package=name,
                success=False,
                error=f"pub.dev returned HTTP {exc.response.status_code} for {name}",
            )
        except Exception as exc:  # noqa: BLE001
            return PubVersionResponse(
                package=name,
                success=False,
                error=f"Unexpected error looking up {name}: {exc}",
            )

        if version is None:
            return PubVersionResponse(
                package=name, success=False, error=f"No published version found for {name}"
            )
        return PubVersionResponse(package=name, version=version)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def latest_version(self, name: str) -> PubVersionResponse:
        """Look up the latest published version of one package."""
        async with self._client() as client:
            return await self._fetch(client, name)

    async def latest_versions(self, names: Iterable[str]) -> dict[str, PubVersionResponse]:
        """Look up several packages concurrently.

        Returns:
            ``{name: response}`` in the order *names* were given.
        """
        unique = list(dict.fromkeys(names))
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async with self._client() as client:

            async def _bounded(name: str) -> PubVersionResponse:
                async with semaphore:
                    return await self._fetch(client, name)

            results = await asyncio.gather(*[_bounded(name) for name in unique])
        return dict(zip(unique, results))
