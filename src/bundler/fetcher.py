"""Client for the remote bundling service's batch endpoint."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict, Mapping, Optional

import aiohttp

from constants import Constants
from common.logging_utils import extra_context, is_debug_enabled, safe_url, Timer
from specifier import decode_token

from .cache import CacheEntry
from .errors import FetchServerError, FetchTransportError

logger = logging.getLogger(__name__)


def rekey_remote_result(result: Mapping[str, CacheEntry]) -> Dict[str, CacheEntry]:
    """Key each remote entry by ``decoded(name) + "@" + package.version``.

    The service answers with versionless keys; a new mapping is built
    rather than rewriting keys in place.

    Raises:
        FetchTransportError: If an entry carries no package version.
    """
    rekeyed: Dict[str, CacheEntry] = {}
    for name, entry in result.items():
        version = entry.version
        if version is None or version == "":
            raise FetchTransportError(f"remote entry {name!r} has no package version")
        rekeyed[f"{decode_token(name)}@{version}"] = entry
    return rekeyed


class RemoteFetcher:
    """Posts one batched dependency request to ``<cdn>/multi``."""

    def __init__(
        self,
        cdn: str = Constants.DEFAULT_CDN,
        timeout: int = Constants.REQUEST_TIMEOUT,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        """Initialize the fetcher.

        Args:
            cdn: Base URL of the bundling service.
            timeout: Total request timeout in seconds.
            session: Optional externally managed session (not closed by stop()).
        """
        self._cdn = cdn.rstrip("/")
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._session = session
        self._owns_session = session is None

    @property
    def endpoint(self) -> str:
        return f"{self._cdn}{Constants.MULTI_ENDPOINT}"

    async def start(self) -> None:
        """Start the HTTP session."""
        if self._session is None:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
            self._owns_session = True

    async def stop(self) -> None:
        """Stop the HTTP session if this fetcher created it."""
        if self._session is not None and self._owns_session:
            await self._session.close()
            self._session = None

    @staticmethod
    def build_request_body(dependencies: Mapping[str, str]) -> Dict[str, Any]:
        """Build the batch request body."""
        return {"options": {"debug": True}, "dependencies": dict(dependencies)}

    async def fetch(self, dependencies: Mapping[str, str]) -> Dict[str, CacheEntry]:
        """Fetch bundles for ``dependencies`` in a single request.

        Args:
            dependencies: Package name -> version to bundle.

        Returns:
            Entries keyed the way the service returns them (versionless).

        Raises:
            ValueError: If ``dependencies`` is empty.
            FetchServerError: On a 5xx response.
            FetchTransportError: On network failure, other non-2xx statuses
                or an unusable body.
        """
        if not dependencies:
            raise ValueError("fetch() requires at least one dependency")
        if self._session is None:
            await self.start()
        assert self._session is not None

        body = self.build_request_body(dependencies)
        target = safe_url(self.endpoint)
        if is_debug_enabled(logger):
            logger.debug(
                "HTTP request",
                extra=extra_context(
                    event="http_request",
                    component="fetcher",
                    action="POST",
                    target=target,
                    dependencies=sorted(body["dependencies"]),
                )
            )

        with Timer() as t:
            try:
                async with self._session.post(
                    self.endpoint,
                    json=body,
                    headers={"User-Agent": Constants.USER_AGENT, "Accept": "application/json"},
                ) as response:
                    status = response.status
                    text = await response.text()
            except asyncio.TimeoutError as exc:
                logger.error("Bundle request timed out: %s", target)
                raise FetchTransportError(f"request to {target} timed out") from exc
            except aiohttp.ClientError as exc:
                logger.error("Bundle request failed: %s", exc)
                raise FetchTransportError(f"request to {target} failed: {exc}") from exc
            except UnicodeDecodeError as exc:
                logger.error("Undecodable response body from %s", target)
                raise FetchTransportError(
                    "bundling service returned an undecodable body", status_code=status
                ) from exc

        if status >= Constants.SERVER_ERROR_STATUS:
            logger.error("Bundling service error %s from %s", status, target)
            raise FetchServerError(
                f"bundling service returned {status}", text=text, status_code=status
            )
        if not 200 <= status < 300:
            logger.error("Unexpected status %s from %s", status, target)
            raise FetchTransportError(
                f"bundling service returned {status}", text=text, status_code=status
            )

        if is_debug_enabled(logger):
            logger.debug(
                "HTTP response ok",
                extra=extra_context(
                    event="http_response",
                    component="fetcher",
                    action="POST",
                    outcome="success",
                    status_code=status,
                    duration_ms=t.duration_ms(),
                    target=target,
                )
            )

        return self._parse_result(text, status)

    @staticmethod
    def _parse_result(text: str, status: int) -> Dict[str, CacheEntry]:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise FetchTransportError(
                "bundling service returned invalid JSON", text=text, status_code=status
            ) from exc
        if not isinstance(data, dict):
            raise FetchTransportError(
                "bundling service returned a non-object body", text=text, status_code=status
            )

        result: Dict[str, CacheEntry] = {}
        for name, value in data.items():
            try:
                result[name] = CacheEntry.from_dict(value)
            except ValueError as exc:
                raise FetchTransportError(
                    f"malformed entry {name!r}: {exc}", text=text, status_code=status
                ) from exc
        return result

    async def __aenter__(self) -> "RemoteFetcher":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.stop()
