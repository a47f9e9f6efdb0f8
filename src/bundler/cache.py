"""Bundle cache: entry model, stores and the gateway used by the orchestrator."""

from __future__ import annotations

import asyncio
import copy
import json
import logging
import os
import tempfile
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Protocol

from common.logging_utils import extra_context, is_debug_enabled

from .errors import CacheReadError, CacheWriteError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    """A bundled module and the package metadata reported for it."""

    bundle: str
    package: Dict[str, Any] = field(default_factory=dict)

    @property
    def version(self) -> Any:
        return self.package.get("version")

    def to_dict(self) -> Dict[str, Any]:
        return {"bundle": self.bundle, "package": dict(self.package)}

    @classmethod
    def from_dict(cls, data: Any) -> "CacheEntry":
        """Build an entry from its stored/wire form.

        Raises:
            ValueError: If ``data`` lacks a string bundle or a package mapping.
        """
        if not isinstance(data, Mapping):
            raise ValueError("cache entry must be a mapping")
        bundle = data.get("bundle")
        package = data.get("package")
        if not isinstance(bundle, str):
            raise ValueError("cache entry 'bundle' must be a string")
        if not isinstance(package, Mapping):
            raise ValueError("cache entry 'package' must be a mapping")
        return cls(bundle=bundle, package=dict(package))


class CacheStore(Protocol):
    """Asynchronous key-value store holding serialized cache entries."""

    async def get(self) -> Dict[str, Dict[str, Any]]:
        ...

    async def put(self, entries: Dict[str, Dict[str, Any]]) -> None:
        ...


class MemoryCacheStore:
    """In-process store; reads and writes are deep copies."""

    def __init__(self, initial: Mapping[str, Dict[str, Any]] | None = None):
        self._data: Dict[str, Dict[str, Any]] = copy.deepcopy(dict(initial or {}))

    async def get(self) -> Dict[str, Dict[str, Any]]:
        return copy.deepcopy(self._data)

    async def put(self, entries: Dict[str, Dict[str, Any]]) -> None:
        self._data.update(copy.deepcopy(entries))

    def __len__(self) -> int:
        return len(self._data)


class JsonFileCacheStore:
    """On-disk store keeping every entry in one JSON document.

    A missing file reads as an empty cache. Writes merge into the existing
    document and replace the file atomically. Entries are never evicted.
    """

    def __init__(self, path: str):
        self._path = path

    @property
    def path(self) -> str:
        return self._path

    def _read(self) -> Dict[str, Dict[str, Any]]:
        if not os.path.isfile(self._path):
            return {}
        with open(self._path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"cache file {self._path} does not hold a JSON object")
        return data

    async def get(self) -> Dict[str, Dict[str, Any]]:
        return await asyncio.to_thread(self._read)

    async def put(self, entries: Dict[str, Dict[str, Any]]) -> None:
        await asyncio.to_thread(self._write, entries)

    def _write(self, entries: Dict[str, Dict[str, Any]]) -> None:
        data = self._read()
        data.update(entries)
        directory = os.path.dirname(os.path.abspath(self._path))
        os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(prefix=".modsandbox-", suffix=".json", dir=directory)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f)
            os.replace(tmp_path, self._path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise


class CacheGateway:
    """Typed wrapper around a CacheStore.

    Translates store failures into CacheReadError / CacheWriteError so the
    orchestrator only deals with the bundling error taxonomy.
    """

    def __init__(self, store: CacheStore):
        self._store = store

    @property
    def store(self) -> CacheStore:
        return self._store

    async def get(self) -> Dict[str, CacheEntry]:
        """Read the whole cache.

        Raises:
            CacheReadError: If the store fails or holds a malformed entry.
        """
        try:
            raw = await self._store.get()
        except Exception as exc:  # pylint: disable=broad-exception-caught
            logger.error("Cache read failed: %s", exc)
            raise CacheReadError(f"cache read failed: {exc}") from exc

        entries: Dict[str, CacheEntry] = {}
        for key, value in (raw or {}).items():
            try:
                entries[key] = CacheEntry.from_dict(value)
            except ValueError as exc:
                logger.error("Malformed cache entry %s: %s", key, exc)
                raise CacheReadError(f"malformed cache entry {key!r}: {exc}") from exc

        if is_debug_enabled(logger):
            logger.debug(
                "Cache read",
                extra=extra_context(
                    event="cache_read",
                    component="cache",
                    outcome="success",
                    entry_count=len(entries),
                )
            )
        return entries

    async def put(self, entries: Mapping[str, CacheEntry]) -> None:
        """Persist ``entries`` in one store call.

        Raises:
            CacheWriteError: If the store fails.
        """
        payload = {key: entry.to_dict() for key, entry in entries.items()}
        try:
            await self._store.put(payload)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            logger.warning("Cache write failed: %s", exc)
            raise CacheWriteError(f"cache write failed: {exc}") from exc

        if is_debug_enabled(logger):
            logger.debug(
                "Cache write",
                extra=extra_context(
                    event="cache_write",
                    component="cache",
                    outcome="success",
                    keys=sorted(payload),
                )
            )
