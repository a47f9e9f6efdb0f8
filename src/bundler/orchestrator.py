"""Resolve, fetch, merge and cache the dependencies of an entry script."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple

import semantic_version

from common.logging_utils import extra_context, is_debug_enabled, Timer
from specifier import ModuleSpecifier, SpecifierError, parse_specifier, rewrite_entry

from . import events
from .assembler import DeliveryPayload, Renderer, ScriptAssembler
from .cache import CacheEntry, CacheGateway
from .errors import CacheReadError, CacheWriteError, FetchError, SandboxError, ScanError
from .events import EventSink
from .fetcher import RemoteFetcher, rekey_remote_result
from .merger import Bundle, BundleMerger
from .scanner import Scanner, scan_requires

logger = logging.getLogger(__name__)


@dataclass
class BundleOutcome:
    """Result of one ``bundle()`` call.

    ``cache_error`` is set when fetched entries could not be persisted; the
    bundle is still delivered in that case.
    """

    bundle: Optional[Bundle] = None
    payload: Optional[DeliveryPayload] = None
    error: Optional[SandboxError] = None
    cache_error: Optional[CacheWriteError] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.payload is not None


def is_concrete_version(version: Any) -> bool:
    """True for a fully specified semantic version (not a tag or range)."""
    return isinstance(version, str) and semantic_version.validate(version)


class BundleOrchestrator:
    """Turns an entry script into a runnable bundle.

    One ``bundle()`` call reads the cache once, issues at most one remote
    request for the misses, writes the newly fetched entries back and hands
    the assembled script to the renderer. Overlapping calls on the same
    instance are independent: they may fetch the same modules twice and the
    later cache write wins.
    """

    def __init__(
        self,
        cache: CacheGateway,
        fetcher: RemoteFetcher,
        assembler: Optional[ScriptAssembler] = None,
        scanner: Scanner = scan_requires,
        renderer: Optional[Renderer] = None,
    ):
        """Initialize the orchestrator.

        Args:
            cache: Gateway to the bundle cache store.
            fetcher: Client for the remote bundling service.
            assembler: Builds the delivery payload; defaults to plain options.
            scanner: Returns raw specifiers found in the entry source.
            renderer: Optional execution surface receiving each payload.
        """
        self._cache = cache
        self._fetcher = fetcher
        self._assembler = assembler or ScriptAssembler()
        self._scanner = scanner
        self._renderer = renderer

    async def bundle(
        self,
        entry: str,
        preferred_versions: Optional[Mapping[str, str]] = None,
        sink: Optional[EventSink] = None,
    ) -> BundleOutcome:
        """Bundle ``entry`` with its dependencies.

        Args:
            entry: Entry script source.
            preferred_versions: Package name -> version for versionless requires.
            sink: Optional callable receiving ``(event, payload)`` notifications.

        Returns:
            BundleOutcome; ``outcome.error`` holds a CacheReadError or
            FetchError when the call terminated early.

        Raises:
            ScanError: If dependency discovery fails.
        """
        notify = self._notifier(sink)
        specs, entry = self._scan(entry, preferred_versions)

        notify(events.BUNDLE_START, None)

        if not specs:
            return self._complete(entry, BundleMerger(), notify)

        try:
            cached = await self._cache.get()
        except CacheReadError as exc:
            notify(events.BUNDLE_END, None)
            return BundleOutcome(error=exc)

        merger = BundleMerger()
        download: List[ModuleSpecifier] = []
        for spec in specs:
            hit = cached.get(spec.cache_key)
            if hit is not None:
                merger.add(spec.cache_key, hit)
            else:
                download.append(spec)

        logger.info(
            "Resolved %d module(s): %d cached, %d to download",
            len(specs), len(specs) - len(download), len(download),
        )

        if not download:
            notify(events.MODULES, merger.packages)
            return self._complete(entry, merger, notify)

        dependencies: Dict[str, str] = {}
        for spec in download:
            dependencies[spec.package_name] = spec.version

        try:
            with Timer() as t:
                fetched = rekey_remote_result(await self._fetcher.fetch(dependencies))
        except FetchError as exc:
            text = exc.text if exc.text is not None else str(exc)
            logger.error("Bundling failed: %s", exc)
            notify(events.BUNDLE_ERROR, text)
            return BundleOutcome(error=exc)

        if is_debug_enabled(logger):
            logger.debug(
                "Fetched modules",
                extra=extra_context(
                    event="fetch",
                    component="orchestrator",
                    outcome="success",
                    keys=list(fetched),
                    duration_ms=t.duration_ms(),
                )
            )

        for key, item in fetched.items():
            merger.add(key, item)

        cache_error = await self._store(fetched)
        notify(events.MODULES, merger.packages)
        outcome = self._complete(entry, merger, notify)
        outcome.cache_error = cache_error
        return outcome

    def _scan(
        self, entry: str, preferred_versions: Optional[Mapping[str, str]]
    ) -> Tuple[List[ModuleSpecifier], str]:
        """Discover, parse and deduplicate specifiers; rewrite versioned requires."""
        try:
            raw_modules = self._scanner(entry)
        except ScanError:
            raise
        except Exception as exc:  # pylint: disable=broad-exception-caught
            raise ScanError(f"dependency scan failed: {exc}") from exc

        specs: List[ModuleSpecifier] = []
        seen = set()
        for raw in raw_modules:
            if not raw:
                continue
            try:
                spec = parse_specifier(raw, preferred_versions)
            except SpecifierError as exc:
                raise ScanError(str(exc)) from exc
            entry = rewrite_entry(entry, spec)
            if spec.cache_key in seen:
                continue
            seen.add(spec.cache_key)
            specs.append(spec)
        return specs, entry

    async def _store(self, fetched: Mapping[str, CacheEntry]) -> Optional[CacheWriteError]:
        """Write newly fetched entries; floating versions are not persisted."""
        cacheable = {key: item for key, item in fetched.items() if is_concrete_version(item.version)}
        skipped = sorted(set(fetched) - set(cacheable))
        if skipped:
            logger.warning("Not caching entries without a concrete version: %s", ", ".join(skipped))
        if not cacheable:
            return None
        try:
            await self._cache.put(cacheable)
        except CacheWriteError as exc:
            logger.warning("Delivering bundle without caching: %s", exc)
            return exc
        return None

    def _complete(self, entry: str, merger: BundleMerger, notify: EventSink) -> BundleOutcome:
        bundle = merger.to_bundle()
        notify(events.BUNDLE_CONTENT, bundle.script)
        payload = self._assembler.assemble(bundle.script, entry)
        if self._renderer is not None:
            self._renderer.set_html(payload)
        notify(events.BUNDLE_END, payload)
        return BundleOutcome(bundle=bundle, payload=payload)

    @staticmethod
    def _notifier(sink: Optional[EventSink]) -> EventSink:
        def notify(event: str, payload: Any = None) -> None:
            logger.debug("Event %s", event, extra=extra_context(event=event, component="orchestrator"))
            if sink is not None:
                sink(event, payload)
        return notify
