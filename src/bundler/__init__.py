"""Bundle resolution and cache orchestration.

This package turns an entry script into a runnable bundle:
- scanner.py: default require() scanner
- cache.py: cache entry model, stores and the CacheGateway
- fetcher.py: batched client for the remote bundling service
- merger.py: concatenation of bundle fragments in resolution order
- assembler.py: deferred-execution wrapper and delivery payload
- orchestrator.py: the bundle() pipeline and its lifecycle events
"""

from .assembler import DeliveryPayload, HtmlFileRenderer, SandboxOptions, ScriptAssembler, render_document
from .cache import CacheEntry, CacheGateway, JsonFileCacheStore, MemoryCacheStore
from .errors import (
    CacheReadError,
    CacheWriteError,
    FetchError,
    FetchServerError,
    FetchTransportError,
    SandboxError,
    ScanError,
)
from .events import EventRecorder
from .fetcher import RemoteFetcher, rekey_remote_result
from .merger import Bundle, BundleMerger
from .orchestrator import BundleOrchestrator, BundleOutcome
from .scanner import scan_requires

__all__ = [
    "BundleOrchestrator",
    "BundleOutcome",
    "Bundle",
    "BundleMerger",
    "CacheEntry",
    "CacheGateway",
    "MemoryCacheStore",
    "JsonFileCacheStore",
    "RemoteFetcher",
    "rekey_remote_result",
    "ScriptAssembler",
    "SandboxOptions",
    "DeliveryPayload",
    "HtmlFileRenderer",
    "render_document",
    "EventRecorder",
    "scan_requires",
    "SandboxError",
    "ScanError",
    "CacheReadError",
    "CacheWriteError",
    "FetchError",
    "FetchTransportError",
    "FetchServerError",
]
