"""Canonical lifecycle event names emitted by ``BundleOrchestrator.bundle``.

Ordering per call:

    bundleStart -> bundleError                             (fetch failure)
    bundleStart -> bundleEnd                               (cache read failure)
    bundleStart -> [modules ->] bundleContent -> bundleEnd (success)
"""

from __future__ import annotations

from typing import Any, Callable, List, Tuple

BUNDLE_START = "bundleStart"
MODULES = "modules"
BUNDLE_CONTENT = "bundleContent"
BUNDLE_END = "bundleEnd"
BUNDLE_ERROR = "bundleError"

EventSink = Callable[[str, Any], None]


class EventRecorder:
    """Sink that keeps every notification in arrival order."""

    def __init__(self) -> None:
        self.events: List[Tuple[str, Any]] = []

    def __call__(self, event: str, payload: Any = None) -> None:
        self.events.append((event, payload))

    @property
    def names(self) -> List[str]:
        return [name for name, _ in self.events]

    def payload(self, event: str) -> Any:
        """Payload of the last notification named ``event``."""
        for name, payload in reversed(self.events):
            if name == event:
                return payload
        raise KeyError(event)
