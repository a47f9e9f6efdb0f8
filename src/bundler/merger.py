"""Concatenates module bundles in resolution order."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List

from specifier import decode_scoped_bundle

from .cache import CacheEntry


@dataclass
class Bundle:
    """Merged script text plus the package metadata of every module in it."""

    script: str = ""
    packages: List[Dict[str, Any]] = field(default_factory=list)


class BundleMerger:
    """Accumulates bundle fragments and package metadata.

    Callers add cached hits first (discovery order) and then fetched
    entries (in the order the service returned them). Nothing is
    deduplicated here; keys are unique by construction upstream.
    """

    def __init__(self) -> None:
        self._fragments: List[str] = []
        self._packages: List[Dict[str, Any]] = []

    def add(self, key: str, entry: CacheEntry) -> str:
        """Append ``entry`` and return the fragment text that was merged."""
        fragment = decode_scoped_bundle(key, entry.bundle)
        self._fragments.append(fragment)
        self._packages.append(entry.package)
        return fragment

    @property
    def script(self) -> str:
        return "".join(self._fragments)

    @property
    def packages(self) -> List[Dict[str, Any]]:
        return list(self._packages)

    def __len__(self) -> int:
        return len(self._fragments)

    def to_bundle(self) -> Bundle:
        return Bundle(script=self.script, packages=self.packages)
