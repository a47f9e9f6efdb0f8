"""Data models for module specifiers."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class SpecifierKind(Enum):
    """Shapes a module specifier can take in entry source."""
    BARE = "bare"            # lodash
    VERSIONED = "versioned"  # lodash@4.17.0
    SCOPED = "scoped"        # @babel/core or @babel/core@7.0.0


@dataclass(frozen=True)
class ModuleSpecifier:
    """A parsed dependency specifier with its resolved version."""
    raw: str
    kind: SpecifierKind
    name: str  # scoped: the token after the leading "@", e.g. "babel/core"
    version: str
    explicit_version: bool
    scope: Optional[str] = None  # scoped only: "babel"

    @property
    def package_name(self) -> str:
        """Name as sent to the bundling service ("@babel/core", "lodash")."""
        if self.kind == SpecifierKind.SCOPED:
            return f"@{self.name}"
        return self.name

    @property
    def cache_key(self) -> str:
        """Identity string used as the cache and merge key."""
        return f"{self.package_name}@{self.version}"
