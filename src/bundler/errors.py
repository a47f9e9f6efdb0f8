"""Error taxonomy for bundle resolution.

Every failure of a ``bundle()`` call is one of these types. Store, scanner
and transport errors are translated at the component boundary with
``raise X(...) from native_error`` so the original exception stays
available via ``__cause__``.
"""

from __future__ import annotations

from typing import Optional


class SandboxError(Exception):
    """Base for all bundling errors."""


class ScanError(SandboxError):
    """The dependency scanner failed on the entry source."""


class CacheReadError(SandboxError):
    """The cache store could not be read; terminal for the call."""


class CacheWriteError(SandboxError):
    """Newly fetched entries could not be persisted; never blocks delivery."""


class FetchError(SandboxError):
    """The remote bundling service did not return a usable result.

    Attributes:
        text: Response body text when one was received.
        status_code: HTTP status code when a response was received.
    """

    def __init__(
        self,
        message: str,
        *,
        text: Optional[str] = None,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.text = text
        self.status_code = status_code

    def __repr__(self) -> str:
        parts = [repr(str(self))]
        if self.status_code is not None:
            parts.append(f"status_code={self.status_code!r}")
        return f"{type(self).__name__}({', '.join(parts)})"


class FetchTransportError(FetchError):
    """The request failed in transit or returned an unusable response."""


class FetchServerError(FetchError):
    """The bundling service reported a server-side failure (5xx)."""
