"""Default dependency scanner: finds ``require("...")`` calls in entry source.

Any callable taking the source text and returning a sequence of raw
specifiers can replace it on the orchestrator.
"""

from __future__ import annotations

import logging
import re
from typing import Callable, List, Sequence

from .errors import ScanError

logger = logging.getLogger(__name__)

Scanner = Callable[[str], Sequence[str]]

# Comments and string literals are matched first so require() text inside
# them is skipped; the scan is left-to-right over the alternation.
_TOKEN_PATTERN = re.compile(
    r"""
    (?P<comment>//[^\n]*|/\*.*?\*/)
    |(?P<require>(?<![.\w$])require\s*\(\s*(?P<q>['"`])(?P<name>(?:\\.|(?!(?P=q))[^\\])*)(?P=q)\s*\))
    |(?P<string>'(?:\\.|[^'\\\n])*'|"(?:\\.|[^"\\\n])*"|`(?:\\.|[^`\\])*`)
    """,
    re.VERBOSE | re.DOTALL,
)


def scan_requires(source: str) -> List[str]:
    """Return the string arguments of ``require`` calls in source order.

    Duplicates and empty strings are returned as found; template literals
    with interpolation are skipped since their value is not static.

    Raises:
        ScanError: If ``source`` is not a string.
    """
    if not isinstance(source, str):
        raise ScanError(f"entry source must be a string, got {type(source).__name__}")

    found: List[str] = []
    for match in _TOKEN_PATTERN.finditer(source):
        if match.group("require") is None:
            continue
        name = match.group("name")
        if match.group("q") == "`" and "${" in name:
            continue
        found.append(name)

    logger.debug("Scanned %d require() call(s)", len(found))
    return found
