"""Specifier parsing, cache-key and percent-encoding utilities.

Grammar (one of three shapes):

    SCOPED     "@" name ["@" version]     e.g. @babel/core, @babel/core@7.0.0
    VERSIONED  name "@" version           e.g. lodash@4.17.0
    BARE       name                       e.g. lodash

A specifier without a version takes the caller's preferred version for its
package name, or "latest".
"""

import re
import urllib.parse
from typing import Mapping, Optional

from constants import Constants

from .models import ModuleSpecifier, SpecifierKind

# Characters encodeURIComponent leaves untouched besides alphanumerics.
_URI_COMPONENT_SAFE = "-_.!~*'()"


class SpecifierError(ValueError):
    """Raised for strings that are not valid module specifiers."""


def encode_token(text: str) -> str:
    """Percent-encode ``text`` the way encodeURIComponent does."""
    return urllib.parse.quote(text, safe=_URI_COMPONENT_SAFE)


def decode_token(text: str) -> str:
    """Inverse of encode_token."""
    return urllib.parse.unquote(text)


def _preferred(preferred_versions: Optional[Mapping[str, str]], package_name: str) -> str:
    if preferred_versions:
        version = preferred_versions.get(package_name)
        if version:
            return version
    return Constants.DEFAULT_VERSION


def parse_specifier(
    raw: str, preferred_versions: Optional[Mapping[str, str]] = None
) -> ModuleSpecifier:
    """Parse a raw dependency string into a ModuleSpecifier.

    Args:
        raw: Specifier exactly as it appears in the entry source.
        preferred_versions: Optional package name -> version defaults.

    Returns:
        ModuleSpecifier with its version resolved.

    Raises:
        SpecifierError: If ``raw`` is empty or has an empty name/version part.
    """
    if not isinstance(raw, str) or not raw:
        raise SpecifierError(f"Invalid module specifier: {raw!r}")

    if raw.startswith("@"):
        name, sep, version = raw[1:].partition("@")
        if not name or (sep and not version):
            raise SpecifierError(f"Invalid scoped specifier: {raw!r}")
        explicit = bool(sep)
        if not explicit:
            version = _preferred(preferred_versions, f"@{name}")
        return ModuleSpecifier(
            raw=raw,
            kind=SpecifierKind.SCOPED,
            name=name,
            version=version,
            explicit_version=explicit,
            scope=name.split("/", 1)[0],
        )

    name, sep, version = raw.partition("@")
    if sep:
        if not version:
            raise SpecifierError(f"Invalid versioned specifier: {raw!r}")
        return ModuleSpecifier(
            raw=raw,
            kind=SpecifierKind.VERSIONED,
            name=name,
            version=version,
            explicit_version=True,
        )

    return ModuleSpecifier(
        raw=raw,
        kind=SpecifierKind.BARE,
        name=name,
        version=_preferred(preferred_versions, name),
        explicit_version=False,
    )


def to_cache_key(spec: ModuleSpecifier) -> str:
    """Return the normalized identity string for ``spec``."""
    return spec.cache_key


def rewrite_entry(source: str, spec: ModuleSpecifier) -> str:
    """Strip the version from quoted occurrences of a VERSIONED specifier.

    ``require("lodash@4.17.0")`` becomes ``require("lodash")``. BARE and
    SCOPED specifiers leave the source untouched.
    """
    if spec.kind != SpecifierKind.VERSIONED:
        return source
    pattern = re.compile(r"(['\"`])" + re.escape(spec.raw) + r"\1")
    return pattern.sub(lambda m: f"{m.group(1)}{spec.name}{m.group(1)}", source)


def decode_scoped_bundle(key: str, bundle: str) -> str:
    """Restore the literal scope token inside a scoped entry's bundle text.

    Scoped entries carry their scope token percent-encoded (``babel%2Fcore``)
    in the stored bundle; the first occurrence is replaced with the literal
    token. Bundles of non-scoped keys are returned unchanged.
    """
    tokens = key.split("@")
    if tokens[0] or len(tokens) < 2 or not tokens[1]:
        return bundle
    literal = tokens[1]
    return bundle.replace(encode_token(literal), literal, 1)
