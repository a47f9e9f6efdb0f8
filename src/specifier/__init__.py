"""Module specifier parsing and cache-key normalization."""

from .models import ModuleSpecifier, SpecifierKind
from .parser import (
    SpecifierError,
    decode_scoped_bundle,
    decode_token,
    encode_token,
    parse_specifier,
    rewrite_entry,
    to_cache_key,
)

__all__ = [
    "ModuleSpecifier",
    "SpecifierKind",
    "SpecifierError",
    "parse_specifier",
    "to_cache_key",
    "rewrite_entry",
    "encode_token",
    "decode_token",
    "decode_scoped_bundle",
]
