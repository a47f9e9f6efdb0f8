"""Tests for bundle fragment merging."""

from bundler.cache import CacheEntry
from bundler.merger import Bundle, BundleMerger


def test_empty_merger_yields_empty_bundle():
    assert BundleMerger().to_bundle() == Bundle(script="", packages=[])


def test_concatenates_in_add_order():
    """Fragments are appended verbatim in resolution order."""
    merger = BundleMerger()
    merger.add("b@1.0.0", CacheEntry(bundle="B;", package={"version": "1.0.0"}))
    merger.add("a@2.0.0", CacheEntry(bundle="A;", package={"version": "2.0.0"}))

    bundle = merger.to_bundle()
    assert bundle.script == "B;A;"
    assert [p["version"] for p in bundle.packages] == ["1.0.0", "2.0.0"]
    assert len(merger) == 2


def test_scoped_fragment_is_decoded():
    """Scoped entries have their encoded scope token restored."""
    merger = BundleMerger()
    fragment = merger.add(
        "@babel/core@7.0.0",
        CacheEntry(bundle='define("babel%2Fcore")', package={"version": "7.0.0"}),
    )
    assert fragment == 'define("babel/core")'
    assert merger.script == 'define("babel/core")'


def test_unscoped_fragment_is_literal():
    merger = BundleMerger()
    merger.add("lodash@4.17.0", CacheEntry(bundle="x%2Fy", package={"version": "4.17.0"}))
    assert merger.script == "x%2Fy"


def test_no_deduplication_across_keys():
    """Different keys are merged even for the same underlying package."""
    merger = BundleMerger()
    entry = CacheEntry(bundle="L;", package={"version": "4.17.0"})
    merger.add("lodash@4.17.0", entry)
    merger.add("lodash@latest", entry)
    assert merger.script == "L;L;"


def test_packages_returns_copy():
    merger = BundleMerger()
    merger.add("a@1.0.0", CacheEntry(bundle="", package={"version": "1.0.0"}))
    merger.packages.clear()
    assert len(merger.packages) == 1
