"""
Version ordering and flattening tests for the paperfetch download subsystem.

This module covers the numeric-plus-suffix comparator, flattening of version
groups, and the prerelease predicate.
"""

import random

import pytest

from paperfetch.download.version import (
    VersionCatalog,
    compare_versions,
    flatten,
    is_prerelease,
    sort_versions,
)
from paperfetch.exceptions import EmptyInputError, NotFoundError

pytestmark = [pytest.mark.unit, pytest.mark.core_downloads]


@pytest.mark.parametrize(
    "version1, version2, expected",
    [
        ("1.21.10", "1.7.10", 1),  # numeric, not lexicographic
        ("1.10.2", "1.9.4", 1),
        ("1.21.11-rc3", "1.21.11", -1),  # prerelease before its release
        ("1.21.11-rc2", "1.21.11-rc3", -1),  # suffixes compare as strings
        ("1.21.11-rc3", "1.21.10", 1),
        ("1.21", "1.21.1", -1),  # shorter prefix is zero-padded
        ("1.21.11", "1.21.11", 0),
    ],
)
def test_compare_versions(version1, version2, expected):
    """Test the version comparison logic."""
    assert compare_versions(version1, version2) == expected
    # Antisymmetry: reversing operands should flip the sign
    assert compare_versions(version2, version1) == -expected


def test_split_version():
    catalog = VersionCatalog()
    assert catalog.split_version("1.21.11-rc3") == ((1, 21, 11), "rc3")
    assert catalog.split_version("1.21.11") == ((1, 21, 11), None)
    assert catalog.split_version("1.14-pre5") == ((1, 14), "pre5")


def test_split_version_non_numeric_components_count_as_zero():
    catalog = VersionCatalog()
    assert catalog.split_version("1.x.3") == ((1, 0, 3), None)


def test_zero_padded_prefixes_are_ordered_deterministically():
    """'1.21' and '1.21.0' tie numerically; the full identifier breaks the tie."""
    assert sort_versions(["1.21.0", "1.21"]) == sort_versions(["1.21", "1.21.0"])
    assert compare_versions("1.21", "1.21.0") != 0


def test_flatten_regression_case():
    """Numeric comparison, and the release candidate sorts before the release."""
    groups = {"1.21": ["1.21.11", "1.21.11-rc3", "1.21.10"], "1.7": ["1.7.10"]}

    assert flatten(groups) == ["1.7.10", "1.21.10", "1.21.11-rc3", "1.21.11"]


def test_flatten_full_ordering():
    groups = {
        "1.21": ["1.21.11", "1.21.11-rc3", "1.21.11-rc2", "1.21.10"],
        "1.7": ["1.7.10"],
        "1.20": ["1.20.6", "1.20.4"],
        "1.10": ["1.10.2"],
        "1.9": ["1.9.4"],
    }

    flattened = flatten(groups)

    assert flattened == [
        "1.7.10",
        "1.9.4",
        "1.10.2",
        "1.20.4",
        "1.20.6",
        "1.21.10",
        "1.21.11-rc2",
        "1.21.11-rc3",
        "1.21.11",
    ]
    # The newest three are what a CI matrix with --limit=3 would use
    assert flattened[-3:] == ["1.21.11-rc2", "1.21.11-rc3", "1.21.11"]


def test_flatten_is_independent_of_input_order():
    versions = ["1.7.10", "1.9.4", "1.10.2", "1.20.4", "1.21.11-rc3", "1.21.11"]
    expected = flatten({"all": versions})
    rng = random.Random(1234)

    for _ in range(20):
        shuffled = versions[:]
        rng.shuffle(shuffled)
        split = rng.randint(0, len(shuffled))
        groups = {"b": shuffled[:split], "a": shuffled[split:]}
        assert flatten(groups) == expected


def test_flatten_is_strictly_ascending():
    flattened = flatten(
        {"x": ["2.0", "1.0-pre1", "1.0", "1.0-SNAPSHOT", "10.1", "9.9.9"]}
    )
    for older, newer in zip(flattened, flattened[1:]):
        assert compare_versions(older, newer) == -1


def test_flatten_is_idempotent():
    groups = {"1.21": ["1.21.11", "1.21.11-rc3"], "1.8": ["1.8.8", "1.8"]}
    once = flatten(groups)

    assert flatten({"flat": once}) == once
    assert sort_versions(once) == once


def test_flatten_drops_duplicates_across_groups():
    assert flatten({"a": ["1.0", "1.1"], "b": ["1.1"]}) == ["1.0", "1.1"]


def test_flatten_empty_input_raises():
    with pytest.raises(EmptyInputError):
        flatten({})
    with pytest.raises(EmptyInputError):
        flatten({"1.21": []})


def test_empty_input_error_is_a_not_found_error():
    with pytest.raises(NotFoundError):
        flatten({"1.21": []})


@pytest.mark.parametrize(
    "version, expected",
    [
        ("1.21.11", False),
        ("1.21.11-rc3", True),
        ("1.14-pre5", True),
        ("1.14-PRE5", True),
        ("1.21-SNAPSHOT", True),
        ("1.21-snapshot", True),
        ("1.21.11-RC1", True),
        ("1.8.8", False),
    ],
)
def test_is_prerelease(version, expected):
    assert is_prerelease(version) is expected
