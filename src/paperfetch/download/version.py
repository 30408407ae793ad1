"""
Version Management for the paperfetch Download Subsystem

This module turns the service's version groups into one ordered sequence and
decides which version identifiers count as prereleases. Ordering is numeric
per dot-separated component, never lexicographic, and a prerelease sorts
before the release it precedes.
"""

import re
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple

from paperfetch.constants import PRERELEASE_MARKERS
from paperfetch.exceptions import EmptyInputError
from paperfetch.log_utils import logger

VersionKey = Tuple[Tuple[int, ...], int, str, str]


class VersionCatalog:
    """
    Parses, compares and flattens version identifiers.

    An identifier is a dot-separated numeric prefix with an optional
    hyphen-prefixed suffix: "1.21.11-rc3" has prefix (1, 21, 11) and suffix
    "rc3". The comparator is pure, so flattening is idempotent.
    """

    SUFFIX_SEPARATOR = "-"
    NUMERIC_COMPONENT_RX = re.compile(r"^\d+$")

    def split_version(self, version: str) -> Tuple[Tuple[int, ...], Optional[str]]:
        """
        Split a version identifier into its numeric prefix and optional suffix.

        Components of the prefix that are not plain integers count as 0.

        Args:
            version: Identifier such as "1.21.11" or "1.21.11-rc3".

        Returns:
            (numeric components, suffix or None when there is no hyphen)
        """
        prefix, sep, suffix = version.strip().partition(self.SUFFIX_SEPARATOR)
        numbers = tuple(
            int(part) if self.NUMERIC_COMPONENT_RX.match(part) else 0
            for part in prefix.split(".")
        )
        return numbers, (suffix if sep else None)

    def sort_key(self, version: str) -> VersionKey:
        """
        Return a key that orders identifiers oldest first.

        Trailing zero components are dropped so that shorter prefixes compare
        as if zero-padded. A suffixed identifier ranks below the same prefix
        without a suffix, suffixes compare as plain strings, and the full
        identifier breaks any remaining tie so the order is total.
        """
        numbers, suffix = self.split_version(version)
        trimmed = list(numbers)
        while trimmed and trimmed[-1] == 0:
            trimmed.pop()
        if suffix is None:
            return (tuple(trimmed), 1, "", version)
        return (tuple(trimmed), 0, suffix, version)

    def compare_versions(self, version1: str, version2: str) -> int:
        """
        Compare two version identifiers.

        Returns:
            int: 1 if version1 > version2, 0 if equal, -1 if version1 < version2
        """
        k1, k2 = self.sort_key(version1), self.sort_key(version2)
        if k1 > k2:
            return 1
        elif k1 < k2:
            return -1
        return 0

    def sort_versions(self, versions: Iterable[str]) -> List[str]:
        """Sort identifiers oldest first, dropping duplicates."""
        return sorted(set(versions), key=self.sort_key)

    def flatten(self, groups: Mapping[str, Sequence[str]]) -> List[str]:
        """
        Flatten version groups into one sequence, oldest first.

        Group order and the order inside each group are ignored.

        Args:
            groups: Mapping of group key (e.g. "1.21") to version identifiers.

        Returns:
            List[str]: Every identifier exactly once, strictly ascending.

        Raises:
            EmptyInputError: No group contains any identifier.
        """
        combined = [version for members in groups.values() for version in members]
        if not combined:
            raise EmptyInputError(
                "No versions to flatten", details=f"{len(groups)} empty group(s)"
            )
        flattened = self.sort_versions(combined)
        logger.debug(
            "Flattened %d version group(s) into %d version(s)",
            len(groups),
            len(flattened),
        )
        return flattened

    def is_prerelease(self, version: str) -> bool:
        """
        Whether a version identifier is a snapshot, pre-release or release candidate.

        Matches "snapshot", "-pre" or "-rc" anywhere in the identifier, ignoring case.
        """
        lowered = version.lower()
        return any(marker in lowered for marker in PRERELEASE_MARKERS)


_catalog = VersionCatalog()


def flatten(groups: Mapping[str, Sequence[str]]) -> List[str]:
    """Module-level shortcut for VersionCatalog.flatten."""
    return _catalog.flatten(groups)


def sort_versions(versions: Iterable[str]) -> List[str]:
    return _catalog.sort_versions(versions)


def compare_versions(version1: str, version2: str) -> int:
    return _catalog.compare_versions(version1, version2)


def version_sort_key(version: str) -> VersionKey:
    return _catalog.sort_key(version)


def is_prerelease(version: str) -> bool:
    return _catalog.is_prerelease(version)
