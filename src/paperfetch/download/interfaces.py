"""
Core Interfaces for the paperfetch Download Subsystem

This module defines the records fetched from the metadata service and the
abstract metadata source that the selector, resolver and downloader depend on.
All records are read-only projections fetched fresh per call.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Dict, Generator, List, Optional, Sequence, Union

from .version import is_prerelease

Pathish = Union[str, Path]

# Chunks of a response body; close() releases the connection early
ByteStream = Generator[bytes, None, None]

if TYPE_CHECKING:
    from paperfetch.context import CallContext


class Channel(str, Enum):
    """
    Stability tag on a build.

    Carries no total order; the promotion policy only defines a priority
    (recommended, then stable, then whatever is latest).
    """

    ALPHA = "alpha"
    BETA = "beta"
    STABLE = "stable"
    RECOMMENDED = "recommended"

    @classmethod
    def parse(cls, value: str) -> "Channel":
        """Parse a channel case-insensitively ("STABLE" and "stable" both work)."""
        return cls(value.strip().lower())

    @property
    def api_name(self) -> str:
        """Channel name as the service expects it in query strings."""
        return self.value.upper()


@dataclass
class Project:
    """A project published by the metadata service."""

    id: str
    """Project identifier used in URLs (e.g., 'paper')"""

    name: str
    """Display name (e.g., 'Paper')"""

    version_groups: Dict[str, List[str]] = field(default_factory=dict)
    """Version group key -> version identifiers; order within and across groups is arbitrary"""


@dataclass
class VersionInfo:
    """A single version of a project and the builds published for it."""

    id: str
    """Version identifier (e.g., '1.21.11' or '1.21.11-rc3')"""

    support_status: Optional[str] = None
    """Support status reported by the service (e.g., 'SUPPORTED')"""

    builds: List[int] = field(default_factory=list)
    """Build identifiers of this version"""

    @property
    def is_prerelease(self) -> bool:
        return is_prerelease(self.id)


@dataclass
class Commit:
    """A change included in a build."""

    sha: str
    message: str = ""
    time: Optional[datetime] = None


@dataclass
class Artifact:
    """A downloadable file belonging to a build."""

    key: str
    """Artifact key within the build (e.g., 'server:default')"""

    name: str
    """The filename of the artifact"""

    url: str
    """Direct URL to download the artifact"""

    size: int = 0
    """File size in bytes (0 when the service does not report it)"""

    sha256: Optional[str] = None
    """Expected hex-encoded SHA-256, when the service provides one"""


@dataclass
class Build:
    """A build of a version."""

    id: int
    """Build identifier; increases with recency within one version"""

    channel: Channel
    """Stability channel of the build"""

    time: Optional[datetime] = None
    """When the build was published"""

    commits: List[Commit] = field(default_factory=list)
    """Changes included in the build"""

    artifacts: List[Artifact] = field(default_factory=list)
    """Artifacts in the order the service listed them"""

    def artifact(self, key: str) -> Optional[Artifact]:
        """Return the artifact stored under ``key``, if any."""
        for artifact in self.artifacts:
            if artifact.key == key:
                return artifact
        return None


@dataclass
class DownloadResult:
    """Outcome of a completed download, valid or not."""

    path: Pathish
    """Destination the artifact was written to"""

    expected_sha256: Optional[str]
    """Checksum declared by the metadata service (None when absent)"""

    actual_sha256: str
    """Checksum computed over the bytes that were written"""

    valid: bool
    """Whether the computed checksum matched (True when none was declared)"""

    size: int = 0
    """Number of bytes written"""


class MetadataSource(ABC):
    """
    Abstract access to the build metadata service.

    Every method takes a CallContext so callers can cancel or bound the call.
    """

    @abstractmethod
    def list_projects(self, ctx: "CallContext") -> List[Project]:
        """Return all projects."""

    @abstractmethod
    def get_project(self, project_id: str, ctx: "CallContext") -> Project:
        """Return a project with its version groups."""

    @abstractmethod
    def list_versions(self, project_id: str, ctx: "CallContext") -> List[VersionInfo]:
        """Return all versions of a project."""

    @abstractmethod
    def get_version(
        self, project_id: str, version: str, ctx: "CallContext"
    ) -> VersionInfo:
        """Return one version of a project."""

    @abstractmethod
    def list_builds(
        self,
        project_id: str,
        version: str,
        ctx: "CallContext",
        channels: Sequence[Channel] = (),
    ) -> List[Build]:
        """Return the builds of a version, optionally filtered to some channels."""

    @abstractmethod
    def get_latest_build(
        self, project_id: str, version: str, ctx: "CallContext"
    ) -> Build:
        """Return the newest build of a version."""

    @abstractmethod
    def get_build(
        self, project_id: str, version: str, build_id: int, ctx: "CallContext"
    ) -> Build:
        """Return a specific build."""

    @abstractmethod
    def open_stream(
        self, url: str, ctx: "CallContext", chunk_size: int
    ) -> ByteStream:
        """
        Stream the bytes found at ``url``.

        Status errors are raised here, before any chunk is produced. The
        returned generator releases the underlying connection when it is
        exhausted or closed.
        """
