"""
paperfetch Download Subsystem

This package resolves versions and builds published by a Fill metadata service
and downloads their artifacts with checksum verification.

Core Components:
- interfaces: Records (Project, Build, Artifact, DownloadResult) and MetadataSource
- version: VersionCatalog, ordering and flattening of version groups
- selector: ReleaseSelector, latest/recommended/promoted selection
- artifacts: ArtifactResolver, default artifact of a build
- files: IntegrityDownloader, streaming download with SHA-256 verification
- fill_source: FillMetadataSource, the HTTP client for the Fill v3 API
- orchestrator: ReleaseOrchestrator, end-to-end flows (import it from
  paperfetch.download.orchestrator)
"""

from .artifacts import ArtifactResolver
from .files import IntegrityDownloader, calculate_sha256
from .fill_source import FillMetadataSource
from .interfaces import (
    Artifact,
    Build,
    Channel,
    Commit,
    DownloadResult,
    MetadataSource,
    Project,
    VersionInfo,
)
from .selector import PromotionStrategy, ReleaseSelector
from .version import VersionCatalog, flatten, is_prerelease

__all__ = [
    # Interfaces
    "Artifact",
    "Build",
    "Channel",
    "Commit",
    "DownloadResult",
    "MetadataSource",
    "Project",
    "VersionInfo",
    # Core components
    "VersionCatalog",
    "ReleaseSelector",
    "PromotionStrategy",
    "ArtifactResolver",
    "IntegrityDownloader",
    "FillMetadataSource",
    # Helpers
    "calculate_sha256",
    "flatten",
    "is_prerelease",
]
