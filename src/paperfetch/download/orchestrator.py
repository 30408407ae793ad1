"""
Release Orchestrator

This module chains the version catalog, release selector, artifact resolver and
integrity downloader into the flows used by the command line: resolve a
project/version/build to an artifact, download it, or print its URL.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from paperfetch.config import ClientConfig
from paperfetch.context import CallContext, background
from paperfetch.exceptions import (
    DeadlineExceededError,
    DecodingError,
    NotFoundError,
    TransportError,
)
from paperfetch.log_utils import logger

from .artifacts import ArtifactResolver
from .files import IntegrityDownloader
from .fill_source import FillMetadataSource
from .interfaces import Artifact, DownloadResult, MetadataSource, Pathish, VersionInfo
from .selector import ReleaseSelector
from .version import VersionCatalog


@dataclass
class Resolved:
    """A fully resolved build: which project, version, build and artifact."""

    project_id: str
    version: str
    build_id: int
    artifact: Artifact


class ReleaseOrchestrator:
    """
    Coordinates the resolution and download pipeline.

    The configuration is fixed at construction. Each public method takes an
    optional CallContext for cancellation; its deadline, if any, bounds the
    whole flow. Every request and every artifact download is additionally
    bounded by the configured timeout on its own.
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        source: Optional[MetadataSource] = None,
    ):
        self.config = config or ClientConfig()
        self.source = source or FillMetadataSource(self.config)
        self.catalog = VersionCatalog()
        self.selector = ReleaseSelector(self.source, self.catalog)
        self.resolver = ArtifactResolver()
        self.downloader = IntegrityDownloader(
            self.source, self.config.chunk_size, self.config.timeout
        )

    def _ctx(self, ctx: Optional[CallContext]) -> CallContext:
        return ctx or background()

    def versions(self, project_id: str, ctx: Optional[CallContext] = None) -> List[str]:
        """All versions of a project, oldest first."""
        project = self.source.get_project(project_id, self._ctx(ctx))
        return self.catalog.flatten(project.version_groups)

    def version_details(
        self, project_id: str, ctx: Optional[CallContext] = None
    ) -> List[VersionInfo]:
        """Versions with support status and build IDs, oldest first."""
        infos = self.source.list_versions(project_id, self._ctx(ctx))
        return sorted(infos, key=lambda info: self.catalog.sort_key(info.id))

    def build_ids(
        self, project_id: str, version: str, ctx: Optional[CallContext] = None
    ) -> List[int]:
        """Build IDs of a version in ascending order, without fetching build records."""
        info = self.source.get_version(project_id, version, self._ctx(ctx))
        return sorted(info.builds)

    def latest_version(self, project_id: str, ctx: Optional[CallContext] = None) -> str:
        return self.selector.select_latest(self.versions(project_id, ctx))

    def recommended_version(
        self, project_id: str, ctx: Optional[CallContext] = None
    ) -> str:
        return self.selector.select_recommended(self.versions(project_id, ctx))

    def resolve(
        self,
        project_id: str,
        version: Optional[str] = None,
        build_id: Optional[int] = None,
        promoted: bool = False,
        artifact_name: Optional[str] = None,
        ctx: Optional[CallContext] = None,
    ) -> Resolved:
        """
        Resolve the artifact to fetch.

        Without a version, the recommended version is used. Without a build, the
        promoted build is used when ``promoted`` is set, otherwise the latest build
        (restricted to the configured channel, if any). ``artifact_name`` picks a
        file of the build by name instead of the default artifact.
        """
        ctx = self._ctx(ctx)
        if version is None:
            version = self.recommended_version(project_id, ctx)
            logger.debug(f"Using recommended version {version} of {project_id}")

        if build_id is not None:
            build = self.source.get_build(project_id, version, build_id, ctx)
        elif promoted:
            promoted_id = self.selector.find_promoted_build(project_id, version, ctx)
            build = self.source.get_build(project_id, version, promoted_id, ctx)
        else:
            build = self.selector.latest_build(
                project_id, version, ctx, self.config.channel
            )

        if artifact_name:
            artifact = self.resolver.artifact_by_name(build, artifact_name)
        else:
            artifact = self.resolver.default_artifact(build)
        return Resolved(project_id, version, build.id, artifact)

    def download_url(
        self,
        project_id: str,
        version: Optional[str] = None,
        build_id: Optional[int] = None,
        promoted: bool = False,
        artifact_name: Optional[str] = None,
        ctx: Optional[CallContext] = None,
    ) -> str:
        resolved = self.resolve(
            project_id, version, build_id, promoted, artifact_name, ctx=ctx
        )
        return resolved.artifact.url

    def download(
        self,
        project_id: str,
        version: Optional[str] = None,
        build_id: Optional[int] = None,
        destination_dir: Pathish = ".",
        promoted: bool = False,
        artifact_name: Optional[str] = None,
        ctx: Optional[CallContext] = None,
    ) -> DownloadResult:
        """
        Resolve and download an artifact into ``destination_dir``.

        Raises:
            IntegrityError: The downloaded file failed verification; the error
                carries the DownloadResult.
        """
        ctx = self._ctx(ctx)
        resolved = self.resolve(
            project_id, version, build_id, promoted, artifact_name, ctx=ctx
        )
        destination = Path(destination_dir) / resolved.artifact.name
        logger.info(
            f"Downloading {resolved.project_id} {resolved.version} build {resolved.build_id}"
        )
        return self.downloader.fetch(resolved.artifact, destination, ctx)

    def ci_matrix(
        self,
        project_id: str,
        limit: Optional[int] = None,
        ctx: Optional[CallContext] = None,
    ) -> List[Dict[str, Any]]:
        """
        Latest builds of the newest versions, for a CI build matrix.

        Walks versions newest to oldest and stops after ``limit`` entries (the
        configured limit when omitted, 0 for all). Versions without a matching
        build or without a download URL are skipped. The result is ordered
        oldest to newest.
        """
        ctx = self._ctx(ctx)
        limit = self.config.limit if limit is None else limit
        entries: List[Dict[str, Any]] = []
        for version in reversed(self.versions(project_id, ctx)):
            if limit > 0 and len(entries) >= limit:
                break
            try:
                build = self.selector.latest_build(
                    project_id, version, ctx, self.config.channel
                )
            except DeadlineExceededError:
                raise
            except (NotFoundError, TransportError, DecodingError) as e:
                logger.debug(f"Skipping {project_id} {version}: {e}")
                continue

            url = self.resolver.download_url(build)
            if not url:
                logger.debug(f"Skipping {project_id} {version}: no download URL")
                continue
            entries.append({"version": version, "build": build.id, "url": url})

        entries.reverse()
        return entries
