"""
Artifact Resolution

Chooses which file of a build to download. The canonical server artifact wins;
otherwise the first artifact in the order the service listed them is used.
Which non-canonical artifact comes first carries no meaning beyond that order.
"""

from typing import Optional

from paperfetch.constants import DEFAULT_ARTIFACT_KEY
from paperfetch.exceptions import NoArtifactError
from paperfetch.log_utils import logger

from .interfaces import Artifact, Build


class ArtifactResolver:
    """Resolves the artifact (name, URL, expected checksum) to fetch for a build."""

    def __init__(self, default_key: str = DEFAULT_ARTIFACT_KEY):
        self.default_key = default_key

    def default_artifact(self, build: Build) -> Artifact:
        """
        Return the artifact to ship for a build.

        Raises:
            NoArtifactError: The build has no artifacts.
        """
        artifact = build.artifact(self.default_key)
        if artifact is not None:
            return artifact

        if not build.artifacts:
            raise NoArtifactError(
                f"No downloads found for build {build.id}", build_id=build.id
            )

        first = build.artifacts[0]
        logger.debug(
            "Build %d has no '%s' artifact; using first listed artifact '%s'",
            build.id,
            self.default_key,
            first.key,
        )
        return first

    def artifact_by_name(self, build: Build, name: str) -> Artifact:
        """
        Return the artifact of a build whose file name is ``name``.

        Raises:
            NoArtifactError: No artifact has that name.
        """
        for artifact in build.artifacts:
            if artifact.name == name:
                return artifact
        raise NoArtifactError(
            f"Download {name} not found in build {build.id}", build_id=build.id
        )

    def download_url(self, build: Build) -> str:
        """URL of the default artifact, or an empty string when the build has none."""
        artifact: Optional[Artifact] = build.artifact(self.default_key)
        if artifact is None and build.artifacts:
            artifact = build.artifacts[0]
        return artifact.url if artifact is not None else ""
