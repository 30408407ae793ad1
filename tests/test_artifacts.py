import pytest

from paperfetch.download.artifacts import ArtifactResolver
from paperfetch.download.interfaces import Artifact, Build, Channel
from paperfetch.exceptions import NoArtifactError, NotFoundError

pytestmark = [pytest.mark.unit, pytest.mark.core_downloads]


def _artifact(key, name=None):
    name = name or key.replace(":", "-") + ".jar"
    return Artifact(key=key, name=name, url=f"https://example.invalid/{name}")


def _build(*artifacts):
    return Build(id=42, channel=Channel.STABLE, artifacts=list(artifacts))


def test_default_artifact_prefers_canonical_key():
    build = _build(_artifact("server:mojmap"), _artifact("server:default", "paper.jar"))

    assert ArtifactResolver().default_artifact(build).name == "paper.jar"


def test_default_artifact_falls_back_to_first_listed():
    build = _build(_artifact("server:mojmap"), _artifact("server:extra"))

    assert ArtifactResolver().default_artifact(build).key == "server:mojmap"


def test_default_artifact_without_artifacts_raises():
    with pytest.raises(NoArtifactError) as exc_info:
        ArtifactResolver().default_artifact(_build())

    assert exc_info.value.build_id == 42
    assert isinstance(exc_info.value, NotFoundError)


def test_custom_default_key():
    build = _build(_artifact("server:default"), _artifact("server:mojmap"))

    resolver = ArtifactResolver(default_key="server:mojmap")

    assert resolver.default_artifact(build).key == "server:mojmap"


def test_artifact_by_name():
    build = _build(_artifact("server:default", "paper-1.21.11-42.jar"))
    resolver = ArtifactResolver()

    assert resolver.artifact_by_name(build, "paper-1.21.11-42.jar").key == (
        "server:default"
    )
    with pytest.raises(NoArtifactError, match="missing.jar"):
        resolver.artifact_by_name(build, "missing.jar")


def test_download_url():
    resolver = ArtifactResolver()

    assert resolver.download_url(_build(_artifact("server:default", "a.jar"))) == (
        "https://example.invalid/a.jar"
    )
    assert resolver.download_url(_build(_artifact("other", "b.jar"))) == (
        "https://example.invalid/b.jar"
    )
    assert resolver.download_url(_build()) == ""
