from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple
from unittest.mock import Mock

import platformdirs
import pytest
import requests

from paperfetch.context import CallContext
from paperfetch.download.interfaces import (
    Artifact,
    Build,
    ByteStream,
    Channel,
    MetadataSource,
    Project,
    VersionInfo,
)
from paperfetch.exceptions import ResourceNotFoundError

_NETWORK_BLOCK_MSG = (
    "Network access is blocked during tests. Mock requests.* or Session.get."
)

# Checksum of b"hello world"
HELLO_SHA256 = "b94d27b9934d3e08a52e52d7da7dabfac484efe37a5380ee9088f7ace2efcde9"


def _block_network(*_args, **_kwargs):
    """
    Prevent network calls in tests by raising a RuntimeError.

    Raises:
        RuntimeError: with `_NETWORK_BLOCK_MSG` indicating that network access is blocked during tests.
    """
    raise RuntimeError(_NETWORK_BLOCK_MSG)


def pytest_configure(config):
    """Register the markers used across the test suite."""
    config.addinivalue_line("markers", "unit: fast tests without I/O beyond tmp_path")
    config.addinivalue_line(
        "markers", "core_downloads: version, selection and download pipeline tests"
    )
    config.addinivalue_line("markers", "cli: command-line interface tests")


@pytest.fixture(autouse=True)
def _isolate_test_environment(tmp_path_factory, monkeypatch):
    """
    Point platformdirs and PAPERFETCH_* variables at an isolated temp layout.

    Removes any PAPERFETCH_* overrides from the real environment so config
    precedence tests start from a known state.
    """
    base = tmp_path_factory.mktemp("paperfetch")
    config_dir = base / "config"
    log_dir = base / "log"
    for path in (config_dir, log_dir):
        path.mkdir(parents=True, exist_ok=True)

    monkeypatch.setattr(
        platformdirs, "user_config_dir", lambda *_args, **_kwargs: str(config_dir)
    )
    monkeypatch.setattr(
        platformdirs, "user_log_dir", lambda *_args, **_kwargs: str(log_dir)
    )
    for key in ("BASE_URL", "TIMEOUT", "CHANNEL", "LIMIT", "LOG_LEVEL"):
        monkeypatch.delenv(f"PAPERFETCH_{key}", raising=False)


def pytest_runtest_setup():
    """
    Prevent real network requests during tests by replacing HTTP entry points with blocking callables.
    """
    requests.get = _block_network
    requests.post = _block_network
    requests.head = _block_network
    requests.Session.request = _block_network


# =============================================================================
# Metadata fixtures
# =============================================================================


def make_build_data(
    build_id: int,
    channel: str = "STABLE",
    downloads: Optional[Dict[str, Dict[str, Any]]] = None,
) -> Dict[str, Any]:
    """Build record shaped like a Fill v3 response."""
    if downloads is None:
        downloads = {
            "server:default": {
                "name": f"paper-1.21.11-{build_id}.jar",
                "checksums": {"sha256": HELLO_SHA256},
                "size": 11,
                "url": f"https://fill-data.papermc.io/v1/objects/abc/paper-1.21.11-{build_id}.jar",
            }
        }
    return {
        "id": build_id,
        "time": "2025-12-08T19:33:25.017Z",
        "channel": channel,
        "commits": [
            {
                "sha": "2d4ad5d",
                "time": "2025-12-08T19:30:00Z",
                "message": "Update upstream",
            }
        ],
        "downloads": downloads,
    }


@pytest.fixture
def build_data():
    """Factory for Fill v3 build records."""
    return make_build_data


@pytest.fixture
def project_data():
    """Project payload with intentionally unordered version groups."""
    return {
        "project": {"id": "paper", "name": "Paper"},
        "versions": {
            "1.21": ["1.21.11", "1.21.11-rc3", "1.21.10"],
            "1.7": ["1.7.10"],
            "1.20": ["1.20.6", "1.20.4"],
        },
    }


@pytest.fixture
def mock_response():
    """
    Provide a factory that creates mock requests.Response objects.

    Parameters of the factory:
        status_code (int): HTTP status to expose.
        json_data (Any): Value returned by response.json().
        content_chunks (List[bytes] | None): Chunks yielded by iter_content().
        text (str): Body text used for error reporting.
    """

    def _create_response(
        status_code: int = 200,
        json_data: Any = None,
        content_chunks: Optional[List[bytes]] = None,
        text: str = "",
    ) -> Mock:
        response = Mock(spec=requests.Response)
        response.status_code = status_code
        response.text = text
        response.json.return_value = json_data
        response.iter_content.return_value = iter(content_chunks or [])
        return response

    return _create_response


# =============================================================================
# In-memory metadata source
# =============================================================================


class FakeSource(MetadataSource):
    """
    MetadataSource serving canned records from memory.

    ``failures`` maps a call key to the exception it raises: ("get_project",),
    ("get_latest_build",), ("list_builds", ("RECOMMENDED",)) and so on.
    Every call is appended to ``calls`` in order.
    """

    def __init__(self) -> None:
        self.projects: Dict[str, Project] = {}
        self.builds: Dict[Tuple[str, str], List[Build]] = {}
        self.streams: Dict[str, Iterable[bytes]] = {}
        self.failures: Dict[Tuple[Any, ...], Exception] = {}
        self.calls: List[Tuple[Any, ...]] = []

    def _record(self, *key: Any) -> None:
        self.calls.append(key)
        if key in self.failures:
            raise self.failures[key]

    def add_project(self, project_id: str, version_groups: Dict[str, List[str]]) -> None:
        self.projects[project_id] = Project(
            project_id, project_id.capitalize(), version_groups
        )

    def add_builds(self, project_id: str, version: str, *builds: Build) -> None:
        self.builds.setdefault((project_id, version), []).extend(builds)

    def list_projects(self, ctx: CallContext) -> List[Project]:
        self._record("list_projects")
        return list(self.projects.values())

    def get_project(self, project_id: str, ctx: CallContext) -> Project:
        self._record("get_project")
        if project_id not in self.projects:
            raise ResourceNotFoundError("Project not found", status_code=404)
        return self.projects[project_id]

    def list_versions(self, project_id: str, ctx: CallContext) -> List[VersionInfo]:
        self._record("list_versions")
        groups = self.get_project(project_id, ctx).version_groups
        return [VersionInfo(v) for members in groups.values() for v in members]

    def get_version(
        self, project_id: str, version: str, ctx: CallContext
    ) -> VersionInfo:
        self._record("get_version")
        builds = self.builds.get((project_id, version), [])
        return VersionInfo(version, builds=[b.id for b in builds])

    def list_builds(
        self,
        project_id: str,
        version: str,
        ctx: CallContext,
        channels: Sequence[Channel] = (),
    ) -> List[Build]:
        self._record("list_builds", tuple(c.api_name for c in channels))
        builds = self.builds.get((project_id, version), [])
        if channels:
            builds = [b for b in builds if b.channel in channels]
        return list(builds)

    def get_latest_build(
        self, project_id: str, version: str, ctx: CallContext
    ) -> Build:
        self._record("get_latest_build")
        builds = self.builds.get((project_id, version), [])
        if not builds:
            raise ResourceNotFoundError("No builds", status_code=404)
        return max(builds, key=lambda b: b.id)

    def get_build(
        self, project_id: str, version: str, build_id: int, ctx: CallContext
    ) -> Build:
        self._record("get_build", build_id)
        for build in self.builds.get((project_id, version), []):
            if build.id == build_id:
                return build
        raise ResourceNotFoundError("Build not found", status_code=404)

    def open_stream(
        self, url: str, ctx: CallContext, chunk_size: int
    ) -> ByteStream:
        self._record("open_stream", url)
        return self._body(url)

    def _body(self, url: str) -> ByteStream:
        yield from self.streams.get(url, [])


def make_build(
    build_id: int,
    channel: Channel = Channel.STABLE,
    artifacts: Optional[List[Artifact]] = None,
) -> Build:
    """Build record with a single canonical artifact unless ``artifacts`` is given."""
    if artifacts is None:
        artifacts = [
            Artifact(
                key="server:default",
                name=f"paper-1.21.11-{build_id}.jar",
                url=f"https://fill-data.papermc.io/v1/objects/{build_id}/paper.jar",
                size=11,
                sha256=HELLO_SHA256,
            )
        ]
    return Build(id=build_id, channel=channel, artifacts=artifacts)


@pytest.fixture
def fake_source():
    """An empty in-memory metadata source."""
    return FakeSource()


@pytest.fixture
def build_factory():
    """Factory for Build records (see make_build)."""
    return make_build


@pytest.fixture
def ctx():
    """A context with no deadline."""
    return CallContext()
