"""
Fill Metadata Source

This module talks to the Fill v3 JSON API over ``requests`` and decodes its
payloads into the records of :mod:`paperfetch.download.interfaces`. Nothing is
cached: every method issues its own request.
"""

import re
from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence

import requests  # type: ignore[import-untyped]

from paperfetch.constants import API_PREFIX, MAX_ERROR_BODY_CHARS
from paperfetch.context import CallContext
from paperfetch.exceptions import (
    DeadlineExceededError,
    DecodingError,
    ResourceNotFoundError,
    TransportError,
)
from paperfetch.log_utils import logger

from .interfaces import (
    Artifact,
    Build,
    ByteStream,
    Channel,
    Commit,
    MetadataSource,
    Project,
    VersionInfo,
)

if TYPE_CHECKING:
    from paperfetch.config import ClientConfig

_FRACTION_RX = re.compile(r"\.(\d+)(?=[+-]\d\d:\d\d$|$)")


def _require(data: Any, key: str, kind: type, endpoint: Optional[str]) -> Any:
    if not isinstance(data, dict):
        raise DecodingError(
            f"Expected an object while reading '{key}'",
            endpoint=endpoint,
            details=f"got {type(data).__name__}",
        )
    value = data.get(key)
    # bool is an int subclass; a build ID of true is still malformed
    if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
        raise DecodingError(
            f"Missing or invalid field '{key}'",
            endpoint=endpoint,
            details=f"expected {kind.__name__}, got {type(value).__name__}",
        )
    return value


def parse_timestamp(value: Any, endpoint: Optional[str] = None) -> Optional[datetime]:
    """Parse an ISO 8601 timestamp such as '2025-12-08T19:33:25.017Z'."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise DecodingError("Invalid timestamp", endpoint=endpoint, details=repr(value))
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    # fromisoformat before 3.11 only accepts 3 or 6 fractional digits
    text = _FRACTION_RX.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text)
    try:
        return datetime.fromisoformat(text)
    except ValueError as e:
        raise DecodingError("Invalid timestamp", endpoint=endpoint, details=value) from e


def _parse_version_groups(data: Any, endpoint: Optional[str]) -> Dict[str, List[str]]:
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise DecodingError("Invalid version groups", endpoint=endpoint)
    groups: Dict[str, List[str]] = {}
    for group, versions in data.items():
        if not isinstance(versions, list) or not all(
            isinstance(v, str) for v in versions
        ):
            raise DecodingError(
                f"Invalid versions in group '{group}'", endpoint=endpoint
            )
        groups[str(group)] = list(versions)
    return groups


def create_project_from_data(
    data: Dict[str, Any], endpoint: Optional[str] = None
) -> Project:
    """
    Create a Project from a ``{"project": {...}, "versions": {...}}`` payload.

    Raises:
        DecodingError: Required fields are missing or have the wrong type.
    """
    meta = _require(data, "project", dict, endpoint)
    return Project(
        id=_require(meta, "id", str, endpoint),
        name=meta.get("name") or meta["id"],
        version_groups=_parse_version_groups(data.get("versions"), endpoint),
    )


def create_version_from_data(
    data: Dict[str, Any], endpoint: Optional[str] = None
) -> VersionInfo:
    """Create a VersionInfo from a ``{"version": {...}, "builds": [...]}`` payload."""
    meta = _require(data, "version", dict, endpoint)
    builds = data.get("builds") or []
    if not isinstance(builds, list) or not all(
        isinstance(b, int) and not isinstance(b, bool) for b in builds
    ):
        raise DecodingError("Invalid build list", endpoint=endpoint)
    support = meta.get("support")
    return VersionInfo(
        id=_require(meta, "id", str, endpoint),
        support_status=support.get("status") if isinstance(support, dict) else None,
        builds=list(builds),
    )


def create_artifact_from_data(
    key: str, data: Dict[str, Any], endpoint: Optional[str] = None
) -> Artifact:
    """Create an Artifact from one entry of a build's ``downloads`` mapping."""
    checksums = data.get("checksums") if isinstance(data, dict) else None
    sha256 = checksums.get("sha256") if isinstance(checksums, dict) else None
    size = data.get("size", 0) if isinstance(data, dict) else 0
    try:
        size = int(size or 0)
    except (TypeError, ValueError) as e:
        raise DecodingError(
            f"Invalid size for download '{key}'", endpoint=endpoint
        ) from e
    return Artifact(
        key=key,
        name=_require(data, "name", str, endpoint),
        url=_require(data, "url", str, endpoint),
        size=size,
        sha256=sha256 or None,
    )


def create_build_from_data(
    data: Dict[str, Any], endpoint: Optional[str] = None
) -> Build:
    """
    Create a Build from a build record.

    Artifacts keep the order of the ``downloads`` mapping as the service sent it.

    Raises:
        DecodingError: Required fields are missing, the channel is unknown, or a
            download entry is malformed.
    """
    build_id = _require(data, "id", int, endpoint)
    channel_name = _require(data, "channel", str, endpoint)
    try:
        channel = Channel.parse(channel_name)
    except ValueError as e:
        raise DecodingError(
            f"Unknown channel '{channel_name}'", endpoint=endpoint
        ) from e

    commits: List[Commit] = []
    for commit_data in data.get("commits") or []:
        if not isinstance(commit_data, dict):
            raise DecodingError("Invalid commit entry", endpoint=endpoint)
        commits.append(
            Commit(
                sha=str(commit_data.get("sha", "")),
                message=str(commit_data.get("message", "")),
                time=parse_timestamp(commit_data.get("time"), endpoint),
            )
        )

    downloads = data.get("downloads") or {}
    if not isinstance(downloads, dict):
        raise DecodingError("Invalid downloads mapping", endpoint=endpoint)

    return Build(
        id=build_id,
        channel=channel,
        time=parse_timestamp(data.get("time"), endpoint),
        commits=commits,
        artifacts=[
            create_artifact_from_data(key, entry, endpoint)
            for key, entry in downloads.items()
        ],
    )


class FillMetadataSource(MetadataSource):
    """
    MetadataSource backed by the Fill v3 HTTP API.

    Usage:
        source = FillMetadataSource(ClientConfig())
        project = source.get_project("paper", CallContext.with_timeout(30))
    """

    def __init__(
        self, config: "ClientConfig", session: Optional[requests.Session] = None
    ):
        """
        Parameters:
            config (ClientConfig): Base URL, timeout, item limit and User-Agent.
            session (Optional[requests.Session]): Session to send requests through;
                a new one is created when omitted.
        """
        self.config = config
        self.session = session or requests.Session()
        self.session.headers.update(
            {"User-Agent": config.user_agent, "Accept": "application/json"}
        )

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "FillMetadataSource":
        return self

    def __exit__(self, *_exc: Any) -> None:
        self.close()

    def _url(self, *parts: Any) -> str:
        path = "/".join(str(part) for part in parts)
        return f"{self.config.base_url}{API_PREFIX}/{path}"

    def _limited(self, items: List[Any]) -> List[Any]:
        """Keep the last ``limit`` items, as the service lists oldest first."""
        limit = self.config.limit
        if limit > 0 and len(items) > limit:
            return items[-limit:]
        return items

    def _request(
        self,
        url: str,
        ctx: CallContext,
        params: Optional[Dict[str, Any]] = None,
        stream: bool = False,
    ) -> requests.Response:
        """
        Send a GET request bounded by the configured per-request timeout.

        Every request gets the full configured timeout; a deadline on ``ctx``
        can only shorten it.

        Raises:
            OperationCancelledError | DeadlineExceededError: Observed before
                sending or once the response headers arrived.
            ResourceNotFoundError: The service answered 404.
            TransportError: Connection failure, timeout, or any other non-200 status.
        """
        ctx.check(f"GET {url}")
        timeout = ctx.request_timeout(self.config.timeout)
        logger.debug(f"Requesting {url} (params={params}, timeout={timeout:.1f}s)")

        try:
            response = self.session.get(
                url, params=params, timeout=timeout, stream=stream
            )
        except requests.Timeout as e:
            # Only the caller's deadline counts as DeadlineExceededError; a
            # request that outlives its own timeout is a TransportError
            remaining = ctx.remaining()
            if remaining is not None and remaining <= 0:
                raise DeadlineExceededError(
                    f"GET {url} exceeded its deadline", url=url
                ) from e
            raise TransportError(
                "Request timed out", url=url, details=str(e)
            ) from e
        except requests.RequestException as e:
            raise TransportError(
                "Failed to execute request", url=url, details=str(e)
            ) from e

        try:
            ctx.check(f"GET {url}")
        except Exception:
            response.close()
            raise

        if response.status_code != 200:
            body = (response.text or "")[:MAX_ERROR_BODY_CHARS]
            response.close()
            error_cls = (
                ResourceNotFoundError if response.status_code == 404 else TransportError
            )
            raise error_cls(
                f"API returned non-OK status: {response.status_code}",
                url=url,
                status_code=response.status_code,
                body=body,
                details=f"body: {body}" if body else None,
            )

        logger.debug(f"Received HTTP {response.status_code} for {url}")
        return response

    def _get_json(
        self, url: str, ctx: CallContext, params: Optional[Dict[str, Any]] = None
    ) -> Any:
        response = self._request(url, ctx, params=params)
        try:
            return response.json()
        except ValueError as e:
            raise DecodingError(
                "Failed to decode response", endpoint=url, details=str(e)
            ) from e
        finally:
            response.close()

    def list_projects(self, ctx: CallContext) -> List[Project]:
        url = self._url("projects")
        data = self._get_json(url, ctx)
        entries = _require(data, "projects", list, url)
        return self._limited([create_project_from_data(e, url) for e in entries])

    def get_project(self, project_id: str, ctx: CallContext) -> Project:
        url = self._url("projects", project_id)
        return create_project_from_data(self._get_json(url, ctx), url)

    def list_versions(self, project_id: str, ctx: CallContext) -> List[VersionInfo]:
        url = self._url("projects", project_id, "versions")
        data = self._get_json(url, ctx)
        entries = data if isinstance(data, list) else _require(data, "versions", list, url)
        return self._limited([create_version_from_data(e, url) for e in entries])

    def get_version(
        self, project_id: str, version: str, ctx: CallContext
    ) -> VersionInfo:
        url = self._url("projects", project_id, "versions", version)
        info = create_version_from_data(self._get_json(url, ctx), url)
        info.builds = self._limited(info.builds)
        return info

    def list_builds(
        self,
        project_id: str,
        version: str,
        ctx: CallContext,
        channels: Sequence[Channel] = (),
    ) -> List[Build]:
        url = self._url("projects", project_id, "versions", version, "builds")
        params = {"channel": [c.api_name for c in channels]} if channels else None
        data = self._get_json(url, ctx, params=params)
        if not isinstance(data, list):
            raise DecodingError(
                "Expected a list of builds",
                endpoint=url,
                details=f"got {type(data).__name__}",
            )
        return self._limited([create_build_from_data(e, url) for e in data])

    def get_latest_build(
        self, project_id: str, version: str, ctx: CallContext
    ) -> Build:
        url = self._url("projects", project_id, "versions", version, "builds", "latest")
        return create_build_from_data(self._get_json(url, ctx), url)

    def get_build(
        self, project_id: str, version: str, build_id: int, ctx: CallContext
    ) -> Build:
        url = self._url("projects", project_id, "versions", version, "builds", build_id)
        return create_build_from_data(self._get_json(url, ctx), url)

    def open_stream(
        self, url: str, ctx: CallContext, chunk_size: int
    ) -> ByteStream:
        """
        Open ``url`` and return a generator over its body.

        Headers are awaited here, so a 404 or 5xx is raised before the caller
        writes anything. Read failures while iterating raise TransportError.
        """
        response = self._request(url, ctx, stream=True)
        return self._iter_body(response, url, chunk_size)

    def _iter_body(
        self, response: requests.Response, url: str, chunk_size: int
    ) -> ByteStream:
        try:
            for chunk in response.iter_content(chunk_size=chunk_size):
                if chunk:
                    yield chunk
        except requests.RequestException as e:
            raise TransportError(
                "Connection failed while streaming", url=url, details=str(e)
            ) from e
        finally:
            response.close()
