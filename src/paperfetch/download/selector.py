"""
Release Selection

Picks the latest version, the recommended version and the promoted build of a
version. The promoted-build policy is an explicit, ordered list of strategies:
recommended builds, then stable builds, then the service's latest build.
"""

from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

from paperfetch.context import CallContext
from paperfetch.exceptions import (
    DeadlineExceededError,
    DecodingError,
    NotFoundError,
    PaperfetchError,
    TransportError,
)
from paperfetch.log_utils import logger

from .interfaces import Build, Channel, MetadataSource
from .version import VersionCatalog

# A strategy returns a build ID, None for "nothing here, try the next one",
# or raises for a hard failure.
StrategyFunc = Callable[[MetadataSource, str, str, CallContext], Optional[int]]


@dataclass(frozen=True)
class PromotionStrategy:
    """One step of the promoted-build fallback chain."""

    name: str
    find: StrategyFunc


def newest_build(builds: Sequence[Build]) -> Optional[Build]:
    """Return the build with the highest ID; the service does not guarantee order."""
    if not builds:
        return None
    return max(builds, key=lambda build: build.id)


def _newest_in_channel(channel: Channel) -> StrategyFunc:
    def find(
        source: MetadataSource, project_id: str, version: str, ctx: CallContext
    ) -> Optional[int]:
        build = newest_build(source.list_builds(project_id, version, ctx, [channel]))
        return build.id if build is not None else None

    return find


def _latest_shortcut(
    source: MetadataSource, project_id: str, version: str, ctx: CallContext
) -> Optional[int]:
    return source.get_latest_build(project_id, version, ctx).id


DEFAULT_PROMOTION_STRATEGIES: Tuple[PromotionStrategy, ...] = (
    PromotionStrategy("recommended", _newest_in_channel(Channel.RECOMMENDED)),
    PromotionStrategy("stable", _newest_in_channel(Channel.STABLE)),
    PromotionStrategy("latest", _latest_shortcut),
)


class ReleaseSelector:
    """
    Applies the latest/recommended/promoted selection policies.

    Version selection works on an already flattened (oldest first) sequence;
    build selection queries the metadata source.
    """

    def __init__(
        self,
        source: MetadataSource,
        catalog: Optional[VersionCatalog] = None,
        strategies: Sequence[PromotionStrategy] = DEFAULT_PROMOTION_STRATEGIES,
    ):
        self.source = source
        self.catalog = catalog or VersionCatalog()
        self.strategies = tuple(strategies)

    def select_latest(self, flattened: Sequence[str]) -> str:
        """
        Return the newest version of a flattened sequence.

        Raises:
            NotFoundError: The sequence is empty.
        """
        if not flattened:
            raise NotFoundError("No versions found")
        return flattened[-1]

    def select_recommended(self, flattened: Sequence[str]) -> str:
        """
        Return the newest version that is not a prerelease.

        When every version is a prerelease, the newest version is returned
        instead; that fallback is intentional, not an error.

        Raises:
            NotFoundError: The sequence is empty.
        """
        if not flattened:
            raise NotFoundError("No versions found")
        for version in reversed(flattened):
            if not self.catalog.is_prerelease(version):
                return version
        logger.debug(
            "No non-prerelease version among %d; using newest %s",
            len(flattened),
            flattened[-1],
        )
        return flattened[-1]

    def find_promoted_build(
        self, project_id: str, version: str, ctx: CallContext
    ) -> int:
        """
        Find the build to ship for a version.

        Strategies run in order and the first one that yields a build wins. A
        strategy that finds nothing passes to the next one; a transport or
        decoding failure is remembered and the chain continues. Cancellation
        and deadline expiry stop the chain immediately.

        Returns:
            int: The selected build ID.

        Raises:
            TransportError | DecodingError: Every strategy failed; the last
                failure is raised.
            NotFoundError: No strategy produced a build.
        """
        failures: List[PaperfetchError] = []
        for strategy in self.strategies:
            ctx.check(f"promoted build lookup for {project_id} {version}")
            try:
                build_id = strategy.find(self.source, project_id, version, ctx)
            except DeadlineExceededError:
                raise
            except (TransportError, DecodingError) as e:
                logger.debug(
                    "Promotion step '%s' failed for %s %s: %s",
                    strategy.name,
                    project_id,
                    version,
                    e,
                )
                failures.append(e)
                continue

            if build_id is not None:
                logger.debug(
                    "Promoted build for %s %s is %d (via %s)",
                    project_id,
                    version,
                    build_id,
                    strategy.name,
                )
                return build_id
            logger.debug(
                "Promotion step '%s' found no builds for %s %s",
                strategy.name,
                project_id,
                version,
            )

        if failures:
            raise failures[-1]
        raise NotFoundError(f"No builds found for {project_id} {version}")

    def latest_build(
        self,
        project_id: str,
        version: str,
        ctx: CallContext,
        channel: Optional[Channel] = None,
    ) -> Build:
        """
        Return the newest build of a version, optionally within one channel.

        The latest-build shortcut endpoint cannot filter by channel, so a
        channel filter lists the channel's builds and takes the highest ID.

        Raises:
            NotFoundError: No build exists in the requested channel.
        """
        if channel is None:
            return self.source.get_latest_build(project_id, version, ctx)

        build = newest_build(
            self.source.list_builds(project_id, version, ctx, [channel])
        )
        if build is None:
            raise NotFoundError(
                f"No builds found for channel {channel.value}",
                details=f"{project_id} {version}",
            )
        return build
