# src/paperfetch/cli.py

import argparse
import json
import sys
from pathlib import Path
from typing import Any, List, Optional

from paperfetch import log_utils
from paperfetch.config import build_client_config, load_config
from paperfetch.context import background
from paperfetch.download.orchestrator import ReleaseOrchestrator
from paperfetch.exceptions import IntegrityError, PaperfetchError
from paperfetch.utils import get_package_version


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="paperfetch",
        description="paperfetch - resolve and download verified builds from the Fill API",
    )
    parser.add_argument("--config", help="Path to a paperfetch.yaml config file")
    parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Limit the number of items to show (0 means no limit)",
    )
    parser.add_argument(
        "--channel",
        choices=["alpha", "beta", "stable", "recommended"],
        help="Only consider builds from this channel when picking the latest build",
    )
    parser.add_argument(
        "--timeout", type=float, default=None, help="Request timeout in seconds"
    )
    parser.add_argument("--base-url", dest="base_url", help="Fill API base URL")
    parser.add_argument("--log-level", dest="log_level", help="Log level (e.g. DEBUG)")
    parser.add_argument(
        "--log-dir",
        dest="log_dir",
        help="Also write logs to paperfetch.log in this directory",
    )
    subparsers = parser.add_subparsers(dest="command")

    # list projects / versions / builds
    list_parser = subparsers.add_parser("list", help="List projects, versions or builds")
    list_subparsers = list_parser.add_subparsers(dest="list_command", required=True)
    list_subparsers.add_parser(
        "projects", aliases=["project"], help="List all available projects"
    )
    versions_parser = list_subparsers.add_parser(
        "versions", aliases=["version"], help="List all versions for a project"
    )
    versions_parser.add_argument("project")
    versions_parser.add_argument(
        "--details",
        action="store_true",
        help="Show support status and build count of each version",
    )
    builds_parser = list_subparsers.add_parser(
        "builds", aliases=["build"], help="List all builds for a version"
    )
    builds_parser.add_argument("project")
    builds_parser.add_argument("version")
    builds_parser.add_argument(
        "--ids",
        action="store_true",
        help="Print only build IDs, without fetching build records",
    )

    # download
    download_parser = subparsers.add_parser(
        "download",
        help="Download a build file",
        description=(
            "Download a build file. With only PROJECT, the recommended version is used. "
            "Without BUILD, the latest build (or the promoted build with --promoted) is used."
        ),
    )
    download_parser.add_argument("project")
    download_parser.add_argument("version", nargs="?")
    download_parser.add_argument("build", nargs="?", type=int)
    download_parser.add_argument(
        "-d",
        "--destination",
        default=".",
        help="Destination directory for the downloaded file",
    )
    download_parser.add_argument(
        "--promoted",
        action="store_true",
        help="Pick the promoted build (recommended, then stable, then latest)",
    )
    download_parser.add_argument(
        "--file",
        dest="artifact_name",
        help="Download the build file with this name instead of the default one",
    )

    # get-url
    url_parser = subparsers.add_parser(
        "get-url", aliases=["url"], help="Get download URL without downloading"
    )
    url_parser.add_argument("project")
    url_parser.add_argument("version", nargs="?")
    url_parser.add_argument("build", nargs="?", type=int)
    url_parser.add_argument(
        "--promoted",
        action="store_true",
        help="Pick the promoted build (recommended, then stable, then latest)",
    )
    url_parser.add_argument(
        "--file",
        dest="artifact_name",
        help="Print the URL of the build file with this name",
    )

    # ci
    ci_parser = subparsers.add_parser("ci", help="Commands for CI environments")
    ci_subparsers = ci_parser.add_subparsers(dest="ci_command", required=True)
    matrix_parser = ci_subparsers.add_parser(
        "matrix", help="JSON array of the latest builds of the newest versions"
    )
    matrix_parser.add_argument("project")
    actions_parser = ci_subparsers.add_parser(
        "github-actions", help="JSON matrix for a GitHub Actions strategy"
    )
    actions_parser.add_argument("project")
    latest_parser = ci_subparsers.add_parser(
        "latest", help="Print just the latest version"
    )
    latest_parser.add_argument("project")

    subparsers.add_parser("version", help="Display paperfetch version")
    return parser


def _make_orchestrator(args: argparse.Namespace) -> ReleaseOrchestrator:
    raw = load_config(args.config)
    config = build_client_config(
        raw,
        base_url=args.base_url,
        timeout=args.timeout,
        channel=args.channel,
        limit=args.limit,
    )
    return ReleaseOrchestrator(config)


def _run_list(args: argparse.Namespace, orchestrator: ReleaseOrchestrator) -> None:
    ctx = background()
    source = orchestrator.source
    limit = orchestrator.config.limit
    if args.list_command in ("projects", "project"):
        for project in source.list_projects(ctx):
            print(f"{project.id} ({project.name})")
    elif args.list_command in ("versions", "version") and args.details:
        for info in reversed(orchestrator.version_details(args.project, ctx)):
            status = info.support_status or "unknown"
            print(f"{info.id} ({status}, {len(info.builds)} builds)")
    elif args.list_command in ("versions", "version"):
        versions = orchestrator.versions(args.project, ctx)
        if limit > 0:
            versions = versions[-limit:]
        for version in reversed(versions):
            print(version)
    elif args.ids:
        for build_id in orchestrator.build_ids(args.project, args.version, ctx):
            print(build_id)
    else:
        for build in source.list_builds(args.project, args.version, ctx):
            print(f"{build.id} ({build.channel.value})")


def _run_download(args: argparse.Namespace, orchestrator: ReleaseOrchestrator) -> int:
    try:
        result = orchestrator.download(
            args.project,
            version=args.version,
            build_id=args.build,
            destination_dir=Path(args.destination),
            promoted=args.promoted,
            artifact_name=args.artifact_name,
        )
    except IntegrityError as e:
        log_utils.logger.error(f"Downloaded {e.result.path}")
        log_utils.logger.error(
            f"Checksum verification FAILED! Expected: {e.result.expected_sha256}, got: {e.result.actual_sha256}"
        )
        return 1
    print(f"Downloaded {result.path}")
    return 0


def _run_ci(args: argparse.Namespace, orchestrator: ReleaseOrchestrator) -> None:
    if args.ci_command == "latest":
        print(orchestrator.latest_version(args.project))
        return

    entries: Any = orchestrator.ci_matrix(args.project)
    if args.ci_command == "github-actions":
        entries = {"include": entries}
    print(json.dumps(entries, separators=(",", ":")))


def main(argv: Optional[List[str]] = None) -> int:
    """
    Entry point for the paperfetch command-line interface.

    Parses arguments, loads configuration and dispatches the list, download,
    get-url, ci and version subcommands. Any paperfetch error is logged with its
    message and the exit code is 1.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.log_level:
        log_utils.set_log_level(args.log_level)
    if args.log_dir:
        log_utils.add_file_logging(Path(args.log_dir), args.log_level or "INFO")

    if args.command is None:
        parser.print_help()
        return 0
    if args.command == "version":
        print(f"paperfetch {get_package_version()}")
        return 0

    try:
        orchestrator = _make_orchestrator(args)
        if args.command == "list":
            _run_list(args, orchestrator)
        elif args.command == "download":
            return _run_download(args, orchestrator)
        elif args.command in ("get-url", "url"):
            print(
                orchestrator.download_url(
                    args.project,
                    version=args.version,
                    build_id=args.build,
                    promoted=args.promoted,
                    artifact_name=args.artifact_name,
                )
            )
        elif args.command == "ci":
            _run_ci(args, orchestrator)
    except PaperfetchError as e:
        log_utils.logger.error(f"Error: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
