"""Command-line interface for aptlyflow.

Every command prints the name it produced (snapshot or publication) on
stdout and exits 0. Failures print a one-line diagnostic on stderr and
exit 1. Skipped teardown steps are reported on stderr without failing.
"""

import argparse
import os
import sys
from typing import Any, Callable, Dict, List, Optional

import yaml

from . import __version__
from .common.config import load_typed_config
from .common.logger import setup_logger
from .repos.base import DropReport, ExecutionMode, StepStatus
from .repos.errors import AptlyFlowError
from .repos.factory import Lifecycle, build_lifecycle


def _csv(value: str) -> List[str]:
    return [v for v in value.split(",") if v]


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="aptlyflow",
        description="Lifecycle of aptly repositories, snapshots and publications.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-c", "--config", help="YAML configuration file")
    parser.add_argument(
        "-n", "--dry-run", action="store_true",
        help="Print mutating operations instead of running them",
    )
    parser.add_argument("--log-level", help="Override the configured log level")

    sub = parser.add_subparsers(dest="command", metavar="COMMAND")
    sub.required = True

    p = sub.add_parser("repo-create", help="Create an empty base-arch-component repository")
    p.add_argument("name")

    p = sub.add_parser("repo-add", help="Add packages to a repository")
    p.add_argument("-a", dest="archs", type=_csv, help="Comma-separated architecture filter")
    p.add_argument("-r", dest="remove", action="store_true", help="Remove files after import")
    p.add_argument("name")
    p.add_argument("paths", nargs="+")

    p = sub.add_parser("repo-drop", help="Drop a repository")
    p.add_argument("-f", dest="force", action="store_true", help="Drop even if snapshotted or published")
    p.add_argument("name")

    sub.add_parser("repo-list", help="List repositories")

    p = sub.add_parser("snapshot", help="Snapshot a repository")
    p.add_argument("-s", dest="suffix", help="Snapshot suffix (default: today)")
    p.add_argument("repo")

    p = sub.add_parser("snapshot-merge", help="Merge snapshots into a new one")
    p.add_argument("dest")
    p.add_argument("sources", nargs="*")

    p = sub.add_parser("snapshot-drop", help="Drop a snapshot")
    p.add_argument("-f", dest="force", action="store_true", help="Drop even if merged into another snapshot")
    p.add_argument("name")

    p = sub.add_parser("snapshot-list", help="List snapshots")
    p.add_argument("repo", nargs="?")

    p = sub.add_parser("multiarch", help="Snapshot per-arch repositories into one snapshot")
    p.add_argument("-s", dest="suffix", help="Hyphen-free suffix (default: today)")
    p.add_argument("repos", nargs="+")

    p = sub.add_parser("multiarch-drop", help="Drop a multi-arch snapshot and its constituents")
    p.add_argument("name")

    p = sub.add_parser("publish", help="Publish snapshots")
    p.add_argument("-p", dest="prefix_dist", help="prefix/distribution or distribution")
    p.add_argument("snapshots", nargs="+")

    p = sub.add_parser("pub-drop", help="Drop a publication")
    p.add_argument("-a", dest="cascade", action="store_true", help="Also drop the published snapshots")
    p.add_argument("name")

    p = sub.add_parser("pub-list", help="List publications")
    p.add_argument("names", nargs="*", help="Only publications publishing all of these")

    p = sub.add_parser("pub-repos", help="List the entities a publication publishes")
    p.add_argument("name")

    return parser


def _emit(result) -> None:
    """Print a command result: a name, a teardown report or a listing."""
    if isinstance(result, DropReport):
        for name in result.done:
            print(name)
        for step in result.steps:
            if step.status == StepStatus.SKIPPED:
                print(f"Skipped {step.name}: {step.reason}", file=sys.stderr)
    elif isinstance(result, str):
        print(result)
    else:
        for name in result:
            print(name)


COMMANDS: Dict[str, Callable[[Lifecycle, argparse.Namespace], Any]] = {
    "repo-create": lambda lc, a: lc.repos.create_repo(a.name),
    "repo-add": lambda lc, a: lc.repos.add_packages(a.name, a.paths, a.archs, a.remove),
    "repo-drop": lambda lc, a: lc.repos.drop_repo(a.name, force=a.force),
    "repo-list": lambda lc, a: sorted(lc.probe.list_repos()),
    "snapshot": lambda lc, a: lc.snapshots.snapshot_repo(a.repo, a.suffix),
    "snapshot-merge": lambda lc, a: lc.snapshots.merge_snapshots(a.dest, *a.sources),
    "snapshot-drop": lambda lc, a: lc.snapshots.drop_snapshot(a.name, force=a.force),
    "snapshot-list": lambda lc, a: sorted(lc.probe.list_snapshots(a.repo)),
    "multiarch": lambda lc, a: lc.multiarch.snapshot_multiarch(*a.repos, suffix=a.suffix),
    "multiarch-drop": lambda lc, a: lc.multiarch.drop_multiarch(a.name),
    "publish": lambda lc, a: lc.publications.publish_multiarch(
        *a.snapshots, prefix_dist=a.prefix_dist
    ),
    "pub-drop": lambda lc, a: lc.publications.drop_publication(a.name, cascade=a.cascade),
    "pub-list": lambda lc, a: sorted(lc.probe.list_publications(a.names)),
    "pub-repos": lambda lc, a: lc.publications.list_backing(a.name),
}

# In dry-run mode these only print the operation, not a result
MUTATING = {
    "repo-create", "repo-add", "repo-drop", "snapshot", "snapshot-merge",
    "snapshot-drop", "multiarch", "multiarch-drop", "publish", "pub-drop",
}


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the aptlyflow CLI."""
    args = build_parser().parse_args(argv)

    try:
        config = load_typed_config(args.config)
    except (FileNotFoundError, TypeError, yaml.YAMLError) as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 1

    try:
        setup_logger(
            log_dir=config.logging.dir,
            level=args.log_level or config.logging.level,
            file_logging=config.logging.file_logging,
        )
    except ValueError as e:
        print(e, file=sys.stderr)
        return 1

    # DRY_RUN in the environment also selects dry-run mode
    dry_run = args.dry_run or config.dry_run or bool(os.environ.get("DRY_RUN"))
    mode = ExecutionMode.SIMULATE if dry_run else ExecutionMode.LIVE
    lifecycle = build_lifecycle(config, mode)

    try:
        result = COMMANDS[args.command](lifecycle, args)
    except AptlyFlowError as e:
        print(e, file=sys.stderr)
        if e.report is not None and e.report.done:
            print(f"Already removed: {', '.join(e.report.done)}", file=sys.stderr)
        return 1
    except ValueError as e:
        print(e, file=sys.stderr)
        return 1

    if not (mode == ExecutionMode.SIMULATE and args.command in MUTATING):
        _emit(result)
    return 0
