"""Snapshot manager: point-in-time copies, merges and drops."""

from typing import Optional, TextIO, Tuple

from ..common.config import DEFAULT_SUFFIX_FORMAT
from ..common.logger import get_logger
from .aptly import AptlyRunner
from .base import ExecutionMode, ManagerBase
from .errors import (
    AlreadyExistsError,
    NoSuchRepoError,
    NoSuchSnapshotError,
    StillPublishedError,
)
from .naming import SEPARATOR, today_suffix
from .probe import EntityProbe

logger = get_logger("snapshot_manager")


class SnapshotManager(ManagerBase):
    """Creates, merges and drops snapshots.

    Snapshots of a repository are named ``repo-suffix``; the suffix
    defaults to today's date.
    """

    def __init__(
        self,
        runner: AptlyRunner,
        probe: EntityProbe,
        mode: ExecutionMode = ExecutionMode.LIVE,
        out: Optional[TextIO] = None,
        suffix_format: str = DEFAULT_SUFFIX_FORMAT,
    ):
        super().__init__(mode, out)
        self.runner = runner
        self.probe = probe
        self.suffix_format = suffix_format

    def default_suffix(self) -> str:
        """Suffix used when none is given: today's date stamp."""
        return today_suffix(self.suffix_format)

    def snapshot_repo(self, repo_name: str, suffix: Optional[str] = None) -> str:
        """Snapshot a repository.

        Args:
            repo_name: Repository to snapshot
            suffix: Snapshot suffix (today's date if omitted)

        Returns:
            Name of the created snapshot (repo_name-suffix)

        Raises:
            NoSuchRepoError: If the repository doesn't exist
            AlreadyExistsError: If the snapshot already exists
            ExternalToolError: If aptly fails to create it
        """
        sn = f"{repo_name}{SEPARATOR}{suffix or self.default_suffix()}"
        if self.simulating:
            self._echo("snapshot_repo", repo_name, suffix)
            return sn

        if not self.probe.repo_exists(repo_name):
            raise NoSuchRepoError(repo_name)
        if self.probe.snapshot_exists(sn):
            raise AlreadyExistsError(sn)

        self._create_from_repo(sn, repo_name)
        return sn

    def ensure_snapshot(self, repo_name: str, suffix: str) -> Tuple[str, bool]:
        """Snapshot a repository unless that snapshot already exists.

        The repository is expected to have been checked by the caller.

        Returns:
            Tuple of (snapshot name, whether it was created now)
        """
        sn = f"{repo_name}{SEPARATOR}{suffix}"
        if self.probe.snapshot_exists(sn):
            logger.info(f"Reusing existing snapshot {sn}")
            return sn, False

        self._create_from_repo(sn, repo_name)
        return sn, True

    def _create_from_repo(self, sn: str, repo_name: str) -> None:
        self.runner.run(["snapshot", "create", sn, "from", "repo", repo_name])
        logger.info(f"Created snapshot {sn} from repository {repo_name}")

    def merge_snapshots(self, dest_name: str, *source_names: str) -> str:
        """Merge snapshots into a new snapshot.

        Sources are merged in the given order, so later sources win on
        conflicting packages. Without sources an empty snapshot is created.

        Args:
            dest_name: Name of the snapshot to create
            source_names: Snapshots to merge

        Returns:
            The destination snapshot name

        Raises:
            AlreadyExistsError: If the destination already exists
            NoSuchSnapshotError: On the first missing source
            ExternalToolError: If aptly fails to merge
        """
        if self.simulating:
            self._echo("snapshot_merge", dest_name, *source_names)
            return dest_name

        if self.probe.snapshot_exists(dest_name):
            raise AlreadyExistsError(dest_name)

        if not source_names:
            self.runner.run(["snapshot", "create", dest_name, "empty"])
            logger.info(f"Created empty snapshot {dest_name}")
            return dest_name

        for source in source_names:
            if not self.probe.snapshot_exists(source):
                raise NoSuchSnapshotError(source)

        self.runner.run(["snapshot", "merge", dest_name] + list(source_names))
        logger.info(f"Merged {len(source_names)} snapshot(s) into {dest_name}")
        return dest_name

    def drop_snapshot(self, name: str, force: bool = False) -> str:
        """Drop a snapshot that is not published.

        Args:
            name: Snapshot name
            force: Drop even if another snapshot was merged from it

        Returns:
            The dropped snapshot name

        Raises:
            StillPublishedError: If the snapshot is published
            ExternalToolError: If aptly refuses the drop
        """
        if self.simulating:
            self._echo("snapshot_drop", "-f" if force else None, name)
            return name

        if self.probe.is_published(name):
            raise StillPublishedError(name)

        args = ["snapshot", "drop"]
        if force:
            args.append("-force")
        args.append(name)

        self.runner.run(args)
        logger.info(f"Dropped snapshot {name}")
        return name
