"""Multi-arch orchestrator.

A multi-arch snapshot ``base-component-suffix`` is the merge of one
per-arch snapshot ``base-arch-component-suffix`` per repository. aptly
does not record that relationship; it is recovered from the names.

Neither direction is transactional. Creation leaves already created
per-arch snapshots in place on failure and reuses them when re-run with
the same suffix. Teardown is planned up front and executed step by step.
"""

import re
from typing import Optional, TextIO

from ..common.logger import get_logger
from .base import DropReport, ExecutionMode, ManagerBase, StepKind, StepStatus
from .errors import (
    AlreadyExistsError,
    AptlyFlowError,
    MalformedNameError,
    NoSuchRepoError,
    NoSuchSnapshotError,
    StillPublishedError,
)
from .naming import RepoName, base_name, multiarch_name, strip_base, validate_suffix
from .probe import EntityProbe
from .snapshot import SnapshotManager

logger = get_logger("multiarch")


class MultiArchOrchestrator(ManagerBase):
    """Builds and tears down multi-arch snapshots."""

    def __init__(
        self,
        snapshots: SnapshotManager,
        probe: EntityProbe,
        mode: ExecutionMode = ExecutionMode.LIVE,
        out: Optional[TextIO] = None,
    ):
        super().__init__(mode, out)
        self.snapshots = snapshots
        self.probe = probe

    def snapshot_multiarch(self, *repo_names: str, suffix: Optional[str] = None) -> str:
        """Snapshot per-arch repositories and merge them into one snapshot.

        Args:
            repo_names: Per-arch repositories sharing base and component
            suffix: Hyphen-free suffix (today's date if omitted)

        Returns:
            Name of the unified snapshot (base-component-suffix)

        Raises:
            MalformedNameError: If the suffix or first repository name is malformed
            NoSuchRepoError: On the first missing repository, before any change
            AlreadyExistsError: If the unified snapshot already exists
            ExternalToolError: If a snapshot or merge call fails
        """
        if suffix is None:
            suffix = self.snapshots.default_suffix()
        if self.simulating:
            self._echo("snapshot_multiarch", f"-s {suffix}", *repo_names)
            return multiarch_name(repo_names[0], suffix) if repo_names else ""

        if not repo_names:
            raise ValueError("At least one repository is required")
        validate_suffix(suffix)

        for repo in repo_names:
            if not self.probe.repo_exists(repo):
                raise NoSuchRepoError(repo)

        sn = RepoName.parse(repo_names[0]).multiarch(suffix)
        if self.probe.snapshot_exists(sn):
            raise AlreadyExistsError(sn)

        per_arch = []
        for repo in repo_names:
            name, _ = self.snapshots.ensure_snapshot(repo, suffix)
            per_arch.append(name)

        self.snapshots.merge_snapshots(sn, *per_arch)
        logger.info(f"Created multi-arch snapshot {sn} from {', '.join(per_arch)}")
        return sn

    def plan_drop(self, sn: str) -> DropReport:
        """Compute the teardown plan for a multi-arch snapshot.

        The first step drops the unified snapshot and is strict. It is
        followed by one best-effort step per constituent, i.e. every
        snapshot named ``base-<arch>-rest`` where ``rest`` is the unified
        name without its base.

        Raises:
            NoSuchSnapshotError: If the snapshot doesn't exist
            StillPublishedError: If the snapshot is published
            MalformedNameError: If the name has no base or nothing after it
        """
        if not self.probe.snapshot_exists(sn):
            raise NoSuchSnapshotError(sn)
        if self.probe.is_published(sn):
            raise StillPublishedError(sn)

        base = base_name(sn)
        if not base:
            raise MalformedNameError(sn, "base", kind="snapshot")
        rest = strip_base(sn)
        if not rest:
            raise MalformedNameError(sn, "suffix", kind="snapshot")

        pattern = re.compile(rf"^{re.escape(base)}-[^-]+-{re.escape(rest)}$")
        constituents = sorted(s for s in self.probe.list_snapshots() if pattern.match(s))

        report = DropReport(target=sn)
        report.add(StepKind.MULTIARCH, sn, strict=True)
        for name in constituents:
            report.add(StepKind.SNAPSHOT, name, strict=False)
        return report

    def drop_multiarch(self, sn: str) -> DropReport:
        """Drop a multi-arch snapshot and its per-arch constituents.

        Dropping the unified snapshot is strict. Constituents that are gone
        or published are skipped. The first hard failure aborts the rest of
        the plan and is raised unchanged with the partial report attached.

        Returns:
            DropReport with the outcome of every step
        """
        if self.simulating:
            self._echo("multiarch_drop", sn)
            return DropReport(target=sn)

        report = self.plan_drop(sn)
        for step in report.steps:
            try:
                if not step.strict:
                    if not self.probe.snapshot_exists(step.name):
                        step.mark(StepStatus.SKIPPED, "already gone")
                        continue
                    if self.probe.is_published(step.name):
                        step.mark(StepStatus.SKIPPED, "published")
                        logger.warning(f"Snapshot is published, skipped: {step.name}")
                        continue
                self.snapshots.drop_snapshot(step.name)
                step.mark(StepStatus.DONE)
            except AptlyFlowError as e:
                step.mark(StepStatus.FAILED, str(e))
                e.report = report
                raise

        return report
