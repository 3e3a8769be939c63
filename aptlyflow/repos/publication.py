"""Publication manager: publish snapshot sets and tear publications down."""

from typing import List, Optional, TextIO, Tuple

from ..common.logger import get_logger
from .aptly import AptlyRunner
from .base import DropReport, ExecutionMode, ManagerBase, StepKind, StepStatus
from .errors import (
    AlreadyExistsError,
    AptlyFlowError,
    MalformedNameError,
    NoSuchPublicationError,
    NoSuchSnapshotError,
)
from .multiarch import MultiArchOrchestrator
from .naming import SnapshotName, base_name, snapshot_suffix
from .probe import EntityProbe, publication_key, split_publication

logger = get_logger("publication_manager")


def publication_parts(first_snapshot: str, prefix_dist: Optional[str] = None) -> Tuple[str, str]:
    """Derive the (prefix, distribution) of a publication, possibly empty.

    The prefix defaults to the suffix of the first snapshot and the
    distribution to its base. ``prefix_dist`` overrides both when it has
    the form ``prefix/dist``, or only the distribution when it has no slash.
    """
    prefix, dist = split_publication(prefix_dist) if prefix_dist else ("", "")
    return prefix or snapshot_suffix(first_snapshot), dist or base_name(first_snapshot)


def resolve_publication(first_snapshot: str, prefix_dist: Optional[str] = None) -> Tuple[str, str]:
    """Work out the (prefix, distribution) of a publication.

    Raises:
        MalformedNameError: If the prefix or distribution comes out empty
    """
    prefix, dist = publication_parts(first_snapshot, prefix_dist)
    if not prefix:
        raise MalformedNameError(first_snapshot, "suffix", kind="snapshot")
    if not dist:
        raise MalformedNameError(first_snapshot, "base", kind="snapshot")

    return prefix, dist


class PublicationManager(ManagerBase):
    """Publishes snapshots and drops publications."""

    def __init__(
        self,
        runner: AptlyRunner,
        probe: EntityProbe,
        multiarch: MultiArchOrchestrator,
        mode: ExecutionMode = ExecutionMode.LIVE,
        out: Optional[TextIO] = None,
    ):
        super().__init__(mode, out)
        self.runner = runner
        self.probe = probe
        self.multiarch = multiarch

    def publish_multiarch(self, *snapshot_names: str, prefix_dist: Optional[str] = None) -> str:
        """Publish a set of snapshots as one publication.

        Each snapshot becomes one publication component, taken from its
        name, so components must be unique within the set.

        Args:
            snapshot_names: Snapshots to publish, in component order
            prefix_dist: Optional "prefix/dist" or "dist" override

        Returns:
            Publication name "prefix/distribution"

        Raises:
            MalformedNameError: If prefix, distribution or a component is empty
            AlreadyExistsError: If the publication already exists
            NoSuchSnapshotError: On the first missing snapshot
            ExternalToolError: If aptly fails to publish
        """
        if self.simulating:
            self._echo(
                "publish_multiarch",
                f"-p {prefix_dist}" if prefix_dist else None,
                *snapshot_names,
            )
            first = snapshot_names[0] if snapshot_names else ""
            return "/".join(publication_parts(first, prefix_dist))

        if not snapshot_names:
            raise ValueError("At least one snapshot is required")

        prefix, dist = resolve_publication(snapshot_names[0], prefix_dist)
        pub = f"{prefix}/{dist}"

        if self.probe.publication_exists(pub):
            raise AlreadyExistsError(pub, entity="Publication")

        components = []
        for name in snapshot_names:
            if not self.probe.snapshot_exists(name):
                raise NoSuchSnapshotError(name)
            component = SnapshotName.parse(name).publication_component
            if not component:
                raise MalformedNameError(name, "comp", kind="snapshot")
            components.append(component)

        self.runner.run(
            [
                "publish", "snapshot",
                f"-component={','.join(components)}",
                f"-distribution={dist}",
            ]
            + list(snapshot_names)
            + [prefix]
        )
        logger.info(f"Published {', '.join(snapshot_names)} as {pub}")
        return pub

    def publication_exists(self, prefix_dist: str) -> bool:
        """Check if a publication exists."""
        return self.probe.publication_exists(prefix_dist)

    def list_backing(self, prefix_dist: str) -> List[str]:
        """Names of the entities a publication publishes."""
        return self.probe.list_publication_backing(prefix_dist)

    def drop_publication(self, prefix_dist: str, cascade: bool = False) -> DropReport:
        """Drop a publication, optionally with the snapshots behind it.

        With cascade, every backing name that is still a snapshot is torn
        down with drop_multiarch(). The backing list is read before the
        publication is dropped. The publication drop itself is not undone
        if a cascade step fails; the failure is raised with the partial
        report attached.

        Args:
            prefix_dist: Publication name "prefix/distribution" (a bare
                distribution means the default prefix ".")
            cascade: Also drop the backing snapshots and their constituents

        Returns:
            DropReport with the outcome of every step

        Raises:
            NoSuchPublicationError: If the publication doesn't exist
            ExternalToolError: If aptly fails to drop it
        """
        if self.simulating:
            self._echo("pub_drop", "-a" if cascade else None, prefix_dist)
            return DropReport(target=prefix_dist)

        prefix_dist = publication_key(prefix_dist)
        report = DropReport(target=prefix_dist)
        if not self.probe.publication_exists(prefix_dist):
            raise NoSuchPublicationError(prefix_dist)

        backing = self.list_backing(prefix_dist) if cascade else []
        prefix, dist = split_publication(prefix_dist)

        step = report.add(StepKind.PUBLICATION, prefix_dist)
        args = ["publish", "drop", dist]
        if prefix:
            args.append(prefix)
        try:
            self.runner.run(args)
        except AptlyFlowError as e:
            step.mark(StepStatus.FAILED, str(e))
            e.report = report
            raise
        step.mark(StepStatus.DONE)
        logger.info(f"Dropped publication {prefix_dist}")

        for name in backing:
            if not self.probe.snapshot_exists(name):
                report.add(StepKind.SNAPSHOT, name, strict=False).mark(
                    StepStatus.SKIPPED, "not a snapshot"
                )
                continue
            try:
                report.extend(self.multiarch.drop_multiarch(name))
            except AptlyFlowError as e:
                if e.report is not None:
                    report.extend(e.report)
                e.report = report
                raise

        return report
