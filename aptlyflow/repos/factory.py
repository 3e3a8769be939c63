"""Wiring of the runner, probe and managers from configuration."""

from dataclasses import dataclass
from typing import Optional, TextIO

from ..common.config import AptlyFlowConfig
from .aptly import AptlyRunner
from .base import ExecutionMode
from .multiarch import MultiArchOrchestrator
from .probe import EntityProbe
from .publication import PublicationManager
from .repository import RepositoryManager
from .snapshot import SnapshotManager


@dataclass
class Lifecycle:
    """All managers sharing one runner, probe and execution mode."""

    runner: AptlyRunner
    probe: EntityProbe
    repos: RepositoryManager
    snapshots: SnapshotManager
    multiarch: MultiArchOrchestrator
    publications: PublicationManager
    mode: ExecutionMode


def build_lifecycle(
    config: Optional[AptlyFlowConfig] = None,
    mode: Optional[ExecutionMode] = None,
    out: Optional[TextIO] = None,
) -> Lifecycle:
    """Build the managers for a configuration.

    Args:
        config: Configuration (defaults if omitted)
        mode: Execution mode; defaults to SIMULATE when config.dry_run is set
        out: Stream for dry-run output (stdout if omitted)

    Returns:
        Lifecycle bundle
    """
    config = config or AptlyFlowConfig()
    if mode is None:
        mode = ExecutionMode.SIMULATE if config.dry_run else ExecutionMode.LIVE

    runner = AptlyRunner(
        aptly_bin=config.aptly.binary,
        config_file=config.aptly.config_file,
        timeout=config.aptly.timeout,
    )
    probe = EntityProbe(runner)
    repos = RepositoryManager(runner, probe, mode, out)
    snapshots = SnapshotManager(runner, probe, mode, out, suffix_format=config.suffix_format)
    multiarch = MultiArchOrchestrator(snapshots, probe, mode, out)
    publications = PublicationManager(runner, probe, multiarch, mode, out)

    return Lifecycle(
        runner=runner,
        probe=probe,
        repos=repos,
        snapshots=snapshots,
        multiarch=multiarch,
        publications=publications,
        mode=mode,
    )
