"""Repository manager: create, populate and drop local repositories."""

from typing import Iterable, List, Optional, TextIO

from ..common.logger import get_logger
from .aptly import AptlyRunner
from .base import ExecutionMode, ManagerBase
from .errors import HasDependentsError, NoSuchRepoError, StillPublishedError
from .naming import RepoName
from .probe import EntityProbe

logger = get_logger("repo_manager")


class RepositoryManager(ManagerBase):
    """Manages aptly local repositories named ``base-arch-component``."""

    def __init__(
        self,
        runner: AptlyRunner,
        probe: EntityProbe,
        mode: ExecutionMode = ExecutionMode.LIVE,
        out: Optional[TextIO] = None,
    ):
        super().__init__(mode, out)
        self.runner = runner
        self.probe = probe

    def create_repo(self, name: str) -> str:
        """Create an empty repository.

        Architecture, component and distribution are derived from the
        name. Duplicate names are rejected by aptly itself.

        Args:
            name: Repository name (base-arch-component)

        Returns:
            The repository name

        Raises:
            MalformedNameError: If any name part is empty
            ExternalToolError: If aptly rejects the creation
        """
        if self.simulating:
            self._echo("repo_create", name)
            return name

        repo = RepoName.parse(name)
        self.runner.run([
            "repo", "create",
            f"-architectures={repo.arch}",
            f'-comment=The "{repo.base}" package repository ({repo.arch}, {repo.component})',
            f"-component={repo.component}",
            f"-distribution={repo.base}",
            name,
        ])
        logger.info(f"Created repository {name}")
        return name

    def add_packages(
        self,
        name: str,
        paths: Iterable[str],
        architectures: Optional[List[str]] = None,
        remove_files: bool = False,
    ) -> str:
        """Add package files or directories to a repository.

        Args:
            name: Repository name
            paths: Package files or directories to import
            architectures: Optional architecture filter
            remove_files: Delete the files after a successful import

        Returns:
            The repository name

        Raises:
            NoSuchRepoError: If the repository doesn't exist
            ExternalToolError: If aptly fails to import
        """
        paths = [str(p) for p in paths]
        if self.simulating:
            self._echo(
                "repo_add",
                f"-a {','.join(architectures)}" if architectures else None,
                "-r" if remove_files else None,
                name,
                *paths,
            )
            return name

        if not self.probe.repo_exists(name):
            raise NoSuchRepoError(name)

        args = ["repo", "add"]
        if architectures:
            args.append(f"-architectures={','.join(architectures)}")
        if remove_files:
            args.append("-remove-files")
        args.append(name)
        args.extend(paths)

        self.runner.run(args)
        logger.info(f"Added {len(paths)} path(s) to repository {name}")
        return name

    def drop_repo(self, name: str, force: bool = False) -> str:
        """Drop a repository.

        Without force the repository must be neither published nor
        snapshotted; the publication check comes first.

        Args:
            name: Repository name
            force: Skip both guards and let aptly cascade

        Returns:
            The dropped repository name

        Raises:
            StillPublishedError: If the repository is published
            HasDependentsError: If the repository has snapshots
            ExternalToolError: If aptly refuses the drop
        """
        if self.simulating:
            self._echo("repo_drop", "-f" if force else None, name)
            return name

        if not force:
            if self.probe.is_published(name):
                raise StillPublishedError(name, entity="Repository")
            if self.probe.has_snapshots(name):
                raise HasDependentsError(name)

        args = ["repo", "drop"]
        if force:
            args.append("-force")
        args.append(name)

        self.runner.run(args)
        logger.info(f"Dropped repository {name}")
        return name
