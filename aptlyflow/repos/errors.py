"""Error kinds raised by the lifecycle managers.

Every manager checks its preconditions before touching aptly and raises
one of these with a one-line, human readable message naming the entity.
"""

from typing import List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .base import DropReport


class AptlyFlowError(Exception):
    """Base class for all lifecycle errors."""

    def __init__(self, message: str, name: str = ""):
        super().__init__(message)
        self.name = name
        # Set by composite operations that fail part way through
        self.report: Optional["DropReport"] = None


class MalformedNameError(AptlyFlowError):
    """Raised when a name cannot be decoded into its parts."""

    def __init__(
        self, name: str, missing: str, kind: str = "repository", message: Optional[str] = None
    ):
        super().__init__(message or f"Malformed {kind} name, no {missing}: {name}", name)
        self.missing = missing


class NotFoundError(AptlyFlowError):
    """Raised when a referenced entity does not exist."""

    entity = "Entity"

    def __init__(self, name: str):
        super().__init__(f"{self.entity} doesn't exist: {name}", name)


class NoSuchRepoError(NotFoundError):
    entity = "Repository"


class NoSuchSnapshotError(NotFoundError):
    entity = "Snapshot"


class NoSuchPublicationError(NotFoundError):
    entity = "Publication"


class AlreadyExistsError(AptlyFlowError):
    """Raised when the target name collides with an existing entity."""

    def __init__(self, name: str, entity: str = "Snapshot"):
        super().__init__(f"{entity} already exists: {name}", name)
        self.entity = entity


class StillPublishedError(AptlyFlowError):
    """Raised when deletion is blocked by a publication."""

    def __init__(self, name: str, entity: str = "Snapshot"):
        super().__init__(f"{entity} is published: {name}", name)
        self.entity = entity


class HasDependentsError(AptlyFlowError):
    """Raised when a repository cannot be dropped because of its snapshots."""

    def __init__(self, name: str):
        super().__init__(f"Repository has snapshots: {name}", name)


class ExternalToolError(AptlyFlowError):
    """Raised when the aptly invocation itself fails."""

    def __init__(self, command: List[str], stderr: str = "", returncode: Optional[int] = None):
        detail = stderr.strip().splitlines()[-1] if stderr.strip() else "no diagnostic"
        super().__init__(f"aptly {' '.join(command)} failed: {detail}")
        self.command = list(command)
        self.stderr = stderr
        self.returncode = returncode
