"""Lifecycle management for aptly repositories, snapshots and publications.

aptly exposes no referential integrity between its entities, so this
package recovers the relationships from naming conventions and list
output and enforces a safe order of creation and teardown.
"""

from .base import DropReport, DropStep, ExecutionMode, StepKind, StepStatus
from .errors import (
    AlreadyExistsError,
    AptlyFlowError,
    ExternalToolError,
    HasDependentsError,
    MalformedNameError,
    NoSuchPublicationError,
    NoSuchRepoError,
    NoSuchSnapshotError,
    NotFoundError,
    StillPublishedError,
)
from .factory import Lifecycle, build_lifecycle
from .naming import RepoName, SnapshotName

__all__ = [
    "AlreadyExistsError",
    "AptlyFlowError",
    "DropReport",
    "DropStep",
    "ExecutionMode",
    "ExternalToolError",
    "HasDependentsError",
    "Lifecycle",
    "MalformedNameError",
    "NoSuchPublicationError",
    "NoSuchRepoError",
    "NoSuchSnapshotError",
    "NotFoundError",
    "RepoName",
    "SnapshotName",
    "StepKind",
    "StepStatus",
    "StillPublishedError",
    "build_lifecycle",
]
