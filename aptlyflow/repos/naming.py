"""Name codec for repositories and snapshots.

Repositories are named ``base-arch-component`` and snapshots append a
``-suffix`` (usually a date stamp). Multi-arch snapshots drop the arch
part: ``base-component-suffix``. All structure aptly itself does not
record is recovered from these names.

Known limitation: the component is everything after the second hyphen
while the suffix is everything after the last one, so a component that
contains hyphens makes snapshot_repo()/snapshot_suffix() ambiguous.
"""

from dataclasses import dataclass
from datetime import date
from typing import Optional

from .errors import MalformedNameError

SEPARATOR = "-"


def base_name(name: str) -> str:
    """Return the text before the first hyphen, or "" without one."""
    head, sep, _ = name.partition(SEPARATOR)
    return head if sep else ""


def arch_name(name: str) -> str:
    """Return the text between the first and second hyphen."""
    _, sep, rest = name.partition(SEPARATOR)
    if not sep:
        return ""
    return rest.partition(SEPARATOR)[0]


def component_name(name: str) -> str:
    """Return the text after the second hyphen (may contain hyphens)."""
    _, sep, rest = name.partition(SEPARATOR)
    if not sep:
        return ""
    _, sep, comp = rest.partition(SEPARATOR)
    return comp if sep else ""


def snapshot_suffix(name: str) -> str:
    """Return the text after the last hyphen."""
    _, sep, suffix = name.rpartition(SEPARATOR)
    return suffix if sep else ""


def snapshot_repo(name: str) -> str:
    """Return the text before the last hyphen."""
    repo, sep, _ = name.rpartition(SEPARATOR)
    return repo if sep else ""


def strip_base(name: str) -> str:
    """Return the text after the first hyphen."""
    _, sep, rest = name.partition(SEPARATOR)
    return rest if sep else ""


def today_suffix(fmt: str = "%Y%m%d") -> str:
    """Return the default snapshot suffix for today."""
    return date.today().strftime(fmt)


def validate_suffix(suffix: str) -> str:
    """Check a multi-arch suffix: non-empty and free of hyphens.

    Raises:
        MalformedNameError: If the suffix is empty or contains a hyphen
    """
    if not suffix:
        raise MalformedNameError(suffix, "suffix", kind="suffix", message="Suffix is empty")
    if SEPARATOR in suffix:
        raise MalformedNameError(
            suffix, "suffix", kind="suffix", message=f"Suffix shouldn't contain hyphens: {suffix}"
        )
    return suffix


@dataclass(frozen=True)
class RepoName:
    """Decoded ``base-arch-component`` repository name."""

    base: str
    arch: str
    component: str

    @classmethod
    def parse(cls, name: str) -> "RepoName":
        """Decode a repository name.

        Raises:
            MalformedNameError: If base, arch or component is empty
        """
        parsed = cls(base_name(name), arch_name(name), component_name(name))
        for part in ("base", "arch", "component"):
            if not getattr(parsed, part):
                raise MalformedNameError(name, "comp" if part == "component" else part)
        return parsed

    def multiarch(self, suffix: str) -> str:
        """Name of the multi-arch snapshot this repository contributes to."""
        return SEPARATOR.join((self.base, self.component, suffix))

    def __str__(self) -> str:
        return SEPARATOR.join((self.base, self.arch, self.component))


@dataclass(frozen=True)
class SnapshotName:
    """Snapshot name split into repository part and suffix."""

    repo: str
    suffix: str

    @classmethod
    def parse(cls, name: str) -> "SnapshotName":
        """Split a snapshot name on its last hyphen.

        Raises:
            MalformedNameError: If there is no suffix
        """
        parsed = cls(snapshot_repo(name), snapshot_suffix(name))
        if not parsed.suffix or not parsed.repo:
            raise MalformedNameError(name, "suffix", kind="snapshot")
        return parsed

    @property
    def publication_component(self) -> str:
        """Component this snapshot contributes to a publication.

        For a per-arch snapshot (``base-arch-comp-suffix``) this is the
        repository component. Multi-arch snapshots have no arch part
        (``base-comp-suffix``), so everything after the base is used.
        """
        return component_name(self.repo) or strip_base(self.repo)

    def __str__(self) -> str:
        return SEPARATOR.join((self.repo, self.suffix))


def multiarch_name(repo: str, suffix: Optional[str] = None) -> str:
    """Unified snapshot name for a per-arch repository: base-component-suffix."""
    return SEPARATOR.join(
        (base_name(repo), component_name(repo), suffix or today_suffix())
    )
