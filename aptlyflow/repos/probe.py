"""Entity probe: existence checks and listings scraped from aptly output.

aptly offers no structured query API, so the relationships between
repositories, snapshots and publications are recovered here from the
human readable ``list`` output. Everything else depends only on the
typed results returned by this module.

Listing formats relied upon::

    List of local repos:
     * [myapp-amd64-main] (packages: 3)

    List of snapshots:
     * [myapp-amd64-main-20240615]: Snapshot from local repo [myapp-amd64-main]

    Published repositories:
      * 20240615/myapp [amd64] publishes {main: [myapp-amd64-main-20240615]: ...}

A change to these formats yields empty results, not errors.
"""

import re
from typing import Iterable, List, Optional, Set

from ..common.logger import get_logger
from .aptly import AptlyRunner

logger = get_logger("entity_probe")

BRACKETED_ENTRY = re.compile(r"^\s+\*\s+\[([^\]]+)\]")
PUBLICATION_ENTRY = re.compile(r"^\s+\*\s+(\S+)")
# One "{component: [name]: description}" group of a publishes clause
PUBLISHED_SOURCE = re.compile(r"\{[^\[}]*\[([^\]]+)\][^}]*\}")
PUBLISHES = "publishes"


def split_publication(prefix_dist: str):
    """Split ``prefix/distribution`` into (prefix, distribution).

    A name without a slash has an empty prefix.
    """
    prefix, sep, dist = prefix_dist.rpartition("/")
    return (prefix if sep else "", dist)


def publication_key(prefix_dist: str) -> str:
    """Return the name aptly lists a publication under.

    A publication without a prefix lives under the default prefix ".",
    so "myapp" and "./myapp" name the same publication.
    """
    prefix, dist = split_publication(prefix_dist)
    return f"{prefix or '.'}/{dist}"


def parse_bracketed(output: str, contains: Optional[str] = None) -> Set[str]:
    """Extract the bracketed entry names of a repo or snapshot listing.

    Args:
        output: aptly list output
        contains: Only keep lines that also mention ``[contains]``

    Returns:
        Set of names
    """
    names = set()
    marker = f"[{contains}]" if contains else None
    for line in output.splitlines():
        if marker and marker not in line:
            continue
        match = BRACKETED_ENTRY.match(line)
        if match:
            names.add(match.group(1))
    return names


def published_sources(line: str) -> List[str]:
    """Return the names a publication line publishes, in listing order."""
    _, sep, clause = line.partition(f" {PUBLISHES} ")
    if not sep:
        return []
    return PUBLISHED_SOURCE.findall(clause)


def parse_publications(output: str, names: Iterable[str] = ()) -> Set[str]:
    """Extract publication names from ``aptly publish list`` output.

    Args:
        output: aptly publish list output
        names: When given, keep only publications whose publishes clause
            mentions every one of these names

    Returns:
        Set of ``prefix/distribution`` names
    """
    required = set(names)
    pubs = set()
    for line in output.splitlines():
        match = PUBLICATION_ENTRY.match(line)
        if not match:
            continue
        if required and not required.issubset(published_sources(line)):
            continue
        pubs.add(match.group(1))
    return pubs


class EntityProbe:
    """Read-only queries against aptly.

    Every query fails closed: if aptly errors (not installed, name
    rejected) the answer is "doesn't exist" or an empty listing.
    """

    def __init__(self, runner: AptlyRunner):
        self.runner = runner

    def repo_exists(self, name: str) -> bool:
        """Check if a local repository exists."""
        return self.runner.succeeds(["repo", "show", name])

    def snapshot_exists(self, name: str) -> bool:
        """Check if a snapshot exists."""
        return self.runner.succeeds(["snapshot", "show", name])

    def publication_exists(self, prefix_dist: str) -> bool:
        """Check if a publication ``prefix/distribution`` exists."""
        prefix, dist = split_publication(publication_key(prefix_dist))
        if not dist:
            return False
        args = ["publish", "show", dist]
        if prefix:
            args.append(prefix)
        return self.runner.succeeds(args)

    def list_repos(self) -> Set[str]:
        """List all local repository names."""
        return parse_bracketed(self.runner.output(["repo", "list"]))

    def list_snapshots(self, filter_repo: Optional[str] = None) -> Set[str]:
        """List snapshot names, optionally only those mentioning a repository.

        Args:
            filter_repo: Keep snapshots whose listing line mentions [filter_repo]

        Returns:
            Set of snapshot names
        """
        return parse_bracketed(self.runner.output(["snapshot", "list"]), filter_repo)

    def list_publications(self, names: Iterable[str] = ()) -> Set[str]:
        """List publications, optionally only those backed by all given names.

        The match is a textual one on bracketed names, so callers should
        pass full entity names.
        """
        return parse_publications(self.runner.output(["publish", "list"]), names)

    def list_publication_backing(self, prefix_dist: str) -> List[str]:
        """Names of the snapshots or repositories a publication publishes."""
        key = publication_key(prefix_dist)
        for line in self.runner.output(["publish", "list"]).splitlines():
            match = PUBLICATION_ENTRY.match(line)
            if match and match.group(1) == key:
                return published_sources(line)
        logger.debug(f"No listing line for publication {prefix_dist}")
        return []

    def is_published(self, *names: str) -> bool:
        """Check whether some publication publishes all of the given names."""
        return bool(self.list_publications(names))

    def has_snapshots(self, repo_name: str) -> bool:
        """Check whether any snapshot listing line mentions the repository."""
        return bool(self.list_snapshots(repo_name))
