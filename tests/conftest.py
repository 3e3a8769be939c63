"""Pytest configuration and shared fixtures.

FakeAptly stands in for the aptly binary: it is installed as the
side effect of a patched subprocess.run, keeps repositories, snapshots
and publications in memory, and renders list output the way aptly does.
"""

import subprocess
from datetime import date
from typing import Dict, List, Optional, Tuple
from unittest.mock import MagicMock, patch

import pytest

from aptlyflow.repos.aptly import AptlyRunner
from aptlyflow.repos.factory import build_lifecycle
from aptlyflow.repos.probe import EntityProbe


class FakeAptly:
    """In-memory emulation of the aptly commands used by aptlyflow."""

    def __init__(self):
        self.repos: Dict[str, Dict[str, str]] = {}
        self.snapshots: Dict[str, str] = {}  # name -> description
        self.sources: Dict[str, List[str]] = {}  # merged snapshot -> sources
        self.publications: Dict[str, List[Tuple[str, str]]] = {}  # pub -> [(comp, name)]
        self.calls: List[List[str]] = []
        self.fail_on: Optional[Tuple[str, ...]] = None

    # Seeding helpers

    def add_repo(self, name: str, packages: int = 0) -> None:
        self.repos[name] = {"packages": str(packages)}

    def add_snapshot(self, name: str, repo: Optional[str] = None) -> None:
        if repo:
            self.snapshots[name] = f"Snapshot from local repo [{repo}]"
        else:
            self.snapshots[name] = "Created as empty"

    def add_merged(self, name: str, *sources: str) -> None:
        self.snapshots[name] = "Merged from sources: " + ", ".join(f"'{s}'" for s in sources)
        self.sources[name] = list(sources)

    def add_publication(self, pub: str, *names: str, components: Optional[List[str]] = None) -> None:
        comps = components or [f"c{i}" for i in range(len(names))]
        self.publications[pub] = list(zip(comps, names))

    @property
    def mutations(self) -> List[List[str]]:
        """Calls other than show/list queries."""
        return [c for c in self.calls if c[1] not in ("show", "list")]

    # subprocess.run replacement

    def __call__(self, cmd, capture_output=True, timeout=None, check=False, **kwargs):
        args = [a for a in cmd[1:] if not a.startswith("-config=")]
        self.calls.append(args)
        if self.fail_on and tuple(args[: len(self.fail_on)]) == self.fail_on:
            return self._result(cmd, 1, err="ERROR: simulated failure")
        handler = getattr(self, f"_{args[0]}_{args[1]}", None)
        if handler is None:
            return self._result(cmd, 2, err=f"unknown command: {' '.join(args)}")
        opts = [a for a in args[2:] if a.startswith("-")]
        params = [a for a in args[2:] if not a.startswith("-")]
        rc, out, err = handler(opts, params)
        return self._result(cmd, rc, out, err)

    @staticmethod
    def _result(cmd, rc, out="", err=""):
        return subprocess.CompletedProcess(cmd, rc, stdout=out.encode(), stderr=err.encode())

    @staticmethod
    def _opt(opts, key):
        for o in opts:
            if o.startswith(f"-{key}="):
                return o.split("=", 1)[1]
        return None

    def _is_published(self, name):
        return any(name == n for pub in self.publications.values() for _, n in pub)

    def _repo_show(self, opts, params):
        name = params[0]
        if name not in self.repos:
            return 1, "", f"ERROR: unable to show: local repo with name {name} not found"
        return 0, f"Name: {name}\n", ""

    def _repo_create(self, opts, params):
        name = params[0]
        if name in self.repos:
            return 1, "", f"ERROR: local repo with name {name} already exists"
        self.repos[name] = {
            "packages": "0",
            "architectures": self._opt(opts, "architectures"),
            "component": self._opt(opts, "component"),
            "distribution": self._opt(opts, "distribution"),
            "comment": self._opt(opts, "comment"),
        }
        return 0, f"Local repo [{name}] successfully added.\n", ""

    def _repo_add(self, opts, params):
        name = params[0]
        if name not in self.repos:
            return 1, "", f"ERROR: unable to add: local repo with name {name} not found"
        return 0, "Loading packages...\n", ""

    def _repo_drop(self, opts, params):
        name = params[0]
        if name not in self.repos:
            return 1, "", f"ERROR: local repo with name {name} not found"
        if "-force" not in opts:
            if any(f"[{name}]" in d for d in self.snapshots.values()):
                return 1, "", "ERROR: local repo is used by snapshots"
            if self._is_published(name):
                return 1, "", "ERROR: local repo is published"
        del self.repos[name]
        return 0, f"Local repo `{name}` has been removed.\n", ""

    def _repo_list(self, opts, params):
        if not self.repos:
            return 0, "No local repositories found, create one with `aptly repo create ...`.\n", ""
        lines = ["List of local repos:"]
        for name in sorted(self.repos):
            lines.append(f" * [{name}] (packages: {self.repos[name]['packages']})")
        lines.append("")
        lines.append("To get more information about local repository, run `aptly repo show <name>`.")
        return 0, "\n".join(lines) + "\n", ""

    def _snapshot_show(self, opts, params):
        name = params[0]
        if name not in self.snapshots:
            return 1, "", f"ERROR: unable to show: snapshot with name {name} not found"
        return 0, f"Name: {name}\nDescription: {self.snapshots[name]}\n", ""

    def _snapshot_create(self, opts, params):
        name = params[0]
        if name in self.snapshots:
            return 1, "", f"ERROR: snapshot with name {name} already exists"
        if params[1:] == ["empty"]:
            self.add_snapshot(name)
        elif params[1:3] == ["from", "repo"]:
            repo = params[3]
            if repo not in self.repos:
                return 1, "", f"ERROR: local repo with name {repo} not found"
            self.add_snapshot(name, repo)
        else:
            return 2, "", "ERROR: unsupported snapshot create form"
        return 0, f"Snapshot {name} successfully created.\n", ""

    def _snapshot_merge(self, opts, params):
        dest, sources = params[0], params[1:]
        if dest in self.snapshots:
            return 1, "", f"ERROR: snapshot with name {dest} already exists"
        for s in sources:
            if s not in self.snapshots:
                return 1, "", f"ERROR: snapshot with name {s} not found"
        self.add_merged(dest, *sources)
        return 0, f"Snapshot {dest} successfully created.\n", ""

    def _snapshot_drop(self, opts, params):
        name = params[0]
        if name not in self.snapshots:
            return 1, "", f"ERROR: snapshot with name {name} not found"
        if self._is_published(name):
            return 1, "", "ERROR: unable to drop: snapshot is published"
        if "-force" not in opts and any(name in s for s in self.sources.values()):
            return 1, "", "ERROR: won't delete snapshot that was used as source for other snapshots"
        del self.snapshots[name]
        self.sources.pop(name, None)
        return 0, f"Snapshot `{name}` has been dropped.\n", ""

    def _snapshot_list(self, opts, params):
        if not self.snapshots:
            return 0, "\nNo snapshots found, create one with `aptly snapshot create...`.\n", ""
        lines = ["List of snapshots:"]
        for name in sorted(self.snapshots):
            lines.append(f" * [{name}]: {self.snapshots[name]}")
        lines.append("")
        lines.append("To get more information about snapshot, run `aptly snapshot show <name>`.")
        return 0, "\n".join(lines) + "\n", ""

    def _publish_show(self, opts, params):
        dist = params[0]
        prefix = params[1] if len(params) > 1 else "."
        pub = f"{prefix}/{dist}"
        if pub not in self.publications:
            return 1, "", f"ERROR: unable to show: published repo with storage:prefix/distribution {pub} not found"
        return 0, f"Prefix: {prefix}\nDistribution: {dist}\n", ""

    def _publish_snapshot(self, opts, params):
        comps = (self._opt(opts, "component") or "main").split(",")
        dist = self._opt(opts, "distribution")
        names, prefix = params[:-1], params[-1]
        if len(comps) != len(names) or len(set(comps)) != len(comps):
            return 1, "", "ERROR: mismatch in number of components and snapshots"
        for n in names:
            if n not in self.snapshots:
                return 1, "", f"ERROR: snapshot with name {n} not found"
        pub = f"{prefix}/{dist}"
        if pub in self.publications:
            return 1, "", f"ERROR: prefix/distribution {pub} already used by another published repo"
        self.publications[pub] = list(zip(comps, names))
        return 0, f"Snapshot {', '.join(names)} has been successfully published.\n", ""

    def _publish_drop(self, opts, params):
        dist = params[0]
        prefix = params[1] if len(params) > 1 else "."
        pub = f"{prefix}/{dist}"
        if pub not in self.publications:
            return 1, "", f"ERROR: published repo with prefix/distribution {pub} not found"
        del self.publications[pub]
        return 0, "Published repository has been removed successfully.\n", ""

    def _publish_list(self, opts, params):
        if not self.publications:
            return 0, "No snapshots/local repos have been published. Publish a snapshot by running `aptly publish snapshot ...`.\n", ""
        lines = ["Published repositories:"]
        for pub in sorted(self.publications):
            groups = ", ".join(
                f"{{{comp}: [{name}]: {self.snapshots.get(name, 'Local repo')}}}"
                for comp, name in self.publications[pub]
            )
            lines.append(f"  * {pub} [amd64, arm64] publishes {groups}")
        return 0, "\n".join(lines) + "\n", ""


@pytest.fixture
def fake_aptly():
    """Patch subprocess.run with an in-memory aptly."""
    fake = FakeAptly()
    with patch("subprocess.run", side_effect=fake):
        yield fake


@pytest.fixture
def runner():
    return AptlyRunner()


@pytest.fixture
def probe(fake_aptly, runner):
    return EntityProbe(runner)


@pytest.fixture
def lifecycle(fake_aptly):
    """All managers in live mode against the fake aptly."""
    return build_lifecycle()


@pytest.fixture
def frozen_today():
    """Pin the default snapshot suffix to 20240615."""
    with patch("aptlyflow.repos.naming.date") as mock_date:
        mock_date.today.return_value = date(2024, 6, 15)
        yield mock_date


@pytest.fixture
def mock_run():
    """Plain subprocess.run mock for runner level tests."""
    with patch("subprocess.run") as mock:
        mock.return_value = MagicMock(returncode=0, stdout=b"", stderr=b"")
        yield mock
