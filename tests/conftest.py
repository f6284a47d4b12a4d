"""Shared fixtures: a fake cgroup2 hierarchy laid out under tmp_path."""

import io
import os

import pytest
from rich.console import Console


def write_files(path, files: dict[str, str]) -> None:
    """Write interface files into a node directory."""
    for name, content in files.items():
        with open(os.path.join(path, name), "w", encoding="utf-8") as f:
            f.write(content)


@pytest.fixture
def cgroup_root(tmp_path):
    """A cgroup2 mount root with the files the kernel puts on the root cgroup."""
    root = tmp_path / "cgroup"
    root.mkdir()
    write_files(
        root,
        {
            "cgroup.controllers": "cpuset cpu io memory pids\n",
            "cgroup.subtree_control": "cpu memory pids\n",
            "cgroup.procs": "1\n",
            "cgroup.threads": "1\n",
            "cgroup.stat": "nr_descendants 0\nnr_dying_descendants 0\n",
            "cgroup.pressure": "1\n",
            "memory.stat": "anon 0\n",
        },
    )
    return str(root)


@pytest.fixture
def mounts_file(tmp_path, cgroup_root):
    """A mount table with the fake hierarchy as the cgroup2 mount."""
    path = tmp_path / "mounts"
    path.write_text(
        "proc /proc proc rw,nosuid,nodev,noexec,relatime 0 0\n"
        f"cgroup2 {cgroup_root} cgroup2 rw,nosuid,nodev,noexec,relatime,nsdelegate 0 0\n"
    )
    return str(path)


@pytest.fixture
def add_node(cgroup_root):
    """
    Factory creating a child cgroup.

    Usage: add_node("a/b", populated=True, procs=[10], cpu={"max": "max 100000"})
    """

    def _add(
        rel: str,
        populated: bool = True,
        procs: list[int] | None = None,
        threads: list[int] | None = None,
        subtree: str = "",
        cg_type: str = "domain",
        cpu: dict[str, str] | None = None,
        memory: dict[str, str] | None = None,
        extra: dict[str, str] | None = None,
    ) -> str:
        path = os.path.join(cgroup_root, rel)
        os.makedirs(path, exist_ok=True)
        procs = procs if procs is not None else []
        threads = threads if threads is not None else list(procs)
        files = {
            "cgroup.controllers": "cpu memory pids\n",
            "cgroup.events": f"populated {int(populated)}\nfrozen 0\n",
            "cgroup.subtree_control": f"{subtree}\n",
            "cgroup.type": f"{cg_type}\n",
            "cgroup.freeze": "0\n",
            "cgroup.procs": "".join(f"{pid}\n" for pid in procs),
            "cgroup.threads": "".join(f"{tid}\n" for tid in threads),
            "cgroup.stat": "nr_descendants 0\nnr_dying_descendants 0\n",
        }
        for suffix, value in (cpu or {}).items():
            files[f"cpu.{suffix}"] = f"{value}\n"
        for suffix, value in (memory or {}).items():
            files[f"memory.{suffix}"] = f"{value}\n"
        files.update(extra or {})
        write_files(path, files)
        return path

    return _add


@pytest.fixture
def console():
    """A console writing plain text into a buffer."""
    return Console(file=io.StringIO(), width=200, color_system=None)


def output_of(console: Console) -> str:
    """Get everything printed to a buffered console."""
    return console.file.getvalue()
