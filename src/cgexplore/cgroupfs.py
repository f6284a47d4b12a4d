"""Read-only access to a mounted cgroup2 hierarchy."""

import logging
import os
import re

from cgexplore.errors import MountNotFoundError
from cgexplore.units import is_decimal

logger = logging.getLogger(__name__)

DEFAULT_MOUNTS = "/proc/self/mounts"
CORE_MARKER = "cgroup.controllers"

_OCTAL_ESCAPE = re.compile(r"\\([0-7]{3})")


def _unescape_mount_field(field: str) -> str:
    """Decode the octal escapes (e.g. '\\040' for space) used in the mount table."""
    return _OCTAL_ESCAPE.sub(lambda m: chr(int(m.group(1), 8)), field)


def read_mount_entries(mounts_path: str = DEFAULT_MOUNTS) -> list[str]:
    """
    Get the raw cgroup2 lines of the mount table.

    Raises:
        MountNotFoundError: If the mount table cannot be read.
    """
    try:
        with open(mounts_path, encoding="utf-8") as f:
            content = f.read()
    except OSError as exc:
        logger.debug("cannot read mount table %s: %s", mounts_path, exc)
        raise MountNotFoundError(mounts_path) from exc

    entries = []
    for line in content.splitlines():
        parts = line.split()
        if len(parts) >= 3 and parts[2] == "cgroup2":
            entries.append(line)
    return entries


def find_mount_root(mounts_path: str = DEFAULT_MOUNTS) -> str:
    """
    Find the mount point of the cgroup2 filesystem.

    Args:
        mounts_path: Mount table to parse, in /proc/mounts format.

    Returns:
        The mount point of the first cgroup2 entry.

    Raises:
        MountNotFoundError: If the table is unreadable or has no cgroup2 entry.
    """
    entries = read_mount_entries(mounts_path)
    if not entries:
        raise MountNotFoundError(mounts_path)
    mount_root = _unescape_mount_field(entries[0].split()[1])
    logger.debug("cgroup2 mounted at %s", mount_root)
    return os.path.normpath(mount_root)


def read_interface_file(node: str, name: str) -> str | None:
    """
    Read one interface file of a node.

    Returns:
        The content with trailing newlines stripped, or None when the file is
        missing or unreadable. Nodes and files routinely vanish while the
        hierarchy is being inspected, so this never raises on I/O errors.
    """
    path = os.path.join(node, name)
    try:
        with open(path, encoding="utf-8", errors="replace") as f:
            return f.read().rstrip("\n")
    except OSError as exc:
        logger.debug("cannot read %s: %s", path, exc)
        return None


def parse_keyed(content: str | None) -> dict[str, str]:
    """Parse 'key value' lines, as in cgroup.events and cgroup.stat."""
    values: dict[str, str] = {}
    for line in (content or "").splitlines():
        parts = line.split(None, 1)
        if len(parts) == 2:
            values[parts[0]] = parts[1].strip()
    return values


def parse_ids(content: str | None) -> list[int]:
    """Parse a newline separated id list, as in cgroup.procs and cgroup.threads."""
    return [int(token) for token in (content or "").split() if is_decimal(token)]


def list_interface_files(node: str, prefix: str) -> list[str]:
    """Get the sorted names of the node's files starting with prefix."""
    try:
        with os.scandir(node) as it:
            names = [
                entry.name
                for entry in it
                if entry.name.startswith(prefix) and entry.is_file(follow_symlinks=False)
            ]
    except OSError as exc:
        logger.debug("cannot list %s: %s", node, exc)
        return []
    return sorted(names)


def is_cgroup_node(path: str) -> bool:
    """Check if path is a cgroup2 node (its core marker file exists)."""
    return os.path.isfile(os.path.join(path, CORE_MARKER))


def is_within(path: str, mount_root: str) -> bool:
    """Check if path is the mount root or lies below it."""
    path = os.path.normpath(path)
    mount_root = os.path.normpath(mount_root)
    return path == mount_root or path.startswith(mount_root.rstrip(os.sep) + os.sep)


def node_depth(path: str, mount_root: str) -> int:
    """Get the number of directory levels between the mount root and path."""
    rel = os.path.relpath(os.path.normpath(path), os.path.normpath(mount_root))
    if rel == os.curdir:
        return 0
    return len(rel.split(os.sep))


def walk_tree(start: str, mount_root: str, depth: int = 0) -> list[str]:
    """
    Enumerate the nodes at and below start, in lexicographic order.

    Args:
        start: Node to start from. Always part of the result.
        mount_root: Mount point of the hierarchy.
        depth: If non-zero, only nodes fewer than this many levels below the
            mount root are listed. The bound counts from the mount root, not
            from start, so a deep start with a small depth lists start alone.

    Returns:
        Sorted node paths. Directories removed during the walk are skipped.
    """
    start = os.path.normpath(start)
    if not os.path.isdir(start):
        return []

    nodes = [start]
    for dirpath, dirnames, _ in os.walk(start, followlinks=False):
        if depth and node_depth(dirpath, mount_root) + 1 >= depth:
            dirnames[:] = []
            continue
        nodes.extend(os.path.join(dirpath, name) for name in dirnames)
    return sorted(nodes)
