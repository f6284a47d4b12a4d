"""Exceptions raised by cgexplore.

Only these errors end a run early. Failures reading a single interface file
are handled where the file is read and never surface as exceptions.
"""


class CgroupError(Exception):
    """Base exception for all fatal inspector errors."""

    pass


class MountNotFoundError(CgroupError):
    """Raised when no cgroup2 mount can be found in the mount table."""

    def __init__(self, mounts_path: str):
        self.mounts_path = mounts_path
        super().__init__(f"no cgroup2 filesystem mounted (checked {mounts_path})")


class InvalidNodeError(CgroupError):
    """Raised when the start path is not a node of the mounted hierarchy."""

    def __init__(self, path: str, reason: str = "not a cgroup2 node"):
        self.path = path
        super().__init__(f"'{path}': {reason}")


class EmptyHierarchyError(CgroupError):
    """Raised when walking a valid start path discovers no nodes at all."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"no cgroups found under '{path}'")


class UsageError(CgroupError):
    """Raised for malformed command lines."""

    pass
