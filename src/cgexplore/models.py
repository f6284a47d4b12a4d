"""Data models for cgexplore."""

from dataclasses import dataclass, field
from enum import Enum


@dataclass(slots=True, frozen=True)
class RunOptions:
    """Immutable options for one inspector run."""

    verbose: bool = False
    show_processes: bool = False
    show_threads: bool = False
    depth: int = 0  # 0 = unbounded
    start_path: str | None = None  # None = not given, use the mount root


@dataclass(slots=True)
class RunStats:
    """Counters accumulated while walking the hierarchy."""

    visited: int = 0
    unpopulated: int = 0


@dataclass(slots=True, frozen=True)
class ControllerSnapshot:
    """Raw interface-file values of one controller on one node."""

    controller: str  # 'cpu', 'memory', ...
    values: dict[str, str | None]  # suffix -> content, None if the file is absent

    def get(self, suffix: str) -> str | None:
        """Get the raw value for an interface-file suffix."""
        return self.values.get(suffix)

    def any_present(self) -> bool:
        """Check if at least one of the files exists on the node."""
        return any(value is not None for value in self.values.values())


@dataclass(slots=True)
class FootnoteEntry:
    """A deferred annotation printed at the end of the report."""

    id: int
    text: str
    triggered: bool = False


@dataclass(slots=True, frozen=True)
class TaskSnapshot:
    """Immutable snapshot of a process or thread listed for a cgroup."""

    pid: int
    name: str
    username: str
    status: str  # 'R', 'S', 'Z', 'D', etc.
    threads: int
    command_line: str


class NodePhase(Enum):
    """Rendering phases of a single node."""

    CHECK_POPULATION = "check_population"
    RENDER_SECTIONS = "render_sections"
    SKIP = "skip"
    DONE = "done"


@dataclass(slots=True)
class NodeState:
    """Per-node facts shared between the extractors of one node."""

    path: str
    phase: NodePhase = NodePhase.CHECK_POPULATION
    pids: list[int] = field(default_factory=list)
    tids: list[int] = field(default_factory=list)
    nr_descendants: int | None = None

    @property
    def nr_procs(self) -> int:
        """Get the number of processes in the node."""
        return len(self.pids)

    @property
    def nr_threads(self) -> int:
        """Get the number of threads in the node."""
        return len(self.tids)


@dataclass(slots=True)
class NodeSection:
    """Display lines produced by one controller extractor."""

    title: str | None
    lines: list[str] = field(default_factory=list)
