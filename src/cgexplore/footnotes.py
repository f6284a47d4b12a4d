"""Deferred explanatory notes, printed once at the end of a report."""

from enum import IntEnum

from rich.markup import escape

from cgexplore.models import FootnoteEntry


class Footnote(IntEnum):
    """Footnote ids, in print order."""

    NO_SUBTREE = 1
    THREADED = 2
    PRESSURE = 3
    CPU = 4
    MEMORY = 5


FOOTNOTE_TEXT: dict[Footnote, str] = {
    Footnote.NO_SUBTREE: (
        "An empty cgroup.subtree_control means no controllers are enabled for "
        "this cgroup's children; they only get the core cgroup.* files."
    ),
    Footnote.THREADED: (
        "cgroup.type: 'domain' is a normal cgroup, 'threaded' holds threads of a "
        "threaded subtree, 'domain threaded' is the root of such a subtree and "
        "'domain invalid' is a cgroup that cannot be populated until its type is fixed."
    ),
    Footnote.PRESSURE: (
        "*.pressure shows PSI stall information: the share of wall time (avg10, "
        "avg60, avg300) and the total stall time in usec during which 'some' or "
        "'full' of the tasks were stalled on the resource."
    ),
    Footnote.CPU: (
        "cpu.weight is the proportional share, in [1, 10000] (default 100); "
        "cpu.weight.nice is the same value as a nice value in [-20, 19]; "
        "cpu.max is '$MAX $PERIOD' in usec, with 'max' meaning no bandwidth limit."
    ),
    Footnote.MEMORY: (
        "memory.current is the usage of the cgroup and its descendants; "
        "memory.min is a hard protection and memory.low a best-effort protection "
        "against reclaim; memory.high is the throttle limit, 'max' meaning none. "
        "memory.min is only shown for cgroups with threads, as it has no effect "
        "on empty ones."
    ),
}


class FootnoteRegistry:
    """
    Table of footnotes for one report.

    Extractors call trigger() when they render the section a footnote
    explains; the driver prints the triggered ones once all nodes are done.
    """

    def __init__(self) -> None:
        """Initialize the registry with every footnote untriggered."""
        self._entries: dict[int, FootnoteEntry] = {
            int(note): FootnoteEntry(id=int(note), text=text)
            for note, text in FOOTNOTE_TEXT.items()
        }

    def trigger(self, note: int) -> None:
        """Mark a footnote as needed. Triggering twice is harmless."""
        self._entries[int(note)].triggered = True

    def is_triggered(self, note: int) -> bool:
        """Check if a footnote has been triggered."""
        return self._entries[int(note)].triggered

    def entries(self) -> list[FootnoteEntry]:
        """Get all footnotes in ascending id order."""
        return [self._entries[key] for key in sorted(self._entries)]

    def triggered(self) -> list[FootnoteEntry]:
        """Get the triggered footnotes in ascending id order."""
        return [entry for entry in self.entries() if entry.triggered]

    def render(self) -> list[str]:
        """Get one display line per triggered footnote."""
        return [f"\\[{entry.id}] {escape(entry.text)}" for entry in self.triggered()]
