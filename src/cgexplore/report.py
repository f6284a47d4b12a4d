"""Report engine: renders each node of the hierarchy and drives the walk."""

import logging
import os

from rich.console import Console
from rich.markup import escape
from rich.tree import Tree

from cgexplore.cgroupfs import (
    DEFAULT_MOUNTS,
    is_cgroup_node,
    is_within,
    parse_keyed,
    read_interface_file,
    read_mount_entries,
    walk_tree,
)
from cgexplore.errors import EmptyHierarchyError, InvalidNodeError
from cgexplore.extractors import extract_core, extract_cpu, extract_memory
from cgexplore.footnotes import FootnoteRegistry
from cgexplore.models import NodePhase, NodeSection, NodeState, RunOptions, RunStats
from cgexplore.proclist import ProcessLister

logger = logging.getLogger(__name__)


def display_name(node: str, mount_root: str) -> str:
    """Get the node path as seen from the mount root, e.g. '/system.slice'."""
    rel = os.path.relpath(node, mount_root)
    return "/" if rel == os.curdir else "/" + rel


class NodeRenderer:
    """
    Render one node of the hierarchy.

    A node moves from CHECK_POPULATION either to RENDER_SECTIONS, where the
    core, cpu and memory sections are printed in that order, or to SKIP when
    nothing lives in it. Both end in DONE.
    """

    def __init__(
        self,
        console: Console,
        options: RunOptions,
        footnotes: FootnoteRegistry,
        stats: RunStats,
        mount_root: str,
        lister: ProcessLister | None = None,
    ) -> None:
        """Initialize the NodeRenderer with the run's shared registry and counters."""
        self._console = console
        self._options = options
        self._footnotes = footnotes
        self._stats = stats
        self._mount_root = mount_root
        self._lister = lister

    def render(self, node: str) -> NodeState:
        """Render a node and return its final state."""
        state = NodeState(path=node)
        self._stats.visited += 1

        name = escape(display_name(node, self._mount_root))
        self._console.print()
        self._console.print(f"[bold green]cgroup {name}[/bold green]", soft_wrap=True)

        if self._is_populated(node):
            state.phase = NodePhase.RENDER_SECTIONS
            self._render_sections(state)
        else:
            state.phase = NodePhase.SKIP
            self._stats.unpopulated += 1
            self._console.print("  [yellow]unpopulated[/yellow] (no live processes in this subtree)")

        state.phase = NodePhase.DONE
        return state

    def _is_populated(self, node: str) -> bool:
        """Check the populated field of the node's cgroup.events."""
        events = read_interface_file(node, "cgroup.events")
        if events is None:
            # The root has no cgroup.events; anywhere else the node is gone
            return os.path.normpath(node) == os.path.normpath(self._mount_root)
        return parse_keyed(events).get("populated") == "1"

    def _render_sections(self, state: NodeState) -> None:
        """Print the core, cpu and memory sections, then the cg stat line."""
        node = state.path
        extractors = [
            lambda: extract_core(node, self._options, self._footnotes, state, self._lister),
            lambda: extract_cpu(node, self._options, self._footnotes, state),
            lambda: extract_memory(node, self._options, self._footnotes, state),
        ]
        for extract in extractors:
            try:
                section = extract()
            except (OSError, ValueError) as exc:
                logger.warning("partial output for %s: %s", node, exc)
                continue
            if section is not None:
                self._print_section(section)

        stat = read_interface_file(node, "cgroup.stat")
        if stat is None:
            summary = "n/a"
        else:
            summary = " ".join(f"{key}={value}" for key, value in parse_keyed(stat).items())
        self._console.print(f"  [dim]cg stat:[/dim] {escape(summary)}", soft_wrap=True)

    def _print_section(self, section: NodeSection) -> None:
        """Print a section title, if any, and its lines."""
        if section.title:
            self._console.print(f"  [bold magenta]{section.title}[/bold magenta]")
        for line in section.lines:
            self._console.print(line, soft_wrap=True)


class ReportDriver:
    """
    Produce the full report for one invocation.

    Validates the start node, walks the hierarchy below it, renders every
    node and finally prints the footnotes that some node needed.
    """

    def __init__(
        self,
        options: RunOptions,
        console: Console,
        mount_root: str,
        lister: ProcessLister | None = None,
        mounts_path: str = DEFAULT_MOUNTS,
    ) -> None:
        """
        Initialize the ReportDriver.

        Args:
            options: Parsed command line options.
            console: Console the report is printed to.
            mount_root: Mount point of the cgroup2 hierarchy.
            lister: Process lister for -p/-t. Defaults to a psutil lister.
            mounts_path: Mount table shown in verbose mode.
        """
        self._options = options
        self._console = console
        self._mount_root = os.path.normpath(mount_root)
        self._lister = lister if lister is not None else ProcessLister()
        self._mounts_path = mounts_path
        self.footnotes = FootnoteRegistry()
        self.stats = RunStats()

    def resolve_start(self) -> tuple[str, bool]:
        """
        Get the start node and whether the user named it explicitly.

        Relative paths are taken relative to the mount root.

        Raises:
            InvalidNodeError: If the path is outside the hierarchy or is not a node.
        """
        if self._options.start_path is None:
            start, explicit = self._mount_root, False
        else:
            start = os.path.normpath(os.path.join(self._mount_root, self._options.start_path))
            explicit = True

        if not is_within(start, self._mount_root):
            raise InvalidNodeError(start, f"not under the cgroup2 mount {self._mount_root}")
        if not is_cgroup_node(start):
            raise InvalidNodeError(start)
        return start, explicit

    def run(self) -> RunStats:
        """
        Print the report.

        Raises:
            InvalidNodeError: If the start node is invalid.
            EmptyHierarchyError: If no nodes are found.
        """
        start, explicit = self.resolve_start()

        if self._options.verbose:
            self._print_system_summary()

        depth = str(self._options.depth) if self._options.depth else "unbounded"
        self._console.print(
            f"[bold]cgroup2[/bold] mounted at {escape(self._mount_root)}; "
            f"inspecting {escape(start)} (depth: {depth})",
            soft_wrap=True,
        )

        nodes = walk_tree(start, self._mount_root, self._options.depth)
        if not nodes:
            raise EmptyHierarchyError(start)
        logger.debug("found %d nodes under %s", len(nodes), start)

        renderer = NodeRenderer(
            self._console,
            self._options,
            self.footnotes,
            self.stats,
            self._mount_root,
            self._lister if (self._options.show_processes or self._options.show_threads) else None,
        )
        for node in nodes:
            if node == self._mount_root and not explicit:
                continue
            renderer.render(node)

        notes = self.footnotes.render()
        if notes:
            self._console.print()
            self._console.print("[bold]Footnotes[/bold]")
            for line in notes:
                self._console.print(line, soft_wrap=True)

        self._console.print()
        self._console.print(
            f"Total cgroups visited: {self.stats.visited} "
            f"(unpopulated: {self.stats.unpopulated})"
        )
        return self.stats

    def _print_system_summary(self) -> None:
        """Print the mounts, the whole hierarchy and the root's controllers."""
        self._console.print("[bold]cgroup2 mounts[/bold]")
        for line in read_mount_entries(self._mounts_path):
            self._console.print(f"  {escape(line)}", soft_wrap=True)

        self._console.print("[bold]Hierarchy[/bold]")
        self._console.print(self._hierarchy_tree())

        controllers = read_interface_file(self._mount_root, "cgroup.controllers")
        subtree = read_interface_file(self._mount_root, "cgroup.subtree_control")
        self._console.print(f"[bold]Controllers available[/bold]: {escape(controllers or '')}")
        self._console.print(f"[bold]Root subtree_control[/bold]: {escape(subtree or '')}")
        self._console.print()

    def _hierarchy_tree(self) -> Tree:
        """Build a tree of every node under the mount root."""
        root = Tree(escape(self._mount_root))
        branches = {self._mount_root: root}
        for node in walk_tree(self._mount_root, self._mount_root):
            if node == self._mount_root:
                continue
            parent = branches.get(os.path.dirname(node), root)
            branches[node] = parent.add(escape(os.path.basename(node)))
        return root
