"""Per-node section extractors for the core, cpu and memory interface files."""

import logging

from rich.markup import escape

from cgexplore.cgroupfs import (
    list_interface_files,
    parse_ids,
    parse_keyed,
    read_interface_file,
)
from cgexplore.footnotes import Footnote, FootnoteRegistry
from cgexplore.models import ControllerSnapshot, NodeSection, NodeState, RunOptions
from cgexplore.proclist import ProcessLister, list_tasks
from cgexplore.units import format_bytes, is_decimal

logger = logging.getLogger(__name__)

CPU_FILES = ["weight", "weight.nice", "max", "pressure"]
MEMORY_FILES = ["current", "min", "low", "high"]
THREADED_TYPES = {"threaded", "domain threaded", "domain invalid"}

LABEL_WIDTH = 22


def _ref(note: Footnote) -> str:
    """Format an inline footnote marker."""
    return f" [dim]\\[{int(note)}][/dim]"


def _field(label: str, value: str, note: Footnote | None = None) -> str:
    """Format one 'label : value' line; value must already be escaped."""
    line = f"  {label:<{LABEL_WIDTH}}: {value}"
    if note is not None:
        line += _ref(note)
    return line


def _multiline_field(label: str, content: str, note: Footnote | None = None) -> list[str]:
    """Format a field whose content spans several lines, such as a pressure file."""
    rows = content.splitlines() or [""]
    lines = [_field(label, escape(rows[0]), note)]
    indent = " " * (LABEL_WIDTH + 4)
    lines.extend(f"{indent}{escape(row)}" for row in rows[1:])
    return lines


def _with_human(raw: str) -> str:
    """Render a byte value as 'raw (human)', dropping the parenthetical if empty."""
    human = format_bytes(raw)
    if human:
        return f"{escape(raw)} ({human})"
    return escape(raw)


def verbatim_dump(node: str, prefix: str) -> list[str]:
    """
    Dump every readable interface file of node whose name starts with prefix.

    File names are highlighted; the content is shown as is.
    """
    lines: list[str] = []
    for name in list_interface_files(node, prefix):
        content = read_interface_file(node, name)
        if content is None:
            # Write-only files such as cgroup.kill
            logger.debug("not dumping unreadable %s/%s", node, name)
            continue
        lines.append(f"  [bold cyan]{escape(name)}[/bold cyan]:")
        lines.extend(f"    {escape(row)}" for row in content.splitlines())
    return lines


def read_controller(node: str, controller: str, suffixes: list[str]) -> ControllerSnapshot:
    """Read the given interface files of one controller on node."""
    return ControllerSnapshot(
        controller=controller,
        values={
            suffix: read_interface_file(node, f"{controller}.{suffix}") for suffix in suffixes
        },
    )


def extract_core(
    node: str,
    options: RunOptions,
    footnotes: FootnoteRegistry,
    state: NodeState,
    lister: ProcessLister | None = None,
) -> NodeSection:
    """
    Build the core section from the node's cgroup.* files.

    Also records the node's process and thread ids on state, which the
    memory section needs.
    """
    subtree = read_interface_file(node, "cgroup.subtree_control")
    cg_type = read_interface_file(node, "cgroup.type")
    freeze = read_interface_file(node, "cgroup.freeze")
    procs = read_interface_file(node, "cgroup.procs")
    threads = read_interface_file(node, "cgroup.threads")
    stat = parse_keyed(read_interface_file(node, "cgroup.stat"))
    pressure = read_interface_file(node, "cgroup.pressure")

    state.pids = parse_ids(procs)
    state.tids = parse_ids(threads)
    if "nr_descendants" in stat and is_decimal(stat["nr_descendants"]):
        state.nr_descendants = int(stat["nr_descendants"])

    if subtree is not None and not subtree.strip():
        footnotes.trigger(Footnote.NO_SUBTREE)
    if cg_type in THREADED_TYPES:
        footnotes.trigger(Footnote.THREADED)

    section = NodeSection(title=None)
    if options.verbose:
        section.lines.extend(verbatim_dump(node, "cgroup."))
    else:
        if subtree is not None:
            if subtree.strip():
                section.lines.append(_field("subtree_control", escape(subtree)))
            else:
                section.lines.append(_field("subtree_control", "(none)", Footnote.NO_SUBTREE))
        if cg_type is not None:
            note = Footnote.THREADED if cg_type in THREADED_TYPES else None
            section.lines.append(_field("type", escape(cg_type), note))
        if freeze is not None:
            section.lines.append(_field("freeze", escape(freeze)))
        if procs is not None:
            pid_list = " ".join(str(pid) for pid in state.pids)
            section.lines.append(_field("procs", f"{state.nr_procs} {pid_list}".rstrip()))
        if threads is not None:
            tid_list = " ".join(str(tid) for tid in state.tids)
            section.lines.append(_field("threads", f"{state.nr_threads} {tid_list}".rstrip()))
        if state.nr_descendants is not None:
            section.lines.append(_field("nr_descendants", str(state.nr_descendants)))
        if pressure is not None:
            section.lines.append(_field("pressure", escape(pressure)))

    if lister is not None:
        if options.show_processes and state.pids:
            section.lines.append("  [bold]processes:[/bold]")
            section.lines.extend(f"    {row}" for row in list_tasks(lister, state.pids))
        if options.show_threads and state.tids:
            section.lines.append("  [bold]threads:[/bold]")
            section.lines.extend(f"    {row}" for row in list_tasks(lister, state.tids))

    return section


def extract_cpu(
    node: str,
    options: RunOptions,
    footnotes: FootnoteRegistry,
    state: NodeState,
) -> NodeSection | None:
    """
    Build the CPU section.

    Returns None when none of the cpu files exist, i.e. the cpu controller
    is not enabled on this node.
    """
    cpu = read_controller(node, "cpu", CPU_FILES)
    if not cpu.any_present():
        return None

    footnotes.trigger(Footnote.CPU)
    pressure = cpu.get("pressure")
    if pressure is not None:
        # Shown by both the dump and the structured lines
        footnotes.trigger(Footnote.PRESSURE)

    section = NodeSection(title="CPU")
    if options.verbose:
        section.lines.extend(verbatim_dump(node, "cpu."))
        return section

    for suffix in ["weight", "weight.nice", "max"]:
        value = cpu.get(suffix)
        if value is not None:
            section.lines.append(_field(f"cpu.{suffix}", escape(value)))
    if pressure is not None:
        section.lines.extend(_multiline_field("cpu.pressure", pressure, Footnote.PRESSURE))
    return section


def extract_memory(
    node: str,
    options: RunOptions,
    footnotes: FootnoteRegistry,
    state: NodeState,
) -> NodeSection:
    """
    Build the MEMORY section.

    The section is produced for every node, whether or not the memory
    controller is enabled on it. memory.min is left out for nodes without
    threads, where the protection has no effect.
    """
    footnotes.trigger(Footnote.MEMORY)
    memory = read_controller(node, "memory", MEMORY_FILES)
    section = NodeSection(title="MEMORY")

    def add(suffix: str) -> None:
        """Append one memory field, n/a when its file is missing."""
        value = memory.get(suffix)
        rendered = _with_human(value) if value is not None else "n/a"
        section.lines.append(_field(f"memory.{suffix}", rendered))

    add("current")
    if state.nr_threads > 0:
        add("min")
    add("low")

    high = memory.get("high")
    if high is not None:
        section.lines.append(_field("memory.high", _with_human(high)))

    pressure = read_interface_file(node, "memory.pressure")
    if pressure is not None:
        footnotes.trigger(Footnote.PRESSURE)
        section.lines.extend(_multiline_field("memory.pressure", pressure, Footnote.PRESSURE))
    return section
