"""Tests for cgexplore data models."""

import dataclasses

import pytest

from cgexplore.models import (
    ControllerSnapshot,
    FootnoteEntry,
    NodePhase,
    NodeState,
    RunOptions,
    RunStats,
    TaskSnapshot,
)


def test_run_options_defaults():
    """Test RunOptions defaults to an unbounded, non-verbose run from the mount root."""
    options = RunOptions()

    assert options.verbose is False
    assert options.show_processes is False
    assert options.show_threads is False
    assert options.depth == 0
    assert options.start_path is None


def test_run_options_is_frozen():
    """Test that RunOptions is immutable once parsed."""
    options = RunOptions(verbose=True, depth=2)

    with pytest.raises(dataclasses.FrozenInstanceError):
        options.depth = 3


def test_run_options_uses_slots():
    """Test that RunOptions uses __slots__."""
    assert not hasattr(RunOptions(), "__dict__")


def test_run_stats_counts():
    """Test RunStats starts at zero and can be incremented."""
    stats = RunStats()
    stats.visited += 2
    stats.unpopulated += 1

    assert stats.visited == 2
    assert stats.unpopulated == 1


def test_controller_snapshot_absent_vs_empty():
    """Test an empty value counts as present, unlike a missing file."""
    snapshot = ControllerSnapshot(controller="cpu", values={"weight": "", "max": None})

    assert snapshot.get("weight") == ""
    assert snapshot.get("max") is None
    assert snapshot.get("pressure") is None
    assert snapshot.any_present()


def test_controller_snapshot_nothing_present():
    """Test any_present is false when every file is missing."""
    snapshot = ControllerSnapshot(controller="cpu", values={"weight": None, "max": None})

    assert not snapshot.any_present()


def test_footnote_entry_starts_untriggered():
    """Test FootnoteEntry defaults to not triggered."""
    entry = FootnoteEntry(id=1, text="note")

    assert entry.triggered is False


def test_node_state_counts():
    """Test NodeState derives counts from its id lists."""
    state = NodeState(path="/sys/fs/cgroup/a", pids=[1, 2], tids=[1, 2, 3])

    assert state.phase is NodePhase.CHECK_POPULATION
    assert state.nr_procs == 2
    assert state.nr_threads == 3
    assert state.nr_descendants is None


def test_task_snapshot_creation():
    """Test TaskSnapshot dataclass creation."""
    task = TaskSnapshot(
        pid=123,
        name="test_process",
        username="testuser",
        status="sleeping",
        threads=4,
        command_line="/usr/bin/test --flag",
    )

    assert task.pid == 123
    assert task.name == "test_process"
    assert task.threads == 4
    assert not hasattr(task, "__dict__")
