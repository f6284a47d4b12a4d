"""Process and thread listing for the ids found in cgroup.procs/cgroup.threads."""

import logging

import psutil
from rich.markup import escape

from cgexplore.models import TaskSnapshot

logger = logging.getLogger(__name__)


class ProcessLister:
    """
    Describe processes or threads by id using psutil.

    Ids whose task exits while being listed, or that cannot be inspected,
    are skipped.
    """

    def describe(self, ids: list[int]) -> list[TaskSnapshot]:
        """
        Collect a snapshot of each task id.

        Uses psutil.Process.oneshot() to fetch all attributes in one go.
        Thread ids work too on Linux, where every thread has a /proc entry.
        """
        tasks: list[TaskSnapshot] = []

        for task_id in ids:
            try:
                proc = psutil.Process(task_id)
                with proc.oneshot():
                    cmdline = proc.cmdline()
                    name = proc.name()
                    tasks.append(
                        TaskSnapshot(
                            pid=task_id,
                            name=name or "",
                            username=proc.username() or "",
                            status=proc.status() or "?",
                            threads=proc.num_threads() or 0,
                            command_line=" ".join(cmdline) if cmdline else name,
                        )
                    )
            except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess) as exc:
                # The task exited or is hidden from us
                logger.debug("skipping task %d: %s", task_id, exc)
                continue

        return tasks


def format_tasks(tasks: list[TaskSnapshot]) -> list[str]:
    """Get display lines for a task listing, header first."""
    lines = [f"{'PID':>8} {'USER':<10} {'S':<9} {'THR':>4} COMMAND"]
    for task in tasks:
        lines.append(
            f"{task.pid:>8} {escape(task.username[:10]):<10} {task.status:<9} "
            f"{task.threads:>4} {escape(task.command_line[:60])}"
        )
    return lines


def list_tasks(lister: ProcessLister, ids: list[int]) -> list[str]:
    """
    Describe ids with lister and format the result.

    The listing is a best-effort extra, so lister failures only cost the
    listing itself.
    """
    if not ids:
        return []
    try:
        tasks = lister.describe(ids)
    except (psutil.Error, OSError) as exc:
        logger.warning("process listing unavailable: %s", exc)
        return []
    return format_tasks(tasks)
