"""cgexplore - command line entry point."""

import argparse
import logging
import os
import sys

from rich.console import Console
from rich.logging import RichHandler

from cgexplore.cgroupfs import DEFAULT_MOUNTS, find_mount_root
from cgexplore.errors import CgroupError, UsageError
from cgexplore.models import RunOptions
from cgexplore.report import ReportDriver
from cgexplore.units import is_decimal

logger = logging.getLogger(__name__)

PROG = "cgexplore"
DESCRIPTION = (
    "Show a snapshot of a cgroup v2 (sub)hierarchy: enabled controllers, "
    "population, processes and threads, and the cpu and memory settings of "
    "each cgroup."
)
EPILOG = (
    "The cgroup path, if given, must be the last argument; it is taken "
    "relative to the cgroup2 mount point unless absolute. The -d depth is "
    "counted from the mount point, not from the given cgroup."
)


class _ArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that raises UsageError instead of exiting with status 2."""

    def error(self, message: str) -> None:
        """Raise UsageError with argparse's message."""
        raise UsageError(message)


def build_parser() -> argparse.ArgumentParser:
    """Build the command line parser."""
    parser = _ArgumentParser(prog=PROG, description=DESCRIPTION, epilog=EPILOG)
    parser.add_argument("-v", dest="verbose", action="store_true", help="verbose mode")
    parser.add_argument(
        "-p", dest="show_processes", action="store_true", help="show process names"
    )
    parser.add_argument(
        "-t", dest="show_threads", action="store_true", help="show thread names"
    )
    parser.add_argument(
        "-d",
        dest="depth",
        type=int,
        default=0,
        metavar="N",
        help="max depth below the cgroup2 mount point, as -dN (default: unbounded)",
    )
    parser.add_argument("cgroup", nargs="?", default=None, help="cgroup to start from")
    return parser


def _check_layout(argv: list[str]) -> None:
    """Enforce the positional-last and attached -dN forms argparse would accept."""
    for index, arg in enumerate(argv):
        if arg == "-d":
            raise UsageError("-d needs its value attached, as in -d2")
        if arg.startswith("-d") and not is_decimal(arg[2:]):
            raise UsageError(f"invalid depth: '{arg[2:]}'")
        if not arg.startswith("-") and index != len(argv) - 1:
            raise UsageError(f"the cgroup path '{arg}' must be the last argument")


def parse_args(argv: list[str]) -> RunOptions:
    """
    Parse the command line into RunOptions.

    Raises:
        UsageError: For unknown flags, a misplaced path or a malformed depth.
        SystemExit: With status 0 after printing help for -h.
    """
    parser = build_parser()
    if "-h" not in argv and "--help" not in argv:
        _check_layout(argv)
    args = parser.parse_args(argv)
    return RunOptions(
        verbose=args.verbose,
        show_processes=args.show_processes,
        show_threads=args.show_threads,
        depth=args.depth,
        start_path=args.cgroup,
    )


def configure_logging(level: str | None = None) -> None:
    """Send log records to stderr through rich."""
    level = (level or os.environ.get("CGEXPLORE_LOG_LEVEL") or "WARNING").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def main(argv: list[str] | None = None, console: Console | None = None) -> int:
    """Entry point for cgexplore. Returns the process exit status."""
    argv = sys.argv[1:] if argv is None else argv
    if console is None:
        # Interface files and command lines may contain ':name:' sequences
        console = Console(emoji=False)
    err_console = Console(stderr=True)
    configure_logging()

    try:
        options = parse_args(argv)
    except UsageError as exc:
        build_parser().print_help(sys.stderr)
        err_console.print(f"{PROG}: error: {exc}", markup=False, highlight=False, soft_wrap=True)
        return 1

    logger.debug("options: %s", options)
    mounts_path = os.environ.get("CGEXPLORE_MOUNTS", DEFAULT_MOUNTS)
    try:
        mount_root = find_mount_root(mounts_path)
        driver = ReportDriver(options, console, mount_root, mounts_path=mounts_path)
        driver.run()
    except CgroupError as exc:
        err_console.print(f"{PROG}: error: {exc}", markup=False, highlight=False, soft_wrap=True)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
