#!/usr/bin/env python3
"""Command line interface for portkiller.

Commands:
    list [--type T] [--search S] [--range MIN-MAX] [--json]   Show listening ports
    pids PORT                                                 Show PIDs listening on a port
    kill PORT [--force]                                       Free a port
    kill-pid PID [--force]                                    Terminate a single process
    version                                                   Show the library version

Usage:
    portkiller list --type development
    python -m portkiller kill 3000
"""

import argparse
import json
import logging
import sys

from portkiller import __version__
from portkiller.config import settings
from portkiller.errors import ProbeError
from portkiller.instance import PortKiller, create_instance
from portkiller.logging_config import setup_logging
from portkiller.models import (
    PortFilter,
    PortKillStatus,
    ProcessType,
    TerminationMode,
)

logger = logging.getLogger(__name__)


def parse_port_range(value: str) -> tuple[int, int]:
    """Parse 'MIN-MAX' (or a single port) into an inclusive range."""
    low, sep, high = value.partition("-")
    try:
        bounds = (int(low), int(high) if sep else int(low))
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid port range: {value!r}") from None
    if not 0 <= bounds[0] <= bounds[1] <= 65535:
        raise argparse.ArgumentTypeError(f"invalid port range: {value!r}")
    return bounds


def cmd_list(killer: PortKiller, args: argparse.Namespace) -> int:
    """Show all listening ports."""
    port_filter = PortFilter(
        search_text=args.search,
        process_type=ProcessType(args.type) if args.type else None,
        port_range=args.range,
    )
    ports = killer.filter(killer.scan(), port_filter)

    if args.json:
        print(json.dumps([p.model_dump(mode="json") for p in ports], indent=2))
        return 0

    if not ports:
        print("No listening ports found.")
        return 0

    print(f"{'PORT':>6}  {'PID':>8}  {'TYPE':<12} {'ADDRESS':<16} {'PROCESS':<20} COMMAND")
    print("-" * 100)
    for p in ports:
        marker = "" if p.is_active else " (exited)"
        print(
            f"{p.port:>6}  {p.pid:>8}  {p.process_type.display_name:<12} "
            f"{p.address:<16} {p.process_name[:20]:<20} {p.command[:60]}{marker}"
        )
    print("-" * 100)
    print(f"{len(ports)} listening port(s)")
    return 0


def cmd_pids(killer: PortKiller, args: argparse.Namespace) -> int:
    """Show the PIDs listening on a port."""
    for pid in sorted(killer.list_pids_on_port(args.port)):
        print(pid)
    return 0


def cmd_kill(killer: PortKiller, args: argparse.Namespace) -> int:
    """Free a port."""
    mode = TerminationMode.FORCE if args.force else TerminationMode.GRACEFUL
    result = killer.kill_port(args.port, mode)

    if result.status == PortKillStatus.NO_ACTION:
        print(f"No process is listening on port {args.port}")
        return 0

    for outcome in result.outcomes:
        detail = f" ({outcome.error})" if outcome.error else ""
        escalated = " after SIGKILL" if outcome.escalated else ""
        print(f"  PID {outcome.pid:>8}  {outcome.outcome.value}{escalated}{detail}")

    if result.success:
        print(f"Port {args.port} freed ({len(result.killed_pids)}/{len(result.outcomes)} terminated)")
        return 0
    print(f"Failed to free port {args.port}")
    return 1


def cmd_kill_pid(killer: PortKiller, args: argparse.Namespace) -> int:
    """Terminate a single process."""
    mode = TerminationMode.FORCE if args.force else TerminationMode.GRACEFUL
    outcome = killer.terminate(args.pid, mode)
    detail = f" ({outcome.error})" if outcome.error else ""
    print(f"PID {outcome.pid}: {outcome.outcome.value}{detail}")
    return 0 if outcome.success else 1


COMMANDS = {
    "list": cmd_list,
    "pids": cmd_pids,
    "kill": cmd_kill,
    "kill-pid": cmd_kill_pid,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="portkiller",
        description="Find and free listening TCP ports",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--debug", action="store_true", default=settings.debug, help="Enable debug logging")
    parser.add_argument("--json-logs", action="store_true", default=settings.json_logs, help="Emit JSON log lines")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # list command
    list_parser = subparsers.add_parser("list", help="Show listening ports")
    list_parser.add_argument(
        "--type",
        choices=[t.value for t in ProcessType],
        help="Only show one process type",
    )
    list_parser.add_argument("--search", help="Match port, process name or command")
    list_parser.add_argument("--range", type=parse_port_range, help="Port range, e.g. 3000-3999")
    list_parser.add_argument("--json", action="store_true", help="Print JSON instead of a table")

    # pids command
    pids_parser = subparsers.add_parser("pids", help="Show PIDs listening on a port")
    pids_parser.add_argument("port", type=int)

    # kill command
    kill_parser = subparsers.add_parser("kill", help="Terminate every process listening on a port")
    kill_parser.add_argument("port", type=int)
    kill_parser.add_argument("--force", "-f", action="store_true", help="Skip the graceful request")

    # kill-pid command
    kill_pid_parser = subparsers.add_parser("kill-pid", help="Terminate a process by PID")
    kill_pid_parser.add_argument("pid", type=int)
    kill_pid_parser.add_argument("--force", "-f", action="store_true", help="Skip the graceful request")

    subparsers.add_parser("version", help="Show the library version")

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    setup_logging(debug=args.debug, json_logs=args.json_logs)

    if args.command == "version":
        print(__version__)
        return 0

    try:
        killer = create_instance()
        return COMMANDS[args.command](killer, args)
    except ProbeError as e:
        logger.error(f"Port scan failed: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 2
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
