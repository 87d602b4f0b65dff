"""Builds the canonical PortInfo snapshot from raw probe records."""

import logging
from collections.abc import Iterable

from portkiller.classifier import classify
from portkiller.models import PortInfo, RawSocketRecord
from portkiller.process import ProcessTable

logger = logging.getLogger(__name__)

DEFAULT_COMMAND_MAX_LENGTH = 200


def truncate_command(command: str, max_length: int = DEFAULT_COMMAND_MAX_LENGTH) -> str:
    """Cap a command line at ``max_length`` characters, marking the cut with '...'."""
    if len(command) <= max_length:
        return command
    return command[:max_length] + "..."


def merge_records(records: Iterable[RawSocketRecord]) -> dict[tuple[int, int], RawSocketRecord]:
    """Collapse records describing the same (port, pid) binding.

    The first record's address wins; later duplicates only fill in a missing
    name or command (the same socket is often listed once per address family).
    """
    merged: dict[tuple[int, int], RawSocketRecord] = {}
    for record in records:
        key = (record.port, record.pid)
        existing = merged.get(key)
        if existing is None:
            merged[key] = record
            continue
        if (not existing.process_name and record.process_name) or (
            not existing.command and record.command
        ):
            merged[key] = RawSocketRecord(
                port=existing.port,
                pid=existing.pid,
                address=existing.address,
                process_name=existing.process_name or record.process_name,
                command=existing.command or record.command,
            )
    return merged


def build_catalog(
    records: Iterable[RawSocketRecord],
    table: ProcessTable | None = None,
    command_max_length: int = DEFAULT_COMMAND_MAX_LENGTH,
) -> list[PortInfo]:
    """Deduplicate, resolve, classify and sort raw socket records.

    Args:
        records: Raw records from a platform probe.
        table: Process table used for PID lookups and liveness checks.
        command_max_length: Commands longer than this are truncated.

    Returns:
        PortInfo entries sorted by port, then PID.
    """
    table = table or ProcessTable()
    catalog = []

    for (port, pid), record in sorted(merge_records(records).items()):
        name, command = record.process_name, record.command

        if not name or not command:
            details = table.lookup(pid)
            if details is None:
                logger.debug(f"Could not resolve PID {pid} on port {port}", extra={"pid": pid, "port": port})
            else:
                name = name or details.name
                command = command or details.command

        # Fall back to the short name, as lsof/ss rows without a cmdline would show it
        command = truncate_command(command or name, command_max_length)

        catalog.append(
            PortInfo(
                port=port,
                pid=pid,
                process_name=name,
                command=command,
                address=record.address,
                process_type=classify(name, command, pid),
                is_active=table.is_running(pid),
            )
        )

    logger.debug(f"Catalog built with {len(catalog)} entries")
    return catalog
