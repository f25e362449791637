"""Migration runner: copy entries from a previous engine into this one.

Migration is an idempotent merge. Each entry is checked and written only
if absent, so existing values are never overwritten and a migration that
failed partway can simply be run again: entries that made it the first
time are skipped.

Entries are processed concurrently. Every per-entry outcome is collected
before reporting, so one failing entry does not hide the others. Nothing
is rolled back.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any, Protocol

from mysql_storage_engine.infrastructure.logging import get_logger
from mysql_storage_engine.infrastructure.metrics import MetricsRegistry
from mysql_storage_engine.infrastructure.tracing import trace_span
from mysql_storage_engine.ports.inbound import KeyFoundError, MigrationError, Pair

logger = get_logger(__name__)


class EntryWriter(Protocol):
    """The two primitives migration writes through."""

    async def has(self, resource_id: str) -> bool:
        ...

    async def put(self, resource_id: str, resource_data: Any) -> None:
        ...


@dataclass
class MigrationReport:
    """Per-entry outcomes of one migration run."""

    migrated: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failed: dict[str, BaseException] = field(default_factory=dict)

    @property
    def total(self) -> int:
        """Number of entries processed."""
        return len(self.migrated) + len(self.skipped) + len(self.failed)

    @property
    def ok(self) -> bool:
        """True if no entry failed."""
        return not self.failed


class MigrationRunner:
    """Writes a previous engine's dataset into a new one."""

    def __init__(self, writer: EntryWriter, metrics: MetricsRegistry | None = None) -> None:
        """Initialize the runner.

        Args:
            writer: Target engine primitives (has/put)
            metrics: Optional metrics registry for per-outcome counters
        """
        self._writer = writer
        self._metrics = metrics

    async def migrate(self, entries: Iterable[Pair]) -> MigrationReport:
        """Copy every absent entry.

        Args:
            entries: (id, value) pairs from the previous engine

        Returns:
            Report of migrated and skipped ids

        Raises:
            MigrationError: If any entry failed; carries the full report
        """
        pairs = list(entries)
        with trace_span("storage.migrate", {"entries": len(pairs)}):
            outcomes = await asyncio.gather(
                *(self._migrate_one(key, value) for key, value in pairs),
                return_exceptions=True,
            )

        report = MigrationReport()
        for (key, _), outcome in zip(pairs, outcomes):
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, Exception):
                    raise outcome
                report.failed[key] = outcome
            elif outcome:
                report.migrated.append(key)
            else:
                report.skipped.append(key)

        self._record(report)

        if not report.ok:
            logger.error(
                "migration_failed",
                migrated=len(report.migrated),
                skipped=len(report.skipped),
                failed=sorted(report.failed),
            )
            raise MigrationError(report)

        logger.info(
            "migration_completed",
            migrated=len(report.migrated),
            skipped=len(report.skipped),
        )
        return report

    async def _migrate_one(self, key: str, value: Any) -> bool:
        """Write one entry if absent. Returns True if written."""
        if await self._writer.has(key):
            return False
        try:
            await self._writer.put(key, value)
        except KeyFoundError:
            # Written concurrently between the check and the insert.
            return False
        return True

    def _record(self, report: MigrationReport) -> None:
        if self._metrics is None:
            return
        counter = self._metrics.migrated_entries_total
        counter.labels(outcome="migrated").inc(len(report.migrated))
        counter.labels(outcome="skipped").inc(len(report.skipped))
        counter.labels(outcome="failed").inc(len(report.failed))
