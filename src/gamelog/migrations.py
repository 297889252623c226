"""Additive schema migration run on every boot."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from gamelog.schema import TIMESTAMP_COLUMNS
from gamelog.storage import StorageManager
from gamelog.types import SchemaRegistry

logger = logging.getLogger(__name__)


def utc_now_iso() -> str:
    """Return the current UTC time as an ISO-8601 string with millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass
class MigrationReport:
    """What a migration run changed."""

    created_tables: list[str] = field(default_factory=list)
    added_columns: dict[str, list[str]] = field(default_factory=dict)
    backfilled: dict[str, int] = field(default_factory=dict)

    @property
    def changed(self) -> bool:
        return bool(self.created_tables or self.added_columns or self.backfilled)


class MigrationRunner:
    """Reconciles a store with the tables a registry requires.

    Reconciliation is additive only: tables are created, columns appended and
    values backfilled. Nothing is ever removed or retyped.
    """

    def __init__(self, storage: StorageManager, registry: SchemaRegistry) -> None:
        self.storage = storage
        self.registry = registry

    def ensure_schema(self) -> MigrationReport:
        """Create missing tables and add missing columns. Safe to call repeatedly."""
        report = MigrationReport()
        for table_def in self.registry:
            table = self.storage.get_table(table_def.name)
            if table is None:
                logger.info("Creating table %s", table_def.name)
                self.storage.create_table(table_def)
                report.created_tables.append(table_def.name)
                continue

            logger.debug("Table %s exists, checking columns", table_def.name)
            for column in table_def.columns:
                if table.add_column(column):
                    logger.info("Adding missing column %s.%s", table_def.name, column.name)
                    report.added_columns.setdefault(table_def.name, []).append(column.name)

            now = utc_now_iso()
            for name in TIMESTAMP_COLUMNS:
                if not table.has_column(name):
                    continue
                filled = table.backfill(name, now)
                if filled:
                    logger.info("Backfilled %d NULL value(s) in %s.%s", filled, table_def.name, name)
                    report.backfilled[f"{table_def.name}.{name}"] = filled
        return report
