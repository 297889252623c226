"""In-memory storage for a single table."""

from __future__ import annotations

import threading
from typing import Any, Callable, Iterator

from gamelog.errors import ConstraintError
from gamelog.types import ColumnDefinition, Record, TableDefinition, Value


class Table:
    """Holds a table's columns, its ordered records and its auto-increment counter.

    Records are plain dicts identified by their position in ``records``.
    Every mutation takes ``lock``, since the record list and the counter are
    read and then written.
    """

    def __init__(self, name: str, columns: list[ColumnDefinition]) -> None:
        self.name = name
        self.columns: list[ColumnDefinition] = [col.copy() for col in columns]
        self.records: list[Record] = []
        self.auto_increment_value = 1
        self.lock = threading.RLock()

    @classmethod
    def from_definition(cls, table_def: TableDefinition) -> Table:
        """Create an empty table from a declared definition."""
        return cls(table_def.name, table_def.columns)

    @property
    def count(self) -> int:
        """Return the number of records in the table."""
        return len(self.records)

    @property
    def column_names(self) -> list[str]:
        return [col.name for col in self.columns]

    @property
    def auto_key(self) -> ColumnDefinition | None:
        """Return the auto-increment primary key column, if any."""
        for col in self.columns:
            if col.is_auto_key:
                return col
        return None

    @property
    def last_assigned_id(self) -> int:
        """Return the highest auto-increment value handed out, or 0."""
        return self.auto_increment_value - 1

    def get_column(self, name: str) -> ColumnDefinition | None:
        """Get a column by name."""
        for col in self.columns:
            if col.name == name:
                return col
        return None

    def has_column(self, name: str) -> bool:
        return self.get_column(name) is not None

    def __iter__(self) -> Iterator[Record]:
        return iter(self.records)

    def __len__(self) -> int:
        return len(self.records)

    # --- Mutations ---

    def insert(self, values: dict[str, Any]) -> int:
        """Insert a record and return its auto-increment id (0 if the table has none).

        ``values`` maps column names to values; columns missing from it are
        filled from their defaults. An explicit value for the auto-increment
        key is kept and moves the counter past it.
        """
        with self.lock:
            record: Record = {}
            auto_key = self.auto_key
            row_id = 0

            if auto_key is not None and values.get(auto_key.name) is None:
                row_id = self.auto_increment_value
                self.auto_increment_value += 1
                record[auto_key.name] = row_id

            for name, value in values.items():
                if auto_key is not None and name == auto_key.name and value is None:
                    continue
                record[name] = value

            for col in self.columns:
                if col.name not in record and col.has_default:
                    record[col.name] = col.default  # type: ignore[assignment]

            self._check_not_null(record)

            if auto_key is not None and row_id == 0:
                row_id = self._claim_explicit_key(auto_key, record[auto_key.name])

            self.records.append(record)
            return row_id

    def update(self, predicate: Callable[[Record], bool] | None, assignments: dict[str, Value]) -> int:
        """Assign values on every matching record and return how many matched."""
        with self.lock:
            for name, value in assignments.items():
                col = self.get_column(name)
                if value is None and col is not None and col.not_null:
                    raise ConstraintError(f"NOT NULL constraint failed: {self.name}.{name}")

            matched = [r for r in self.records if predicate is None or predicate(r)]
            for record in matched:
                record.update(assignments)
            return len(matched)

    def delete(self, predicate: Callable[[Record], bool] | None) -> int:
        """Physically remove matching records and return how many were removed.

        The auto-increment counter is left untouched so ids are never reused.
        """
        with self.lock:
            if predicate is None:
                removed = len(self.records)
                self.records.clear()
                return removed
            kept = [r for r in self.records if not predicate(r)]
            removed = len(self.records) - len(kept)
            self.records[:] = kept
            return removed

    def add_column(self, column: ColumnDefinition) -> bool:
        """Append a column, backfilling its default onto existing records.

        Returns False (and changes nothing) if the column already exists.
        """
        with self.lock:
            if self.has_column(column.name):
                return False
            self.columns.append(column.copy())
            if column.has_default:
                for record in self.records:
                    record[column.name] = column.default  # type: ignore[assignment]
            return True

    def backfill(self, column_name: str, value: Value) -> int:
        """Set ``value`` on records where the column is null or absent."""
        with self.lock:
            filled = 0
            for record in self.records:
                if record.get(column_name) is None:
                    record[column_name] = value
                    filled += 1
            return filled

    # --- Helpers ---

    def _check_not_null(self, record: Record) -> None:
        for col in self.columns:
            if col.not_null and record.get(col.name) is None:
                raise ConstraintError(f"NOT NULL constraint failed: {self.name}.{col.name}")

    def _claim_explicit_key(self, auto_key: ColumnDefinition, value: Value) -> int:
        """Reserve an explicitly supplied key value."""
        if any(r.get(auto_key.name) == value for r in self.records):
            raise ConstraintError(f"UNIQUE constraint failed: {self.name}.{auto_key.name}")
        if isinstance(value, int) and not isinstance(value, bool):
            if value >= self.auto_increment_value:
                self.auto_increment_value = value + 1
            return value
        return 0
