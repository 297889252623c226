"""Storage manager holding every table of one in-memory store."""

from __future__ import annotations

from typing import Iterator

from gamelog.errors import UnknownTableError
from gamelog.table import Table
from gamelog.types import TableDefinition


class StorageManager:
    """Manages all tables for one store.

    The store is volatile: it lives as long as this object does.
    """

    def __init__(self) -> None:
        self._tables: dict[str, Table] = {}

    def create_table(self, table_def: TableDefinition) -> Table:
        """Create an empty table from a definition and return it."""
        if table_def.name in self._tables:
            raise ValueError(f"Table '{table_def.name}' already exists")
        table = Table.from_definition(table_def)
        self._tables[table_def.name] = table
        return table

    def has_table(self, name: str) -> bool:
        return name in self._tables

    def get_table(self, name: str) -> Table | None:
        """Get a table by name, or None if it does not exist."""
        return self._tables.get(name)

    def get_table_or_raise(self, name: str) -> Table:
        """Get a table by name, raising UnknownTableError if it does not exist."""
        table = self._tables.get(name)
        if table is None:
            raise UnknownTableError(name)
        return table

    def list_tables(self) -> list[str]:
        """List table names in creation order."""
        return list(self._tables)

    def last_insert_id(self) -> int:
        """Return the highest auto-increment value assigned in any table.

        This is not scoped to one table: with inserts into several tables it
        reports the largest id handed out anywhere.
        """
        return max((t.last_assigned_id for t in self._tables.values()), default=0)

    def __iter__(self) -> Iterator[Table]:
        return iter(self._tables.values())

    def clear(self) -> None:
        """Drop every table."""
        self._tables.clear()
