"""Column and table definitions for the gamelog record store."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union


# Closed set of values a record may hold
Value = Union[int, float, str, bool, None]

# One row: column name -> value
Record = dict[str, Value]


class _NoDefault:
    """Marker for a column without a declared default."""

    _instance: _NoDefault | None = None

    def __new__(cls) -> _NoDefault:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NO_DEFAULT"

    def __bool__(self) -> bool:
        return False


# Sentinel: a default of None means "DEFAULT NULL", this means no default at all
NO_DEFAULT = _NoDefault()


@dataclass(frozen=True)
class ForeignKey:
    """Reference from a column to a column of another table."""

    table: str
    column: str


@dataclass
class ColumnDefinition:
    """A single column of a table."""

    name: str
    type_tag: str
    primary_key: bool = False
    auto_increment: bool = False
    not_null: bool = False
    default: Value | _NoDefault = NO_DEFAULT
    foreign_key: ForeignKey | None = None

    @property
    def has_default(self) -> bool:
        """Return True if the column declares a default (possibly NULL)."""
        return self.default is not NO_DEFAULT

    @property
    def is_auto_key(self) -> bool:
        return self.primary_key and self.auto_increment

    def copy(self) -> ColumnDefinition:
        return ColumnDefinition(
            name=self.name,
            type_tag=self.type_tag,
            primary_key=self.primary_key,
            auto_increment=self.auto_increment,
            not_null=self.not_null,
            default=self.default,
            foreign_key=self.foreign_key,
        )


@dataclass
class TableDefinition:
    """Declared shape of a table: its name and ordered columns."""

    name: str
    columns: list[ColumnDefinition] = field(default_factory=list)

    def __post_init__(self) -> None:
        seen: set[str] = set()
        auto_keys = 0
        for col in self.columns:
            if col.name in seen:
                raise ValueError(f"Duplicate column '{col.name}' in table '{self.name}'")
            seen.add(col.name)
            if col.is_auto_key:
                auto_keys += 1
        if auto_keys > 1:
            raise ValueError(
                f"Table '{self.name}' declares more than one auto-increment primary key"
            )

    @property
    def column_names(self) -> list[str]:
        return [col.name for col in self.columns]

    def get_column(self, name: str) -> ColumnDefinition | None:
        """Get a column by name."""
        for col in self.columns:
            if col.name == name:
                return col
        return None


class SchemaRegistry:
    """Registry of the tables a store is required to have."""

    def __init__(self, tables: list[TableDefinition] | None = None) -> None:
        self._tables: dict[str, TableDefinition] = {}
        for table_def in tables or []:
            self.register(table_def)

    def register(self, table_def: TableDefinition) -> None:
        """Register a table definition."""
        if table_def.name in self._tables:
            raise ValueError(f"Table '{table_def.name}' is already defined")
        self._tables[table_def.name] = table_def

    def get(self, name: str) -> TableDefinition | None:
        """Get a table definition by name."""
        return self._tables.get(name)

    def get_or_raise(self, name: str) -> TableDefinition:
        """Get a table definition by name, raising if not found."""
        table_def = self._tables.get(name)
        if table_def is None:
            raise KeyError(f"Table '{name}' not found")
        return table_def

    def list_tables(self) -> list[str]:
        """List registered table names in registration order."""
        return list(self._tables)

    def __iter__(self):
        return iter(self._tables.values())

    def __len__(self) -> int:
        return len(self._tables)
