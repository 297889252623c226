"""Query executor for parsed SQL statements."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Sequence

from gamelog.parsing.sql_parser import (
    AlterAddColumnQuery,
    DeleteQuery,
    InsertQuery,
    LastInsertIdQuery,
    PragmaQuery,
    Query,
    SelectQuery,
    UpdateQuery,
)
from gamelog.storage import StorageManager
from gamelog.types import ColumnDefinition, Record
from gamelog.where import MISSING, ParameterBinder, bind_tokens, filter_records, record_matcher

logger = logging.getLogger(__name__)

# Pseudo-table answering table-existence checks
MASTER_TABLE = "sqlite_master"


@dataclass
class QueryResult:
    """Result of a query execution."""

    columns: list[str]
    rows: list[dict[str, Any]]
    message: str | None = None


@dataclass
class InsertResult(QueryResult):
    """Result of an INSERT query."""

    table: str = ""
    row_id: int = 0


@dataclass
class UpdateResult(QueryResult):
    """Result of an UPDATE query."""

    table: str = ""
    affected: int = 0


@dataclass
class DeleteResult(QueryResult):
    """Result of a DELETE query."""

    table: str = ""
    affected: int = 0


@dataclass
class AlterResult(QueryResult):
    """Result of an ALTER TABLE ... ADD COLUMN query."""

    table: str = ""
    added: bool = False


class QueryExecutor:
    """Executes parsed statements against a store."""

    def __init__(self, storage: StorageManager) -> None:
        self.storage = storage

    def execute(self, query: Query, params: Sequence[Any] | None = None) -> QueryResult:
        """Execute a statement with its positional parameters and return results."""
        binder = ParameterBinder(params)
        if isinstance(query, SelectQuery):
            return self._execute_select(query, binder)
        elif isinstance(query, InsertQuery):
            return self._execute_insert(query, binder)
        elif isinstance(query, UpdateQuery):
            return self._execute_update(query, binder)
        elif isinstance(query, DeleteQuery):
            return self._execute_delete(query, binder)
        elif isinstance(query, LastInsertIdQuery):
            return self._execute_last_insert_id(query)
        elif isinstance(query, PragmaQuery):
            return self._execute_pragma(query)
        elif isinstance(query, AlterAddColumnQuery):
            return self._execute_alter_add_column(query)
        else:
            raise ValueError(f"Unknown query type: {type(query)}")

    # --- SELECT ---

    def _execute_select(self, query: SelectQuery, binder: ParameterBinder) -> QueryResult:
        """Execute SELECT query. An unknown table yields no rows."""
        if query.table == MASTER_TABLE:
            return self._execute_table_exists(query, binder)

        table = self.storage.get_table(query.table)
        if table is None:
            return QueryResult(columns=[], rows=[], message=f"Unknown table: {query.table}")

        records = filter_records(table.records, query.where, binder)
        if query.order_by:
            records = self._sort_records(records, query)
        if query.offset or query.limit is not None:
            end = None if query.limit is None else query.offset + query.limit
            records = records[query.offset:end]

        if query.is_star:
            # Declared fields never written read as NULL; stored keys are all kept
            columns = table.column_names
            rows = [{**{col: None for col in columns}, **r} for r in records]
        else:
            rows = [
                {col.output_name: r.get(col.name) for col in query.columns}
                for r in records
            ]
            columns = [col.output_name for col in query.columns]
        return QueryResult(columns=columns, rows=rows)

    @staticmethod
    def _sort_records(records: list[Record], query: SelectQuery) -> list[Record]:
        """Stable multi-key sort; NULLs sort last in either direction."""
        result = list(records)
        for item in reversed(query.order_by):
            present = [r for r in result if r.get(item.column) is not None]
            missing = [r for r in result if r.get(item.column) is None]
            present.sort(key=lambda r: _sort_key(r.get(item.column)), reverse=item.descending)
            result = present + missing
        return result

    def _execute_table_exists(self, query: SelectQuery, binder: ParameterBinder) -> QueryResult:
        """Answer ``SELECT name FROM sqlite_master WHERE ... name = 'x'``."""
        name = None
        if query.where is not None:
            tokens = bind_tokens(query.where.tokens, binder)
            for i in range(len(tokens) - 2):
                if (
                    tokens[i].kind == "IDENTIFIER"
                    and tokens[i].value == "name"
                    and tokens[i + 1].kind == "EQ"
                    and tokens[i + 2].kind in ("STRING", "VALUE", "IDENTIFIER")
                ):
                    name = tokens[i + 2].value
                    break
        if not isinstance(name, str) or not self.storage.has_table(name):
            return QueryResult(columns=["name"], rows=[])
        return QueryResult(columns=["name"], rows=[{"name": name}])

    # --- INSERT / UPDATE / DELETE ---

    def _execute_insert(self, query: InsertQuery, binder: ParameterBinder) -> InsertResult:
        """Execute INSERT query. Raises UnknownTableError for a missing table."""
        table = self.storage.get_table_or_raise(query.table)

        values: dict[str, Any] = {}
        for column, raw in zip(query.columns, query.values):
            value = binder.resolve(raw)
            # A missing parameter leaves the column absent so its default applies
            if value is not MISSING:
                values[column] = value

        row_id = table.insert(values)
        logger.debug("Inserted row %d into %s", row_id, query.table)
        return InsertResult(
            columns=["id"],
            rows=[],
            message=f"Inserted 1 row into {query.table}",
            table=query.table,
            row_id=row_id,
        )

    def _execute_update(self, query: UpdateQuery, binder: ParameterBinder) -> UpdateResult:
        """Execute UPDATE query; SET parameters bind before WHERE parameters."""
        table = self.storage.get_table_or_raise(query.table)

        assignments: dict[str, Any] = {}
        for assignment in query.assignments:
            value = binder.resolve(assignment.value)
            assignments[assignment.column] = None if value is MISSING else value

        affected = table.update(record_matcher(query.where, binder), assignments)
        return UpdateResult(
            columns=[],
            rows=[],
            message=f"Updated {affected} row(s) in {query.table}",
            table=query.table,
            affected=affected,
        )

    def _execute_delete(self, query: DeleteQuery, binder: ParameterBinder) -> DeleteResult:
        """Execute DELETE query; rows are removed, ids are never reused."""
        table = self.storage.get_table_or_raise(query.table)
        affected = table.delete(record_matcher(query.where, binder))
        return DeleteResult(
            columns=[],
            rows=[],
            message=f"Deleted {affected} row(s) from {query.table}",
            table=query.table,
            affected=affected,
        )

    # --- Introspection and schema evolution ---

    def _execute_last_insert_id(self, query: LastInsertIdQuery) -> QueryResult:
        return QueryResult(
            columns=[query.alias],
            rows=[{query.alias: self.storage.last_insert_id()}],
        )

    def _execute_pragma(self, query: PragmaQuery) -> QueryResult:
        """Execute PRAGMA; only ``table_info`` is understood."""
        if query.name.lower() != "table_info":
            logger.warning("Unhandled PRAGMA %s", query.name)
            return QueryResult(columns=[], rows=[], message=f"Unhandled PRAGMA: {query.name}")

        columns = ["cid", "name", "type", "notnull", "dflt_value", "pk"]
        table = self.storage.get_table(str(query.argument))
        if table is None:
            return QueryResult(columns=columns, rows=[])

        rows = [
            {
                "cid": cid,
                "name": col.name,
                "type": col.type_tag,
                "notnull": 1 if col.not_null else 0,
                "dflt_value": col.default if col.has_default else None,
                "pk": 1 if col.primary_key else 0,
            }
            for cid, col in enumerate(table.columns)
        ]
        return QueryResult(columns=columns, rows=rows)

    def _execute_alter_add_column(self, query: AlterAddColumnQuery) -> AlterResult:
        """Execute ALTER TABLE ... ADD COLUMN; existing columns are left alone."""
        table = self.storage.get_table(query.table)
        if table is None:
            logger.warning("ALTER TABLE on unknown table %s ignored", query.table)
            return AlterResult(
                columns=[], rows=[], message=f"Unknown table: {query.table}", table=query.table
            )

        column = ColumnDefinition(
            name=query.column,
            type_tag=query.type_tag,
            not_null=query.not_null,
            default=query.default,
        )
        added = table.add_column(column)
        if added:
            logger.info("Added column %s.%s %s", query.table, query.column, query.type_tag)
            message = f"Added column {query.column} to {query.table}"
        else:
            message = f"Column {query.column} already exists in {query.table}"
        return AlterResult(columns=[], rows=[], message=message, table=query.table, added=added)


def _sort_key(value: Any) -> tuple:
    # Numbers before text so mixed columns never compare int to str
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return (0, value, "")
    return (1, 0, str(value))
