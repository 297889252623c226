"""Database object tying the store, parser and executor together."""

from __future__ import annotations

import logging
from typing import Any, Sequence

from gamelog.errors import InitializationError, UninitializedAccessError
from gamelog.migrations import MigrationReport, MigrationRunner
from gamelog.parsing import QueryParser, leading_keyword
from gamelog.query_executor import InsertResult, QueryExecutor, QueryResult
from gamelog.schema import game_library_schema
from gamelog.storage import StorageManager
from gamelog.types import Record, SchemaRegistry

logger = logging.getLogger(__name__)

# Leading keywords the executor knows how to handle
STATEMENT_KEYWORDS = frozenset({"SELECT", "INSERT", "UPDATE", "DELETE", "PRAGMA", "ALTER"})


class Database:
    """An in-memory, schema-aware record store.

    A database starts uninitialized. ``initialize()`` builds a fresh store and
    migrates it to the registry's tables; only then are queries accepted.
    Every call works on this object's own store, so several databases can
    coexist in one process.
    """

    def __init__(self, registry: SchemaRegistry | None = None) -> None:
        """Create an uninitialized database.

        Args:
            registry: Tables the store must have. Defaults to the game library schema.
        """
        self.registry = registry if registry is not None else game_library_schema()
        self.parser = QueryParser()
        self._storage: StorageManager | None = None
        self._executor: QueryExecutor | None = None

    @property
    def initialized(self) -> bool:
        return self._storage is not None

    @property
    def storage(self) -> StorageManager:
        """Return the live store, raising if the database is not initialized."""
        if self._storage is None:
            raise UninitializedAccessError()
        return self._storage

    @property
    def executor(self) -> QueryExecutor:
        if self._executor is None:
            raise UninitializedAccessError()
        return self._executor

    def initialize(self) -> MigrationReport:
        """Reset the store and bring it up to the required schema.

        Raises:
            InitializationError: If the schema could not be set up. The
                database is left uninitialized.
        """
        logger.info("Initializing in-memory database")
        self.close()
        storage = StorageManager()
        try:
            report = MigrationRunner(storage, self.registry).ensure_schema()
        except Exception as e:
            logger.error("Database initialization failed: %s", e)
            raise InitializationError(f"Schema setup failed: {e}") from e
        self._storage = storage
        self._executor = QueryExecutor(storage)
        logger.info("Database initialized with tables: %s", ", ".join(storage.list_tables()))
        return report

    def migrate(self) -> MigrationReport:
        """Re-run the additive migration against the live store."""
        try:
            return MigrationRunner(self.storage, self.registry).ensure_schema()
        except UninitializedAccessError:
            raise
        except Exception as e:
            raise InitializationError(f"Schema migration failed: {e}") from e

    def close(self) -> None:
        """Drop the store and return to the uninitialized state."""
        if self._storage is not None:
            self._storage.clear()
        self._storage = None
        self._executor = None

    # --- Statement API ---

    def execute(self, sql: str, params: Sequence[Any] | None = None) -> QueryResult:
        """Run one statement and return its full result.

        Text that is not one of the supported statement forms (an unknown
        leading keyword, or a known one such as ``ALTER TABLE ... RENAME``
        that does not parse) is logged and answered with an empty result
        instead of an error.
        """
        executor = self.executor
        keyword = leading_keyword(sql)
        if keyword not in STATEMENT_KEYWORDS:
            return self._unhandled(sql)
        try:
            query = self.parser.parse(sql)
        except SyntaxError as e:
            return self._unhandled(sql, str(e))
        return executor.execute(query, params)

    @staticmethod
    def _unhandled(sql: str, reason: str | None = None) -> QueryResult:
        if reason:
            logger.warning("Unhandled statement (%s): %s", reason, sql.strip())
            message = f"Unhandled statement: {reason}"
        else:
            logger.warning("Unhandled statement: %s", sql.strip())
            message = "Unhandled statement"
        return QueryResult(columns=[], rows=[], message=message)

    def query(self, sql: str, params: Sequence[Any] | None = None) -> list[Record]:
        """Run a statement and return its rows."""
        return self.execute(sql, params).rows

    def get_first(self, sql: str, params: Sequence[Any] | None = None) -> Record | None:
        """Run a statement and return its first row, or None."""
        rows = self.query(sql, params)
        return rows[0] if rows else None

    def insert(self, table: str, data: dict[str, Any]) -> int:
        """Insert a mapping into ``table`` and return the new id.

        Keys whose value is None are dropped so that column defaults apply.
        """
        values = {k: v for k, v in data.items() if v is not None}
        if not values:
            # INSERT needs at least one column; fill every default directly
            return self.storage.get_table_or_raise(table).insert({})
        sql = (
            f"INSERT INTO {table} ({', '.join(values)}) "
            f"VALUES ({', '.join('?' for _ in values)})"
        )
        result = self.execute(sql, list(values.values()))
        assert isinstance(result, InsertResult)
        return result.row_id

    def update(
        self,
        table: str,
        data: dict[str, Any],
        where: str | None = None,
        where_params: Sequence[Any] | None = None,
    ) -> int:
        """Assign ``data`` on rows matching ``where`` and return the affected count."""
        if not data:
            return 0
        assignments = ", ".join(f"{column} = ?" for column in data)
        sql = f"UPDATE {table} SET {assignments}"
        if where:
            sql += f" WHERE {where}"
        result = self.execute(sql, list(data.values()) + list(where_params or []))
        return getattr(result, "affected", 0)

    def __enter__(self) -> Database:
        if not self.initialized:
            self.initialize()
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()
