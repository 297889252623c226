"""gamelog - A personal game-library tracker on an in-memory, schema-aware record store."""

from gamelog.database import Database
from gamelog.errors import (
    ConstraintError,
    GamelogError,
    InitializationError,
    NotFoundError,
    UninitializedAccessError,
    UnknownTableError,
    UnsupportedPredicateError,
    ValidationError,
)
from gamelog.migrations import MigrationRunner
from gamelog.models import Game, GameFilters, GameInput, GameSession, GameStatus, LibraryStats, SortOption
from gamelog.parsing import QueryParser
from gamelog.query_executor import QueryExecutor, QueryResult
from gamelog.repository import GamesRepository
from gamelog.schema import game_library_schema
from gamelog.storage import StorageManager
from gamelog.table import Table
from gamelog.types import (
    NO_DEFAULT,
    ColumnDefinition,
    ForeignKey,
    SchemaRegistry,
    TableDefinition,
)

__all__ = [
    # Main API
    "Database",
    "GamesRepository",
    "QueryParser",
    "QueryExecutor",
    "QueryResult",
    "MigrationRunner",
    # Storage
    "Table",
    "StorageManager",
    # Schema definitions
    "ColumnDefinition",
    "ForeignKey",
    "TableDefinition",
    "SchemaRegistry",
    "NO_DEFAULT",
    "game_library_schema",
    # Domain
    "Game",
    "GameInput",
    "GameFilters",
    "GameSession",
    "GameStatus",
    "LibraryStats",
    "SortOption",
    # Errors
    "GamelogError",
    "InitializationError",
    "UninitializedAccessError",
    "UnknownTableError",
    "ConstraintError",
    "UnsupportedPredicateError",
    "ValidationError",
    "NotFoundError",
]

__version__ = "0.1.0"
