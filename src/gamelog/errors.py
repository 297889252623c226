"""Exception hierarchy for the gamelog data layer and repository."""

from __future__ import annotations


class GamelogError(Exception):
    """Base class for all gamelog errors."""


class InitializationError(GamelogError):
    """Raised when the schema could not be set up at startup."""


class UninitializedAccessError(GamelogError):
    """Raised when a query runs before the database is initialized."""

    def __init__(self) -> None:
        super().__init__("Database not initialized. Call initialize() first.")


class UnknownTableError(GamelogError, KeyError):
    """Raised by mutating statements that target a missing table."""

    def __init__(self, table: str) -> None:
        super().__init__(f"Table '{table}' does not exist")
        self.table = table

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return self.args[0]


class ConstraintError(GamelogError):
    """Raised when a write breaks a NOT NULL or primary-key constraint."""


class UnsupportedPredicateError(GamelogError):
    """Raised for WHERE clauses that combine several comparisons."""


class ValidationError(GamelogError, ValueError):
    """Raised by the repository when game fields are missing or invalid."""


class NotFoundError(GamelogError, LookupError):
    """Raised by the repository when a referenced game does not exist."""
