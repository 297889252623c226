"""Declared tables of the game library."""

from __future__ import annotations

from gamelog.types import ColumnDefinition, ForeignKey, SchemaRegistry, TableDefinition


# Columns that must never be left NULL on existing records after a migration
TIMESTAMP_COLUMNS = ("created_at", "updated_at")


def game_table() -> TableDefinition:
    """Return the definition of the ``game`` table."""
    return TableDefinition(
        name="game",
        columns=[
            ColumnDefinition("id", "INTEGER", primary_key=True, auto_increment=True),
            ColumnDefinition("title", "TEXT", not_null=True),
            ColumnDefinition("platform", "TEXT"),
            ColumnDefinition("status", "TEXT", not_null=True, default="backlog"),
            ColumnDefinition("rating", "INTEGER"),
            ColumnDefinition("hours", "REAL", not_null=True, default=0),
            ColumnDefinition("notes", "TEXT"),
            ColumnDefinition("release_year", "INTEGER"),
            ColumnDefinition("started_at", "TEXT"),
            ColumnDefinition("completed_at", "TEXT"),
            ColumnDefinition("created_at", "TEXT", not_null=True),
            ColumnDefinition("updated_at", "TEXT", not_null=True),
            ColumnDefinition("deleted", "INTEGER", not_null=True, default=0),
            ColumnDefinition("publisher", "TEXT"),
            ColumnDefinition("year", "INTEGER"),
            ColumnDefinition("genre", "TEXT"),
            ColumnDefinition("description", "TEXT"),
        ],
    )


def game_session_table() -> TableDefinition:
    """Return the definition of the ``game_session`` table."""
    return TableDefinition(
        name="game_session",
        columns=[
            ColumnDefinition("id", "INTEGER", primary_key=True, auto_increment=True),
            ColumnDefinition(
                "game_id", "INTEGER", not_null=True, foreign_key=ForeignKey("game", "id")
            ),
            ColumnDefinition("minutes", "INTEGER", not_null=True),
            ColumnDefinition("note", "TEXT"),
            ColumnDefinition("played_at", "TEXT", not_null=True),
            ColumnDefinition("created_at", "TEXT", not_null=True),
        ],
    )


def game_library_schema() -> SchemaRegistry:
    """Build a fresh registry with every table the game library needs."""
    return SchemaRegistry([game_table(), game_session_table()])
