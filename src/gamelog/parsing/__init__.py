"""Parsing module for the SQL subset."""

from gamelog.parsing.sql_lexer import SQLLexer, leading_keyword
from gamelog.parsing.sql_parser import (
    AlterAddColumnQuery,
    DeleteQuery,
    InsertQuery,
    LastInsertIdQuery,
    PragmaQuery,
    QueryParser,
    SelectQuery,
    UpdateQuery,
)

__all__ = [
    "AlterAddColumnQuery",
    "DeleteQuery",
    "InsertQuery",
    "LastInsertIdQuery",
    "PragmaQuery",
    "QueryParser",
    "SQLLexer",
    "SelectQuery",
    "UpdateQuery",
    "leading_keyword",
]
