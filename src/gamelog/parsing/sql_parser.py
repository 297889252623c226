"""Parser for the SQL subset understood by the gamelog store."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import ply.yacc as yacc

from gamelog.parsing.sql_lexer import SQLLexer
from gamelog.types import NO_DEFAULT, Value, _NoDefault


@dataclass(frozen=True)
class Placeholder:
    """A positional ``?`` parameter."""

    pass


@dataclass(frozen=True)
class NullValue:
    """The NULL literal."""

    pass


@dataclass
class WhereToken:
    """One token of a WHERE predicate, kept raw for the predicate filter."""

    kind: str  # lexer token type, e.g. IDENTIFIER, EQ, STRING, PLACEHOLDER
    value: Any


@dataclass
class WhereClause:
    """The raw tokens between WHERE and ORDER/LIMIT/end of statement."""

    tokens: list[WhereToken] = field(default_factory=list)

    @property
    def placeholder_count(self) -> int:
        return sum(1 for tok in self.tokens if tok.kind == "PLACEHOLDER")

    def __str__(self) -> str:
        return " ".join(_token_text(tok) for tok in self.tokens)


@dataclass
class SelectColumn:
    """A projected column, optionally renamed with AS."""

    name: str
    alias: str | None = None

    @property
    def output_name(self) -> str:
        return self.alias or self.name


@dataclass
class OrderItem:
    """A column in an ORDER BY clause."""

    column: str
    descending: bool = False


@dataclass
class SelectQuery:
    """A SELECT query. An empty ``columns`` list means ``SELECT *``."""

    table: str
    columns: list[SelectColumn] = field(default_factory=list)
    where: WhereClause | None = None
    order_by: list[OrderItem] = field(default_factory=list)
    limit: int | None = None
    offset: int = 0

    @property
    def is_star(self) -> bool:
        return not self.columns


@dataclass
class LastInsertIdQuery:
    """``SELECT last_insert_rowid()``."""

    alias: str = "id"


@dataclass
class InsertQuery:
    """An INSERT INTO ... (columns) VALUES (...) query."""

    table: str
    columns: list[str] = field(default_factory=list)
    values: list[Any] = field(default_factory=list)  # literals, NullValue or Placeholder


@dataclass
class Assignment:
    """A ``column = value`` pair in an UPDATE SET clause."""

    column: str
    value: Any


@dataclass
class UpdateQuery:
    """An UPDATE query."""

    table: str
    assignments: list[Assignment] = field(default_factory=list)
    where: WhereClause | None = None


@dataclass
class DeleteQuery:
    """A DELETE FROM query."""

    table: str
    where: WhereClause | None = None


@dataclass
class PragmaQuery:
    """A PRAGMA statement such as ``PRAGMA table_info(game)``."""

    name: str
    argument: Any = None


@dataclass
class AlterAddColumnQuery:
    """An ALTER TABLE ... ADD COLUMN query."""

    table: str
    column: str
    type_tag: str
    not_null: bool = False
    default: Value | _NoDefault = NO_DEFAULT


Query = (
    SelectQuery
    | LastInsertIdQuery
    | InsertQuery
    | UpdateQuery
    | DeleteQuery
    | PragmaQuery
    | AlterAddColumnQuery
)


@dataclass
class _FunctionCall:
    """``SELECT fn()`` for a function the store does not provide."""

    name: str


def _token_text(tok: WhereToken) -> str:
    if tok.kind == "STRING":
        return "'" + str(tok.value).replace("'", "''") + "'"
    if tok.kind == "PLACEHOLDER":
        return "?"
    return str(tok.value)


class QueryParser:
    """Parser for SQL statements."""

    tokens = SQLLexer.tokens

    def __init__(self) -> None:
        self.lexer = SQLLexer()
        self.lexer.build()
        self.parser: yacc.LRParser = None  # type: ignore

    def p_statement(self, p: yacc.YaccProduction) -> None:
        """statement : query SEMICOLON
                     | query"""
        p[0] = p[1]

    # --- SELECT ---

    def p_query_select(self, p: yacc.YaccProduction) -> None:
        """query : SELECT select_list FROM IDENTIFIER where_clause order_clause limit_clause"""
        limit, offset = p[7]
        p[0] = SelectQuery(
            table=p[4],
            columns=p[2],
            where=p[5],
            order_by=p[6],
            limit=limit,
            offset=offset,
        )

    def p_query_select_function(self, p: yacc.YaccProduction) -> None:
        """query : SELECT IDENTIFIER LPAREN RPAREN
                 | SELECT IDENTIFIER LPAREN RPAREN AS IDENTIFIER"""
        if p[2].lower() != "last_insert_rowid":
            # Rejected in parse(); ply turns a SyntaxError raised here into error recovery
            p[0] = _FunctionCall(p[2])
        elif len(p) == 7:
            p[0] = LastInsertIdQuery(alias=p[6])
        else:
            p[0] = LastInsertIdQuery()

    def p_select_list_star(self, p: yacc.YaccProduction) -> None:
        """select_list : STAR"""
        p[0] = []

    def p_select_list_columns(self, p: yacc.YaccProduction) -> None:
        """select_list : column_list"""
        p[0] = p[1]

    def p_column_list_single(self, p: yacc.YaccProduction) -> None:
        """column_list : select_column"""
        p[0] = [p[1]]

    def p_column_list_multiple(self, p: yacc.YaccProduction) -> None:
        """column_list : column_list COMMA select_column"""
        p[0] = p[1] + [p[3]]

    def p_select_column(self, p: yacc.YaccProduction) -> None:
        """select_column : IDENTIFIER
                         | IDENTIFIER AS IDENTIFIER
                         | IDENTIFIER AS STRING"""
        if len(p) == 4:
            p[0] = SelectColumn(name=p[1], alias=p[3])
        else:
            p[0] = SelectColumn(name=p[1])

    # --- WHERE ---

    def p_where_clause_empty(self, p: yacc.YaccProduction) -> None:
        """where_clause : """
        p[0] = None

    def p_where_clause(self, p: yacc.YaccProduction) -> None:
        """where_clause : WHERE predicate_tokens"""
        p[0] = WhereClause(tokens=p[2])

    def p_predicate_tokens_single(self, p: yacc.YaccProduction) -> None:
        """predicate_tokens : predicate_token"""
        p[0] = [p[1]]

    def p_predicate_tokens_multiple(self, p: yacc.YaccProduction) -> None:
        """predicate_tokens : predicate_tokens predicate_token"""
        p[0] = p[1] + [p[2]]

    def p_predicate_token(self, p: yacc.YaccProduction) -> None:
        """predicate_token : IDENTIFIER
                           | STRING
                           | INTEGER
                           | FLOAT
                           | PLACEHOLDER
                           | NULL
                           | TRUE
                           | FALSE
                           | IS
                           | NOT
                           | AND
                           | OR
                           | EQ
                           | NEQ
                           | LT
                           | LTE
                           | GT
                           | GTE
                           | MINUS
                           | LPAREN
                           | RPAREN"""
        p[0] = WhereToken(kind=p.slice[1].type, value=p[1])

    # --- ORDER BY / LIMIT ---

    def p_order_clause_empty(self, p: yacc.YaccProduction) -> None:
        """order_clause : """
        p[0] = []

    def p_order_clause(self, p: yacc.YaccProduction) -> None:
        """order_clause : ORDER BY order_list"""
        p[0] = p[3]

    def p_order_list_single(self, p: yacc.YaccProduction) -> None:
        """order_list : order_item"""
        p[0] = [p[1]]

    def p_order_list_multiple(self, p: yacc.YaccProduction) -> None:
        """order_list : order_list COMMA order_item"""
        p[0] = p[1] + [p[3]]

    def p_order_item(self, p: yacc.YaccProduction) -> None:
        """order_item : IDENTIFIER
                      | IDENTIFIER ASC
                      | IDENTIFIER DESC"""
        descending = len(p) == 3 and p[2].lower() == "desc"
        p[0] = OrderItem(column=p[1], descending=descending)

    def p_limit_clause_empty(self, p: yacc.YaccProduction) -> None:
        """limit_clause : """
        p[0] = (None, 0)

    def p_limit_clause(self, p: yacc.YaccProduction) -> None:
        """limit_clause : LIMIT INTEGER
                        | LIMIT INTEGER OFFSET INTEGER"""
        if len(p) == 5:
            p[0] = (p[2], p[4])
        else:
            p[0] = (p[2], 0)

    # --- INSERT ---

    def p_query_insert(self, p: yacc.YaccProduction) -> None:
        """query : INSERT INTO IDENTIFIER LPAREN identifier_list RPAREN VALUES LPAREN value_list RPAREN"""
        p[0] = InsertQuery(table=p[3], columns=p[5], values=p[9])

    def p_identifier_list_single(self, p: yacc.YaccProduction) -> None:
        """identifier_list : IDENTIFIER"""
        p[0] = [p[1]]

    def p_identifier_list_multiple(self, p: yacc.YaccProduction) -> None:
        """identifier_list : identifier_list COMMA IDENTIFIER"""
        p[0] = p[1] + [p[3]]

    def p_value_list_single(self, p: yacc.YaccProduction) -> None:
        """value_list : value"""
        p[0] = [p[1]]

    def p_value_list_multiple(self, p: yacc.YaccProduction) -> None:
        """value_list : value_list COMMA value"""
        p[0] = p[1] + [p[3]]

    def p_value_placeholder(self, p: yacc.YaccProduction) -> None:
        """value : PLACEHOLDER"""
        p[0] = Placeholder()

    def p_value_literal(self, p: yacc.YaccProduction) -> None:
        """value : literal"""
        p[0] = p[1]

    def p_literal_number(self, p: yacc.YaccProduction) -> None:
        """literal : INTEGER
                   | FLOAT
                   | STRING"""
        p[0] = p[1]

    def p_literal_negative(self, p: yacc.YaccProduction) -> None:
        """literal : MINUS INTEGER
                   | MINUS FLOAT"""
        p[0] = -p[2]

    def p_literal_bool(self, p: yacc.YaccProduction) -> None:
        """literal : TRUE
                   | FALSE"""
        p[0] = p[1].lower() == "true"

    def p_literal_null(self, p: yacc.YaccProduction) -> None:
        """literal : NULL"""
        p[0] = NullValue()

    # --- UPDATE ---

    def p_query_update(self, p: yacc.YaccProduction) -> None:
        """query : UPDATE IDENTIFIER SET assignment_list where_clause"""
        p[0] = UpdateQuery(table=p[2], assignments=p[4], where=p[5])

    def p_assignment_list_single(self, p: yacc.YaccProduction) -> None:
        """assignment_list : assignment"""
        p[0] = [p[1]]

    def p_assignment_list_multiple(self, p: yacc.YaccProduction) -> None:
        """assignment_list : assignment_list COMMA assignment"""
        p[0] = p[1] + [p[3]]

    def p_assignment(self, p: yacc.YaccProduction) -> None:
        """assignment : IDENTIFIER EQ value"""
        p[0] = Assignment(column=p[1], value=p[3])

    # --- DELETE ---

    def p_query_delete(self, p: yacc.YaccProduction) -> None:
        """query : DELETE FROM IDENTIFIER where_clause"""
        p[0] = DeleteQuery(table=p[3], where=p[4])

    # --- PRAGMA ---

    def p_query_pragma(self, p: yacc.YaccProduction) -> None:
        """query : PRAGMA IDENTIFIER"""
        p[0] = PragmaQuery(name=p[2])

    def p_query_pragma_call(self, p: yacc.YaccProduction) -> None:
        """query : PRAGMA IDENTIFIER LPAREN IDENTIFIER RPAREN
                 | PRAGMA IDENTIFIER LPAREN STRING RPAREN"""
        p[0] = PragmaQuery(name=p[2], argument=p[4])

    def p_query_pragma_assign(self, p: yacc.YaccProduction) -> None:
        """query : PRAGMA IDENTIFIER EQ literal
                 | PRAGMA IDENTIFIER EQ IDENTIFIER"""
        p[0] = PragmaQuery(name=p[2], argument=p[4])

    # --- ALTER TABLE ---

    def p_query_alter_add_column(self, p: yacc.YaccProduction) -> None:
        """query : ALTER TABLE IDENTIFIER ADD COLUMN IDENTIFIER type_words column_constraints"""
        not_null, default = p[8]
        p[0] = AlterAddColumnQuery(
            table=p[3],
            column=p[6],
            type_tag=p[7],
            not_null=not_null,
            default=default,
        )

    def p_type_words_single(self, p: yacc.YaccProduction) -> None:
        """type_words : IDENTIFIER"""
        p[0] = p[1].upper()

    def p_type_words_multiple(self, p: yacc.YaccProduction) -> None:
        """type_words : type_words IDENTIFIER"""
        p[0] = f"{p[1]} {p[2].upper()}"

    def p_column_constraints_empty(self, p: yacc.YaccProduction) -> None:
        """column_constraints : """
        p[0] = (False, NO_DEFAULT)

    def p_column_constraints_not_null(self, p: yacc.YaccProduction) -> None:
        """column_constraints : column_constraints NOT NULL"""
        p[0] = (True, p[1][1])

    def p_column_constraints_default(self, p: yacc.YaccProduction) -> None:
        """column_constraints : column_constraints DEFAULT default_value"""
        p[0] = (p[1][0], p[3])

    def p_default_value_literal(self, p: yacc.YaccProduction) -> None:
        """default_value : literal"""
        p[0] = None if isinstance(p[1], NullValue) else p[1]

    def p_default_value_word(self, p: yacc.YaccProduction) -> None:
        """default_value : IDENTIFIER"""
        # Unquoted words such as CURRENT_TIMESTAMP are kept verbatim
        p[0] = p[1]

    def p_error(self, p: yacc.YaccProduction) -> None:
        if p:
            raise SyntaxError(f"Syntax error at '{p.value}' (position {p.lexpos})")
        else:
            raise SyntaxError("Syntax error at end of input")

    def build(self, **kwargs: Any) -> None:
        """Build the parser."""
        self.parser = yacc.yacc(module=self, start="statement", **kwargs)

    def parse(self, data: str) -> Query:
        """Parse a statement string."""
        if self.parser is None:
            self.build(debug=False, write_tables=False)

        result = self.parser.parse(data, lexer=self.lexer.lexer)
        if isinstance(result, _FunctionCall):
            raise SyntaxError(f"Unsupported function '{result.name}()'")
        return result
