"""Single-predicate WHERE filtering over in-memory records.

Only one comparison is supported: ``column = value`` or ``column = NULL``.
The predicate is split at its first ``=``. A predicate without ``=``, or one
whose left side is not a plain column name, does not filter anything and
every record passes. Placeholders are bound left to right from the
parameter list.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Sequence

from gamelog.errors import UnsupportedPredicateError
from gamelog.parsing.sql_parser import NullValue, Placeholder, WhereClause, WhereToken
from gamelog.types import Record, Value

logger = logging.getLogger(__name__)


class _Missing:
    def __repr__(self) -> str:
        return "MISSING"


# Returned by ParameterBinder when the parameter list runs out
MISSING = _Missing()


class ParameterBinder:
    """Hands out positional parameters in order."""

    def __init__(self, params: Sequence[Any] | None = None) -> None:
        self._params = list(params or [])
        self._position = 0

    def next(self) -> Any:
        """Return the next parameter, or MISSING when none are left."""
        if self._position >= len(self._params):
            self._position += 1
            return MISSING
        value = self._params[self._position]
        self._position += 1
        return value

    def resolve(self, value: Any) -> Any:
        """Resolve a parsed value: bind placeholders and turn NULL into None."""
        if isinstance(value, Placeholder):
            return self.next()
        if isinstance(value, NullValue):
            return None
        return value

    @property
    def consumed(self) -> int:
        return self._position


@dataclass
class EqualityPredicate:
    """``column = value``; a value of None matches null or absent fields."""

    column: str
    value: Value

    def matches(self, record: Record) -> bool:
        field_value = record.get(self.column)
        if self.value is None:
            return field_value is None
        return as_text(field_value) == as_text(self.value)


def as_text(value: Any) -> str:
    """Render a value the way equality comparison sees it."""
    if value is None or value is MISSING:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def bind_tokens(tokens: Iterable[WhereToken], binder: ParameterBinder) -> list[WhereToken]:
    """Replace PLACEHOLDER tokens with VALUE tokens carrying the bound parameter."""
    bound = []
    for tok in tokens:
        if tok.kind == "PLACEHOLDER":
            bound.append(WhereToken(kind="VALUE", value=binder.next()))
        else:
            bound.append(tok)
    return bound


def compile_predicate(
    where: WhereClause | None, binder: ParameterBinder
) -> EqualityPredicate | None:
    """Turn a WHERE clause into a predicate; None means every record passes."""
    if where is None or not where.tokens:
        return None

    tokens = bind_tokens(where.tokens, binder)
    if any(tok.kind in ("AND", "OR") for tok in tokens):
        raise UnsupportedPredicateError(
            f"Only a single equality predicate is supported: {where}"
        )

    eq_positions = [i for i, tok in enumerate(tokens) if tok.kind == "EQ"]
    if not eq_positions:
        logger.debug("WHERE %s has no '=', not filtering", where)
        return None

    split = eq_positions[0]
    left, right = tokens[:split], tokens[split + 1:]
    if len(left) != 1 or left[0].kind != "IDENTIFIER":
        logger.debug("WHERE %s does not compare a column, not filtering", where)
        return None

    return EqualityPredicate(column=left[0].value, value=_operand_value(right, where))


def _operand_value(right: list[WhereToken], where: WhereClause) -> Value:
    kinds = [tok.kind for tok in right]
    if kinds in (["NULL"], ["IS", "NULL"]):
        return None
    if len(right) == 2 and kinds[0] == "MINUS" and kinds[1] in ("INTEGER", "FLOAT"):
        return -right[1].value
    if len(right) != 1:
        raise UnsupportedPredicateError(f"Cannot compare against '{where}'")

    tok = right[0]
    if tok.kind == "VALUE":
        return None if tok.value is MISSING else tok.value
    if tok.kind in ("TRUE", "FALSE"):
        return tok.kind == "TRUE"
    # STRING, INTEGER, FLOAT and bare IDENTIFIER words compare by their text
    return tok.value


def filter_records(
    records: Iterable[Record],
    where: WhereClause | None,
    params: Sequence[Any] | ParameterBinder | None = None,
) -> list[Record]:
    """Return the records matching ``where`` (all of them if it cannot filter)."""
    binder = params if isinstance(params, ParameterBinder) else ParameterBinder(params)
    predicate = compile_predicate(where, binder)
    if predicate is None:
        return list(records)
    return [r for r in records if predicate.matches(r)]


def record_matcher(
    where: WhereClause | None, binder: ParameterBinder
) -> Callable[[Record], bool] | None:
    """Return a callable for Table.update/delete, or None to match everything."""
    predicate = compile_predicate(where, binder)
    return predicate.matches if predicate is not None else None
