"""
Immutable query predicates.

A predicate is a tree of frozen values. It can be evaluated against an
in-memory record (a mapping of field name to value) or compiled into a SQLite
WHERE clause by ``SqlPredicateCompiler``. Builders combine predicates with
``all_of`` / ``any_of``; nothing mutates a predicate after construction.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    import sqlite3
    from collections.abc import Iterable, Mapping


class Predicate:
    """Base class for predicate nodes."""

    def matches(self, record: Mapping[str, Any]) -> bool:
        raise NotImplementedError


@dataclass(frozen=True)
class Eq(Predicate):
    """``field == value``."""

    field: str
    value: Any

    def matches(self, record: Mapping[str, Any]) -> bool:
        return record.get(self.field) == self.value


@dataclass(frozen=True)
class In(Predicate):
    """``field`` is one of ``values``. An empty tuple matches nothing."""

    field: str
    values: tuple[Any, ...]

    def matches(self, record: Mapping[str, Any]) -> bool:
        return record.get(self.field) in self.values


@dataclass(frozen=True)
class Member(Predicate):
    """``value`` is an element of the collection stored in ``field``."""

    field: str
    value: Any

    def matches(self, record: Mapping[str, Any]) -> bool:
        collection = record.get(self.field) or ()
        return self.value in collection


@dataclass(frozen=True)
class Matches(Predicate):
    """Case-insensitive literal substring match on a text field."""

    field: str
    term: str

    def matches(self, record: Mapping[str, Any]) -> bool:
        value = record.get(self.field)
        if value is None:
            return False
        return self.term.casefold() in str(value).casefold()


@dataclass(frozen=True)
class AnyOf(Predicate):
    """Disjunction. An empty disjunction matches nothing."""

    clauses: tuple[Predicate, ...]

    def matches(self, record: Mapping[str, Any]) -> bool:
        return any(clause.matches(record) for clause in self.clauses)


@dataclass(frozen=True)
class AllOf(Predicate):
    """Conjunction. An empty conjunction matches everything."""

    clauses: tuple[Predicate, ...]

    def matches(self, record: Mapping[str, Any]) -> bool:
        return all(clause.matches(record) for clause in self.clauses)


MATCH_ALL: Predicate = AllOf(())


def all_of(*clauses: Predicate) -> Predicate:
    """
    AND the given clauses together.

    Nested conjunctions are inlined since AND is associative. Disjunctions are
    kept as single conjuncts, so two ORs combined here stay two separate
    conditions that must both hold.
    """
    flattened: list[Predicate] = []
    for clause in clauses:
        if isinstance(clause, AllOf):
            flattened.extend(clause.clauses)
        else:
            flattened.append(clause)
    if len(flattened) == 1:
        return flattened[0]
    return AllOf(tuple(flattened))


def any_of(*clauses: Predicate) -> Predicate:
    """OR the given clauses together."""
    if len(clauses) == 1:
        return clauses[0]
    return AnyOf(tuple(clauses))


CASEFOLD_FUNCTION = "py_casefold"


def _casefold(value: object) -> str | None:
    if value is None:
        return None
    return str(value).casefold()


def register_sql_functions(connection: sqlite3.Connection) -> None:
    """
    Install the SQL functions compiled predicates rely on.

    SQLite's LIKE and lower() only fold ASCII, so ``Matches`` compiles to
    a Unicode casefold registered here instead.
    """
    connection.create_function(CASEFOLD_FUNCTION, 1, _casefold, deterministic=True)


@dataclass(frozen=True)
class CollectionColumn:
    """A set-valued field stored in a side table keyed by the owner's id."""

    table: str
    owner_column: str
    value_column: str


class SqlPredicateCompiler:
    """Compiles predicates to a parameterized SQLite WHERE clause for one table."""

    def __init__(
        self,
        table: str,
        key_column: str,
        columns: Mapping[str, str],
        collections: Mapping[str, CollectionColumn],
    ) -> None:
        self._table = table
        self._key_column = key_column
        self._columns = dict(columns)
        self._collections = dict(collections)

    def compile(self, predicate: Predicate) -> tuple[str, list[Any]]:
        """Return ``(sql, params)`` for the predicate."""
        params: list[Any] = []
        sql = self._compile(predicate, params)
        return sql, params

    def _column(self, field_name: str) -> str:
        if field_name not in self._columns:
            msg = f"Unknown field for {self._table}: {field_name}"
            raise ValueError(msg)
        return f"{self._table}.{self._columns[field_name]}"

    def _compile(self, predicate: Predicate, params: list[Any]) -> str:
        if isinstance(predicate, Eq):
            column = self._column(predicate.field)
            if predicate.value is None:
                return f"{column} IS NULL"
            params.append(predicate.value)
            return f"{column} = ?"

        if isinstance(predicate, In):
            column = self._column(predicate.field)
            if len(predicate.values) == 0:
                return "0 = 1"
            params.extend(predicate.values)
            placeholders = ", ".join("?" for _ in predicate.values)
            return f"{column} IN ({placeholders})"

        if isinstance(predicate, Member):
            collection = self._collections.get(predicate.field)
            if collection is None:
                msg = f"Unknown collection for {self._table}: {predicate.field}"
                raise ValueError(msg)
            params.append(predicate.value)
            return (
                f"EXISTS (SELECT 1 FROM {collection.table} "
                f"WHERE {collection.table}.{collection.owner_column} = "
                f"{self._table}.{self._key_column} "
                f"AND {collection.table}.{collection.value_column} = ?)"
            )

        if isinstance(predicate, Matches):
            column = self._column(predicate.field)
            params.append(predicate.term)
            return (
                f"instr({CASEFOLD_FUNCTION}({column}), {CASEFOLD_FUNCTION}(?)) > 0"
            )

        if isinstance(predicate, AnyOf):
            return self._join(predicate.clauses, " OR ", "0 = 1", params)

        if isinstance(predicate, AllOf):
            return self._join(predicate.clauses, " AND ", "1 = 1", params)

        msg = f"Unsupported predicate: {type(predicate).__name__}"
        raise TypeError(msg)

    def _join(
        self,
        clauses: Iterable[Predicate],
        operator: str,
        empty: str,
        params: list[Any],
    ) -> str:
        parts = [self._compile(clause, params) for clause in clauses]
        if len(parts) == 0:
            return empty
        return "(" + operator.join(parts) + ")"
