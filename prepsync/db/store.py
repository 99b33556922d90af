"""
Record store interface.

The migration engine never speaks a query dialect. It only needs three
primitives against named tables:

    insert(table, row)            -> stored row
    select(table, eq=..., in_=...) -> matching rows, insertion order
    delete(table, eq=..., in_=...) -> number of rows removed

Every backend raises StoreError for any failed call so callers can tell a
failed write apart from a programming error.
"""

from __future__ import annotations

import copy
from collections.abc import Iterable, Mapping
from typing import Any, Protocol, runtime_checkable

from loguru import logger

# ========================================
# Table names
# ========================================

PLANS_TABLE = "interview_prep_plans"
EXERCISES_TABLE = "interview_practice_exercises"
QUESTIONS_TABLE = "interview_practice_questions"
DATASETS_TABLE = "interview_practice_datasets"
ANSWERS_TABLE = "interview_practice_answers"
PROBLEM_SOLVING_TABLE = "problem_solving_case_studies"


class StoreError(Exception):
    """Raised when a store call fails."""

    def __init__(self, message: str, *, table: str | None = None):
        super().__init__(message)
        self.table = table


@runtime_checkable
class RecordStore(Protocol):
    """Protocol for the insert/select/delete primitives the engine uses."""

    def insert(self, table: str, row: Mapping[str, Any]) -> dict[str, Any]:
        """Insert one row and return it as stored."""
        ...

    def select(
        self,
        table: str,
        *,
        eq: Mapping[str, Any] | None = None,
        in_: Mapping[str, Iterable[Any]] | None = None,
    ) -> list[dict[str, Any]]:
        """Return rows matching every equality and membership filter."""
        ...

    def delete(
        self,
        table: str,
        *,
        eq: Mapping[str, Any] | None = None,
        in_: Mapping[str, Iterable[Any]] | None = None,
    ) -> int:
        """Delete rows matching the filters and return how many went."""
        ...


def require_filter(
    table: str,
    eq: Mapping[str, Any] | None,
    in_: Mapping[str, Iterable[Any]] | None,
) -> None:
    """Reject unfiltered deletes."""
    if not eq and not in_:
        raise StoreError(f"Refusing to delete from {table} without a filter", table=table)


def normalize_in(in_: Mapping[str, Iterable[Any]] | None) -> dict[str, list[Any]]:
    """Materialize membership filters so they can be iterated more than once."""
    return {column: list(values) for column, values in (in_ or {}).items()}


# =============================================================================
# In-Memory Store (dry runs and tests)
# =============================================================================


class MemoryStore:
    """
    Store that keeps every table as a list of dicts.

    Unique columns are enforced per table the way the relational schema
    enforces them, so name collisions surface as StoreError here too.
    """

    DEFAULT_UNIQUE: dict[str, tuple[str, ...]] = {
        EXERCISES_TABLE: ("name",),
    }

    def __init__(self, unique: Mapping[str, Iterable[str]] | None = None):
        self.tables: dict[str, list[dict[str, Any]]] = {}
        source = self.DEFAULT_UNIQUE if unique is None else unique
        self.unique = {table: tuple(columns) for table, columns in source.items()}

    def rows(self, table: str) -> list[dict[str, Any]]:
        """Return a copy of every row in a table."""
        return copy.deepcopy(self.tables.get(table, []))

    def count(self, table: str) -> int:
        return len(self.tables.get(table, []))

    def insert(self, table: str, row: Mapping[str, Any]) -> dict[str, Any]:
        stored = copy.deepcopy(dict(row))
        existing = self.tables.setdefault(table, [])

        for column in self.unique.get(table, ()):
            value = stored.get(column)
            if value is not None and any(r.get(column) == value for r in existing):
                raise StoreError(
                    f'duplicate key value violates unique constraint "{table}_{column}_key"',
                    table=table,
                )

        existing.append(stored)
        logger.debug(f"memory insert {table}: {stored.get('id')}")
        return copy.deepcopy(stored)

    def select(
        self,
        table: str,
        *,
        eq: Mapping[str, Any] | None = None,
        in_: Mapping[str, Iterable[Any]] | None = None,
    ) -> list[dict[str, Any]]:
        membership = normalize_in(in_)
        return [
            copy.deepcopy(row)
            for row in self.tables.get(table, [])
            if self._matches(row, eq, membership)
        ]

    def delete(
        self,
        table: str,
        *,
        eq: Mapping[str, Any] | None = None,
        in_: Mapping[str, Iterable[Any]] | None = None,
    ) -> int:
        require_filter(table, eq, in_)
        membership = normalize_in(in_)
        existing = self.tables.get(table, [])
        kept = [row for row in existing if not self._matches(row, eq, membership)]
        removed = len(existing) - len(kept)
        self.tables[table] = kept
        return removed

    @staticmethod
    def _matches(
        row: Mapping[str, Any],
        eq: Mapping[str, Any] | None,
        membership: Mapping[str, list[Any]],
    ) -> bool:
        for column, value in (eq or {}).items():
            if row.get(column) != value:
                return False
        for column, values in membership.items():
            if row.get(column) not in values:
                return False
        return True
