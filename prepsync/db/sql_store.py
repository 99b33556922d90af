"""
SQLAlchemy-backed record store.

Runs the store primitives as Core statements against the ORM table
definitions. Each call commits on its own so a failed write never takes
earlier writes of the same run down with it.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from loguru import logger
from sqlalchemy import Table, and_, delete, insert, select, true
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from prepsync.db.models import Base
from prepsync.db.store import StoreError, normalize_in, require_filter


class SqlAlchemyStore:
    """Record store over a SQLAlchemy engine."""

    def __init__(self, engine: Engine):
        self.engine = engine

    def _table(self, name: str) -> Table:
        table = Base.metadata.tables.get(name)
        if table is None:
            raise StoreError(f"Unknown table: {name}", table=name)
        return table

    def _where(
        self,
        table: Table,
        eq: Mapping[str, Any] | None,
        in_: Mapping[str, Iterable[Any]] | None,
    ):
        clauses = []
        for column, value in (eq or {}).items():
            clauses.append(table.c[column] == value)
        for column, values in normalize_in(in_).items():
            clauses.append(table.c[column].in_(values))
        return and_(true(), *clauses)

    def insert(self, table: str, row: Mapping[str, Any]) -> dict[str, Any]:
        target = self._table(table)
        stmt = insert(target).values(**dict(row)).returning(*target.c)
        try:
            with self.engine.begin() as conn:
                stored = conn.execute(stmt).mappings().one()
        except (SQLAlchemyError, KeyError) as e:
            logger.debug(f"insert into {table} failed: {e}")
            raise StoreError(str(e), table=table) from e
        return dict(stored)

    def select(
        self,
        table: str,
        *,
        eq: Mapping[str, Any] | None = None,
        in_: Mapping[str, Iterable[Any]] | None = None,
    ) -> list[dict[str, Any]]:
        target = self._table(table)
        try:
            stmt = select(target).where(self._where(target, eq, in_))
            with self.engine.connect() as conn:
                return [dict(r) for r in conn.execute(stmt).mappings().all()]
        except (SQLAlchemyError, KeyError) as e:
            raise StoreError(str(e), table=table) from e

    def delete(
        self,
        table: str,
        *,
        eq: Mapping[str, Any] | None = None,
        in_: Mapping[str, Iterable[Any]] | None = None,
    ) -> int:
        require_filter(table, eq, in_)
        target = self._table(table)
        try:
            stmt = delete(target).where(self._where(target, eq, in_))
            with self.engine.begin() as conn:
                return conn.execute(stmt).rowcount
        except (SQLAlchemyError, KeyError) as e:
            raise StoreError(str(e), table=table) from e
