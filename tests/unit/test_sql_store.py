"""
Unit tests for the SQLAlchemy record store.

Uses an in-memory SQLite database built from the ORM metadata.
"""

import pytest
from sqlalchemy import create_engine

from prepsync.db.database import init_db
from prepsync.db.sql_store import SqlAlchemyStore
from prepsync.db.store import (
    ANSWERS_TABLE,
    DATASETS_TABLE,
    EXERCISES_TABLE,
    PLANS_TABLE,
    PROBLEM_SOLVING_TABLE,
    QUESTIONS_TABLE,
    RecordStore,
    StoreError,
)
from prepsync.migration import MigratePlanRequest, migrate_plan


@pytest.fixture
def engine():
    engine = create_engine("sqlite://")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def sql_store(engine):
    return SqlAlchemyStore(engine)


class TestSqlAlchemyStore:
    """Primitives against SQLite."""

    def test_satisfies_protocol(self, sql_store):
        assert isinstance(sql_store, RecordStore)

    def test_insert_returns_stored_row(self, sql_store):
        row = sql_store.insert(EXERCISES_TABLE, {"id": "e1", "name": "SQL - Plan 1", "subject": "SQL"})
        assert row["id"] == "e1"
        assert row["name"] == "SQL - Plan 1"
        assert row["profile_id"] is None

    def test_json_columns_round_trip(self, sql_store):
        sql_store.insert(EXERCISES_TABLE, {"id": "e1", "name": "x"})
        sql_store.insert(
            DATASETS_TABLE,
            {"id": "d1", "exercise_id": "e1", "name": "n", "table_name": "t", "columns": ["a", "b"]},
        )
        [row] = sql_store.select(DATASETS_TABLE, eq={"exercise_id": "e1"})
        assert row["columns"] == ["a", "b"]

    def test_select_and_delete_with_membership(self, sql_store):
        sql_store.insert(EXERCISES_TABLE, {"id": "e1", "name": "x"})
        for qid in ("q1", "q2", "q3"):
            sql_store.insert(
                QUESTIONS_TABLE,
                {
                    "id": qid,
                    "exercise_id": "e1",
                    "question_number": 1,
                    "type": "sql",
                    "language": "sql",
                    "difficulty": "beginner",
                },
            )

        assert {r["id"] for r in sql_store.select(QUESTIONS_TABLE, in_={"id": ["q1", "q3"]})} == {"q1", "q3"}
        assert sql_store.select(QUESTIONS_TABLE, in_={"id": []}) == []
        assert sql_store.delete(QUESTIONS_TABLE, in_={"id": ["q1", "q2"]}) == 2
        assert [r["id"] for r in sql_store.select(QUESTIONS_TABLE)] == ["q3"]

    def test_unique_violation_becomes_store_error(self, sql_store):
        sql_store.insert(EXERCISES_TABLE, {"id": "e1", "name": "SQL - Plan 1"})
        with pytest.raises(StoreError) as exc_info:
            sql_store.insert(EXERCISES_TABLE, {"id": "e2", "name": "SQL - Plan 1"})
        assert exc_info.value.table == EXERCISES_TABLE

    def test_unknown_table(self, sql_store):
        with pytest.raises(StoreError, match="Unknown table"):
            sql_store.select("missing_table")

    def test_unknown_column(self, sql_store):
        with pytest.raises(StoreError):
            sql_store.select(EXERCISES_TABLE, eq={"no_such_column": 1})

    def test_unfiltered_delete_is_rejected(self, sql_store):
        with pytest.raises(StoreError):
            sql_store.delete(EXERCISES_TABLE)


class TestMigrationOnSqlite:
    """A whole migration through the SQL store."""

    def test_migrate(self, sql_store, user_id, plan_content, problem_solving_subject):
        content = dict(plan_content)
        content["subject_prep"] = dict(plan_content["subject_prep"], **{"Art of Problem Solving": problem_solving_subject})
        sql_store.insert(PLANS_TABLE, {"id": 1, "user_id": user_id, "plan_content": content})

        response = migrate_plan(sql_store, user_id, MigratePlanRequest(plan_id=1))

        assert response.success is True, response.result.errors
        assert response.result.exercises_created == 4
        assert response.result.links_created == 1
        assert len(sql_store.select(ANSWERS_TABLE, in_={"answer_text": ["EU | 10.50"]})) == 1
        assert len(sql_store.select(PROBLEM_SOLVING_TABLE, eq={"plan_id": 1})) == 1

    def test_overwrite(self, sql_store, user_id, plan_content):
        sql_store.insert(PLANS_TABLE, {"id": 1, "user_id": user_id, "plan_content": plan_content})
        migrate_plan(sql_store, user_id, MigratePlanRequest(plan_id=1))

        response = migrate_plan(sql_store, user_id, MigratePlanRequest(plan_id=1, overwrite_existing=True))

        assert response.success is True, response.result.errors
        assert len(sql_store.select(EXERCISES_TABLE)) == 2
        assert len(sql_store.select(QUESTIONS_TABLE)) == 4
        assert len(sql_store.select(ANSWERS_TABLE)) == 2
