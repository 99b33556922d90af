"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import pytest
import sys
from pathlib import Path

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from prepsync.db.store import PLANS_TABLE, MemoryStore, StoreError  # noqa: E402

USER_ID = "user-123"


class FlakyStore(MemoryStore):
    """MemoryStore that fails the calls a predicate picks."""

    def __init__(self, fail_insert=None, fail_delete=None, fail_select=None):
        super().__init__()
        self.fail_insert = fail_insert or (lambda table, row: False)
        self.fail_delete = fail_delete or (lambda table, eq, in_: False)
        self.fail_select = fail_select or (lambda table, eq, in_: False)

    def insert(self, table, row):
        if self.fail_insert(table, row):
            raise StoreError(f"insert into {table} rejected", table=table)
        return super().insert(table, row)

    def select(self, table, *, eq=None, in_=None):
        if self.fail_select(table, eq, in_):
            raise StoreError(f"select from {table} rejected", table=table)
        return super().select(table, eq=eq, in_=in_)

    def delete(self, table, *, eq=None, in_=None):
        if self.fail_delete(table, eq, in_):
            raise StoreError(f"delete from {table} rejected", table=table)
        return super().delete(table, eq=eq, in_=in_)


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def user_id():
    return USER_ID


@pytest.fixture
def store():
    """Empty in-memory record store."""
    return MemoryStore()


@pytest.fixture
def sql_subject():
    """A structured SQL subject with one case study and two questions."""
    return {
        "business_context": "Retail chain tracking daily sales",
        "dataset_description": "Daily sales per store",
        "case_studies": [
            {
                "title": "Sales Data Analysis",
                "description": "Analyse sales across stores",
                "dataset_overview": "One row per sale",
                "dataset_schema": "CREATE TABLE sales (id INT PRIMARY KEY, amount DECIMAL(10,2), region TEXT)",
                "sample_data": "id,amount,region\n1,10.50,EU",
                "questions": [
                    {
                        "question": "Total sales per region?",
                        "expected_approach": "GROUP BY region",
                        "sample_output": "EU | 10.50",
                        "difficulty": "Easy",
                        "topics": ["aggregation"],
                    },
                    {
                        "question": "Top store by revenue?",
                        "difficulty": "Hard",
                    },
                ],
            }
        ],
    }


@pytest.fixture
def legacy_subject():
    """A flat legacy Python subject."""
    return {
        "header_text": "Customer Churn",
        "dataset_description": "Monthly subscriptions",
        "dataset_csv_raw": "customer_id,months\n1,3",
        "dataset_columns": ["customer_id", "months"],
        "questions_raw": [
            {"business_question": "Which customers churned?", "answer": "df[df.months < 2]"},
            {"difficulty": "advanced"},
        ],
    }


@pytest.fixture
def problem_solving_subject():
    """Art of Problem Solving subject with one case study."""
    return {
        "business_context": "Logistics company",
        "case_studies": [
            {
                "title": "Warehouse Placement",
                "problem_statement": "Where should the next warehouse go?",
                "description": "Choose a city for a new warehouse",
                "business_problem": "Delivery times are too long",
                "solution_outline": "Minimise weighted distance",
                "estimated_time_minutes": 45,
                "difficulty": "Hard",
                "topics": ["optimization"],
            }
        ],
    }


@pytest.fixture
def plan_content(sql_subject, legacy_subject):
    return {"subject_prep": {"SQL": sql_subject, "Python": legacy_subject}}


@pytest.fixture
def seed_plan(store, user_id):
    """Insert a plan row into the store and return its id."""

    def _seed(content, plan_id=1, owner=None, profile_id=7, jd_id=9, into=None):
        (into or store).insert(
            PLANS_TABLE,
            {
                "id": plan_id,
                "user_id": owner or user_id,
                "profile_id": profile_id,
                "jd_id": jd_id,
                "plan_content": content,
            },
        )
        return plan_id

    return _seed


@pytest.fixture
def flaky_store():
    """Factory for a FlakyStore; pass predicates for the calls that should fail."""
    return FlakyStore
