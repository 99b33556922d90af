"""
Interview plan migration engine.

Normalizes the loosely structured, AI-generated `plan_content` of an
interview preparation plan into relational practice records.

Architecture:
    normalizer (shape -> case studies) -> projector (question rows)
    -> orchestrator (per-subject writes) -> problem_solving (plan-wide pass)

Example:
    from prepsync.db.sql_store import SqlAlchemyStore
    from prepsync.migration import MigratePlanRequest, migrate_plan

    response = migrate_plan(SqlAlchemyStore(engine), user_id, MigratePlanRequest(plan_id=7))
    if not response.success:
        print(response.result.errors)
"""

from .errors import CascadeDeleteError, MigrationError, PlanNotFoundError, PlanValidationError
from .models import CaseStudy, DatasetDef, MigratePlanRequest, PlanContent, PlanRecord, RawQuestion
from .normalizer import classify_subject, resolve_case_studies
from .orchestrator import PlanMigrator, SubjectState, load_plan, migrate_plan
from .problem_solving import ProblemSolvingPersister
from .projector import classify, normalize_difficulty, project_answer, project_question, resolve_field
from .result import MigrationResponse, MigrationResult
from .schema import extract_columns, table_name

__all__ = [
    # Entry points
    "migrate_plan",
    "load_plan",
    "PlanMigrator",
    "ProblemSolvingPersister",
    "SubjectState",
    # Results
    "MigrationResult",
    "MigrationResponse",
    # Models
    "PlanContent",
    "PlanRecord",
    "MigratePlanRequest",
    "CaseStudy",
    "DatasetDef",
    "RawQuestion",
    # Components
    "classify_subject",
    "resolve_case_studies",
    "classify",
    "normalize_difficulty",
    "resolve_field",
    "project_question",
    "project_answer",
    "extract_columns",
    "table_name",
    # Errors
    "MigrationError",
    "PlanNotFoundError",
    "PlanValidationError",
    "CascadeDeleteError",
]
