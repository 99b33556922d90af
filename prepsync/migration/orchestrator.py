"""
Plan Migration Orchestrator.

Walks a plan's `subject_prep` map and materializes each subject into
practice tables:

    START -> CASE_STUDIES_RESOLVED -> EXERCISE_RESOLVED -> QUESTIONS_PROCESSED -> DONE

A subject with nothing to migrate, or one that already exists while
overwrite is off, ends SKIPPED. Any exception ends the subject in ERROR
and the loop moves on; writes that already happened for that subject stay.
After every subject has been visited the problem-solving pass runs once.

Example:
    store = SqlAlchemyStore(engine)
    response = migrate_plan(store, user_id, MigratePlanRequest(plan_id=42))
    print(response.result.questions_created)
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import Any

from loguru import logger
from pydantic import ValidationError

from prepsync.db.store import (
    ANSWERS_TABLE,
    DATASETS_TABLE,
    EXERCISES_TABLE,
    PLANS_TABLE,
    QUESTIONS_TABLE,
    RecordStore,
    StoreError,
)

from .errors import CascadeDeleteError, MigrationError, PlanNotFoundError, PlanValidationError
from .models import (
    CaseStudy,
    DatasetDef,
    MigratePlanRequest,
    PlanContent,
    PlanRecord,
    RawQuestion,
    first_non_empty,
    is_empty,
)
from .normalizer import classify_subject, resolve_case_studies
from .problem_solving import ProblemSolvingPersister
from .projector import new_id, project_answer, project_question, utc_now_iso
from .result import MigrationResponse, MigrationResult
from .schema import extract_columns, table_name


class SubjectState(str, Enum):
    START = "start"
    CASE_STUDIES_RESOLVED = "case_studies_resolved"
    EXERCISE_RESOLVED = "exercise_resolved"
    QUESTIONS_PROCESSED = "questions_processed"
    DONE = "done"
    SKIPPED = "skipped"
    ERROR = "error"


def exercise_name(subject: str, plan_id: int) -> str:
    return f"{subject} - Plan {plan_id}"


# =============================================================================
# Pure helpers
# =============================================================================


def build_question_list(subject: str, case_study: CaseStudy) -> list[RawQuestion]:
    """
    Questions a case study contributes.

    Problem Solving case studies often carry only a problem statement;
    that statement becomes the single question.
    """
    if case_study.questions:
        return list(case_study.questions)

    if subject.strip().lower() == "problem solving" and not is_empty(case_study.problem_statement):
        statement = case_study.problem_statement
        return [
            RawQuestion(
                text=statement,
                expected_approach=case_study.solution_outline or "",
                difficulty="Medium",
                topics=["Problem Solving"],
                context={"business_question": statement, "question": statement},
            )
        ]
    return []


def inline_dataset_def(subject: str, case_study: CaseStudy, subject_data: Mapping[str, Any]) -> DatasetDef:
    """Dataset described by the case study's own schema/sample-data fields."""
    schema = case_study.dataset_schema
    if isinstance(schema, str) and schema.strip():
        creation_sql = schema
    else:
        creation_sql = case_study.dataset_creation_sql

    rows = case_study.dataset_rows
    return DatasetDef(
        name=case_study.title or f"Dataset for {subject}",
        description=first_non_empty(
            case_study.dataset_overview,
            case_study.description,
            subject_data.get("dataset_description"),
        ),
        table_name=table_name(case_study.title, subject),
        columns=extract_columns(schema),
        schema_info={"schema": schema} if not is_empty(schema) else None,
        creation_sql=creation_sql,
        creation_python=case_study.data_creation_python or case_study.sample_data,
        csv_data=case_study.sample_data,
        record_count=len(rows) if isinstance(rows, list) else None,
    )


def dataset_row(exercise_id: str, subject: str, dataset: DatasetDef) -> dict[str, Any]:
    columns = dataset.columns or None
    if dataset.schema_info is not None:
        schema_info = dataset.schema_info
    else:
        schema_info = {"columns": columns} if columns else None

    return {
        "id": new_id(),
        "exercise_id": exercise_id,
        "name": dataset.name or f"Dataset for {subject}",
        "description": dataset.description or None,
        "table_name": dataset.table_name or table_name(dataset.name or "", subject),
        "columns": columns,
        "schema_info": schema_info,
        "creation_sql": dataset.creation_sql or dataset.sample_data,
        "creation_python": dataset.creation_python or dataset.sample_data,
        "csv_data": dataset.csv_data or dataset.sample_data,
        "record_count": dataset.record_count,
        "subject_type": dataset.subject_type or subject.lower(),
        "created_at": utc_now_iso(),
    }


# =============================================================================
# Orchestrator
# =============================================================================


class PlanMigrator:
    """
    Migrates one plan's subjects into exercises, datasets, questions and answers.

    The result is shared by reference with the problem-solving pass, so
    one MigrationResult describes the whole run.
    """

    def __init__(
        self,
        store: RecordStore,
        plan: PlanRecord,
        *,
        overwrite_existing: bool = False,
        result: MigrationResult | None = None,
    ):
        self.store = store
        self.plan = plan
        self.overwrite_existing = overwrite_existing
        self.result = result or MigrationResult(plan_id=plan.id)
        self.subject_states: dict[str, SubjectState] = {}

    def run(self, subject_prep: Mapping[str, Any]) -> MigrationResult:
        """Process every subject in map order, then the problem-solving pass."""
        logger.info(f"[migrate] Starting migration for plan {self.plan.id}")

        for subject, subject_data in subject_prep.items():
            try:
                self.subject_states[subject] = self.process_subject(subject, subject_data)
            except Exception as e:
                self.subject_states[subject] = SubjectState.ERROR
                message = f"Failed to process subject {subject}: {e}"
                self.result.errors.append(message)
                logger.error(message)

        try:
            ProblemSolvingPersister(self.store, self.plan, self.result).persist(subject_prep)
        except Exception as e:
            message = f"Failed to persist problem solving case studies: {e}"
            self.result.errors.append(message)
            logger.error(message)

        r = self.result
        logger.info(
            f"[migrate] Migration completed. Exercises: {r.exercises_created}, "
            f"Questions: {r.questions_created}, Datasets: {r.datasets_created}, "
            f"Answers: {r.answers_created}, Links: {r.links_created}"
        )
        return r

    # -------------------------------------------------------------------------
    # Subject
    # -------------------------------------------------------------------------

    def process_subject(self, subject: str, subject_data: Any) -> SubjectState:
        shape = classify_subject(subject, subject_data)
        case_studies = resolve_case_studies(shape)
        if not case_studies:
            self._warn(f"No case studies found for subject: {subject}")
            return SubjectState.SKIPPED
        logger.debug(f"{subject}: {SubjectState.CASE_STUDIES_RESOLVED.value} ({len(case_studies)})")

        exercise_id = self.resolve_exercise(subject)
        if exercise_id is None:
            return SubjectState.SKIPPED
        logger.debug(f"{subject}: {SubjectState.EXERCISE_RESOLVED.value} ({exercise_id})")

        question_number = 1
        for case_study in case_studies:
            question_number = self.process_case_study(
                exercise_id, subject, case_study, shape.data, question_number
            )
        logger.debug(f"{subject}: {SubjectState.QUESTIONS_PROCESSED.value} ({question_number - 1})")

        return SubjectState.DONE

    def resolve_exercise(self, subject: str) -> str | None:
        """
        Id of a fresh exercise for the subject, or None when it is skipped.

        Overwrite removes the previous exercise and everything under it
        before the new one is created, so the unique name is free again.
        """
        name = exercise_name(subject, self.plan.id)
        existing = self.store.select(EXERCISES_TABLE, eq={"name": name})

        if existing and not self.overwrite_existing:
            self._warn(f"Exercise already exists for {subject}, skipping creation")
            return None

        for row in existing:
            self.delete_exercise_cascade(row["id"])

        try:
            exercise = self.store.insert(
                EXERCISES_TABLE,
                {
                    "id": new_id(),
                    "name": name,
                    "description": f"Practice exercises for {subject} from interview plan {self.plan.id}",
                    "subject": subject,
                    "user_id": self.plan.user_id,
                    "profile_id": self.plan.profile_id,
                    "jd_id": self.plan.jd_id,
                    "created_at": utc_now_iso(),
                },
            )
        except StoreError as e:
            raise MigrationError(f"Failed to create exercise: {e}") from e

        self.result.exercises_created += 1
        return exercise["id"]

    def delete_exercise_cascade(self, exercise_id: str) -> None:
        """
        Remove an exercise and its descendants.

        Ids are collected first, then rows go in dependency order:
        answers, questions, datasets, exercise. The first failing step
        stops the cascade.
        """
        try:
            question_ids = [
                row["id"] for row in self.store.select(QUESTIONS_TABLE, eq={"exercise_id": exercise_id})
            ]
        except StoreError as e:
            raise CascadeDeleteError("questions", e) from e

        steps: list[tuple[str, str, dict[str, Any]]] = []
        if question_ids:
            steps.append(("answers", ANSWERS_TABLE, {"in_": {"question_id": question_ids}}))
            steps.append(("questions", QUESTIONS_TABLE, {"eq": {"exercise_id": exercise_id}}))
        steps.append(("datasets", DATASETS_TABLE, {"eq": {"exercise_id": exercise_id}}))
        steps.append(("exercise", EXERCISES_TABLE, {"eq": {"id": exercise_id}}))

        for label, table, filters in steps:
            try:
                removed = self.store.delete(table, **filters)
            except StoreError as e:
                raise CascadeDeleteError(label, e) from e
            logger.debug(f"Deleted {removed} existing {label} for exercise {exercise_id}")

    # -------------------------------------------------------------------------
    # Case study
    # -------------------------------------------------------------------------

    def process_case_study(
        self,
        exercise_id: str,
        subject: str,
        case_study: CaseStudy,
        subject_data: Mapping[str, Any],
        start_number: int,
    ) -> int:
        """
        Write one case study's datasets and questions.

        Returns the next question number: `start_number` plus the number of
        questions in the list, whether or not every insert succeeded.
        """
        dataset_id = self.create_case_study_datasets(exercise_id, subject, case_study, subject_data)
        questions = build_question_list(subject, case_study)

        for offset, question in enumerate(questions):
            self.process_question(
                exercise_id,
                dataset_id,
                question,
                subject,
                start_number + offset,
                case_study,
                subject_data,
            )

        return start_number + len(questions)

    def create_case_study_datasets(
        self,
        exercise_id: str,
        subject: str,
        case_study: CaseStudy,
        subject_data: Mapping[str, Any],
    ) -> str | None:
        """Create the case study's datasets; the first one created is primary."""
        definitions: list[DatasetDef] = []
        if case_study.declares_inline_dataset():
            definitions.append(inline_dataset_def(subject, case_study, subject_data))
        definitions.extend(case_study.datasets)

        primary_id: str | None = None
        for definition in definitions:
            created_id = self.create_dataset(exercise_id, subject, definition)
            if created_id and primary_id is None:
                primary_id = created_id
        return primary_id

    def create_dataset(self, exercise_id: str, subject: str, dataset: DatasetDef) -> str | None:
        row = dataset_row(exercise_id, subject, dataset)
        try:
            stored = self.store.insert(DATASETS_TABLE, row)
        except StoreError as e:
            self._error(f"Failed to create dataset {dataset.name or row['table_name']}: {e}")
            return None

        self.result.datasets_created += 1
        return stored["id"]

    # -------------------------------------------------------------------------
    # Question
    # -------------------------------------------------------------------------

    def process_question(
        self,
        exercise_id: str,
        dataset_id: str | None,
        question: RawQuestion,
        subject: str,
        question_number: int,
        case_study: CaseStudy,
        subject_data: Mapping[str, Any],
    ) -> None:
        record = project_question(
            question,
            subject=subject,
            exercise_id=exercise_id,
            question_number=question_number,
            case_study=case_study,
            subject_data=subject_data,
            dataset_id=dataset_id,
        )
        try:
            stored = self.store.insert(QUESTIONS_TABLE, record.to_row())
        except StoreError as e:
            self._error(f"Failed to create question: {e}")
            return
        self.result.questions_created += 1

        answer = project_answer(question, stored["id"])
        if answer is None:
            return
        try:
            self.store.insert(ANSWERS_TABLE, answer.to_row())
        except StoreError as e:
            self._error(f"Failed to create answer: {e}")
            return
        self.result.answers_created += 1

    # -------------------------------------------------------------------------

    def _warn(self, message: str) -> None:
        self.result.warnings.append(message)
        logger.warning(message)

    def _error(self, message: str) -> None:
        self.result.errors.append(message)
        logger.error(message)


# =============================================================================
# Entry point
# =============================================================================


def load_plan(store: RecordStore, plan_id: int, user_id: str) -> tuple[PlanRecord, dict[str, Any]]:
    """
    Fetch a plan owned by `user_id` and its subject_prep map.

    Raises:
        MigrationError: the store could not be queried
        PlanNotFoundError: no such plan for this user
        PlanValidationError: the plan has no usable subject_prep map
    """
    try:
        rows = store.select(PLANS_TABLE, eq={"id": plan_id, "user_id": user_id})
    except StoreError as e:
        raise MigrationError(f"Failed to load plan {plan_id}: {e}") from e
    if not rows:
        raise PlanNotFoundError(plan_id)

    try:
        plan = PlanRecord.model_validate(rows[0])
        content = PlanContent.model_validate(plan.plan_content or {})
    except (ValidationError, ValueError) as e:
        raise PlanValidationError(f"Plan content is malformed: {e}") from e

    if content.subject_prep is None:
        raise PlanValidationError("Plan content or subject_prep not found")
    return plan, content.subject_prep


def migrate_plan(store: RecordStore, user_id: str, request: MigratePlanRequest) -> MigrationResponse:
    """
    Materialize a stored plan into practice tables.

    Never raises for data problems: fatal conditions come back as an
    unsuccessful response with zero counters.
    """
    result = MigrationResult(plan_id=request.plan_id)

    try:
        plan, subject_prep = load_plan(store, request.plan_id, user_id)
    except MigrationError as e:
        logger.error(f"[migrate] Migration failed for plan {request.plan_id}: {e}")
        return MigrationResponse.failed(result, str(e))

    PlanMigrator(
        store,
        plan,
        overwrite_existing=request.overwrite_existing,
        result=result,
    ).run(subject_prep)
    return MigrationResponse.from_result(result)
