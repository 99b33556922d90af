"""
Problem-solving case study persistence.

Runs once per migration, after the subject loop. Every case study of the
plan's problem-solving subject becomes exactly one question in a shared
"Problem Solving Case Studies - Plan <id>" exercise, plus a row in
`problem_solving_case_studies` linking plan, exercise and question.

The link set for a plan is always replaced, never skipped: previous links
and the questions they point at are removed before new ones are written.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from loguru import logger

from prepsync.db.store import (
    EXERCISES_TABLE,
    PROBLEM_SOLVING_TABLE,
    QUESTIONS_TABLE,
    RecordStore,
    StoreError,
)

from .models import CaseStudy, PlanRecord, RawQuestion, as_list, first_non_empty
from .projector import (
    FieldSource,
    QuestionRecord,
    classify,
    from_case_study,
    from_subject,
    new_id,
    normalize_difficulty,
    resolve_chain,
    utc_now_iso,
)
from .result import MigrationResult

PROBLEM_SOLVING_SUBJECT = "Problem Solving"
PROBLEM_SOLVING_MARKERS = ("problem solving", "art of problem solving", "aops")
PLACEHOLDER_QUESTION = "Problem Solving Case Study"
DEFAULT_LINK_DIFFICULTY = "Medium"

CASE_STUDY_CHAINS: dict[str, tuple[FieldSource, ...]] = {
    "business_context": (
        from_case_study("business_problem"),
        from_subject("business_context"),
    ),
    "dataset_context": (
        from_case_study("case_study_context"),
        from_case_study("description"),
        from_case_study("business_problem"),
    ),
    "dataset_description": (
        from_case_study("description"),
        from_subject("business_context"),
        from_subject("summary"),
    ),
    "case_study_description": (
        from_case_study("description"),
        from_case_study("business_problem"),
    ),
}


def problem_solving_exercise_name(plan_id: int) -> str:
    return f"Problem Solving Case Studies - Plan {plan_id}"


def find_problem_solving_subject(subject_prep: Mapping[str, Any]) -> str | None:
    """First subject key that names the problem-solving category."""
    for key in subject_prep:
        if not isinstance(key, str):
            continue
        lower = key.lower()
        if any(marker in lower for marker in PROBLEM_SOLVING_MARKERS):
            return key
    return None


def question_text_for(case_study: CaseStudy) -> str:
    text = first_non_empty(case_study.problem_statement, case_study.title, case_study.business_problem)
    return str(text if text is not None else PLACEHOLDER_QUESTION).strip()


def project_case_study_question(
    case_study: CaseStudy,
    *,
    exercise_id: str,
    question_number: int,
    subject_data: Mapping[str, Any],
) -> QuestionRecord:
    """The single question a problem-solving case study turns into."""
    text = question_text_for(case_study)
    question_type, language = classify(PROBLEM_SOLVING_SUBJECT)

    def chain(name: str) -> Any:
        return resolve_chain(CASE_STUDY_CHAINS[name], RawQuestion(), case_study, subject_data)

    return QuestionRecord(
        exercise_id=exercise_id,
        question_number=question_number,
        text=text,
        type=question_type,
        language=language,
        difficulty=normalize_difficulty(case_study.difficulty),
        topics=case_study.topics or [PROBLEM_SOLVING_SUBJECT],
        content={
            "question": text,
            "hint": case_study.solution_outline,
            "title": case_study.title or None,
            "problem_statement": case_study.problem_statement or None,
            "description": case_study.description or None,
            "business_context": chain("business_context"),
            "dataset_context": chain("dataset_context"),
            "dataset_description": chain("dataset_description"),
            "case_study_title": case_study.title or None,
            "case_study_description": chain("case_study_description"),
            "case_study_problem_statement": case_study.problem_statement or text,
        },
    )


def link_row(
    case_study: CaseStudy,
    *,
    plan_id: int,
    exercise_id: str,
    question_id: str,
    topics: list[str],
) -> dict[str, Any]:
    minutes = case_study.estimated_time_minutes
    if isinstance(minutes, bool) or not isinstance(minutes, (int, float)):
        minutes = None
    now = utc_now_iso()
    return {
        "id": new_id(),
        "plan_id": plan_id,
        "exercise_id": exercise_id,
        "question_id": question_id,
        "title": case_study.title or None,
        "description": case_study.description or None,
        "problem_statement": case_study.problem_statement or None,
        "business_problem": case_study.business_problem or None,
        "case_study_context": first_non_empty(
            case_study.case_study_context, case_study.description, case_study.business_problem
        ),
        "estimated_time_minutes": minutes,
        "difficulty": case_study.difficulty or DEFAULT_LINK_DIFFICULTY,
        "topics": topics,
        "created_at": now,
        "updated_at": now,
    }


class ProblemSolvingPersister:
    """Replaces a plan's problem-solving question/link set."""

    def __init__(self, store: RecordStore, plan: PlanRecord, result: MigrationResult):
        self.store = store
        self.plan = plan
        self.result = result

    def persist(self, subject_prep: Mapping[str, Any]) -> int:
        """Write the problem-solving set; returns the number of links created."""
        subject = find_problem_solving_subject(subject_prep)
        if subject is None:
            return 0

        subject_data = subject_prep[subject]
        if not isinstance(subject_data, Mapping):
            return 0
        raw_case_studies = [cs for cs in as_list(subject_data.get("case_studies")) if isinstance(cs, Mapping)]
        if not raw_case_studies:
            return 0

        logger.info(f"[problem-solving] Persisting {len(raw_case_studies)} case studies from '{subject}'")
        if not self.clear_previous():
            return 0

        exercise_id = self.find_or_create_exercise()
        if exercise_id is None:
            return 0

        links = 0
        question_number = 1
        for raw in raw_case_studies:
            if self.persist_case_study(CaseStudy.from_mapping(raw), exercise_id, question_number, subject_data):
                links += 1
            question_number += 1
        return links

    def clear_previous(self) -> bool:
        """Remove earlier links for this plan and the questions they reference."""
        plan_id = self.plan.id
        try:
            previous = self.store.select(PROBLEM_SOLVING_TABLE, eq={"plan_id": plan_id})
            question_ids = [row["question_id"] for row in previous if row.get("question_id")]
            if question_ids:
                self.store.delete(QUESTIONS_TABLE, in_={"id": question_ids})
            if previous:
                self.store.delete(PROBLEM_SOLVING_TABLE, eq={"plan_id": plan_id})
        except StoreError as e:
            self._error(f"Failed to clear previous problem solving case studies: {e}")
            return False

        if previous:
            logger.debug(f"[problem-solving] Removed {len(previous)} previous links for plan {plan_id}")
        return True

    def find_or_create_exercise(self) -> str | None:
        name = problem_solving_exercise_name(self.plan.id)
        try:
            existing = self.store.select(EXERCISES_TABLE, eq={"name": name})
            if existing:
                return existing[0]["id"]

            exercise = self.store.insert(
                EXERCISES_TABLE,
                {
                    "id": new_id(),
                    "name": name,
                    "description": f"Problem Solving case studies for plan {self.plan.id}",
                    "subject": PROBLEM_SOLVING_SUBJECT,
                    "user_id": self.plan.user_id,
                    "profile_id": self.plan.profile_id,
                    "jd_id": self.plan.jd_id,
                    "created_at": utc_now_iso(),
                },
            )
        except StoreError as e:
            self._error(f"Failed to create problem solving exercise: {e}")
            return None

        self.result.exercises_created += 1
        return exercise["id"]

    def persist_case_study(
        self,
        case_study: CaseStudy,
        exercise_id: str,
        question_number: int,
        subject_data: Mapping[str, Any],
    ) -> bool:
        record = project_case_study_question(
            case_study,
            exercise_id=exercise_id,
            question_number=question_number,
            subject_data=subject_data,
        )
        try:
            question = self.store.insert(QUESTIONS_TABLE, record.to_row())
        except StoreError as e:
            self._error(f"Failed to create problem solving question {question_number}: {e}")
            return False
        self.result.questions_created += 1

        row = link_row(
            case_study,
            plan_id=self.plan.id,
            exercise_id=exercise_id,
            question_id=question["id"],
            topics=record.topics,
        )
        try:
            self.store.insert(PROBLEM_SOLVING_TABLE, row)
        except StoreError as e:
            self._error(f"Failed to create problem solving case study link: {e}")
            return False

        self.result.links_created += 1
        return True

    def _error(self, message: str) -> None:
        self.result.errors.append(message)
        logger.error(message)
