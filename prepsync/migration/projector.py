"""
Question projection.

Maps a canonical RawQuestion (plus the case study and subject it came
from) onto the row written to `interview_practice_questions`, and derives
the optional reference answer.

Content fields are resolved through ordered fallback chains. Each chain is
a tuple of named sources tried in order; the first non-empty value wins.
The order is part of the stored data's meaning, so it lives here as data
rather than as scattered `or` expressions.
"""

from __future__ import annotations

import json
import uuid
from collections.abc import Callable, Mapping
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from .models import CaseStudy, RawQuestion, first_non_empty, is_empty, pick

POINTS_PER_QUESTION = 10


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def new_id() -> str:
    return str(uuid.uuid4())


# =============================================================================
# Subject Classification
# =============================================================================

# subject (lower-cased) -> (question type, language)
SUBJECT_TYPES: dict[str, tuple[str, str]] = {
    "sql": ("sql", "sql"),
    "python": ("python", "python"),
    "javascript": ("javascript", "javascript"),
    "google sheets": ("google_sheets", "google_sheets"),
    "google sheet": ("google_sheets", "google_sheets"),
    "statistics": ("statistics", "python"),
    "power bi": ("power_bi", "sql"),
    "math": ("math", "text"),
    "coding": ("coding", "python"),
    "programming": ("coding", "python"),
    "reasoning": ("reasoning", "text"),
    "problem solving": ("problem_solving", "text"),
}
DEFAULT_SUBJECT_TYPE = ("coding", "text")


def classify(subject: str) -> tuple[str, str]:
    """(question type, language) for a subject name."""
    return SUBJECT_TYPES.get(subject.strip().lower(), DEFAULT_SUBJECT_TYPE)


class Difficulty(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


def normalize_difficulty(value: Any) -> str:
    """
    Collapse free-text difficulty into beginner/intermediate/advanced.

    Checked in priority order, so "easy to hard" is beginner. Anything
    unrecognised, missing or empty is intermediate.
    """
    if not isinstance(value, str) or not value:
        return Difficulty.INTERMEDIATE.value

    lower = value.lower()
    if "easy" in lower or "beginner" in lower:
        return Difficulty.BEGINNER.value
    if "hard" in lower or "advanced" in lower:
        return Difficulty.ADVANCED.value
    # medium / intermediate / mid, and the default, are the same bucket
    return Difficulty.INTERMEDIATE.value


# =============================================================================
# Fallback Chains
# =============================================================================


@dataclass(frozen=True)
class FieldSource:
    """One candidate in a fallback chain."""

    label: str
    get: Callable[[RawQuestion, CaseStudy | None, Mapping[str, Any]], Any]

    def __call__(self, question: RawQuestion, case_study: CaseStudy | None, subject_data: Mapping[str, Any]) -> Any:
        return self.get(question, case_study, subject_data)


def from_question(key: str) -> FieldSource:
    return FieldSource(f"question.{key}", lambda q, cs, s: pick(q.context, key))


def from_question_text() -> FieldSource:
    return FieldSource("question.text", lambda q, cs, s: q.text)


def from_case_study(attr: str) -> FieldSource:
    return FieldSource(f"case_study.{attr}", lambda q, cs, s: getattr(cs, attr, None) if cs else None)


def from_subject(key: str) -> FieldSource:
    return FieldSource(f"subject.{key}", lambda q, cs, s: pick(s, key))


def from_subject_first_case_study(key: str) -> FieldSource:
    def get(q: RawQuestion, cs: CaseStudy | None, s: Mapping[str, Any]) -> Any:
        case_studies = s.get("case_studies") if isinstance(s, Mapping) else None
        if isinstance(case_studies, list) and case_studies and isinstance(case_studies[0], Mapping):
            return pick(case_studies[0], key)
        return None

    return FieldSource(f"subject.case_studies[0].{key}", get)


CONTENT_FIELD_CHAINS: dict[str, tuple[FieldSource, ...]] = {
    "business_context": (
        from_question("business_context"),
        from_question("business_question"),
        from_case_study("business_context"),
        from_subject("business_context"),
        from_subject_first_case_study("business_context"),
    ),
    "dataset_context": (
        from_question("dataset_context"),
        from_question("case_study_context"),
        from_case_study("case_study_context"),
        from_subject("dataset_description"),
    ),
    "dataset_description": (
        from_question("dataset_description"),
        from_case_study("dataset_overview"),
        from_subject("dataset_description"),
        from_subject("dataset_overview"),
    ),
    "title": (
        from_question("title"),
        from_question("case_study_title"),
        from_case_study("title"),
    ),
    "problem_statement": (
        from_question("problem_statement"),
        from_question("case_study_problem_statement"),
        from_case_study("problem_statement"),
        from_question_text(),
    ),
    "description": (
        from_question("description"),
        from_question("case_study_description"),
        from_case_study("description"),
    ),
    "case_study_title": (
        from_question("case_study_title"),
        from_case_study("title"),
    ),
    "case_study_description": (
        from_question("case_study_description"),
        from_case_study("description"),
    ),
    "case_study_problem_statement": (
        from_question("case_study_problem_statement"),
        from_case_study("problem_statement"),
    ),
}


def resolve_chain(
    chain: tuple[FieldSource, ...],
    question: RawQuestion,
    case_study: CaseStudy | None,
    subject_data: Mapping[str, Any],
) -> Any:
    for source in chain:
        value = source(question, case_study, subject_data)
        if not is_empty(value):
            return value
    return None


def resolve_field(
    field_name: str,
    question: RawQuestion,
    case_study: CaseStudy | None,
    subject_data: Mapping[str, Any],
) -> Any:
    """First non-empty value along the chain for `field_name`, else None."""
    return resolve_chain(CONTENT_FIELD_CHAINS[field_name], question, case_study, subject_data)


# =============================================================================
# Records
# =============================================================================


@dataclass
class QuestionRecord:
    exercise_id: str
    question_number: int
    text: str | None
    type: str
    language: str
    difficulty: str
    topics: list[str]
    content: dict[str, Any]
    dataset_id: str | None = None
    expected_output_table: list[Any] | None = None
    points: int = POINTS_PER_QUESTION
    id: str = field(default_factory=new_id)
    created_at: str = field(default_factory=utc_now_iso)

    def to_row(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class AnswerRecord:
    question_id: str
    answer_text: str
    explanation: str | None
    is_case_sensitive: bool = False
    id: str = field(default_factory=new_id)

    def to_row(self) -> dict[str, Any]:
        return asdict(self)


def project_question(
    question: RawQuestion,
    *,
    subject: str,
    exercise_id: str,
    question_number: int,
    case_study: CaseStudy | None = None,
    subject_data: Mapping[str, Any] | None = None,
    dataset_id: str | None = None,
) -> QuestionRecord:
    """Build the question row for one canonical question."""
    subject_data = subject_data if isinstance(subject_data, Mapping) else {}
    question_type, language = classify(subject)

    content: dict[str, Any] = {
        "question": question.text,
        "hint": question.expected_approach,
        "sample_input": question.sample_input,
        "sample_output": question.sample_output,
    }
    for field_name in CONTENT_FIELD_CHAINS:
        content[field_name] = resolve_field(field_name, question, case_study, subject_data)

    return QuestionRecord(
        exercise_id=exercise_id,
        question_number=question_number,
        text=question.text,
        type=question_type,
        language=language,
        difficulty=normalize_difficulty(question.difficulty),
        topics=list(question.topics) or [subject],
        content=content,
        dataset_id=dataset_id,
        expected_output_table=None if is_empty(question.sample_output) else [question.sample_output],
    )


def project_answer(question: RawQuestion, question_id: str) -> AnswerRecord | None:
    """Reference answer, only when the question carries one."""
    answer_text = first_non_empty(question.sample_output, question.expected_approach, question.reference_answer)
    if answer_text is None:
        return None
    if not isinstance(answer_text, str):
        # answer_text is a text column; tabular sample outputs are stored as JSON
        answer_text = json.dumps(answer_text)
    return AnswerRecord(
        question_id=question_id,
        answer_text=answer_text,
        explanation=question.expected_approach,
    )
