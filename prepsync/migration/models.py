"""
Migration Data Models.

Two layers live here:

- Pydantic models for what arrives from outside (the stored plan row, its
  content document, the migrate request). Only `subject_prep` is
  inspected; the rest of the document is carried through untouched.
- Dataclasses for the canonical shapes the engine works on after
  normalization (case studies, questions, dataset definitions) and the
  tagged union describing which shape a subject arrived in.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

# =============================================================================
# Value helpers
# =============================================================================


def is_empty(value: Any) -> bool:
    """None, blank strings and empty containers count as missing."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict, set)):
        return len(value) == 0
    return False


def first_non_empty(*values: Any) -> Any:
    """Return the first value that is not empty, else None."""
    for value in values:
        if not is_empty(value):
            return value
    return None


def pick(data: Mapping[str, Any] | None, *keys: str) -> Any:
    """First non-empty value among `keys` of a mapping."""
    if not isinstance(data, Mapping):
        return None
    return first_non_empty(*(data.get(key) for key in keys))


def as_list(value: Any) -> list[Any]:
    return list(value) if isinstance(value, list) else []


# =============================================================================
# Inbound Documents
# =============================================================================


class PlanContent(BaseModel):
    """The AI-generated plan document."""

    model_config = ConfigDict(extra="allow")

    subject_prep: dict[str, Any] | None = None
    subjects_covered: Any = None
    domains: Any = None
    case_studies: Any = None


class PlanRecord(BaseModel):
    """A stored row of `interview_prep_plans`."""

    model_config = ConfigDict(extra="ignore")

    id: int
    user_id: str
    profile_id: int | None = None
    jd_id: int | None = None
    plan_content: dict[str, Any] | None = None

    @field_validator("plan_content", mode="before")
    @classmethod
    def _decode_text_content(cls, value: Any) -> Any:
        # Some stores hand JSON columns back as text
        if isinstance(value, str):
            return json.loads(value) if value.strip() else None
        return value


class MigratePlanRequest(BaseModel):
    """Request to materialize one plan into practice tables."""

    plan_id: int
    overwrite_existing: bool = Field(default=False)


# =============================================================================
# Canonical Shapes
# =============================================================================


@dataclass
class DatasetDef:
    """A dataset declared by a case study, before it is written."""

    name: str | None = None
    description: str | None = None
    table_name: str | None = None
    columns: list[str] = field(default_factory=list)
    schema_info: Any = None
    creation_sql: str | None = None
    creation_python: str | None = None
    csv_data: str | None = None
    record_count: int | None = None
    subject_type: str | None = None
    sample_data: str | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> DatasetDef:
        """Build from a `datasets[]` entry of a structured case study."""
        columns = data.get("columns")
        return cls(
            name=data.get("name"),
            description=data.get("description"),
            table_name=data.get("table_name"),
            columns=list(columns) if isinstance(columns, list) else [],
            schema_info=data.get("schema_info"),
            creation_sql=data.get("creation_sql"),
            creation_python=data.get("creation_python"),
            csv_data=data.get("csv_data"),
            record_count=data.get("record_count"),
            subject_type=data.get("subject_type"),
            sample_data=data.get("sample_data"),
        )


QUESTION_TEXT_KEYS = ("question", "business_question", "text", "prompt", "title")
HINT_KEYS = ("expected_approach", "hint")
REFERENCE_ANSWER_KEYS = ("answer", "answer_sql", "expected_answer")
EXPECTED_ANSWER_KEYS = HINT_KEYS + REFERENCE_ANSWER_KEYS


@dataclass
class RawQuestion:
    """
    One question in canonical form.

    `context` keeps the source mapping so the content fallback chains can
    still read keys like `business_context` or `case_study_title`.
    `expected_approach` is shown to the learner as the hint;
    `reference_answer` only ever feeds the stored answer.
    """

    text: str | None = None
    expected_approach: str | None = None
    reference_answer: Any = None
    sample_output: Any = None
    sample_input: Any = None
    difficulty: str | None = None
    topics: list[str] = field(default_factory=list)
    context: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> RawQuestion:
        """Build from a question of a structured case study."""
        return cls(
            text=pick(data, *QUESTION_TEXT_KEYS),
            expected_approach=pick(data, *HINT_KEYS),
            reference_answer=pick(data, *REFERENCE_ANSWER_KEYS),
            sample_output=data.get("sample_output"),
            sample_input=data.get("sample_input"),
            difficulty=data.get("difficulty"),
            topics=as_list(data.get("topics")),
            context=dict(data),
        )


@dataclass
class CaseStudy:
    """A dataset/schema description paired with an ordered question list."""

    title: str | None = None
    description: str | None = None
    dataset_overview: str | None = None
    problem_statement: str | None = None
    dataset_schema: Any = None
    dataset_creation_sql: str | None = None
    data_creation_python: str | None = None
    sample_data: str | None = None
    dataset_rows: list[Any] | None = None
    datasets: list[DatasetDef] = field(default_factory=list)
    questions: list[RawQuestion] = field(default_factory=list)
    estimated_time_minutes: Any = None
    difficulty: str | None = None
    solution_outline: str | None = None
    business_problem: str | None = None
    business_context: str | None = None
    case_study_context: str | None = None
    topics: list[str] = field(default_factory=list)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> CaseStudy:
        rows = data.get("dataset_rows")
        return cls(
            title=data.get("title"),
            description=data.get("description"),
            dataset_overview=data.get("dataset_overview"),
            problem_statement=data.get("problem_statement"),
            dataset_schema=data.get("dataset_schema"),
            dataset_creation_sql=data.get("dataset_creation_sql"),
            data_creation_python=data.get("data_creation_python"),
            sample_data=data.get("sample_data"),
            dataset_rows=rows if isinstance(rows, list) else None,
            datasets=[
                DatasetDef.from_mapping(d) for d in as_list(data.get("datasets")) if isinstance(d, Mapping)
            ],
            questions=[
                RawQuestion.from_mapping(q) for q in as_list(data.get("questions")) if isinstance(q, Mapping)
            ],
            estimated_time_minutes=data.get("estimated_time_minutes"),
            difficulty=data.get("difficulty"),
            solution_outline=data.get("solution_outline"),
            business_problem=data.get("business_problem"),
            business_context=data.get("business_context"),
            case_study_context=data.get("case_study_context"),
            topics=as_list(data.get("topics")),
        )

    def declares_inline_dataset(self) -> bool:
        return any(
            not is_empty(v)
            for v in (self.dataset_schema, self.sample_data, self.dataset_creation_sql)
        )


# =============================================================================
# Subject Shapes (resolved once, during normalization)
# =============================================================================


@dataclass
class StructuredSubject:
    """Subject carrying a non-empty `case_studies` array."""

    name: str
    data: dict[str, Any]
    case_studies: list[dict[str, Any]]


@dataclass
class LegacySubject:
    """Subject in the flat form: `questions_raw` plus dataset fields."""

    name: str
    data: dict[str, Any]
    questions_raw: list[dict[str, Any]]


@dataclass
class EmptySubject:
    """Subject with nothing to migrate."""

    name: str
    data: dict[str, Any] = field(default_factory=dict)


SubjectPrep = Union[StructuredSubject, LegacySubject, EmptySubject]
