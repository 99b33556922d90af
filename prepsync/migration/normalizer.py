"""
Case study normalization.

Plans have stored subject content in two shapes over time:

    structured:  {"case_studies": [{title, dataset_schema, questions: [...]}, ...]}
    legacy:      {"questions_raw": [...], "dataset_description": ..., "dataset_csv_raw": ...}

`classify_subject` decides the shape once; `resolve_case_studies` turns
any shape into the same list of CaseStudy objects so nothing downstream
has to sniff keys again.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from .models import (
    EXPECTED_ANSWER_KEYS,
    CaseStudy,
    DatasetDef,
    EmptySubject,
    LegacySubject,
    RawQuestion,
    StructuredSubject,
    SubjectPrep,
    as_list,
    first_non_empty,
    is_empty,
    pick,
)
from .projector import normalize_difficulty

LEGACY_TEXT_KEYS = ("business_question", "question", "text", "prompt", "title")
LEGACY_OUTPUT_KEYS = ("sample_output", "answer", "answer_sql", "expected_answer")


def classify_subject(name: str, data: Any) -> SubjectPrep:
    """Tag a subject's raw content with the shape it arrived in."""
    if not isinstance(data, Mapping):
        return EmptySubject(name=name)

    data = dict(data)
    case_studies = [cs for cs in as_list(data.get("case_studies")) if isinstance(cs, Mapping)]
    if case_studies:
        return StructuredSubject(name=name, data=data, case_studies=case_studies)

    questions_raw = [q for q in as_list(data.get("questions_raw")) if isinstance(q, Mapping)]
    if questions_raw:
        return LegacySubject(name=name, data=data, questions_raw=questions_raw)

    return EmptySubject(name=name, data=data)


def resolve_case_studies(subject: SubjectPrep) -> list[CaseStudy]:
    """Canonical case studies for a classified subject ([] when there are none)."""
    if isinstance(subject, StructuredSubject):
        return [CaseStudy.from_mapping(cs) for cs in subject.case_studies]
    if isinstance(subject, LegacySubject):
        return [_legacy_case_study(subject)]
    return []


# =============================================================================
# Legacy shape
# =============================================================================


def _legacy_case_study(subject: LegacySubject) -> CaseStudy:
    """Fold a flat legacy subject into exactly one case study."""
    data = subject.data

    sample_data = data.get("dataset_csv_raw") or None
    rows = data.get("dataset_rows")
    if not sample_data and isinstance(rows, list):
        sample_data = json.dumps(rows, indent=2)

    creation_sql = pick(data, "data_creation_sql", "dataset_creation_sql")
    columns = as_list(data.get("dataset_columns"))
    dataset_schema = creation_sql or (columns if columns else None)

    return CaseStudy(
        title=data.get("header_text") or f"{subject.name} Case Study",
        dataset_overview=first_non_empty(data.get("dataset_description"), data.get("business_context")),
        dataset_schema=dataset_schema,
        dataset_creation_sql=creation_sql,
        data_creation_python=data.get("data_creation_python"),
        sample_data=sample_data,
        datasets=normalize_subject_datasets(subject.name, data),
        questions=[
            _legacy_question(raw, position, subject.name)
            for position, raw in enumerate(subject.questions_raw, start=1)
        ],
    )


def _legacy_question(raw: Mapping[str, Any], position: int, subject: str) -> RawQuestion:
    topics = as_list(raw.get("topics"))
    return RawQuestion(
        text=pick(raw, *LEGACY_TEXT_KEYS) or f"Question {position}",
        expected_approach=pick(raw, *EXPECTED_ANSWER_KEYS) or "",
        sample_output=pick(raw, *LEGACY_OUTPUT_KEYS) or "",
        sample_input=pick(raw, "sample_input", "input"),
        difficulty=normalize_difficulty(raw.get("difficulty")),
        topics=topics or [subject],
    )


def normalize_subject_datasets(subject: str, data: Mapping[str, Any]) -> list[DatasetDef]:
    """Each `datasets[]` entry of a legacy subject as a DatasetDef."""
    subject_sql = pick(data, "data_creation_sql", "dataset_creation_sql")
    datasets: list[DatasetDef] = []

    for position, raw in enumerate(as_list(data.get("datasets")), start=1):
        if not isinstance(raw, Mapping):
            continue
        rows = raw.get("rows")
        columns = raw.get("columns")
        if is_empty(columns) and isinstance(rows, list) and rows and isinstance(rows[0], Mapping):
            columns = list(rows[0].keys())

        datasets.append(
            DatasetDef(
                name=pick(raw, "name", "table_name") or f"Dataset {position}",
                description=first_non_empty(raw.get("description"), data.get("dataset_description")),
                table_name=pick(raw, "table_name", "name"),
                columns=list(columns) if isinstance(columns, list) else [],
                schema_info=raw.get("schema_info"),
                creation_sql=first_non_empty(raw.get("creation_sql"), raw.get("data_creation_sql"), subject_sql),
                creation_python=pick(raw, "creation_python", "data_creation_python"),
                csv_data=pick(raw, "csv", "dataset_csv_raw"),
                record_count=len(rows) if isinstance(rows, list) else None,
                subject_type=subject.lower(),
            )
        )
    return datasets
