"""
Interview practice table models.

A migration run reads `interview_prep_plans` and writes the other five tables.
Ids are text UUIDs generated by the writer so every backend returns the same
shape from an insert.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import Boolean, ForeignKey, Integer, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, JSONType

# ========================================
# SOURCE
# ========================================


class InterviewPrepPlan(Base):
    """AI-generated preparation plan; `plan_content` holds the raw document."""

    __tablename__ = "interview_prep_plans"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    profile_id: Mapped[int | None] = mapped_column(Integer)
    jd_id: Mapped[int | None] = mapped_column(Integer)
    plan_content: Mapped[dict[str, Any] | None] = mapped_column(JSONType)
    created_at: Mapped[datetime] = mapped_column(default=func.now())


# ========================================
# MIGRATION TARGETS
# ========================================


class PracticeExercise(Base):
    """Container for one subject's questions and datasets."""

    __tablename__ = "interview_practice_exercises"

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    # Natural idempotency key: "<subject> - Plan <plan_id>"
    name: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(Text)
    subject: Mapped[str | None] = mapped_column(Text)
    user_id: Mapped[str | None] = mapped_column(Text)
    profile_id: Mapped[int | None] = mapped_column(Integer)
    jd_id: Mapped[int | None] = mapped_column(Integer)
    created_at: Mapped[str | None] = mapped_column(Text)


class PracticeDataset(Base):
    """Dataset backing a case study; owned by exactly one exercise."""

    __tablename__ = "interview_practice_datasets"

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    exercise_id: Mapped[str] = mapped_column(
        ForeignKey("interview_practice_exercises.id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    table_name: Mapped[str] = mapped_column(Text, nullable=False)
    columns: Mapped[list[str] | None] = mapped_column(JSONType)
    schema_info: Mapped[dict[str, Any] | None] = mapped_column(JSONType)
    creation_sql: Mapped[str | None] = mapped_column(Text)
    creation_python: Mapped[str | None] = mapped_column(Text)
    csv_data: Mapped[str | None] = mapped_column(Text)
    record_count: Mapped[int | None] = mapped_column(Integer)
    subject_type: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[str | None] = mapped_column(Text)


class PracticeQuestion(Base):
    """One numbered question inside an exercise."""

    __tablename__ = "interview_practice_questions"

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    exercise_id: Mapped[str] = mapped_column(
        ForeignKey("interview_practice_exercises.id"), nullable=False, index=True
    )
    dataset_id: Mapped[str | None] = mapped_column(
        ForeignKey("interview_practice_datasets.id", ondelete="SET NULL")
    )
    question_number: Mapped[int] = mapped_column(Integer, nullable=False)
    text: Mapped[str | None] = mapped_column(Text)
    type: Mapped[str] = mapped_column(Text, nullable=False)
    language: Mapped[str] = mapped_column(Text, nullable=False)
    difficulty: Mapped[str] = mapped_column(Text, nullable=False)  # beginner | intermediate | advanced
    topics: Mapped[list[str] | None] = mapped_column(JSONType)
    points: Mapped[int] = mapped_column(Integer, default=10)
    content: Mapped[dict[str, Any] | None] = mapped_column(JSONType)
    expected_output_table: Mapped[list[str] | None] = mapped_column(JSONType)
    created_at: Mapped[str | None] = mapped_column(Text)


class PracticeAnswer(Base):
    """Reference answer for a question."""

    __tablename__ = "interview_practice_answers"

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    question_id: Mapped[str] = mapped_column(
        ForeignKey("interview_practice_questions.id"), nullable=False, index=True
    )
    answer_text: Mapped[str] = mapped_column(Text, nullable=False)
    is_case_sensitive: Mapped[bool] = mapped_column(Boolean, default=False)
    explanation: Mapped[str | None] = mapped_column(Text)


class ProblemSolvingCaseStudy(Base):
    """Cross-reference from a plan to its problem-solving questions."""

    __tablename__ = "problem_solving_case_studies"

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    plan_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    exercise_id: Mapped[str] = mapped_column(
        ForeignKey("interview_practice_exercises.id"), nullable=False
    )
    question_id: Mapped[str | None] = mapped_column(
        ForeignKey("interview_practice_questions.id", ondelete="SET NULL")
    )
    title: Mapped[str | None] = mapped_column(Text)
    description: Mapped[str | None] = mapped_column(Text)
    problem_statement: Mapped[str | None] = mapped_column(Text)
    business_problem: Mapped[str | None] = mapped_column(Text)
    case_study_context: Mapped[str | None] = mapped_column(Text)
    estimated_time_minutes: Mapped[int | None] = mapped_column(Integer)
    difficulty: Mapped[str | None] = mapped_column(Text)
    topics: Mapped[list[str] | None] = mapped_column(JSONType)
    created_at: Mapped[str | None] = mapped_column(Text)
    updated_at: Mapped[str | None] = mapped_column(Text)
