"""
Unit tests for question projection.

Covers subject classification, difficulty normalization, the content
fallback chains and the derived answer record.
"""

import pytest

from prepsync.migration.models import CaseStudy, RawQuestion
from prepsync.migration.projector import (
    CONTENT_FIELD_CHAINS,
    POINTS_PER_QUESTION,
    classify,
    normalize_difficulty,
    project_answer,
    project_question,
    resolve_field,
)


class TestClassify:
    """Subject -> (question type, language)."""

    @pytest.mark.parametrize(
        "subject,expected",
        [
            ("SQL", ("sql", "sql")),
            ("Python", ("python", "python")),
            ("JavaScript", ("javascript", "javascript")),
            ("Google Sheets", ("google_sheets", "google_sheets")),
            ("google sheet", ("google_sheets", "google_sheets")),
            ("Statistics", ("statistics", "python")),
            ("Power BI", ("power_bi", "sql")),
            ("Math", ("math", "text")),
            ("Coding", ("coding", "python")),
            ("Programming", ("coding", "python")),
            ("Reasoning", ("reasoning", "text")),
            ("Problem Solving", ("problem_solving", "text")),
        ],
    )
    def test_known_subjects(self, subject, expected):
        assert classify(subject) == expected

    def test_unknown_subject_defaults(self):
        assert classify("Underwater Basket Weaving") == ("coding", "text")


class TestNormalizeDifficulty:
    """Free text -> beginner/intermediate/advanced."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("Easy", "beginner"),
            ("beginner friendly", "beginner"),
            ("Medium", "intermediate"),
            ("Intermediate", "intermediate"),
            ("HARD", "advanced"),
            ("Advanced", "advanced"),
            ("easy to hard", "beginner"),
            ("Easy-ish", "beginner"),
            ("mid-level", "intermediate"),
            ("unknown", "intermediate"),
            ("", "intermediate"),
            (None, "intermediate"),
            (3, "intermediate"),
        ],
    )
    def test_buckets(self, value, expected):
        assert normalize_difficulty(value) == expected


class TestFallbackChains:
    """Ordered fallback resolution of content fields."""

    def test_chain_order_is_stable(self):
        labels = [source.label for source in CONTENT_FIELD_CHAINS["business_context"]]
        assert labels == [
            "question.business_context",
            "question.business_question",
            "case_study.business_context",
            "subject.business_context",
            "subject.case_studies[0].business_context",
        ]

    def test_dataset_description_order(self):
        labels = [source.label for source in CONTENT_FIELD_CHAINS["dataset_description"]]
        assert labels == [
            "question.dataset_description",
            "case_study.dataset_overview",
            "subject.dataset_description",
            "subject.dataset_overview",
        ]

    def test_question_value_wins(self):
        question = RawQuestion(text="q", context={"business_context": "from question"})
        case_study = CaseStudy(business_context="from case study")
        subject = {"business_context": "from subject"}
        assert resolve_field("business_context", question, case_study, subject) == "from question"

    def test_falls_through_empty_values(self):
        question = RawQuestion(text="q", context={"business_context": "   ", "business_question": ""})
        case_study = CaseStudy(business_context=None)
        subject = {"business_context": "from subject"}
        assert resolve_field("business_context", question, case_study, subject) == "from subject"

    def test_first_case_study_of_subject_is_last_resort(self):
        subject = {"case_studies": [{"business_context": "first"}, {"business_context": "second"}]}
        assert resolve_field("business_context", RawQuestion(), None, subject) == "first"

    def test_no_source_gives_none(self):
        assert resolve_field("title", RawQuestion(), None, {}) is None

    def test_problem_statement_falls_back_to_question_text(self):
        question = RawQuestion(text="What is the churn rate?")
        assert resolve_field("problem_statement", question, CaseStudy(), {}) == "What is the churn rate?"

    def test_problem_statement_prefers_case_study(self):
        question = RawQuestion(text="What is the churn rate?")
        case_study = CaseStudy(problem_statement="Reduce churn")
        assert resolve_field("problem_statement", question, case_study, {}) == "Reduce churn"


class TestProjectQuestion:
    """Question row projection."""

    @pytest.fixture
    def case_study(self):
        return CaseStudy(
            title="Sales Data Analysis",
            description="Analyse sales",
            dataset_overview="One row per sale",
            problem_statement="Find the best region",
        )

    def test_row_fields(self, case_study):
        question = RawQuestion(
            text="Total sales per region?",
            expected_approach="GROUP BY region",
            sample_output="EU | 10",
            difficulty="Easy",
            topics=["aggregation"],
        )
        record = project_question(
            question,
            subject="SQL",
            exercise_id="ex-1",
            question_number=3,
            case_study=case_study,
            subject_data={"dataset_description": "Sales"},
            dataset_id="ds-1",
        )

        assert record.exercise_id == "ex-1"
        assert record.question_number == 3
        assert record.text == "Total sales per region?"
        assert record.type == "sql"
        assert record.language == "sql"
        assert record.difficulty == "beginner"
        assert record.topics == ["aggregation"]
        assert record.points == POINTS_PER_QUESTION
        assert record.dataset_id == "ds-1"
        assert record.expected_output_table == ["EU | 10"]

    def test_content_fields(self, case_study):
        question = RawQuestion(text="Q?", expected_approach="hint", sample_input="in", sample_output="out")
        record = project_question(
            question,
            subject="SQL",
            exercise_id="ex-1",
            question_number=1,
            case_study=case_study,
            subject_data={"dataset_description": "Sales"},
        )

        content = record.content
        assert content["question"] == "Q?"
        assert content["hint"] == "hint"
        assert content["sample_input"] == "in"
        assert content["sample_output"] == "out"
        assert content["title"] == "Sales Data Analysis"
        assert content["description"] == "Analyse sales"
        assert content["problem_statement"] == "Find the best region"
        assert content["dataset_description"] == "One row per sale"
        assert content["dataset_context"] == "Sales"
        assert content["case_study_title"] == "Sales Data Analysis"

    def test_topics_default_to_subject(self):
        record = project_question(RawQuestion(text="Q"), subject="Python", exercise_id="e", question_number=1)
        assert record.topics == ["Python"]

    def test_no_sample_output_means_no_expected_table(self):
        record = project_question(RawQuestion(text="Q"), subject="Python", exercise_id="e", question_number=1)
        assert record.expected_output_table is None

    def test_to_row_contains_identity(self):
        row = project_question(RawQuestion(text="Q"), subject="SQL", exercise_id="e", question_number=1).to_row()
        assert row["id"]
        assert row["created_at"]
        assert row["content"]["question"] == "Q"


class TestProjectAnswer:
    """Reference answer derivation."""

    def test_prefers_sample_output(self):
        answer = project_answer(RawQuestion(sample_output="42", expected_approach="count"), "q-1")
        assert answer.question_id == "q-1"
        assert answer.answer_text == "42"
        assert answer.explanation == "count"
        assert answer.is_case_sensitive is False

    def test_falls_back_to_expected_approach(self):
        answer = project_answer(RawQuestion(sample_output="", expected_approach="count rows"), "q-1")
        assert answer.answer_text == "count rows"

    def test_none_without_answer_material(self):
        assert project_answer(RawQuestion(text="Q"), "q-1") is None

    def test_tabular_sample_output_is_stored_as_json(self):
        answer = project_answer(RawQuestion(sample_output=[{"region": "EU", "total": 10}]), "q-1")
        assert answer.answer_text == '[{"region": "EU", "total": 10}]'

    def test_reference_sql_is_not_a_hint(self):
        question = RawQuestion.from_mapping({"question": "Top sellers?", "answer_sql": "SELECT * FROM s"})
        record = project_question(question, subject="SQL", exercise_id="e", question_number=1)

        assert record.content["hint"] is None
        answer = project_answer(question, "q-1")
        assert answer.answer_text == "SELECT * FROM s"
        assert answer.explanation is None

    def test_raw_hint_reaches_content(self):
        question = RawQuestion.from_mapping({"question": "Q", "hint": "Think joins", "answer": "A JOIN B"})
        record = project_question(question, subject="SQL", exercise_id="e", question_number=1)

        assert record.content["hint"] == "Think joins"
        assert project_answer(question, "q-1").answer_text == "Think joins"
