# SQLAlchemy models
from .base import Base
from .practice import (
    InterviewPrepPlan,
    PracticeAnswer,
    PracticeDataset,
    PracticeExercise,
    PracticeQuestion,
    ProblemSolvingCaseStudy,
)

__all__ = [
    # Base
    "Base",
    # Source
    "InterviewPrepPlan",
    # Migration targets
    "PracticeExercise",
    "PracticeDataset",
    "PracticeQuestion",
    "PracticeAnswer",
    "ProblemSolvingCaseStudy",
]
