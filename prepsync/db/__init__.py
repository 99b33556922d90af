"""Persistence layer: table models, record stores, engine helpers."""

from .store import (
    ANSWERS_TABLE,
    DATASETS_TABLE,
    EXERCISES_TABLE,
    PLANS_TABLE,
    PROBLEM_SOLVING_TABLE,
    QUESTIONS_TABLE,
    MemoryStore,
    RecordStore,
    StoreError,
)

__all__ = [
    "RecordStore",
    "MemoryStore",
    "StoreError",
    "PLANS_TABLE",
    "EXERCISES_TABLE",
    "QUESTIONS_TABLE",
    "DATASETS_TABLE",
    "ANSWERS_TABLE",
    "PROBLEM_SOLVING_TABLE",
]
