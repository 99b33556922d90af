"""
Migration result accumulator.

A single MigrationResult is created per run and handed by reference to
every component that writes, so counts, warnings and errors from the
subject loop and the problem-solving pass land in one place.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any


@dataclass
class MigrationResult:
    """Counters and messages collected across a migration run."""

    plan_id: int
    exercises_created: int = 0
    questions_created: int = 0
    datasets_created: int = 0
    answers_created: int = 0
    links_created: int = 0
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return asdict(self)


@dataclass
class MigrationResponse:
    """What callers get back from `migrate_plan`, fatal or not."""

    success: bool
    message: str
    result: MigrationResult

    @classmethod
    def from_result(cls, result: MigrationResult) -> MigrationResponse:
        if result.success:
            message = "Migration completed successfully"
        else:
            message = f"Migration completed with {len(result.errors)} errors"
        return cls(success=result.success, message=message, result=result)

    @classmethod
    def failed(cls, result: MigrationResult, reason: str) -> MigrationResponse:
        result.errors.append(reason)
        return cls(success=False, message=f"Migration failed: {reason}", result=result)

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "message": self.message,
            "result": self.result.to_dict(),
        }
