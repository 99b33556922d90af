"""Migration error taxonomy."""

from __future__ import annotations


class MigrationError(Exception):
    """Base class for migration failures."""


class PlanNotFoundError(MigrationError):
    """The plan does not exist or does not belong to the requesting user."""

    def __init__(self, plan_id: int):
        super().__init__(f"Plan {plan_id} not found")
        self.plan_id = plan_id


class PlanValidationError(MigrationError):
    """The plan content cannot be migrated at all."""


class CascadeDeleteError(MigrationError):
    """An overwrite could not remove the previously migrated rows."""

    def __init__(self, step: str, cause: Exception):
        super().__init__(f"Failed to delete existing {step}: {cause}")
        self.step = step
        self.cause = cause
