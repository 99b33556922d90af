"""prep-plan-sync: interview preparation plan -> practice tables."""

__version__ = "1.0.0"
