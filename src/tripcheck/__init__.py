"""Trip checklist tasks with prerequisite tracking."""

__version__ = "0.1.0"
