"""Command-line host for the task manager."""
