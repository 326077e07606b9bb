"""Persistence for task collections."""
