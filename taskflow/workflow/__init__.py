"""Taskflow Workflow — status vocabulary, transition table, Kanban view."""
