"""Taskflow Security — role permissions and task-scope checks."""
