"""
Taskflow Error Hierarchy — Structured exceptions for the workflow core.

Expected business-rule outcomes (a denied transition, an empty scoring
window) are returned as values. These exceptions cover the remaining cases:
misconfiguration, programmer errors such as an unknown enum value, and the
opt-in helpers that turn a denial into an exception for callers that want one.

Hierarchy:
    TaskflowError
    ├── TaskflowConfigError       — Invalid taskflow.yaml / config values
    ├── TaskflowValidationError   — Input could not be coerced or validated
    ├── TaskflowPermissionError   — Role lacks a required capability
    └── TransitionDeniedError     — A status change was rejected
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


class TaskflowError(Exception):
    """
    Base error for all taskflow failures.
    All context is kept serializable so route handlers can log or return it.
    """

    def __init__(self, message: str, **context: Any):
        self.message = message
        self.task_id: Optional[str] = context.get("task_id")
        self.user_id: Optional[str] = context.get("user_id")
        self.error_type: str = self.__class__.__name__
        self.context: Dict[str, Any] = context
        self.timestamp: str = datetime.now(timezone.utc).isoformat()
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize error to a JSON-compatible dict."""
        return {
            "error_type": self.error_type,
            "message": self.message,
            "task_id": self.task_id,
            "user_id": self.user_id,
            "timestamp": self.timestamp,
            "context": {
                k: str(v) for k, v in self.context.items()
                if k not in ("task_id", "user_id")
            },
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)

    def __repr__(self) -> str:
        parts = [f"{self.error_type}: {self.message}"]
        if self.task_id:
            parts.append(f"task_id={self.task_id}")
        if self.user_id:
            parts.append(f"user_id={self.user_id}")
        return " | ".join(parts)


class TaskflowConfigError(TaskflowError):
    """Configuration error — unreadable or invalid taskflow.yaml."""

    def __init__(self, message: str, **context: Any):
        self.config_path: Optional[str] = context.get("config_path")
        super().__init__(message, **context)


class TaskflowValidationError(TaskflowError):
    """
    Input validation failed. Raised for values that can never be valid,
    e.g. a status string outside the TaskStatus vocabulary.
    """

    def __init__(self, message: str, **context: Any):
        self.field: Optional[str] = context.get("field")
        self.validation_errors: Optional[List[str]] = context.get("validation_errors")
        super().__init__(message, **context)

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["field"] = self.field
        d["validation_errors"] = self.validation_errors
        return d


class TaskflowPermissionError(TaskflowError):
    """A role was asked for a capability it does not hold."""

    def __init__(self, message: str, **context: Any):
        self.role: Optional[str] = context.get("role")
        self.required_permission: Optional[str] = context.get("required_permission")
        super().__init__(message, **context)

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["role"] = self.role
        d["required_permission"] = self.required_permission
        return d


class TransitionDeniedError(TaskflowError):
    """
    A status transition was rejected. Carries the failure code so the
    caller can map it to a response without parsing the message.
    """

    def __init__(self, message: str, **context: Any):
        self.from_status: Optional[str] = context.get("from_status")
        self.to_status: Optional[str] = context.get("to_status")
        self.code: Optional[str] = context.get("code")
        super().__init__(message, **context)

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["from_status"] = self.from_status
        d["to_status"] = self.to_status
        d["code"] = self.code
        return d
