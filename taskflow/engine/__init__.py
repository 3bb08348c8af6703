"""Taskflow Engine — errors, configuration, structured logging."""

from taskflow.engine.config import TaskflowConfig, get_config, load_config  # noqa: F401
from taskflow.engine.errors import TaskflowError  # noqa: F401
from taskflow.engine.logging import FileLogger, LogEntry  # noqa: F401

__all__ = [
    "TaskflowConfig",
    "get_config",
    "load_config",
    "TaskflowError",
    "FileLogger",
    "LogEntry",
]
