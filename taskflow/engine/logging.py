"""
Taskflow Logging — Structured JSON log entries with a JSONL file sink.

Implements:
- LogEntry: one structured entry destined for an object_type/category file
- Entry builders for transition decisions, permission denials and scoring runs
- FileLogger: appends entries to logs/{object_type}/{category}/{YYYY-MM-DD}.jsonl
  and reads them back for audit queries

The decision and scoring functions never touch the filesystem. They build
entries; the caller decides whether to push them into a FileLogger.
"""

from __future__ import annotations

import json
import logging
import threading
from collections import defaultdict
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger("taskflow.engine.logging")

# Valid object types and their permitted categories
OBJECT_TYPE_CATEGORIES = {
    "transitions": ["execution", "security"],
    "permissions": ["security"],
    "scoring": ["execution"],
    "system": ["execution"],
}


def _utc_today() -> date:
    """Files are named by UTC date, matching the entry timestamps."""
    return datetime.now(timezone.utc).date()


class LogEntry:
    """A structured log entry destined for a specific file."""

    __slots__ = ("object_type", "category", "data")

    def __init__(self, object_type: str, category: str, data: Dict[str, Any]):
        if category not in OBJECT_TYPE_CATEGORIES.get(object_type, []):
            raise ValueError(f"Unknown log target {object_type}/{category}")
        self.object_type = object_type
        self.category = category
        self.data = data

    def to_json(self) -> str:
        return json.dumps(self.data, default=str, separators=(",", ":"))


class FileLogger:
    """
    Writes structured JSON log entries to per-object-type, per-category files.
    Files rotate daily. Thread-safe: one lock per file path.
    """

    def __init__(self, log_dir: str = ".taskflow/logs"):
        self._log_dir = Path(log_dir)
        self._file_locks: Dict[str, threading.Lock] = defaultdict(threading.Lock)
        for obj_type, categories in OBJECT_TYPE_CATEGORIES.items():
            for cat in categories:
                (self._log_dir / obj_type / cat).mkdir(parents=True, exist_ok=True)

    @property
    def log_dir(self) -> Path:
        return self._log_dir

    def write(self, entry: LogEntry) -> None:
        self.write_batch([entry])

    def write_batch(self, entries: List[LogEntry]) -> None:
        """Write entries, grouped by target file."""
        grouped: Dict[str, List[LogEntry]] = defaultdict(list)
        for entry in entries:
            grouped[str(self._resolve_path(entry.object_type, entry.category))].append(entry)

        for file_path, batch in grouped.items():
            with self._file_locks[file_path]:
                with open(file_path, "a", encoding="utf-8") as f:
                    for entry in batch:
                        f.write(entry.to_json())
                        f.write("\n")

    def _resolve_path(self, object_type: str, category: str) -> Path:
        return self._log_dir / object_type / category / f"{_utc_today().isoformat()}.jsonl"

    def query(
        self,
        object_type: str,
        category: str,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        filters: Optional[Dict[str, Any]] = None,
        limit: int = 500,
    ) -> List[Dict[str, Any]]:
        """
        Read entries back for an object_type/category.

        Args:
            start_date: Earliest date to include (defaults to 7 days before end_date).
            end_date: Latest date to include (defaults to today, UTC).
            filters: Only entries whose top-level keys equal ALL of these values.
            limit: Max number of entries to return.

        Returns:
            Parsed entries, oldest first.
        """
        if end_date is None:
            end_date = _utc_today()
        if start_date is None:
            start_date = end_date - timedelta(days=7)

        base = self._log_dir / object_type / category
        if not base.exists():
            return []

        results: List[Dict[str, Any]] = []
        current = start_date
        while current <= end_date and len(results) < limit:
            path = base / f"{current.isoformat()}.jsonl"
            if path.exists():
                results.extend(self._read_jsonl(path, filters, limit - len(results)))
            current += timedelta(days=1)
        return results

    @staticmethod
    def _read_jsonl(
        path: Path,
        filters: Optional[Dict[str, Any]],
        remaining: int,
    ) -> List[Dict[str, Any]]:
        entries: List[Dict[str, Any]] = []
        try:
            with open(path, "r", encoding="utf-8") as f:
                for line in f:
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        data = json.loads(line)
                    except json.JSONDecodeError:
                        logger.warning("Skipping malformed log line in %s", path)
                        continue
                    if filters and not all(data.get(k) == v for k, v in filters.items()):
                        continue
                    entries.append(data)
                    if len(entries) >= remaining:
                        break
        except OSError as exc:
            logger.warning("Could not read log file %s: %s", path, exc)
        return entries


# ---------------------------------------------------------------------------
# Log Entry Builders
# ---------------------------------------------------------------------------

def _base_entry(
    event: str,
    level: str,
    task_id: Optional[str] = None,
    user_id: Optional[str] = None,
    **extra: Any,
) -> Dict[str, Any]:
    entry: Dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "level": level,
        "event": event,
    }
    if task_id is not None:
        entry["task_id"] = task_id
    if user_id is not None:
        entry["user_id"] = user_id
    entry.update(extra)
    return entry


def log_transition_decision(
    from_status: str,
    to_status: str,
    user_id: str,
    role: str,
    valid: bool,
    task_id: Optional[str] = None,
    code: Optional[str] = None,
    error: Optional[str] = None,
) -> LogEntry:
    """Build an entry for a transition verdict. Denials go to the security file."""
    data = _base_entry(
        event="transition_allowed" if valid else "transition_denied",
        level="INFO" if valid else "WARNING",
        task_id=task_id,
        user_id=user_id,
        from_status=from_status,
        to_status=to_status,
        role=role,
        valid=valid,
    )
    if code:
        data["code"] = code
    if error:
        data["error"] = error
    return LogEntry("transitions", "execution" if valid else "security", data)


def log_permission_denied(
    role: str,
    permission: str,
    user_id: Optional[str] = None,
    task_id: Optional[str] = None,
) -> LogEntry:
    data = _base_entry(
        event="permission_denied",
        level="WARNING",
        task_id=task_id,
        user_id=user_id,
        role=role,
        permission=permission,
    )
    return LogEntry("permissions", "security", data)


def log_score_calculation(
    user_id: str,
    scores: Dict[str, float],
    window_start: Any,
    window_end: Any,
    duration_ms: Optional[float] = None,
) -> LogEntry:
    """Build an entry for one productivity run."""
    data = _base_entry(
        event="productivity_calculated",
        level="INFO",
        user_id=user_id,
        scores=scores,
        window_start=window_start,
        window_end=window_end,
    )
    if duration_ms is not None:
        data["duration_ms"] = duration_ms
    return LogEntry("scoring", "execution", data)


def log_system_event(
    event: str,
    level: str = "INFO",
    details: Optional[Dict[str, Any]] = None,
) -> LogEntry:
    """Build a system event entry (config reloads and the like)."""
    data = _base_entry(event=event, level=level)
    if details:
        data["details"] = details
    return LogEntry("system", "execution", data)


def configure_logging(level: str = "INFO") -> None:
    """Set the level of the taskflow logger tree."""
    logging.getLogger("taskflow").setLevel(level.upper())
