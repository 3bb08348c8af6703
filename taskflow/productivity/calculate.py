"""
Productivity Run — score one user (or a batch of users) over a time window.

Selects the tasks that count for the window, feeds them through the four
pillar scorers in taskflow.productivity.scoring and assembles a
ProductivityResult with a meta breakdown.

    completed  status CLOSED_APPROVED and completed_at inside the window
    active     every other task that has left NEW

Usage:
    result = calculate_productivity(tasks, history, now=datetime.now(timezone.utc))
    result.composite, result.meta.total_points
"""

from __future__ import annotations

import logging
import time
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from taskflow.engine.config import TaskflowConfig, get_config
from taskflow.engine.logging import LogEntry, log_score_calculation
from taskflow.productivity.models import (
    BatchResult,
    ProductivityMeta,
    ProductivityResult,
    ScoredTask,
    StatusTransition,
)
from taskflow.productivity.scoring import (
    calculate_composite,
    calculate_consistency_score,
    calculate_output_score,
    calculate_quality_score,
    calculate_reliability_score,
    get_workday_count,
    to_utc,
)
from taskflow.workflow.statuses import TaskStatus

logger = logging.getLogger("taskflow.productivity.calculate")


def resolve_window(
    window_start: Optional[datetime],
    window_end: Optional[datetime],
    window_days: int,
    now: Optional[datetime] = None,
) -> Tuple[datetime, datetime]:
    """
    Fill in a missing window bound. The default window ends at now and
    starts at midnight UTC so that it spans exactly window_days dates,
    the end date included.
    """
    end = to_utc(window_end) if window_end else to_utc(now or datetime.now(timezone.utc))
    if window_start:
        return to_utc(window_start), end
    first_day = end.date() - timedelta(days=window_days - 1)
    return datetime(first_day.year, first_day.month, first_day.day, tzinfo=timezone.utc), end


def split_tasks(
    tasks: Iterable[ScoredTask],
    window_start: datetime,
    window_end: datetime,
) -> Tuple[List[ScoredTask], List[ScoredTask]]:
    """Partition tasks into (completed in window, active)."""
    completed: List[ScoredTask] = []
    active: List[ScoredTask] = []
    for task in tasks:
        if task.status == TaskStatus.CLOSED_APPROVED:
            if task.completed_at is not None and window_start <= to_utc(task.completed_at) <= window_end:
                completed.append(task)
        elif task.status != TaskStatus.NEW:
            active.append(task)
    return completed, active


def calculate_productivity(
    tasks: Sequence[ScoredTask],
    history: Iterable[StatusTransition],
    *,
    window_start: Optional[datetime] = None,
    window_end: Optional[datetime] = None,
    config: Optional[TaskflowConfig] = None,
    now: Optional[datetime] = None,
    user_id: Optional[str] = None,
) -> ProductivityResult:
    """
    Score a user's tasks over a window.

    Args:
        tasks: Every task the user owns, any status.
        history: Status history for those tasks. Rows for other tasks are ignored.
        window_start / window_end: Window bounds; default is the configured
            window_days ending at now.
        config: Overrides the cached taskflow.yaml config.
        now: Reference time for the default window.
        user_id: Only used for logging.
    """
    started = time.monotonic()
    scoring = (config or get_config()).scoring

    start, end = resolve_window(window_start, window_end, scoring.window_days, now)
    completed, active = split_tasks(tasks, start, end)

    completed_ids = {t.id for t in completed}
    relevant_history = sorted(
        (row for row in history if row.task_id in completed_ids),
        key=lambda row: to_utc(row.created_at),
    )

    output = calculate_output_score(completed, scoring.weekly_output_target, start, end)
    quality = calculate_quality_score(completed, relevant_history)
    reliability = calculate_reliability_score(completed, completed + active)
    consistency = calculate_consistency_score(completed, start, end)
    composite = calculate_composite(
        output.score, quality.score, reliability.score, consistency.score, scoring.weights,
    )

    reviewed = sum(1 for t in completed if t.requires_review)
    kpi_buckets = {t.kpi_bucket_id for t in completed + active if t.kpi_bucket_id}

    meta = ProductivityMeta(
        total_points=output.points,
        target_points=output.target,
        completed_task_count=len(completed),
        reviewed_task_count=reviewed,
        first_pass_count=quality.first_pass_count,
        reopened_count=quality.reopened_count,
        review_ratio=reviewed / len(completed) if completed else 0.0,
        on_time_count=reliability.on_time_count,
        carry_forward_total=reliability.carry_forward_total,
        active_task_count=len(active),
        total_workdays=get_workday_count(start, end),
        active_kpi_buckets=len(kpi_buckets),
    )

    result = ProductivityResult(
        output=output.score,
        quality=quality.score,
        reliability=reliability.score,
        consistency=consistency.score,
        composite=composite,
        window_start=start,
        window_end=end,
        meta=meta,
    )

    duration_ms = (time.monotonic() - started) * 1000
    logger.info(
        f"Productivity for {user_id or '<anonymous>'}: composite={composite} "
        f"({len(completed)} completed, {len(active)} active) in {duration_ms:.1f}ms"
    )
    return result


def score_log_entry(
    user_id: str,
    result: ProductivityResult,
    duration_ms: Optional[float] = None,
) -> LogEntry:
    """Structured entry for a finished run, ready for FileLogger.write."""
    scores = dict(result.pillars)
    scores["composite"] = result.composite
    return log_score_calculation(
        user_id=user_id,
        scores=scores,
        window_start=result.window_start.isoformat(),
        window_end=result.window_end.isoformat(),
        duration_ms=duration_ms,
    )


def calculate_for_users(
    tasks_by_user: Mapping[str, Sequence[ScoredTask]],
    history: Iterable[StatusTransition],
    **kwargs,
) -> BatchResult:
    """
    Run calculate_productivity for every user. A failure for one user is
    recorded in BatchResult.errors and the batch moves on.

    Each run is labelled with its tasks_by_user key; a user_id keyword is ignored.
    """
    if kwargs.pop("user_id", None) is not None:
        logger.warning("calculate_for_users ignores user_id; keys of tasks_by_user are used")

    rows = list(history)
    by_task: Dict[str, List[StatusTransition]] = {}
    for row in rows:
        by_task.setdefault(row.task_id, []).append(row)

    batch = BatchResult()
    for user_id, tasks in tasks_by_user.items():
        user_history = [row for t in tasks for row in by_task.get(t.id, [])]
        try:
            batch.results[user_id] = calculate_productivity(
                tasks, user_history, user_id=user_id, **kwargs,
            )
        except Exception as e:
            logger.error(f"Productivity calculation failed for {user_id}: {e}")
            batch.errors.append(f"{user_id}: {e}")

    logger.info(
        f"Productivity batch: {batch.processed} scored, {len(batch.errors)} failed"
    )
    return batch
