"""
Productivity Scoring Engine — four pillar scores and a weighted composite.

Pillars (each a float in [0, 1], rounded to SCORE_PRECISION places):

    output       weighted completed-task points against a workday-scaled target
    quality      penalises rework (REOPENED events) and estimate overruns
    reliability  on-time completion, discounted for carried-forward tasks
    consistency  steadiness of completions across the window's weekly periods

All functions are pure. Degenerate input (no tasks, zero target, a window
without workdays) yields a defined value rather than an exception:

    output 0.0, quality 1.0, reliability 1.0, consistency 0.0

Datetimes may be naive or aware; naive values are read as UTC.
"""

from __future__ import annotations

import statistics
from collections import defaultdict
from datetime import date, datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

from taskflow.engine.config import ScoringWeights
from taskflow.productivity.models import (
    ConsistencyResult,
    OutputResult,
    QualityResult,
    ReliabilityResult,
    ScoredTask,
    StatusTransition,
)
from taskflow.workflow.statuses import TaskPriority, TaskSize, TaskStatus

DateLike = Union[date, datetime]

SCORE_PRECISION = 3

SIZE_WEIGHTS: Dict[TaskSize, int] = {
    TaskSize.SMALL: 1,
    TaskSize.MEDIUM: 2,
    TaskSize.LARGE: 4,
    TaskSize.XLARGE: 8,
}

PRIORITY_MULTIPLIERS: Dict[TaskPriority, float] = {
    TaskPriority.URGENT_IMPORTANT: 1.5,
    TaskPriority.URGENT_NOT_IMPORTANT: 1.0,
    TaskPriority.NOT_URGENT_IMPORTANT: 1.0,
    TaskPriority.NOT_URGENT_NOT_IMPORTANT: 1.0,
}

WORKDAYS_PER_WEEK = 5

# Quality
REOPEN_DECAY = 0.75
OVERRUN_PENALTY = 0.5

# Reliability
CARRY_FORWARD_DECAY = 0.5
ON_TIME_WEIGHT = 0.65
CARRY_FORWARD_WEIGHT = 0.35

NEUTRAL_QUALITY = 1.0
NEUTRAL_RELIABILITY = 1.0

DEFAULT_WEIGHTS = ScoringWeights()


def _round(value: float) -> float:
    return round(value, SCORE_PRECISION)


def to_utc(value: datetime) -> datetime:
    """Aware UTC datetime. Naive values are taken to already be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _as_date(value: DateLike) -> date:
    if isinstance(value, datetime):
        return to_utc(value).date()
    return value


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def get_workday_count(start: DateLike, end: DateLike) -> int:
    """
    Count Monday-Friday dates in [start, end], inclusive of both ends.
    Datetimes are reduced to their (UTC) date. start > end gives 0.
    """
    start_d, end_d = _as_date(start), _as_date(end)
    if start_d > end_d:
        return 0

    total_days = (end_d - start_d).days + 1
    full_weeks, extra_days = divmod(total_days, 7)
    count = full_weeks * WORKDAYS_PER_WEEK
    first_weekday = start_d.weekday()
    for offset in range(extra_days):
        if (first_weekday + offset) % 7 < 5:
            count += 1
    return count


def task_points(task: ScoredTask) -> float:
    """Size weight times priority multiplier."""
    return SIZE_WEIGHTS[TaskSize(task.size)] * PRIORITY_MULTIPLIERS[TaskPriority(task.priority)]


def group_history_by_task(
    history: Iterable[StatusTransition],
) -> Dict[str, List[StatusTransition]]:
    """Bucket history rows by task, each bucket in chronological order."""
    grouped: Dict[str, List[StatusTransition]] = defaultdict(list)
    for row in history:
        grouped[row.task_id].append(row)
    for rows in grouped.values():
        rows.sort(key=lambda r: to_utc(r.created_at))
    return dict(grouped)


def is_on_time(task: ScoredTask) -> bool:
    """Completed no later than the deadline. Tasks without a deadline cannot be late."""
    if task.completed_at is None:
        return False
    if task.deadline is None:
        return True
    return to_utc(task.completed_at) <= to_utc(task.deadline)


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------

def calculate_output_score(
    completed_tasks: Sequence[ScoredTask],
    weekly_target: int,
    window_start: DateLike,
    window_end: DateLike,
) -> OutputResult:
    """
    points / target, capped at 1.0.

    The weekly target is scaled by workdays in the window, so a 28-day window
    with 20 workdays expects four weeks' worth of points.
    """
    points = sum(task_points(t) for t in completed_tasks)
    workdays = get_workday_count(window_start, window_end)
    target = max(weekly_target, 0) * workdays / WORKDAYS_PER_WEEK

    if target <= 0:
        return OutputResult(score=0.0, points=points, target=0.0)

    return OutputResult(
        score=_round(min(1.0, points / target)),
        points=points,
        target=target,
    )


# ---------------------------------------------------------------------------
# Quality
# ---------------------------------------------------------------------------

def overrun_factor(task: ScoredTask) -> float:
    """1.0 when within estimate, shrinking linearly with the relative overrun."""
    if task.estimated_minutes <= 0 or task.actual_minutes <= task.estimated_minutes:
        return 1.0
    overrun = task.actual_minutes / task.estimated_minutes - 1.0
    return max(0.0, 1.0 - OVERRUN_PENALTY * overrun)


def calculate_quality_score(
    completed_tasks: Sequence[ScoredTask],
    status_history: Iterable[StatusTransition],
) -> QualityResult:
    """
    Mean per-task quality, where a task scores
    REOPEN_DECAY ** (number of REOPENED events) * overrun_factor(task).

    First-pass rate (reviewed tasks never sent back) and retention rate
    (tasks never reopened after being closed) are reported alongside.
    """
    if not completed_tasks:
        return QualityResult(
            score=NEUTRAL_QUALITY, first_pass_rate=1.0, retention_rate=1.0, reopen_events=0,
        )

    by_task = group_history_by_task(status_history)

    total_quality = 0.0
    reopen_events = 0
    reviewed = 0
    first_pass = 0
    reopened_after_close = 0

    for task in completed_tasks:
        rows = by_task.get(task.id, [])
        reopens = sum(1 for r in rows if r.to_status == TaskStatus.REOPENED)
        reopen_events += reopens
        total_quality += (REOPEN_DECAY ** reopens) * overrun_factor(task)

        if task.requires_review:
            reviewed += 1
            if reopens == 0:
                first_pass += 1
        if any(
            r.from_status == TaskStatus.CLOSED_APPROVED and r.to_status == TaskStatus.REOPENED
            for r in rows
        ):
            reopened_after_close += 1

    count = len(completed_tasks)
    return QualityResult(
        score=_round(total_quality / count),
        first_pass_rate=first_pass / reviewed if reviewed else 1.0,
        retention_rate=1.0 - reopened_after_close / count,
        reopen_events=reopen_events,
        first_pass_count=first_pass,
        reopened_count=reopened_after_close,
    )


# ---------------------------------------------------------------------------
# Reliability
# ---------------------------------------------------------------------------

def calculate_reliability_score(
    completed_tasks: Sequence[ScoredTask],
    all_tasks: Optional[Sequence[ScoredTask]] = None,
) -> ReliabilityResult:
    """
    ON_TIME_WEIGHT * on-time rate + CARRY_FORWARD_WEIGHT * carry-forward score.

    An on-time task earns CARRY_FORWARD_DECAY ** carry_forward_count credit,
    so a task that only met its latest, pushed-back deadline counts for less.
    The carry-forward score compares total carry-forwards with the number of
    tasks the user holds (all_tasks, defaulting to completed_tasks).
    """
    if not completed_tasks:
        return ReliabilityResult(
            score=NEUTRAL_RELIABILITY, on_time_rate=1.0, carry_forward_score=1.0,
        )

    population = list(all_tasks) if all_tasks is not None else list(completed_tasks)

    credit = 0.0
    on_time_count = 0
    for task in completed_tasks:
        if is_on_time(task):
            on_time_count += 1
            credit += CARRY_FORWARD_DECAY ** max(task.carry_forward_count, 0)
    on_time_rate = credit / len(completed_tasks)

    carry_forward_total = sum(max(t.carry_forward_count, 0) for t in population)
    if population:
        carry_forward_score = 1.0 - min(1.0, carry_forward_total / len(population))
    else:
        carry_forward_score = 1.0

    score = ON_TIME_WEIGHT * on_time_rate + CARRY_FORWARD_WEIGHT * carry_forward_score
    return ReliabilityResult(
        score=_round(score),
        on_time_rate=on_time_rate,
        carry_forward_score=carry_forward_score,
        on_time_count=on_time_count,
        carry_forward_total=carry_forward_total,
    )


# ---------------------------------------------------------------------------
# Consistency
# ---------------------------------------------------------------------------

def window_periods(window_start: DateLike, window_end: DateLike) -> List[Tuple[date, date]]:
    """
    Consecutive 7-day periods from window_start.

    A trailing period shorter than 7 days is dropped so every period
    compared holds a full week of workdays. A window shorter than a week is
    a single period, kept only if it contains a workday.
    """
    start, end = _as_date(window_start), _as_date(window_end)
    if start > end:
        return []

    periods: List[Tuple[date, date]] = []
    current = start
    while current + timedelta(days=6) <= end:
        periods.append((current, current + timedelta(days=6)))
        current += timedelta(days=7)

    if not periods and get_workday_count(start, end) > 0:
        periods.append((start, end))
    return periods


def calculate_consistency_score(
    completed_tasks: Sequence[ScoredTask],
    window_start: DateLike,
    window_end: DateLike,
) -> ConsistencyResult:
    """
    1 - coefficient of variation of completions per weekly period, floored at 0.
    Even output scores 1.0; bursts and idle weeks pull it down; no output is 0.
    """
    periods = window_periods(window_start, window_end)
    if not periods:
        return ConsistencyResult(score=0.0)

    counts = [0] * len(periods)
    for task in completed_tasks:
        if task.completed_at is None:
            continue
        done = _as_date(task.completed_at)
        for i, (p_start, p_end) in enumerate(periods):
            if p_start <= done <= p_end:
                counts[i] += 1
                break

    mean = sum(counts) / len(counts)
    if mean == 0:
        return ConsistencyResult(score=0.0, period_counts=tuple(counts))

    variation = statistics.pstdev(counts) / mean
    return ConsistencyResult(
        score=_round(max(0.0, 1.0 - variation)),
        period_counts=tuple(counts),
        variation=variation,
    )


# ---------------------------------------------------------------------------
# Composite
# ---------------------------------------------------------------------------

def calculate_composite(
    output: float,
    quality: float,
    reliability: float,
    consistency: float,
    weights: ScoringWeights = DEFAULT_WEIGHTS,
) -> float:
    composite = (
        output * weights.output
        + quality * weights.quality
        + reliability * weights.reliability
        + consistency * weights.consistency
    )
    return _round(composite)
