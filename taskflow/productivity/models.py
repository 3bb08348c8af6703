"""Value types consumed and produced by the scoring engine."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from taskflow.workflow.statuses import TaskPriority, TaskSize, TaskStatus


@dataclass(frozen=True)
class ScoredTask:
    """Projection of a Task row with only the fields scoring needs."""
    id: str
    status: TaskStatus
    size: TaskSize = TaskSize.MEDIUM
    priority: TaskPriority = TaskPriority.NOT_URGENT_IMPORTANT
    completed_at: Optional[datetime] = None
    deadline: Optional[datetime] = None
    estimated_minutes: int = 0
    actual_minutes: int = 0
    requires_review: bool = True
    kpi_bucket_id: Optional[str] = None
    carry_forward_count: int = 0


@dataclass(frozen=True)
class StatusTransition:
    """One row of a task's status history. from_status is None on creation."""
    task_id: str
    from_status: Optional[TaskStatus]
    to_status: TaskStatus
    created_at: datetime
    reason: Optional[str] = None


@dataclass(frozen=True)
class OutputResult:
    score: float
    points: float
    target: float


@dataclass(frozen=True)
class QualityResult:
    score: float
    first_pass_rate: float
    retention_rate: float  # share of completed tasks never reopened after closing
    reopen_events: int
    first_pass_count: int = 0
    reopened_count: int = 0


@dataclass(frozen=True)
class ReliabilityResult:
    score: float
    on_time_rate: float
    carry_forward_score: float
    on_time_count: int = 0
    carry_forward_total: int = 0


@dataclass(frozen=True)
class ConsistencyResult:
    score: float
    period_counts: Tuple[int, ...] = ()
    variation: float = 0.0


@dataclass(frozen=True)
class ProductivityMeta:
    total_points: float
    target_points: float
    completed_task_count: int
    reviewed_task_count: int
    first_pass_count: int
    reopened_count: int
    review_ratio: float
    on_time_count: int
    carry_forward_total: int
    active_task_count: int
    total_workdays: int
    active_kpi_buckets: int


@dataclass(frozen=True)
class ProductivityResult:
    output: float
    quality: float
    reliability: float
    consistency: float
    composite: float
    window_start: datetime
    window_end: datetime
    meta: ProductivityMeta

    @property
    def pillars(self) -> Dict[str, float]:
        return {
            "output": self.output,
            "quality": self.quality,
            "reliability": self.reliability,
            "consistency": self.consistency,
        }

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class BatchResult:
    """Outcome of scoring many users; one failure does not stop the batch."""
    results: Dict[str, ProductivityResult] = field(default_factory=dict)
    errors: List[str] = field(default_factory=list)

    @property
    def processed(self) -> int:
        return len(self.results)
