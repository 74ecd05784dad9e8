"""
Metric calculators for team progress tracking.

Each calculator reduces a team's raw records to one bounded dimension.
Results are integers rounded half up, so x.5 always goes to the larger score.
"""

import math
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Sequence

import numpy as np

from app.constants.constants import (
    MESSAGE_ENGAGEMENT_WEIGHT,
    MESSAGES_PER_MEMBER_TARGET,
    SUBMISSION_ENGAGEMENT_WEIGHT,
    SUBMISSIONS_PER_MEMBER_TARGET,
    TaskStatus,
)
from app.schemas.progressSchema import TaskRecord
from app.utils.progress.week_window import as_naive_utc


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up."""
    return int(math.floor(value + 0.5))


def _percentage(part: int, whole: int) -> int:
    if whole == 0:
        return 0
    return round_half_up(part / whole * 100)


def _completed(tasks: Iterable[TaskRecord]) -> List[TaskRecord]:
    return [t for t in tasks if t.status == TaskStatus.completed]


def calculate_timeliness(tasks: Sequence[TaskRecord]) -> int:
    """
    Percentage of completed tasks whose most recent submission is on or
    before the due date. Tasks without a due date count as on time.
    """
    completed_tasks = _completed(tasks)
    if not completed_tasks:
        return 0

    on_time_count = 0
    for task in completed_tasks:
        if task.due_date is None:
            on_time_count += 1
            continue

        submitted_at = task.latest_submitted_at
        if submitted_at and as_naive_utc(submitted_at) <= as_naive_utc(task.due_date):
            on_time_count += 1

    return _percentage(on_time_count, len(completed_tasks))


def calculate_velocity(tasks: Sequence[TaskRecord], week_start: datetime, week_end: datetime) -> int:
    """Number of tasks completed inside the week window (by last update)."""
    return sum(
        1 for t in _completed(tasks)
        if t.updated_at and week_start <= as_naive_utc(t.updated_at) <= week_end
    )


def calculate_engagement(message_count: int, submission_count: int, member_count: int) -> int:
    """
    Engagement score from chat and submission activity.

    Messages weigh 30% (full marks at 5 messages per member), submissions
    weigh 70% (full marks at 1 submission per member).
    """
    members = member_count or 1

    message_score = min(
        message_count / (members * MESSAGES_PER_MEMBER_TARGET) * MESSAGE_ENGAGEMENT_WEIGHT,
        MESSAGE_ENGAGEMENT_WEIGHT
    )
    submission_score = min(
        submission_count / (members * SUBMISSIONS_PER_MEMBER_TARGET) * SUBMISSION_ENGAGEMENT_WEIGHT,
        SUBMISSION_ENGAGEMENT_WEIGHT
    )

    return round_half_up(message_score + submission_score)


def calculate_gini(values: Sequence[float]) -> float:
    """
    Gini coefficient of a distribution.

    0 means perfect equality; the maximum for n values is (n - 1) / n.
    """
    n = len(values)
    if n <= 1:
        return 0.0

    ordered = np.sort(np.asarray(values, dtype=float))
    total = ordered.sum()
    if total == 0:
        return 0.0

    ranks = np.arange(1, n + 1)
    numerator = np.sum((2 * ranks - n - 1) * ordered)

    return float(numerator / (n * total))


def calculate_work_balance(member_submission_counts: Sequence[int]) -> int:
    """Gini of per-member submission counts scaled to 0-100 (lower is more even)."""
    if len(member_submission_counts) <= 1:
        return 0
    return round_half_up(calculate_gini(member_submission_counts) * 100)


def calculate_rework(tasks: Sequence[TaskRecord]) -> int:
    """Percentage of tasks that were submitted more than once."""
    resubmitted = sum(1 for t in tasks if len(t.submissions) > 1)
    return _percentage(resubmitted, len(tasks))


def calculate_scope_remaining(tasks: Sequence[TaskRecord]) -> int:
    """Percentage of tasks not yet completed."""
    incomplete = len(tasks) - len(_completed(tasks))
    return _percentage(incomplete, len(tasks))


def count_overdue_tasks(tasks: Sequence[TaskRecord], now: Optional[datetime] = None) -> int:
    """Tasks past their due date that are not completed."""
    current = as_naive_utc(now or datetime.now(timezone.utc))
    return sum(
        1 for t in tasks
        if t.due_date and as_naive_utc(t.due_date) < current and t.status != TaskStatus.completed
    )
