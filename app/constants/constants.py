"""Constants for user roles, task statuses, risk bands, reason types and insight types."""

from enum import Enum


class UserRole(str, Enum):
    """Enumeration of user roles on the classroom platform."""

    teacher = "teacher"
    student = "student"
    admin = "admin"

class TaskStatus(str, Enum):
    """Enumeration of task statuses."""

    pending = "pending"
    in_progress = "in_progress"
    completed = "completed"
    postponed = "postponed"

class RiskBand(str, Enum):
    """Enumeration of team risk bands."""

    green = "green"
    yellow = "yellow"
    red = "red"

class ReasonType(str, Enum):
    """Enumeration of risk reason types attached to a metrics row."""

    timeliness = "timeliness"
    velocity = "velocity"
    engagement = "engagement"
    work_balance = "work_balance"
    rework = "rework"
    scope = "scope"
    on_track = "on_track"
    no_data = "no_data"

class ReasonSeverity(str, Enum):
    """Enumeration of risk reason severities."""

    high = "high"
    medium = "medium"
    low = "low"
    none = "none"

class InsightType(str, Enum):
    """Enumeration of persisted insight types."""

    falling_behind = "falling_behind"
    at_risk = "at_risk"
    low_engagement = "low_engagement"
    work_imbalance = "work_imbalance"
    on_track = "on_track"

class InsightSeverity(str, Enum):
    """Enumeration of persisted insight severities."""

    warning = "warning"
    critical = "critical"


PROGRESS_MANAGER_ROLES = [UserRole.teacher, UserRole.admin]

# Progress score weights
TIMELINESS_WEIGHT = 0.30
VELOCITY_WEIGHT = 0.20
ENGAGEMENT_WEIGHT = 0.25
COMPLETION_WEIGHT = 0.25
VELOCITY_POINTS_PER_TASK = 20  # 5 completed tasks/week == 100

# Engagement weights and ceilings
MESSAGE_ENGAGEMENT_WEIGHT = 30
SUBMISSION_ENGAGEMENT_WEIGHT = 70
MESSAGES_PER_MEMBER_TARGET = 5
SUBMISSIONS_PER_MEMBER_TARGET = 1

# Risk band breakpoints
RED_BAND_THRESHOLD = 70
YELLOW_BAND_THRESHOLD = 40

# Risk reason thresholds
TIMELINESS_THRESHOLD = 60
VELOCITY_THRESHOLD = 2
ENGAGEMENT_THRESHOLD = 50
WORK_BALANCE_THRESHOLD = 35
REWORK_THRESHOLD = 30
SCOPE_REMAINING_THRESHOLD = 70

REASON_TO_INSIGHT_TYPE = {
    ReasonType.timeliness.value: InsightType.falling_behind,
    ReasonType.velocity.value: InsightType.at_risk,
    ReasonType.engagement.value: InsightType.low_engagement,
    ReasonType.work_balance.value: InsightType.work_imbalance,
    ReasonType.scope.value: InsightType.at_risk,
    ReasonType.on_track.value: InsightType.on_track,
}

# Weekday numbers follow datetime.weekday() (Monday == 0)
WEEKDAY_NAMES = {
    "monday": 0,
    "tuesday": 1,
    "wednesday": 2,
    "thursday": 3,
    "friday": 4,
    "saturday": 5,
    "sunday": 6,
}
