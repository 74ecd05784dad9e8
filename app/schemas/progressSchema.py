from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field

from app.constants.constants import InsightSeverity, InsightType, RiskBand, TaskStatus


class SubmissionRecord(BaseModel):
    """Submission row as read for scoring."""
    submission_id: str
    task_id: str
    submitted_by: str
    submitted_at: datetime
    submission_text: Optional[str] = None


class TaskRecord(BaseModel):
    """Task row joined with its submissions, oldest first."""
    task_id: str
    team_id: str
    status: TaskStatus
    due_date: Optional[datetime] = None
    assigned_to: Optional[str] = None
    created_by: Optional[str] = None
    updated_at: Optional[datetime] = None
    submissions: List[SubmissionRecord] = Field(default_factory=list)

    @property
    def latest_submitted_at(self) -> Optional[datetime]:
        if not self.submissions:
            return None
        return max(s.submitted_at for s in self.submissions)


class RiskReason(BaseModel):
    """One structured, human-readable reason attached to a metrics row."""
    type: str
    severity: str
    message: str
    recommendation: str


class TeamMetricsResult(BaseModel):
    """Computed metrics for one team and one week window."""
    team_id: str
    week_start: datetime
    week_end: datetime
    timeliness: int = Field(0, ge=0, le=100)
    velocity: int = Field(0, ge=0)
    engagement: int = Field(0, ge=0, le=100)
    work_balance: int = Field(0, ge=0, le=100)
    rework: int = Field(0, ge=0, le=100)
    scope_remaining: int = Field(0, ge=0, le=100)
    progress_score: int = Field(0, ge=0, le=100)
    risk_score: int = Field(0, ge=0, le=100)
    risk_band: RiskBand
    risk_reasons: List[RiskReason] = Field(default_factory=list)
    total_tasks: int = 0
    completed_tasks: int = 0
    overdue_tasks: int = 0
    active_members: int = 0
    updated_at: Optional[datetime] = None


class TeamInsightCreate(BaseModel):
    """Insight derived from a high or medium severity reason."""
    team_id: str
    insight_type: InsightType
    severity: InsightSeverity
    title: str
    description: str
    recommendations: List[str] = Field(default_factory=list)


class TeamInsightResponse(BaseModel):
    insight_id: str
    team_id: str
    insight_type: InsightType
    severity: InsightSeverity
    title: str
    description: Optional[str]
    recommendations: List[str]
    is_active: bool
    created_at: datetime
    resolved_at: Optional[datetime] = None


class ProcessAllResult(BaseModel):
    """Outcome of one batch run over every team."""
    processed: int
    total: int
    week_start: datetime
    week_end: datetime


class ProgressRunResponse(BaseModel):
    message: str
    processed: int
    total: int


class MetricsHistoryPoint(BaseModel):
    week_start: datetime
    progress_score: int
    risk_score: int
    risk_band: RiskBand
    completed_tasks: int
    total_tasks: int


class SchedulerJobStatus(BaseModel):
    name: str
    running: bool
    next_run: Optional[datetime] = None
    last_run: Optional[datetime] = None
    last_error: Optional[str] = None
