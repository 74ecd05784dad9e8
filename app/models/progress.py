"""Team progress metrics and insight models."""

import uuid
from sqlalchemy import Boolean, Column, DateTime, Enum as SQLEnum, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from app.constants.constants import InsightSeverity, InsightType, RiskBand
from app.models.base import Base, TimestampMixin, utc_now


class TeamMetrics(Base, TimestampMixin):
    """One computed metrics row per team per week."""

    __tablename__ = "team_metrics"
    __table_args__ = (
        UniqueConstraint("team_id", "week_start", name="uq_team_metrics_team_week"),
    )

    metric_id = Column(String, primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    team_id = Column(String, ForeignKey("teams.team_id"), nullable=False, index=True)
    week_start = Column(DateTime, nullable=False)
    week_end = Column(DateTime, nullable=False)
    timeliness = Column(Integer, default=0, nullable=False)
    velocity = Column(Integer, default=0, nullable=False)
    engagement = Column(Integer, default=0, nullable=False)
    work_balance = Column(Integer, default=0, nullable=False)
    rework = Column(Integer, default=0, nullable=False)
    scope_remaining = Column(Integer, default=0, nullable=False)
    progress_score = Column(Integer, default=0, nullable=False)
    risk_score = Column(Integer, default=0, nullable=False)
    risk_band = Column(SQLEnum(RiskBand), default=RiskBand.green, nullable=False)
    risk_reasons = Column(Text, nullable=True)  # JSON list of reason objects
    total_tasks = Column(Integer, default=0, nullable=False)
    completed_tasks = Column(Integer, default=0, nullable=False)
    overdue_tasks = Column(Integer, default=0, nullable=False)
    active_members = Column(Integer, default=0, nullable=False)
    team = relationship("Team", back_populates="metrics")


class TeamInsight(Base):
    """Severity-tagged narrative record describing a team risk condition."""

    __tablename__ = "team_insights"
    insight_id = Column(String, primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    team_id = Column(String, ForeignKey("teams.team_id"), nullable=False, index=True)
    insight_type = Column(SQLEnum(InsightType), nullable=False)
    severity = Column(SQLEnum(InsightSeverity), nullable=False)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    recommendations = Column(Text, nullable=True)  # JSON list of strings
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=utc_now, nullable=False)
    resolved_at = Column(DateTime, nullable=True)
    team = relationship("Team", back_populates="insights")
