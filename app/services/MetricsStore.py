"""Persistence for computed team metrics and insights."""

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import and_, case, delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from tenacity import retry, retry_if_exception_type, stop_after_attempt

from app.constants.constants import InsightSeverity
from app.models.base import utc_now
from app.models.progress import TeamInsight, TeamMetrics
from app.models.team import Team
from app.schemas.progressSchema import TeamInsightCreate, TeamInsightResponse, TeamMetricsResult
from app.utils.progress.reason_codec import (
    decode_recommendations,
    decode_risk_reasons,
    encode_recommendations,
    encode_risk_reasons,
)

logger = logging.getLogger(__name__)

METRIC_FIELDS = [
    "week_end",
    "timeliness",
    "velocity",
    "engagement",
    "work_balance",
    "rework",
    "scope_remaining",
    "progress_score",
    "risk_score",
    "risk_band",
    "total_tasks",
    "completed_tasks",
    "overdue_tasks",
    "active_members",
]


class MetricsStore:
    """Upserts one TeamMetrics row per (team, week) and appends insights."""

    def __init__(self, db: AsyncSession):
        self.db = db

    @staticmethod
    def to_result(row: TeamMetrics) -> TeamMetricsResult:
        """Convert a stored row, decoding its risk reasons defensively."""
        return TeamMetricsResult(
            team_id=row.team_id,
            week_start=row.week_start,
            risk_reasons=decode_risk_reasons(row.risk_reasons),
            updated_at=row.updated_at,
            **{field: getattr(row, field) for field in METRIC_FIELDS}
        )

    @staticmethod
    def to_insight_response(row: TeamInsight) -> TeamInsightResponse:
        return TeamInsightResponse(
            insight_id=row.insight_id,
            team_id=row.team_id,
            insight_type=row.insight_type,
            severity=row.severity,
            title=row.title,
            description=row.description,
            recommendations=decode_recommendations(row.recommendations),
            is_active=row.is_active,
            created_at=row.created_at,
            resolved_at=row.resolved_at
        )

    async def get_metrics_row(self, team_id: str, week_start: datetime) -> Optional[TeamMetrics]:
        result = await self.db.execute(
            select(TeamMetrics).where(
                and_(
                    TeamMetrics.team_id == team_id,
                    TeamMetrics.week_start == week_start
                )
            )
        )
        return result.scalar_one_or_none()

    @retry(
        retry=retry_if_exception_type(IntegrityError),
        stop=stop_after_attempt(2),
        reraise=True
    )
    async def upsert_metrics(self, metrics: TeamMetricsResult) -> TeamMetrics:
        """
        Insert the metrics row for (team, week_start) or overwrite every
        computed field of the existing one.

        A concurrent writer inserting the same key first makes the flush fail
        with IntegrityError; the session is rolled back and the call retried
        once, which then takes the update path.
        """
        try:
            row = await self.get_metrics_row(metrics.team_id, metrics.week_start)
            values = {field: getattr(metrics, field) for field in METRIC_FIELDS}
            values["risk_reasons"] = encode_risk_reasons(metrics.risk_reasons)

            if row is None:
                row = TeamMetrics(
                    team_id=metrics.team_id,
                    week_start=metrics.week_start,
                    **values
                )
                self.db.add(row)
            else:
                for field, value in values.items():
                    setattr(row, field, value)
                row.updated_at = utc_now()

            await self.db.flush()
            logger.info(f"✅ Metrics stored for team {metrics.team_id}")
            return row

        except IntegrityError:
            logger.warning(f"⚠️ Concurrent metrics insert for team {metrics.team_id}, retrying as update")
            await self.db.rollback()
            raise

    async def add_insight(self, insight: TeamInsightCreate) -> TeamInsight:
        row = TeamInsight(
            team_id=insight.team_id,
            insight_type=insight.insight_type,
            severity=insight.severity,
            title=insight.title,
            description=insight.description,
            recommendations=encode_recommendations(insight.recommendations),
            is_active=True
        )
        self.db.add(row)
        await self.db.flush()
        return row

    async def resolve_insight(self, insight_id: str) -> Optional[TeamInsight]:
        """Mark an insight resolved; already resolved insights keep their timestamp."""
        result = await self.db.execute(
            select(TeamInsight).where(TeamInsight.insight_id == insight_id)
        )
        row = result.scalar_one_or_none()
        if row is None:
            return None

        if row.resolved_at is None:
            row.resolved_at = utc_now()
            row.is_active = False
            await self.db.flush()
        return row

    async def delete_resolved_insights(self, older_than: datetime) -> int:
        """Delete insights resolved before the cutoff. Returns the number deleted."""
        result = await self.db.execute(
            delete(TeamInsight).where(
                and_(
                    TeamInsight.resolved_at.isnot(None),
                    TeamInsight.resolved_at < older_than
                )
            )
        )
        return result.rowcount or 0

    async def get_latest_metrics(self, team_id: str) -> Optional[TeamMetricsResult]:
        result = await self.db.execute(
            select(TeamMetrics)
            .where(TeamMetrics.team_id == team_id)
            .order_by(TeamMetrics.week_start.desc())
            .limit(1)
        )
        row = result.scalar_one_or_none()
        return self.to_result(row) if row else None

    async def get_metrics_history(self, team_id: str, since: datetime) -> List[TeamMetricsResult]:
        result = await self.db.execute(
            select(TeamMetrics)
            .where(
                and_(
                    TeamMetrics.team_id == team_id,
                    TeamMetrics.week_start >= since
                )
            )
            .order_by(TeamMetrics.week_start.asc())
        )
        return [self.to_result(row) for row in result.scalars().all()]

    @staticmethod
    def active_insights_query(team_id: str):
        """Active insights of a team, critical first, newest first within a severity."""
        # native enums sort by declaration order, so rank severity explicitly
        severity_rank = case((TeamInsight.severity == InsightSeverity.critical, 0), else_=1)
        return (
            select(TeamInsight)
            .where(
                and_(
                    TeamInsight.team_id == team_id,
                    TeamInsight.is_active == True
                )
            )
            .order_by(severity_rank, TeamInsight.created_at.desc())
        )

    async def get_active_insights(self, team_id: str) -> List[TeamInsightResponse]:
        result = await self.db.execute(self.active_insights_query(team_id))
        return [self.to_insight_response(row) for row in result.scalars().all()]

    async def list_class_teams(self, class_id: str) -> List[Team]:
        result = await self.db.execute(
            select(Team).where(Team.class_id == class_id).order_by(Team.name)
        )
        return list(result.scalars().all())

    async def commit(self):
        await self.db.commit()

    async def rollback(self):
        await self.db.rollback()
