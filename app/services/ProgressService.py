"""Progress Service - team progress tracking, risk scoring and insights."""

import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.constants.constants import RiskBand, TaskStatus
from app.models.base import utc_now
from app.schemas.progressSchema import ProcessAllResult, TeamInsightCreate, TeamMetricsResult
from app.services.MetricsStore import MetricsStore
from app.services.ProgressDataSource import ProgressDataSource, SQLAlchemyProgressDataSource
from app.utils.progress.calculate_metrics import (
    calculate_engagement,
    calculate_rework,
    calculate_scope_remaining,
    calculate_timeliness,
    calculate_velocity,
    calculate_work_balance,
    count_overdue_tasks,
)
from app.utils.progress.calculate_scores import calculate_progress_score, calculate_risk_score, get_risk_band
from app.utils.progress.generate_risk_reasons import NO_DATA_REASON, build_insights, generate_risk_reasons
from app.utils.progress.week_window import as_naive_utc, get_week_window

logger = logging.getLogger(__name__)


class ProgressService:
    """
    Calculates progress metrics, risk scores and insights for teams.

    The service holds no state of its own: reads go through the injected
    ProgressDataSource and writes through the injected MetricsStore.
    """

    def __init__(self, data_source: ProgressDataSource, store: MetricsStore):
        self.data_source = data_source
        self.store = store

    def get_default_metrics(self, team_id: str, week_start: datetime, week_end: datetime) -> TeamMetricsResult:
        """Fixed result for teams without any task data."""
        return TeamMetricsResult(
            team_id=team_id,
            week_start=week_start,
            week_end=week_end,
            timeliness=0,
            velocity=0,
            engagement=0,
            work_balance=0,
            rework=0,
            scope_remaining=100,
            progress_score=0,
            risk_score=100,
            risk_band=RiskBand.red,
            risk_reasons=[NO_DATA_REASON.model_copy()],
            total_tasks=0,
            completed_tasks=0,
            overdue_tasks=0,
            active_members=0
        )

    async def calculate_team_metrics(
        self,
        team_id: str,
        week_start: datetime,
        week_end: datetime
    ) -> TeamMetricsResult:
        """
        Calculate every progress dimension, the composite scores and the risk
        reasons for one team and week window.

        Args:
            team_id: Team to score
            week_start: Start of the week window
            week_end: End of the week window

        Returns:
            TeamMetricsResult: Computed metrics (not yet stored)
        """
        tasks = await self.data_source.get_team_tasks(team_id)

        if not tasks:
            return self.get_default_metrics(team_id, week_start, week_end)

        active_members = await self.data_source.count_active_members(team_id)
        message_count = await self.data_source.count_team_messages(team_id, week_start, week_end)
        submission_count = await self.data_source.count_team_submissions(team_id, week_start, week_end)
        member_submissions = await self.data_source.get_member_submission_counts(team_id)

        timeliness = calculate_timeliness(tasks)
        velocity = calculate_velocity(tasks, week_start, week_end)
        engagement = calculate_engagement(message_count, submission_count, active_members)
        work_balance = calculate_work_balance(member_submissions)
        rework = calculate_rework(tasks)
        scope_remaining = calculate_scope_remaining(tasks)
        # a past week counts what was overdue when it ended
        overdue_as_of = min(as_naive_utc(week_end), as_naive_utc(datetime.now(timezone.utc)))

        progress_score = calculate_progress_score(
            timeliness=timeliness,
            velocity=velocity,
            engagement=engagement,
            scope_remaining=scope_remaining
        )
        risk_score = calculate_risk_score(
            timeliness=timeliness,
            velocity=velocity,
            engagement=engagement,
            work_balance=work_balance,
            rework=rework,
            scope_remaining=scope_remaining
        )
        risk_reasons = generate_risk_reasons(
            timeliness=timeliness,
            velocity=velocity,
            engagement=engagement,
            work_balance=work_balance,
            rework=rework,
            scope_remaining=scope_remaining
        )

        return TeamMetricsResult(
            team_id=team_id,
            week_start=week_start,
            week_end=week_end,
            timeliness=timeliness,
            velocity=velocity,
            engagement=engagement,
            work_balance=work_balance,
            rework=rework,
            scope_remaining=scope_remaining,
            progress_score=progress_score,
            risk_score=risk_score,
            risk_band=get_risk_band(risk_score),
            risk_reasons=risk_reasons,
            total_tasks=len(tasks),
            completed_tasks=sum(1 for t in tasks if t.status == TaskStatus.completed),
            overdue_tasks=count_overdue_tasks(tasks, now=overdue_as_of),
            active_members=active_members
        )

    async def store_metrics(self, metrics: TeamMetricsResult) -> TeamMetricsResult:
        """Upsert the metrics row; returns it as stored (with updated_at)."""
        row = await self.store.upsert_metrics(metrics)
        return metrics.model_copy(update={"updated_at": row.updated_at})

    async def generate_insights(self, team_id: str, metrics: TeamMetricsResult) -> List[TeamInsightCreate]:
        """Persist an insight for every high or medium severity risk reason."""
        insights = build_insights(team_id, metrics.risk_reasons)

        for insight in insights:
            await self.store.add_insight(insight)

        return insights

    async def process_team(
        self,
        team_id: str,
        week_start: Optional[datetime] = None,
        week_end: Optional[datetime] = None
    ) -> TeamMetricsResult:
        """
        Run the full pipeline for one team (calculate, store, insights) and
        commit it. Failures roll the team's work back and propagate.
        """
        if week_start is None or week_end is None:
            week_start, week_end = get_week_window()

        try:
            metrics = await self.calculate_team_metrics(team_id, week_start, week_end)
            stored = await self.store_metrics(metrics)
            await self.generate_insights(team_id, stored)
            await self.store.commit()
            return stored
        except Exception:
            await self.store.rollback()
            raise

    async def process_all_teams(self, reference: Optional[datetime] = None) -> ProcessAllResult:
        """
        Process every team for the week containing `reference` (default now).

        Teams are handled one at a time; a failing team is logged and skipped
        and never affects teams already committed.
        """
        week_start, week_end = get_week_window(reference)
        logger.info(f"📊 Processing all teams for week: {week_start.date()} - {week_end.date()}")

        team_ids = await self.data_source.list_team_ids()
        logger.info(f"Found {len(team_ids)} teams to process")

        processed = 0
        for team_id in team_ids:
            try:
                await self.process_team(team_id, week_start, week_end)
                processed += 1
            except Exception as e:
                logger.error(f"❌ Error processing team {team_id}: {e}")

        logger.info(f"✅ Successfully processed {processed}/{len(team_ids)} teams")

        return ProcessAllResult(
            processed=processed,
            total=len(team_ids),
            week_start=week_start,
            week_end=week_end
        )

    async def cleanup_old_insights(self, retention_days: int) -> int:
        """Delete insights resolved more than `retention_days` ago."""
        cutoff = utc_now() - timedelta(days=retention_days)
        deleted = await self.store.delete_resolved_insights(cutoff)
        await self.store.commit()
        logger.info(f"🗑️ Cleaned up {deleted} old insights")
        return deleted


def build_progress_service(db: AsyncSession) -> ProgressService:
    """Wire a ProgressService to the SQLAlchemy data source and store."""
    return ProgressService(
        data_source=SQLAlchemyProgressDataSource(db),
        store=MetricsStore(db)
    )
