"""Team progress tracking router for the classroom platform."""

import logging
from datetime import timedelta
from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import aget_db
from app.core.security import get_current_user, get_progress_manager
from app.constants.constants import RiskBand
from app.models.base import utc_now
from app.models.user import User
from app.schemas.progressSchema import MetricsHistoryPoint, ProgressRunResponse, TeamMetricsResult
from app.services.MetricsStore import MetricsStore
from app.services.ProgressService import ProgressService, build_progress_service
from app.utils.check_team_access import check_team_access

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/progress",
    tags=["progress"]
)

CLASS_HISTORY_WEEKS = 4
TEAM_HISTORY_WEEKS = 8
STUDENT_HISTORY_WEEKS = 4


async def get_progress_service(db: AsyncSession = Depends(aget_db)) -> ProgressService:
    return build_progress_service(db)


async def get_metrics_store(db: AsyncSession = Depends(aget_db)) -> MetricsStore:
    return MetricsStore(db)


def _history_point(metrics: TeamMetricsResult) -> MetricsHistoryPoint:
    return MetricsHistoryPoint(
        week_start=metrics.week_start,
        progress_score=metrics.progress_score,
        risk_score=metrics.risk_score,
        risk_band=metrics.risk_band,
        completed_tasks=metrics.completed_tasks,
        total_tasks=metrics.total_tasks
    )


async def _ensure_team_exists(service: ProgressService, team_id: str):
    if not await service.data_source.team_exists(team_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Team not found"
        )


# ========== TEACHER ENDPOINTS ==========

@router.get("/teacher/classes/{class_id}/progress")
async def get_class_progress(
    class_id: str,
    current_user: User = Depends(get_progress_manager),
    store: MetricsStore = Depends(get_metrics_store)
):
    """
    Get the latest metrics of every team in a class, with the last 4 weeks
    of history for sparklines. Teams are ordered by risk, highest first.
    """
    since = utc_now() - timedelta(weeks=CLASS_HISTORY_WEEKS)
    teams = await store.list_class_teams(class_id)

    teams_progress = []
    for team in teams:
        latest = await store.get_latest_metrics(team.team_id)
        history = await store.get_metrics_history(team.team_id, since)
        teams_progress.append({
            "team_id": team.team_id,
            "team_name": team.name,
            "current": latest,
            "history": [_history_point(m) for m in history]
        })

    teams_progress.sort(
        key=lambda t: (-(t["current"].risk_score if t["current"] else -1), t["team_name"])
    )

    bands = [t["current"].risk_band for t in teams_progress if t["current"]]

    return {
        "class_id": class_id,
        "teams": teams_progress,
        "summary": {
            "total_teams": len(teams_progress),
            "at_risk": bands.count(RiskBand.red),
            "needs_attention": bands.count(RiskBand.yellow),
            "on_track": bands.count(RiskBand.green)
        }
    }


@router.get("/teacher/teams/{team_id}/progress")
async def get_team_progress(
    team_id: str,
    current_user: User = Depends(get_progress_manager),
    service: ProgressService = Depends(get_progress_service),
    store: MetricsStore = Depends(get_metrics_store)
):
    """Get the latest metrics, 8 weeks of history and the active insights of a team."""
    await _ensure_team_exists(service, team_id)

    since = utc_now() - timedelta(weeks=TEAM_HISTORY_WEEKS)

    return {
        "team_id": team_id,
        "current": await store.get_latest_metrics(team_id),
        "historical": await store.get_metrics_history(team_id, since),
        "insights": await store.get_active_insights(team_id)
    }


@router.post("/teacher/teams/{team_id}/progress/calculate")
async def calculate_team_progress(
    team_id: str,
    current_user: User = Depends(get_progress_manager),
    service: ProgressService = Depends(get_progress_service)
):
    """
    Recompute a team's metrics for the current week right now and return
    the freshly stored row.
    """
    await _ensure_team_exists(service, team_id)

    try:
        metrics = await service.process_team(team_id)
    except Exception as e:
        logger.error(f"❌ Calculate progress error for team {team_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error calculating progress for team {team_id}: {str(e)}. Please retry shortly."
        )

    return {
        "message": "Progress calculated successfully",
        "metrics": metrics
    }


@router.post("/teacher/insights/{insight_id}/resolve")
async def resolve_insight(
    insight_id: str,
    current_user: User = Depends(get_progress_manager),
    store: MetricsStore = Depends(get_metrics_store)
):
    """Mark an insight as resolved so the weekly cleanup can retire it."""
    insight = await store.resolve_insight(insight_id)
    if insight is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Insight not found"
        )
    await store.commit()

    return {
        "message": "Insight resolved",
        "insight": store.to_insight_response(insight)
    }


# ========== STUDENT ENDPOINTS ==========

@router.get("/student/teams/{team_id}/progress")
async def get_student_team_progress(
    team_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(aget_db),
    store: MetricsStore = Depends(get_metrics_store)
):
    """Progress view for team members: scores only, no risk details."""
    if not await check_team_access(db, current_user, team_id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You are not a member of this team"
        )

    latest = await store.get_latest_metrics(team_id)
    since = utc_now() - timedelta(weeks=STUDENT_HISTORY_WEEKS)
    history = await store.get_metrics_history(team_id, since)

    current = None
    if latest:
        current = latest.model_dump(include={
            "week_start",
            "week_end",
            "progress_score",
            "timeliness",
            "velocity",
            "engagement",
            "scope_remaining",
            "total_tasks",
            "completed_tasks",
            "overdue_tasks",
            "updated_at"
        })

    return {
        "team_id": team_id,
        "current": current,
        "historical": [
            {
                "week_start": m.week_start,
                "progress_score": m.progress_score,
                "completed_tasks": m.completed_tasks,
                "total_tasks": m.total_tasks
            }
            for m in history
        ]
    }


# ========== ADMIN ENDPOINTS ==========

@router.post("/admin/progress/run", response_model=ProgressRunResponse)
async def run_progress_calculation(
    current_user: User = Depends(get_progress_manager),
    service: ProgressService = Depends(get_progress_service)
):
    """Recompute all teams for the current week and report how many succeeded."""
    try:
        result = await service.process_all_teams()
    except Exception as e:
        logger.error(f"❌ Run progress calculation error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error running progress calculation: {str(e)}. Check the database connection and retry."
        )

    return ProgressRunResponse(
        message="Progress calculation completed",
        processed=result.processed,
        total=result.total
    )


@router.get("/admin/progress/scheduler")
async def get_scheduler_status(
    request: Request,
    current_user: User = Depends(get_progress_manager)
):
    """Status of every recurring progress job."""
    scheduler = getattr(request.app.state, "progress_scheduler", None)
    if scheduler is None:
        return {"enabled": False, "jobs": []}

    return {
        "enabled": True,
        "jobs": scheduler.get_status()
    }
