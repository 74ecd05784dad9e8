from typing import List

from app.constants.constants import (
    ENGAGEMENT_THRESHOLD,
    REASON_TO_INSIGHT_TYPE,
    REWORK_THRESHOLD,
    SCOPE_REMAINING_THRESHOLD,
    TIMELINESS_THRESHOLD,
    VELOCITY_THRESHOLD,
    WORK_BALANCE_THRESHOLD,
    InsightSeverity,
    InsightType,
    ReasonSeverity,
    ReasonType,
)
from app.schemas.progressSchema import RiskReason, TeamInsightCreate

INSIGHT_SEVERITY_BY_REASON = {
    ReasonSeverity.high.value: InsightSeverity.critical,
    ReasonSeverity.medium.value: InsightSeverity.warning,
}

NO_DATA_REASON = RiskReason(
    type=ReasonType.no_data.value,
    severity=ReasonSeverity.high.value,
    message="No task data available for this team",
    recommendation="Assign tasks to get started",
)


def generate_risk_reasons(
    timeliness: int,
    velocity: int,
    engagement: int,
    work_balance: int,
    rework: int,
    scope_remaining: int
) -> List[RiskReason]:
    """
    Turn out-of-threshold dimensions into human-readable risk reasons.

    Returns a single on_track reason when nothing crosses a threshold.
    """
    reasons = []

    if timeliness < TIMELINESS_THRESHOLD:
        reasons.append(RiskReason(
            type=ReasonType.timeliness.value,
            severity=ReasonSeverity.high.value,
            message=f"Only {timeliness}% of tasks completed on time",
            recommendation="Review task assignments and provide deadline reminders"
        ))

    if velocity < VELOCITY_THRESHOLD:
        reasons.append(RiskReason(
            type=ReasonType.velocity.value,
            severity=ReasonSeverity.high.value,
            message=f"Low completion rate ({velocity} tasks/week)",
            recommendation="Check if team has too many tasks or needs support"
        ))

    if engagement < ENGAGEMENT_THRESHOLD:
        reasons.append(RiskReason(
            type=ReasonType.engagement.value,
            severity=ReasonSeverity.medium.value,
            message=f"Low team engagement ({engagement}/100)",
            recommendation="Encourage team communication and collaboration"
        ))

    if work_balance > WORK_BALANCE_THRESHOLD:
        reasons.append(RiskReason(
            type=ReasonType.work_balance.value,
            severity=ReasonSeverity.medium.value,
            message="Uneven work distribution across team members",
            recommendation="Redistribute tasks to balance workload"
        ))

    if rework > REWORK_THRESHOLD:
        reasons.append(RiskReason(
            type=ReasonType.rework.value,
            severity=ReasonSeverity.low.value,
            message=f"High rework rate ({rework}% of tasks resubmitted)",
            recommendation="Provide clearer task requirements and examples"
        ))

    if scope_remaining > SCOPE_REMAINING_THRESHOLD:
        reasons.append(RiskReason(
            type=ReasonType.scope.value,
            severity=ReasonSeverity.high.value,
            message=f"{scope_remaining}% of tasks still incomplete",
            recommendation="Consider adjusting deadlines or reducing scope"
        ))

    if not reasons:
        reasons.append(RiskReason(
            type=ReasonType.on_track.value,
            severity=ReasonSeverity.none.value,
            message="Team is performing well",
            recommendation="Continue monitoring progress"
        ))

    return reasons


def map_reason_to_insight_type(reason_type: str) -> InsightType:
    """Fixed mapping from reason type to insight type; unknown types are at_risk."""
    return REASON_TO_INSIGHT_TYPE.get(reason_type, InsightType.at_risk)


def build_insights(team_id: str, reasons: List[RiskReason]) -> List[TeamInsightCreate]:
    """One insight per high or medium severity reason; the rest stay inline only."""
    insights = []
    for reason in reasons:
        severity = INSIGHT_SEVERITY_BY_REASON.get(reason.severity)
        if severity is None:
            continue
        insights.append(TeamInsightCreate(
            team_id=team_id,
            insight_type=map_reason_to_insight_type(reason.type),
            severity=severity,
            title=reason.message,
            description=reason.recommendation,
            recommendations=[reason.recommendation]
        ))
    return insights
