from app.constants.constants import (
    COMPLETION_WEIGHT,
    ENGAGEMENT_WEIGHT,
    RED_BAND_THRESHOLD,
    TIMELINESS_WEIGHT,
    VELOCITY_POINTS_PER_TASK,
    VELOCITY_WEIGHT,
    YELLOW_BAND_THRESHOLD,
    RiskBand,
)
from app.utils.progress.calculate_metrics import round_half_up


def calculate_progress_score(
    timeliness: int,
    velocity: int,
    engagement: int,
    scope_remaining: int
) -> int:
    """
    Overall progress score (0-100). Higher is better.
    """
    normalized_velocity = min(velocity * VELOCITY_POINTS_PER_TASK, 100)
    completion_score = 100 - scope_remaining

    score = (
        timeliness * TIMELINESS_WEIGHT
        + normalized_velocity * VELOCITY_WEIGHT
        + engagement * ENGAGEMENT_WEIGHT
        + completion_score * COMPLETION_WEIGHT
    )

    return round_half_up(score)


def calculate_risk_score(
    timeliness: int,
    velocity: int,
    engagement: int,
    work_balance: int,
    rework: int,
    scope_remaining: int
) -> int:
    """
    Risk score (0-100). Higher means more risk.
    """
    risk_score = 0.0

    # Poor timeliness
    risk_score += (100 - timeliness) * 0.25

    # Low velocity
    if velocity < 2:
        risk_score += 25
    elif velocity < 4:
        risk_score += 10

    # Low engagement
    risk_score += (100 - engagement) * 0.20

    # Work imbalance
    if work_balance > 35:
        risk_score += 20
    elif work_balance > 25:
        risk_score += 10

    # High rework rate
    if rework > 30:
        risk_score += 15
    elif rework > 15:
        risk_score += 8

    # Large scope remaining
    if scope_remaining > 70:
        risk_score += 15
    elif scope_remaining > 50:
        risk_score += 8

    return min(round_half_up(risk_score), 100)


def get_risk_band(risk_score: int) -> RiskBand:
    """Step function over the risk score; no smoothing between runs."""
    if risk_score >= RED_BAND_THRESHOLD:
        return RiskBand.red
    if risk_score >= YELLOW_BAND_THRESHOLD:
        return RiskBand.yellow
    return RiskBand.green
