from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.constants.constants import PROGRESS_MANAGER_ROLES
from app.models.team import TeamMember
from app.models.user import User


def check_progress_manager(user: User) -> bool:
    """Check if user may view and recompute any team's progress."""
    return user.role in PROGRESS_MANAGER_ROLES


async def check_team_access(db: AsyncSession, user: User, team_id: str) -> bool:
    """Managers see every team; students only the teams they belong to."""
    if check_progress_manager(user):
        return True

    result = await db.execute(
        select(TeamMember.membership_id).where(
            and_(
                TeamMember.team_id == team_id,
                TeamMember.user_id == user.user_id
            )
        )
    )
    return result.first() is not None
