"""Data access for the team progress engine."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models.messaging import TeamMessage
from app.models.task import Task, TaskSubmission
from app.models.team import Team, TeamMember
from app.models.user import User
from app.schemas.progressSchema import SubmissionRecord, TaskRecord


class ProgressDataSource(ABC):
    """Read-side contract the progress engine needs from the platform data."""

    @abstractmethod
    async def list_team_ids(self) -> List[str]:
        """Every team id, in a stable order."""

    @abstractmethod
    async def team_exists(self, team_id: str) -> bool:
        ...

    @abstractmethod
    async def get_team_tasks(self, team_id: str) -> List[TaskRecord]:
        """All tasks of the team joined with their submissions."""

    @abstractmethod
    async def count_active_members(self, team_id: str) -> int:
        ...

    @abstractmethod
    async def count_team_messages(self, team_id: str, start: datetime, end: datetime) -> int:
        ...

    @abstractmethod
    async def count_team_submissions(self, team_id: str, start: datetime, end: datetime) -> int:
        ...

    @abstractmethod
    async def get_member_submission_counts(self, team_id: str) -> List[int]:
        """Total submissions on the team's tasks for each active member (zeros included)."""


class SQLAlchemyProgressDataSource(ProgressDataSource):
    """ProgressDataSource backed by the platform's relational tables."""

    def __init__(self, db: AsyncSession):
        self.db = db

    def _active_members_query(self, team_id: str):
        return (
            select(TeamMember.user_id)
            .join(User, User.user_id == TeamMember.user_id)
            .where(
                and_(
                    TeamMember.team_id == team_id,
                    User.is_active == True
                )
            )
        )

    async def list_team_ids(self) -> List[str]:
        result = await self.db.execute(select(Team.team_id).order_by(Team.team_id))
        return list(result.scalars().all())

    async def team_exists(self, team_id: str) -> bool:
        result = await self.db.execute(select(Team.team_id).where(Team.team_id == team_id))
        return result.scalar_one_or_none() is not None

    async def get_team_tasks(self, team_id: str) -> List[TaskRecord]:
        result = await self.db.execute(
            select(Task)
            .options(selectinload(Task.submissions))
            .where(Task.team_id == team_id)
            .order_by(Task.created_at)
        )
        tasks = result.scalars().all()

        return [
            TaskRecord(
                task_id=task.task_id,
                team_id=task.team_id,
                status=task.status,
                due_date=task.due_date,
                assigned_to=task.assigned_to,
                created_by=task.created_by,
                updated_at=task.updated_at,
                submissions=[
                    SubmissionRecord(
                        submission_id=s.submission_id,
                        task_id=s.task_id,
                        submitted_by=s.submitted_by,
                        submitted_at=s.submitted_at,
                        submission_text=s.submission_text
                    )
                    for s in task.submissions
                ]
            )
            for task in tasks
        ]

    async def count_active_members(self, team_id: str) -> int:
        members = self._active_members_query(team_id).subquery()
        result = await self.db.execute(select(func.count()).select_from(members))
        return result.scalar_one()

    async def count_team_messages(self, team_id: str, start: datetime, end: datetime) -> int:
        result = await self.db.execute(
            select(func.count(TeamMessage.message_id)).where(
                and_(
                    TeamMessage.team_id == team_id,
                    TeamMessage.created_at >= start,
                    TeamMessage.created_at <= end
                )
            )
        )
        return result.scalar_one()

    async def count_team_submissions(self, team_id: str, start: datetime, end: datetime) -> int:
        result = await self.db.execute(
            select(func.count(func.distinct(TaskSubmission.submission_id)))
            .join(Task, Task.task_id == TaskSubmission.task_id)
            .where(
                and_(
                    Task.team_id == team_id,
                    TaskSubmission.submitted_at >= start,
                    TaskSubmission.submitted_at <= end
                )
            )
        )
        return result.scalar_one()

    async def get_member_submission_counts(self, team_id: str) -> List[int]:
        members_result = await self.db.execute(
            self._active_members_query(team_id).order_by(TeamMember.user_id)
        )
        member_ids = list(members_result.scalars().all())

        counts_result = await self.db.execute(
            select(TaskSubmission.submitted_by, func.count(TaskSubmission.submission_id))
            .join(Task, Task.task_id == TaskSubmission.task_id)
            .where(Task.team_id == team_id)
            .group_by(TaskSubmission.submitted_by)
        )
        counts = {user_id: count for user_id, count in counts_result.all()}

        return [counts.get(user_id, 0) for user_id in member_ids]
