"""
Shared fixtures and helpers for the progress engine tests.
"""

import os

os.environ.setdefault("SCHEDULER_ENABLED", "false")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from contextlib import asynccontextmanager
from importlib import import_module
from dataclasses import dataclass, field
from datetime import datetime
from types import SimpleNamespace
from typing import Dict, List, Optional, Tuple

import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.constants.constants import TaskStatus, UserRole
from app.core.config import settings
from app.models.base import Base, utc_now
from app.models.messaging import TeamMessage
from app.models.task import Task, TaskSubmission
from app.models.team import Classroom, Team, TeamMember
from app.models.user import User
from app.schemas.progressSchema import SubmissionRecord, TaskRecord, TeamInsightCreate, TeamMetricsResult
from app.services.ProgressDataSource import ProgressDataSource

for model in settings.DB_MODELS:
    import_module(model)

# Wednesday; with weeks starting on Sunday the window is 2026-10-11 .. 2026-10-17
REFERENCE_TIME = datetime(2026, 10, 14, 12, 0)
WEEK_START = datetime(2026, 10, 11)
WEEK_END = datetime(2026, 10, 17, 23, 59, 59, 999999)


def make_task(
    task_id: str,
    status: TaskStatus = TaskStatus.completed,
    due_date: Optional[datetime] = None,
    updated_at: Optional[datetime] = None,
    submissions: Optional[List[Tuple[str, datetime]]] = None,
    team_id: str = "team-1"
) -> TaskRecord:
    """Build a TaskRecord; submissions are (user_id, submitted_at) pairs."""
    return TaskRecord(
        task_id=task_id,
        team_id=team_id,
        status=status,
        due_date=due_date,
        updated_at=updated_at,
        submissions=[
            SubmissionRecord(
                submission_id=f"{task_id}-sub-{i}",
                task_id=task_id,
                submitted_by=user_id,
                submitted_at=submitted_at
            )
            for i, (user_id, submitted_at) in enumerate(submissions or [])
        ]
    )


@dataclass
class FakeTeam:
    tasks: List[TaskRecord] = field(default_factory=list)
    active_members: int = 0
    messages: int = 0
    week_submissions: int = 0
    member_submissions: List[int] = field(default_factory=list)
    fail: bool = False


class FakeDataSource(ProgressDataSource):
    """In-memory data source keyed by team id."""

    def __init__(self, teams: Optional[Dict[str, FakeTeam]] = None):
        self.teams = teams or {}

    async def list_team_ids(self) -> List[str]:
        return sorted(self.teams)

    async def team_exists(self, team_id: str) -> bool:
        return team_id in self.teams

    async def get_team_tasks(self, team_id: str) -> List[TaskRecord]:
        team = self.teams[team_id]
        if team.fail:
            raise RuntimeError("database unavailable")
        return list(team.tasks)

    async def count_active_members(self, team_id: str) -> int:
        return self.teams[team_id].active_members

    async def count_team_messages(self, team_id: str, start: datetime, end: datetime) -> int:
        return self.teams[team_id].messages

    async def count_team_submissions(self, team_id: str, start: datetime, end: datetime) -> int:
        return self.teams[team_id].week_submissions

    async def get_member_submission_counts(self, team_id: str) -> List[int]:
        return list(self.teams[team_id].member_submissions)


class FakeMetricsStore:
    """Records writes instead of touching a database."""

    def __init__(self):
        self.metrics: Dict[Tuple[str, datetime], TeamMetricsResult] = {}
        self.insights: List[TeamInsightCreate] = []
        self.commits = 0
        self.rollbacks = 0
        self.cleanup_cutoffs: List[datetime] = []
        self.deleted_count = 0

    async def upsert_metrics(self, metrics: TeamMetricsResult):
        self.metrics[(metrics.team_id, metrics.week_start)] = metrics
        return SimpleNamespace(updated_at=utc_now())

    async def add_insight(self, insight: TeamInsightCreate):
        self.insights.append(insight)
        return insight

    async def delete_resolved_insights(self, older_than: datetime) -> int:
        self.cleanup_cutoffs.append(older_than)
        return self.deleted_count

    async def commit(self):
        self.commits += 1

    async def rollback(self):
        self.rollbacks += 1


# ------------------------------
# SQLite helpers
# ------------------------------
@asynccontextmanager
async def sqlite_sessions(url: str = "sqlite+aiosqlite://"):
    """Create a fresh schema and yield a session factory bound to it."""
    if url == "sqlite+aiosqlite://":
        engine = create_async_engine(url, poolclass=StaticPool)
    else:
        engine = create_async_engine(url)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(bind=engine, expire_on_commit=False, autoflush=False)
    try:
        yield factory
    finally:
        await engine.dispose()


async def seed_user(db, user_id: str, role: UserRole = UserRole.student, is_active: bool = True) -> User:
    user = await db.get(User, user_id)
    if user is None:
        user = User(
            user_id=user_id,
            email=f"{user_id}@example.com",
            first_name=user_id.split("-")[0].title(),
            last_name="Tester",
            role=role,
            is_active=is_active
        )
        db.add(user)
        await db.flush()
    return user


async def seed_team(
    db,
    team_id: str = "team-1",
    class_id: str = "class-1",
    members=("student-1", "student-2"),
    teacher_id: str = "teacher-1",
    name: Optional[str] = None
) -> Team:
    """Create a team (with its class, teacher and member users) if missing."""
    await seed_user(db, teacher_id, role=UserRole.teacher)

    if await db.get(Classroom, class_id) is None:
        db.add(Classroom(class_id=class_id, name=f"Class {class_id}", teacher_id=teacher_id))
        await db.flush()

    team = Team(team_id=team_id, name=name or f"Team {team_id}", class_id=class_id)
    db.add(team)
    await db.flush()

    for user_id in members:
        await seed_user(db, user_id)
        db.add(TeamMember(team_id=team_id, user_id=user_id))
    await db.flush()
    return team


async def add_task(
    db,
    team_id: str,
    task_id: str,
    status: TaskStatus = TaskStatus.pending,
    due_date: Optional[datetime] = None,
    updated_at: Optional[datetime] = None,
    created_by: str = "teacher-1"
) -> Task:
    task = Task(
        task_id=task_id,
        team_id=team_id,
        title=f"Task {task_id}",
        status=status,
        due_date=due_date,
        created_by=created_by,
        updated_at=updated_at or utc_now()
    )
    db.add(task)
    await db.flush()
    return task


async def add_submission(db, task_id: str, user_id: str, submitted_at: datetime) -> TaskSubmission:
    submission = TaskSubmission(task_id=task_id, submitted_by=user_id, submitted_at=submitted_at)
    db.add(submission)
    await db.flush()
    return submission


async def add_message(db, team_id: str, sender_id: str, created_at: datetime) -> TeamMessage:
    message = TeamMessage(team_id=team_id, sender_id=sender_id, content="hello team", created_at=created_at)
    db.add(message)
    await db.flush()
    return message
