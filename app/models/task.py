"""Task and submission models for team work."""

import uuid
from sqlalchemy import Column, Text, String, DateTime, Enum as SQLEnum, ForeignKey
from sqlalchemy.orm import relationship
from app.constants.constants import TaskStatus
from app.models.base import Base, TimestampMixin, utc_now


class Task(Base, TimestampMixin):
    """Model representing a task assigned to a team."""

    __tablename__ = "tasks"
    task_id = Column(String, primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    team_id = Column(String, ForeignKey("teams.team_id"), nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    status = Column(SQLEnum(TaskStatus), default=TaskStatus.pending, nullable=False)
    due_date = Column(DateTime, nullable=True)
    assigned_to = Column(String, ForeignKey("users.user_id"), nullable=True)
    created_by = Column(String, ForeignKey("users.user_id"), nullable=False)
    team = relationship("Team", back_populates="tasks")
    submissions = relationship(
        "TaskSubmission",
        back_populates="task",
        cascade="all, delete-orphan",
        order_by="TaskSubmission.submitted_at"
    )


class TaskSubmission(Base, TimestampMixin):
    """Model representing one submission of work for a task."""

    __tablename__ = "task_submissions"
    submission_id = Column(String, primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    task_id = Column(String, ForeignKey("tasks.task_id"), nullable=False, index=True)
    submitted_by = Column(String, ForeignKey("users.user_id"), nullable=False)
    submitted_at = Column(DateTime, default=utc_now, nullable=False)
    submission_text = Column(Text, nullable=True)
    task = relationship("Task", back_populates="submissions")
    submitter = relationship("User", back_populates="submissions")
