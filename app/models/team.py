"""Class and team models for the classroom structure."""

import uuid
from sqlalchemy import Column, String, DateTime, Text, ForeignKey
from sqlalchemy.orm import relationship
from app.models.base import Base, TimestampMixin, utc_now


class Classroom(Base, TimestampMixin):
    """Model representing a class owned by a teacher."""

    __tablename__ = "classes"
    class_id = Column(String, primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    teacher_id = Column(String, ForeignKey("users.user_id"), nullable=False)
    teacher = relationship("User", back_populates="taught_classes")
    teams = relationship("Team", back_populates="classroom", cascade="all, delete-orphan")


class Team(Base, TimestampMixin):
    """Model representing a team of students within a class."""

    __tablename__ = "teams"
    team_id = Column(String, primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    class_id = Column(String, ForeignKey("classes.class_id"), nullable=False)
    classroom = relationship("Classroom", back_populates="teams")
    members = relationship("TeamMember", back_populates="team", cascade="all, delete-orphan")
    tasks = relationship("Task", back_populates="team", cascade="all, delete-orphan")
    metrics = relationship("TeamMetrics", back_populates="team", cascade="all, delete-orphan")
    insights = relationship("TeamInsight", back_populates="team", cascade="all, delete-orphan")


class TeamMember(Base, TimestampMixin):
    """Model representing team membership."""

    __tablename__ = "team_members"
    membership_id = Column(String, primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    team_id = Column(String, ForeignKey("teams.team_id"), nullable=False, index=True)
    user_id = Column(String, ForeignKey("users.user_id"), nullable=False)
    joined_at = Column(DateTime, default=utc_now)
    team = relationship("Team", back_populates="members")
    user = relationship("User", back_populates="team_memberships")
