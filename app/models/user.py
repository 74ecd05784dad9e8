"""User model for the classroom platform."""

import uuid
from sqlalchemy import Column, String, Boolean, Enum
from sqlalchemy.orm import relationship

from app.constants.constants import UserRole
from app.models.base import Base, TimestampMixin

class User(Base, TimestampMixin):
    __tablename__ = "users"
    user_id = Column(String, primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    email = Column(String, unique=True, index=True, nullable=False)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    role = Column(Enum(UserRole), nullable=False, default=UserRole.student)
    is_active = Column(Boolean, default=True)

    # Relationships
    taught_classes = relationship("Classroom", back_populates="teacher")
    team_memberships = relationship("TeamMember", back_populates="user")
    submissions = relationship("TaskSubmission", back_populates="submitter")
