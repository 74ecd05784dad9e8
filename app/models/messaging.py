# models/messaging.py
import uuid
from sqlalchemy import Column, String, Text, ForeignKey
from sqlalchemy.orm import relationship
from app.models.base import Base, TimestampMixin


class TeamMessage(Base, TimestampMixin):
    """Chat messages posted to a team channel"""
    __tablename__ = 'team_messages'

    message_id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    team_id = Column(String, ForeignKey('teams.team_id'), nullable=False, index=True)
    sender_id = Column(String, ForeignKey('users.user_id'), nullable=False)

    content = Column(Text, nullable=False)

    # Relationships
    sender = relationship("User", foreign_keys=[sender_id])
