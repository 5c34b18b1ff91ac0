"""
Challenge Model
Eco challenges shown on the dashboard and rewards pages. Read-only.
"""

from sqlalchemy import Column, String, Text, Integer, Boolean

from ecoscan.models.base import BaseModel


class Challenge(BaseModel):
    __tablename__ = "challenges"

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    points = Column(Integer, nullable=False, default=0)
    active = Column(Boolean, default=True, nullable=False, index=True)

    def __repr__(self):
        return f"<Challenge(title='{self.title}', points={self.points}, active={self.active})>"
