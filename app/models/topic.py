"""
Topic model - quiz subject areas, seeded once
"""
from sqlalchemy import Column, Integer, String, TIMESTAMP
from sqlalchemy.orm import relationship
from app.database import Base, utcnow


class Topic(Base):
    """
    Topics table - every question and attempt belongs to one topic
    """
    __tablename__ = "topics"

    id = Column(Integer, primary_key=True)
    name = Column(String(255), unique=True, nullable=False)
    created_at = Column(TIMESTAMP, default=utcnow)

    questions = relationship("Question", back_populates="topic", passive_deletes=True)

    def __repr__(self):
        return f"<Topic(id={self.id}, name={self.name})>"
