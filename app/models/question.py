"""
Question model - LLM-generated questions under admin moderation
"""
from sqlalchemy import Column, Integer, String, Text, TIMESTAMP, ForeignKey, JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship
from app.database import Base, utcnow


class QuestionType:
    FREE_TEXT = "free-text"
    MULTIPLE_CHOICE = "multiple-choice"

    ALL = (FREE_TEXT, MULTIPLE_CHOICE)


class QuestionStatus:
    PENDING = "pending"
    APPROVED = "approved"
    DEACTIVATED = "deactivated"

    ALL = (PENDING, APPROVED, DEACTIVATED)


class Question(Base):
    """
    Questions table - only approved rows are served to quiz takers
    """
    __tablename__ = "questions"

    id = Column(Integer, primary_key=True)
    topic_id = Column(
        Integer,
        ForeignKey("topics.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    question_text = Column(Text, nullable=False)
    question_type = Column(String(50), nullable=False, default=QuestionType.FREE_TEXT)
    answer_key = Column(Text)  # model answer, or the correct option letter for MCQ
    options = Column(JSON().with_variant(JSONB, "postgresql"))  # {"A": "...", "B": "..."}
    difficulty = Column(String(50))
    status = Column(String(20), nullable=False, default=QuestionStatus.PENDING, index=True)
    created_at = Column(TIMESTAMP, default=utcnow)
    updated_at = Column(TIMESTAMP, default=utcnow, onupdate=utcnow)

    topic = relationship("Topic", back_populates="questions")
    answers = relationship(
        "Answer",
        back_populates="question",
        cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<Question(id={self.id}, topic_id={self.topic_id}, status={self.status})>"
