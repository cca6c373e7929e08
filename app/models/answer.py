"""
Answer model - append-only log of graded submissions
"""
from sqlalchemy import Column, Integer, Text, TIMESTAMP, ForeignKey
from sqlalchemy.orm import relationship
from app.database import Base, utcnow


class Answer(Base):
    """
    Answers table - also read by the question selector for the 24h exclusion window
    """
    __tablename__ = "answers"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    question_id = Column(Integer, ForeignKey("questions.id", ondelete="CASCADE"), nullable=False)
    # nullable for rows recorded before attempts existed
    quiz_attempt_id = Column(Integer, ForeignKey("quiz_attempts.id", ondelete="CASCADE"), nullable=True)
    user_answer = Column(Text)
    score = Column(Integer)  # 0-5
    feedback = Column(Text)
    suggested_answer = Column(Text)
    timestamp = Column(TIMESTAMP, default=utcnow, index=True)

    question = relationship("Question", back_populates="answers")
    quiz_attempt = relationship("QuizAttempt", back_populates="answers")

    def __repr__(self):
        return f"<Answer(id={self.id}, question_id={self.question_id}, score={self.score})>"
