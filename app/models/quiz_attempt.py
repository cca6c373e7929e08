"""
QuizAttempt model - one user's run through a topic, with resumable progress
"""
from sqlalchemy import Column, Integer, Float, String, TIMESTAMP, ForeignKey, Index, text
from sqlalchemy.orm import relationship
from app.database import Base, utcnow


class AttemptStatus:
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    ABANDONED = "abandoned"


class QuizAttempt(Base):
    """
    Quiz attempts table - progress cursor and running score per attempt

    total_questions_in_attempt is a snapshot of the approved-question count at
    creation and is never recomputed, so "N of M" stays stable even if the
    live pool changes while the attempt is open.
    """
    __tablename__ = "quiz_attempts"
    __table_args__ = (
        # at most one open attempt per user and topic
        Index(
            "uq_quiz_attempts_active_user_topic",
            "user_id",
            "topic_id",
            unique=True,
            postgresql_where=text("status = 'in-progress'"),
            sqlite_where=text("status = 'in-progress'"),
        ),
    )

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    topic_id = Column(Integer, ForeignKey("topics.id", ondelete="CASCADE"), nullable=False)
    start_time = Column(TIMESTAMP, default=utcnow)
    status = Column(String(20), nullable=False, default=AttemptStatus.IN_PROGRESS)
    current_question_index = Column(Integer, nullable=False, default=0)
    current_score = Column(Float, nullable=False, default=0)
    total_questions_in_attempt = Column(Integer)
    final_score = Column(Float)
    last_activity_time = Column(TIMESTAMP, default=utcnow)

    answers = relationship(
        "Answer",
        back_populates="quiz_attempt",
        cascade="all, delete-orphan"
    )

    def __repr__(self):
        return (
            f"<QuizAttempt(id={self.id}, user_id={self.user_id}, topic_id={self.topic_id}, "
            f"index={self.current_question_index}, score={self.current_score})>"
        )
