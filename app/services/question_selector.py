"""
Question selection for quiz sessions
"""
import logging
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.config import settings
from app.database import utcnow
from app.models import Answer, Question, QuestionStatus

logger = logging.getLogger(__name__)


class QuestionSelector:
    """
    Picks the eligible questions for a user and topic

    Eligible: approved, and not answered by this user (in any attempt) within
    the trailing exclusion window. The client walks the returned list by index.
    """

    def __init__(self, window_hours: int = settings.ANSWER_EXCLUSION_WINDOW_HOURS):
        self.window = timedelta(hours=window_hours)

    def select_questions(
        self,
        db: Session,
        topic_id: int,
        user_id: int,
        now: Optional[datetime] = None
    ) -> List[Question]:
        cutoff = (now or utcnow()) - self.window

        recently_answered = (
            select(Answer.question_id)
            .where(Answer.user_id == user_id, Answer.timestamp >= cutoff)
        )

        questions = (
            db.query(Question)
            .filter(
                Question.topic_id == topic_id,
                Question.status == QuestionStatus.APPROVED,
                Question.id.not_in(recently_answered),
            )
            .order_by(Question.id)
            .all()
        )

        logger.info(
            f"Selected {len(questions)} eligible questions for topic {topic_id}, user {user_id} "
            f"(answered since {cutoff.isoformat()} excluded)"
        )
        return questions

    def count_approved(self, db: Session, topic_id: int) -> int:
        return (
            db.query(func.count(Question.id))
            .filter(Question.topic_id == topic_id, Question.status == QuestionStatus.APPROVED)
            .scalar()
        ) or 0


# Global instance
question_selector = QuestionSelector()
