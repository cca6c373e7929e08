"""
Quiz attempt lifecycle: start/resume, progress tracking and completion

Progress is only ever advanced by compare-and-swap on the expected cursor, so
two racing submissions for the same attempt cannot both land, and the
in-progress uniqueness per (user, topic) is backed by a partial unique index.
"""
import logging
from typing import Optional, Tuple

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.database import utcnow
from app.exceptions import (
    DuplicateAttemptError,
    NotFoundError,
    PersistenceError,
    ProgressConflictError,
)
from app.models import AttemptStatus, QuizAttempt, Topic, User
from app.services.question_selector import question_selector

logger = logging.getLogger(__name__)


class AttemptService:
    """Owns QuizAttempt rows; the only writer of their progress fields"""

    def get_attempt(self, db: Session, attempt_id: int) -> QuizAttempt:
        attempt = db.query(QuizAttempt).filter(QuizAttempt.id == attempt_id).first()
        if not attempt:
            raise NotFoundError(f"Quiz attempt with ID {attempt_id} not found.")
        return attempt

    def get_active_attempt(self, db: Session, user_id: int, topic_id: int) -> Optional[QuizAttempt]:
        """Most recent in-progress attempt for the pair, or None"""
        return (
            db.query(QuizAttempt)
            .filter(
                QuizAttempt.user_id == user_id,
                QuizAttempt.topic_id == topic_id,
                QuizAttempt.status == AttemptStatus.IN_PROGRESS,
            )
            # id breaks ties between attempts started within the same second
            .order_by(QuizAttempt.start_time.desc(), QuizAttempt.id.desc())
            .first()
        )

    def start_attempt(self, db: Session, user_id: int, topic_id: int) -> Tuple[QuizAttempt, bool]:
        """
        Get-or-create the in-progress attempt for a user and topic

        Returns:
            Tuple of (attempt, created). created is False when an existing
            in-progress attempt was resumed, including when a concurrent start
            won the race to insert.

        Raises:
            NotFoundError: unknown user or topic
            DuplicateAttemptError: insert conflicted but no winner is visible
            PersistenceError: any other database failure
        """
        if not db.query(Topic.id).filter(Topic.id == topic_id).first():
            raise NotFoundError(f"Topic with ID {topic_id} not found.")
        if not db.query(User.id).filter(User.id == user_id).first():
            raise NotFoundError(f"User with ID {user_id} not found.")

        existing = self.get_active_attempt(db, user_id, topic_id)
        if existing:
            logger.info(f"Resuming attempt {existing.id} for user {user_id}, topic {topic_id}")
            return existing, False

        try:
            # count and insert share one transaction
            total = question_selector.count_approved(db, topic_id)
            now = utcnow()
            attempt = QuizAttempt(
                user_id=user_id,
                topic_id=topic_id,
                status=AttemptStatus.IN_PROGRESS,
                current_question_index=0,
                current_score=0,
                total_questions_in_attempt=total,
                start_time=now,
                last_activity_time=now,
            )
            db.add(attempt)
            db.commit()
        except IntegrityError:
            db.rollback()
            winner = self.get_active_attempt(db, user_id, topic_id)
            if winner:
                logger.info(f"Concurrent start for user {user_id}, topic {topic_id}; returning attempt {winner.id}")
                return winner, False
            raise DuplicateAttemptError(
                f"An in-progress attempt already exists for user {user_id} and topic {topic_id}."
            )
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to insert quiz attempt for user {user_id}, topic {topic_id}: {str(e)}")
            raise PersistenceError("Failed to start quiz attempt") from e

        db.refresh(attempt)
        logger.info(
            f"Started attempt {attempt.id} for user {user_id}, topic {topic_id} "
            f"with {attempt.total_questions_in_attempt} questions"
        )
        return attempt, True

    def record_progress(
        self,
        db: Session,
        attempt_id: int,
        expected_index: int,
        next_index: int,
        new_score: float
    ) -> None:
        """
        Advance the cursor by one, guarded by the expected current index

        Flushes but does not commit, so the caller can store the answer row in
        the same transaction.

        Raises:
            ProgressConflictError: out-of-order update, stale cursor or attempt not in progress
            NotFoundError: unknown attempt
        """
        if next_index != expected_index + 1:
            raise ProgressConflictError(
                f"Progress must advance by one question (expected {expected_index + 1}, got {next_index})."
            )

        attempt = self.get_attempt(db, attempt_id)

        values = {
            QuizAttempt.current_question_index: next_index,
            QuizAttempt.current_score: new_score,
            QuizAttempt.last_activity_time: utcnow(),
        }
        total = attempt.total_questions_in_attempt or 0
        if total > 0 and next_index >= total:
            values[QuizAttempt.status] = AttemptStatus.COMPLETED
            values[QuizAttempt.final_score] = new_score

        updated = (
            db.query(QuizAttempt)
            .filter(
                QuizAttempt.id == attempt_id,
                QuizAttempt.current_question_index == expected_index,
                QuizAttempt.status == AttemptStatus.IN_PROGRESS,
            )
            .update(values, synchronize_session=False)
        )

        if updated == 0:
            raise ProgressConflictError(
                f"Quiz attempt {attempt_id} is no longer at question index {expected_index} "
                f"or is not in progress."
            )

        db.expire(attempt)
        logger.info(f"Attempt {attempt_id}: index {expected_index} -> {next_index}, score {new_score}")

    def abandon_attempt(self, db: Session, attempt_id: int) -> QuizAttempt:
        attempt = self.get_attempt(db, attempt_id)
        if attempt.status != AttemptStatus.IN_PROGRESS:
            raise ProgressConflictError(f"Quiz attempt {attempt_id} is already {attempt.status}.")

        attempt.status = AttemptStatus.ABANDONED
        attempt.last_activity_time = utcnow()
        try:
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to abandon attempt {attempt_id}: {str(e)}")
            raise PersistenceError("Failed to abandon quiz attempt") from e

        db.refresh(attempt)
        logger.info(f"Attempt {attempt_id} abandoned at index {attempt.current_question_index}")
        return attempt


# Global instance
attempt_service = AttemptService()
