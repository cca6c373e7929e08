"""
Answer submission: validate against the attempt, grade, store and advance progress
"""
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.database import utcnow
from app.exceptions import (
    NotFoundError,
    PersistenceError,
    ProgressConflictError,
    QuizAppError,
    ValidationError,
)
from app.models import Answer, AttemptStatus, Question, QuestionStatus, QuestionType
from app.schemas.quiz import AnswerSubmission
from app.services.attempt_service import attempt_service
from app.services.grading_service import GradeResult, grading_service

logger = logging.getLogger(__name__)


class QuizService:

    async def submit_answer(self, db: Session, submission: AnswerSubmission) -> GradeResult:
        """
        Grade one answer and record it against its attempt

        The cursor check happens before grading so a stale or duplicate
        submission never costs an LLM call; the compare-and-swap at the end
        still guards against a racing submission that passed the same check.
        """
        attempt = attempt_service.get_attempt(db, submission.quiz_attempt_id)

        if attempt.user_id != submission.user_id:
            raise ValidationError(
                f"Quiz attempt {attempt.id} does not belong to user {submission.user_id}."
            )
        if attempt.status != AttemptStatus.IN_PROGRESS:
            raise ProgressConflictError(f"Quiz attempt {attempt.id} is already {attempt.status}.")
        if attempt.current_question_index != submission.answered_question_index:
            raise ProgressConflictError(
                f"Quiz attempt {attempt.id} is at question index {attempt.current_question_index}, "
                f"not {submission.answered_question_index}."
            )

        question = db.query(Question).filter(Question.id == submission.question_id).first()
        if not question:
            raise NotFoundError(f"Question with ID {submission.question_id} not found.")
        if question.topic_id != attempt.topic_id:
            raise ValidationError(
                f"Question {question.id} does not belong to the topic of quiz attempt {attempt.id}."
            )
        if question.status != QuestionStatus.APPROVED:
            raise ValidationError(f"Question {question.id} is {question.status}, not approved.")
        if question.question_type != submission.question_type:
            raise ValidationError(
                f"Question {question.id} is {question.question_type}, not {submission.question_type}."
            )

        already_answered = (
            db.query(Answer.id)
            .filter(Answer.quiz_attempt_id == attempt.id, Answer.question_id == question.id)
            .first()
        )
        if already_answered:
            raise ProgressConflictError(
                f"Question {question.id} was already answered in quiz attempt {attempt.id}."
            )

        if (
            question.question_type == QuestionType.MULTIPLE_CHOICE
            and submission.mcq_answer_key != question.answer_key
        ):
            logger.warning(f"Client answer key for question {question.id} differs from the stored key")
        if submission.current_total_score_before_this_answer != attempt.current_score:
            logger.warning(
                f"Client score {submission.current_total_score_before_this_answer} differs from "
                f"stored score {attempt.current_score} for attempt {attempt.id}"
            )

        expected_index = attempt.current_question_index
        previous_score = attempt.current_score

        result = await grading_service.grade(question, submission.user_answer)

        try:
            db.add(Answer(
                user_id=submission.user_id,
                question_id=question.id,
                quiz_attempt_id=attempt.id,
                user_answer=submission.user_answer,
                score=result.score,
                feedback=result.feedback,
                suggested_answer=result.suggested_answer,
                timestamp=utcnow(),
            ))
            attempt_service.record_progress(
                db,
                attempt_id=attempt.id,
                expected_index=expected_index,
                next_index=expected_index + 1,
                new_score=previous_score + result.score,
            )
            db.commit()
        except QuizAppError:
            db.rollback()
            raise
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to store answer for attempt {attempt.id}: {str(e)}")
            raise PersistenceError("Failed to store answer") from e

        logger.info(
            f"Answer stored: attempt={attempt.id}, question={question.id}, score={result.score}"
        )
        return result


# Global instance
quiz_service = QuizService()
