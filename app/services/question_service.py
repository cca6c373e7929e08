"""
Question store: LLM generation and the admin moderation state machine
"""
import logging
from typing import List, Optional

from pydantic import ValidationError as SchemaError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from app.exceptions import NotFoundError, PersistenceError, StatusTransitionError
from app.models import Question, QuestionStatus, Topic
from app.schemas.llm import GeneratedQuestion
from app.services.gemini_service import gemini_service

logger = logging.getLogger(__name__)


class QuestionService:
    """
    Moderation workflow

    pending -> approved, approved <-> deactivated, approved/deactivated -> pending,
    any -> deleted (reject, terminal). Requests for the current state are no-ops.
    """

    ALLOWED_SOURCES = {
        QuestionStatus.APPROVED: {QuestionStatus.PENDING, QuestionStatus.DEACTIVATED},
        QuestionStatus.DEACTIVATED: {QuestionStatus.APPROVED},
        QuestionStatus.PENDING: {QuestionStatus.APPROVED, QuestionStatus.DEACTIVATED},
    }

    def get_topic(self, db: Session, topic_id: int) -> Topic:
        topic = db.query(Topic).filter(Topic.id == topic_id).first()
        if not topic:
            raise NotFoundError(f"Topic with ID {topic_id} not found.")
        return topic

    def list_topics(self, db: Session) -> List[Topic]:
        return db.query(Topic).order_by(Topic.id).all()

    def get_question(self, db: Session, question_id: int) -> Question:
        question = (
            db.query(Question)
            .options(joinedload(Question.topic))
            .filter(Question.id == question_id)
            .first()
        )
        if not question:
            raise NotFoundError(f"Question with ID {question_id} not found.")
        return question

    def list_by_status(self, db: Session, status: str, topic_id: Optional[int] = None) -> List[Question]:
        query = (
            db.query(Question)
            .options(joinedload(Question.topic))
            .filter(Question.status == status)
        )
        if topic_id is not None:
            query = query.filter(Question.topic_id == topic_id)
        return query.order_by(Question.id).all()

    async def generate_and_store(self, db: Session, topic: Topic, number_of_questions: int) -> List[Question]:
        """
        Generate questions with Gemini and store the valid ones as pending

        Invalid items are skipped rather than failing the batch, and at most
        number_of_questions valid items are kept.
        """
        raw_questions = await gemini_service.generate_questions(topic.name, number_of_questions)

        if not raw_questions:
            logger.warning(f"No questions returned by generation for topic {topic.name}")
            return []

        stored = []
        for index, raw in enumerate(raw_questions):
            if len(stored) == number_of_questions:
                logger.warning(
                    f"Discarding {len(raw_questions) - index} generated questions beyond the {number_of_questions} requested"
                )
                break

            try:
                generated = GeneratedQuestion.model_validate(raw)
            except SchemaError as e:
                logger.warning(f"Skipping generated question #{index}: {e.error_count()} validation error(s)")
                continue

            question = Question(
                topic_id=topic.id,
                question_text=generated.question_text,
                question_type=generated.question_type,
                answer_key=generated.answer_key,
                options=generated.options,
                difficulty=generated.difficulty,
                status=QuestionStatus.PENDING,
            )
            db.add(question)
            stored.append(question)

        self._commit(db, f"store generated questions for topic {topic.id}")
        for question in stored:
            db.refresh(question)

        logger.info(f"{len(stored)} questions generated and pending approval for topic {topic.name}")
        return stored

    def approve(self, db: Session, question_id: int) -> Question:
        return self._transition(db, question_id, QuestionStatus.APPROVED)

    def deactivate(self, db: Session, question_id: int) -> Question:
        return self._transition(db, question_id, QuestionStatus.DEACTIVATED)

    def make_pending(self, db: Session, question_id: int) -> Question:
        return self._transition(db, question_id, QuestionStatus.PENDING)

    def reject(self, db: Session, question_id: int) -> None:
        """Hard delete; answers to the question go with it"""
        question = self.get_question(db, question_id)
        db.delete(question)
        self._commit(db, f"reject question {question_id}")
        logger.info(f"Question {question_id} rejected and deleted")

    def _transition(self, db: Session, question_id: int, target: str) -> Question:
        question = self.get_question(db, question_id)

        if question.status == target:
            return question

        if question.status not in self.ALLOWED_SOURCES[target]:
            raise StatusTransitionError(
                f"Question {question_id} cannot move from '{question.status}' to '{target}'."
            )

        previous = question.status
        question.status = target
        self._commit(db, f"set question {question_id} to {target}")

        logger.info(f"Question {question_id}: {previous} -> {target}")
        return question

    def _commit(self, db: Session, action: str) -> None:
        try:
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to {action}: {str(e)}")
            raise PersistenceError(f"Failed to {action}") from e


# Global instance
question_service = QuestionService()
