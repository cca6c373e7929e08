"""
Answer grading service with hybrid approach
MCQ: Exact match against the answer key
Free-text: Semantic grading via Gemini, failing closed to a zero score
"""
import logging
from dataclasses import dataclass

from pydantic import ValidationError as SchemaError

from app.exceptions import ExternalServiceError, ValidationError
from app.models import Question, QuestionType
from app.schemas.llm import LLMGrade
from app.services.gemini_service import gemini_service

logger = logging.getLogger(__name__)


@dataclass
class GradeResult:
    score: int
    feedback: str
    suggested_answer: str


class GradingService:
    """
    Service for grading single answers

    Strategy:
    - MCQ: Exact match (deterministic, no external call), 5 or 0
    - Free-text: Gemini score 0-5; any failure degrades to the default result
      so a grading outage never blocks quiz taking
    """

    MAX_SCORE = 5
    FALLBACK_FEEDBACK = "Could not grade the answer at this time. Please try again later."
    FALLBACK_SUGGESTED_ANSWER = "N/A"

    async def grade(self, question: Question, user_answer: str) -> GradeResult:
        if question.question_type == QuestionType.MULTIPLE_CHOICE:
            return self._grade_mcq(question.answer_key, user_answer)
        if question.question_type == QuestionType.FREE_TEXT:
            return await self._grade_free_text(question.question_text, user_answer)
        raise ValidationError(f"Unsupported question type: {question.question_type}")

    def _grade_mcq(self, answer_key: str, user_answer: str) -> GradeResult:
        if not answer_key:
            raise ValidationError("Multiple choice question has no answer key for grading")

        if user_answer == answer_key:
            score, feedback = self.MAX_SCORE, "Correct!"
        else:
            score, feedback = 0, f"Incorrect. The correct answer was {answer_key}."

        return GradeResult(
            score=score,
            feedback=feedback,
            suggested_answer=f"The correct option was {answer_key}."
        )

    async def _grade_free_text(self, question_text: str, user_answer: str) -> GradeResult:
        try:
            raw = await gemini_service.grade_free_text(question_text, user_answer)
            grade = LLMGrade.model_validate(raw)
        except ExternalServiceError as e:
            logger.error(f"Semantic grading failed: {e.message}")
            return self._fallback()
        except SchemaError as e:
            logger.error(f"Grading reply failed validation: {e.error_count()} error(s): {str(raw)[:300]}")
            return self._fallback()

        return GradeResult(
            score=grade.score,
            feedback=grade.feedback,
            suggested_answer=grade.suggested_answer
        )

    def _fallback(self) -> GradeResult:
        return GradeResult(
            score=0,
            feedback=self.FALLBACK_FEEDBACK,
            suggested_answer=self.FALLBACK_SUGGESTED_ANSWER
        )


# Global instance
grading_service = GradingService()
