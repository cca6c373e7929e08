import pytest
from unittest.mock import AsyncMock, patch

from app.exceptions import ExternalServiceError, ValidationError
from app.models import Question, QuestionType
from app.services.gemini_service import gemini_service
from app.services.grading_service import GradingService, grading_service


def _mcq(answer_key="B"):
    return Question(
        question_text="Which normal form removes transitive dependencies?",
        question_type=QuestionType.MULTIPLE_CHOICE,
        answer_key=answer_key,
        options={"A": "1NF", "B": "3NF", "C": "2NF", "D": "BCNF"},
    )


def _free_text():
    return Question(
        question_text="Explain what an index is.",
        question_type=QuestionType.FREE_TEXT,
        answer_key="A structure that speeds up lookups.",
    )


@pytest.mark.asyncio
async def test_mcq_exact_match_scores_five():
    with patch.object(gemini_service, "grade_free_text", new=AsyncMock()) as llm:
        result = await grading_service.grade(_mcq("B"), "B")

    assert result.score == 5
    assert result.feedback == "Correct!"
    assert result.suggested_answer == "The correct option was B."
    llm.assert_not_called()


@pytest.mark.asyncio
@pytest.mark.parametrize("answer", ["A", "C", "b", " B", "", "3NF"])
async def test_mcq_anything_else_scores_zero(answer):
    result = await grading_service.grade(_mcq("B"), answer)

    assert result.score == 0
    assert result.feedback == "Incorrect. The correct answer was B."


@pytest.mark.asyncio
async def test_free_text_uses_llm_grade():
    reply = {"score": 3, "feedback": "Partially right.", "suggestedAnswer": "An index is..."}
    with patch.object(gemini_service, "grade_free_text", new=AsyncMock(return_value=reply)) as llm:
        result = await grading_service.grade(_free_text(), "It makes queries faster")

    llm.assert_awaited_once_with("Explain what an index is.", "It makes queries faster")
    assert result.score == 3
    assert result.feedback == "Partially right."
    assert result.suggested_answer == "An index is..."


@pytest.mark.asyncio
@pytest.mark.parametrize("reply", [
    {"feedback": "no score", "suggestedAnswer": "x"},
    {"score": "4", "feedback": "ok", "suggestedAnswer": "x"},
    {"score": 7, "feedback": "too high", "suggestedAnswer": "x"},
    {"score": -1, "feedback": "too low", "suggestedAnswer": "x"},
    {"score": 4.5, "feedback": "fractional", "suggestedAnswer": "x"},
    {"score": 4, "feedback": None, "suggestedAnswer": "x"},
    {"score": 4, "feedback": "ok"},
    ["not", "an", "object"],
    None,
])
async def test_free_text_malformed_reply_fails_closed(reply):
    with patch.object(gemini_service, "grade_free_text", new=AsyncMock(return_value=reply)):
        result = await grading_service.grade(_free_text(), "answer")

    assert result.score == 0
    assert result.feedback == GradingService.FALLBACK_FEEDBACK
    assert result.suggested_answer == "N/A"


@pytest.mark.asyncio
async def test_free_text_provider_failure_fails_closed():
    failing = AsyncMock(side_effect=ExternalServiceError("Grading service is unavailable"))
    with patch.object(gemini_service, "grade_free_text", new=failing):
        result = await grading_service.grade(_free_text(), "answer")

    assert result.score == 0
    assert result.suggested_answer == "N/A"


@pytest.mark.asyncio
async def test_unknown_question_type_is_rejected():
    question = Question(question_text="?", question_type="essay", answer_key="x")

    with pytest.raises(ValidationError):
        await grading_service.grade(question, "answer")
