import pytest
from unittest.mock import AsyncMock, patch

from app.exceptions import ExternalServiceError, NotFoundError, StatusTransitionError
from app.models import Answer, Question, QuestionStatus
from app.services.gemini_service import gemini_service
from app.services.question_service import question_service


GENERATED = [
    {
        "question_text": "What does ACID stand for?",
        "question_type": "free-text",
        "answer_key": "Atomicity, Consistency, Isolation, Durability",
        "options": None,
        "difficulty": "Easy",
    },
    {
        "question_text": "Which isolation level prevents phantom reads?",
        "question_type": "multiple-choice",
        "answer_key": "D",
        "options": {"A": "Read uncommitted", "B": "Read committed", "C": "Repeatable read", "D": "Serializable"},
        "difficulty": "Hard",
    },
    # invalid: answer key is not one of the options
    {
        "question_text": "Pick one",
        "question_type": "multiple-choice",
        "answer_key": "E",
        "options": {"A": "x", "B": "y"},
        "difficulty": "Easy",
    },
    # invalid: missing answer key
    {"question_text": "Explain sharding.", "question_type": "free-text"},
    # invalid: unknown type
    {"question_text": "True or false?", "question_type": "true-false", "answer_key": "True"},
]


@pytest.mark.asyncio
async def test_generate_stores_only_valid_questions_as_pending(test_db, topic):
    with patch.object(gemini_service, "generate_questions", new=AsyncMock(return_value=GENERATED)) as llm:
        stored = await question_service.generate_and_store(test_db, topic, 5)

    llm.assert_awaited_once_with("Databases", 5)
    assert len(stored) == 2
    assert all(q.status == QuestionStatus.PENDING for q in stored)
    assert stored[0].options is None
    assert stored[1].options["D"] == "Serializable"
    assert test_db.query(Question).count() == 2


@pytest.mark.asyncio
async def test_generate_with_unparseable_reply_stores_nothing(test_db, topic):
    with patch.object(gemini_service, "generate_questions", new=AsyncMock(return_value=[])):
        stored = await question_service.generate_and_store(test_db, topic, 3)

    assert stored == []
    assert test_db.query(Question).count() == 0


@pytest.mark.asyncio
async def test_generate_provider_failure_propagates(test_db, topic):
    failing = AsyncMock(side_effect=ExternalServiceError("Question generation service is unavailable"))
    with patch.object(gemini_service, "generate_questions", new=failing):
        with pytest.raises(ExternalServiceError):
            await question_service.generate_and_store(test_db, topic, 3)


def test_generation_reply_shapes():
    import json

    bare = json.dumps(GENERATED[:2])
    wrapped = "```json\n" + json.dumps({"questions": GENERATED[:2]}) + "\n```"
    single = json.dumps(GENERATED[0])

    assert len(gemini_service._parse_generation_response(bare, 2)) == 2
    assert len(gemini_service._parse_generation_response(wrapped, 2)) == 2
    assert len(gemini_service._parse_generation_response(single, 1)) == 1
    assert gemini_service._parse_generation_response(single, 2) == []
    assert gemini_service._parse_generation_response("not json at all", 2) == []


def test_moderation_transitions(test_db, topic, make_question):
    question = make_question(topic, status=QuestionStatus.PENDING)

    assert question_service.approve(test_db, question.id).status == QuestionStatus.APPROVED
    assert question_service.deactivate(test_db, question.id).status == QuestionStatus.DEACTIVATED
    assert question_service.approve(test_db, question.id).status == QuestionStatus.APPROVED
    assert question_service.make_pending(test_db, question.id).status == QuestionStatus.PENDING
    # same-state request is a no-op
    assert question_service.make_pending(test_db, question.id).status == QuestionStatus.PENDING


def test_pending_question_cannot_be_deactivated(test_db, topic, make_question):
    question = make_question(topic, status=QuestionStatus.PENDING)

    with pytest.raises(StatusTransitionError):
        question_service.deactivate(test_db, question.id)

    test_db.refresh(question)
    assert question.status == QuestionStatus.PENDING


def test_transition_unknown_question(test_db):
    with pytest.raises(NotFoundError):
        question_service.approve(test_db, 12345)


def test_list_by_status_filters_by_topic(test_db, topic, make_question):
    from app.models import Topic
    other = Topic(name="Back-End")
    test_db.add(other)
    test_db.commit()

    mine = make_question(topic)
    make_question(other)
    make_question(topic, status=QuestionStatus.PENDING)

    approved = question_service.list_by_status(test_db, QuestionStatus.APPROVED, topic.id)
    assert [q.id for q in approved] == [mine.id]
    assert len(question_service.list_by_status(test_db, QuestionStatus.APPROVED)) == 2


def test_reject_cascades_to_answers(test_db, topic, make_question):
    question = make_question(topic)
    keep = make_question(topic)
    for q in (question, question, keep):
        test_db.add(Answer(user_id=1, question_id=q.id, user_answer="A", score=5))
    test_db.commit()
    question_id = question.id

    question_service.reject(test_db, question_id)

    assert test_db.query(Answer).filter(Answer.question_id == question_id).count() == 0
    assert test_db.query(Answer).count() == 1
    with pytest.raises(NotFoundError):
        question_service.get_question(test_db, question_id)


@pytest.mark.asyncio
async def test_generate_keeps_at_most_the_requested_number(test_db, topic):
    valid = GENERATED[0]
    reply = [GENERATED[2]] + [dict(valid, question_text=f"Question {i}") for i in range(25)]
    with patch.object(gemini_service, "generate_questions", new=AsyncMock(return_value=reply)):
        stored = await question_service.generate_and_store(test_db, topic, 2)

    assert [q.question_text for q in stored] == ["Question 0", "Question 1"]
    assert test_db.query(Question).count() == 2


def test_generate_request_bound_follows_settings():
    from pydantic import ValidationError as SchemaError
    from app.config import settings
    from app.schemas.admin import GenerateQuestionsRequest

    request = GenerateQuestionsRequest(topicId=1, numberOfQuestions=settings.MAX_GENERATED_QUESTIONS)
    assert request.number_of_questions == settings.MAX_GENERATED_QUESTIONS

    with pytest.raises(SchemaError):
        GenerateQuestionsRequest(topicId=1, numberOfQuestions=settings.MAX_GENERATED_QUESTIONS + 1)
    with pytest.raises(SchemaError):
        GenerateQuestionsRequest(topicId=1, numberOfQuestions=0)
