"""
Quiz-taking API endpoints: topics, attempts, questions and answers
"""

import asyncio
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.config import settings
from app.database import get_db
from app.exceptions import NotFoundError
from app.models import QuizAttempt
from app.schemas.quiz import (
    AnswerResult,
    AnswerSubmission,
    AttemptResponse,
    QuestionResponse,
    QuizStartRequest,
    QuizStartResponse,
    TopicResponse,
)
from app.services.attempt_service import attempt_service
from app.services.question_selector import question_selector
from app.services.question_service import question_service
from app.services.quiz_service import quiz_service
from app.utils.cache import TOPICS_CACHE_KEY, cache_service


router = APIRouter(prefix="/api", tags=["quiz"])
logger = logging.getLogger(__name__)

START_POLL_INTERVAL = 0.1


def _attempt_response(attempt: QuizAttempt) -> AttemptResponse:
    return AttemptResponse(
        quizAttemptId=attempt.id,
        userId=attempt.user_id,
        topicId=attempt.topic_id,
        status=attempt.status,
        current_question_index=attempt.current_question_index,
        current_score=attempt.current_score,
        totalQuestionsInAttempt=attempt.total_questions_in_attempt or 0,
        start_time=attempt.start_time,
        last_activity_time=attempt.last_activity_time,
    )


@router.get("/topics", response_model=List[TopicResponse])
async def list_topics(db: Session = Depends(get_db)):
    """List all quiz topics (cached; topics do not change after seeding)"""

    cached = cache_service.get(TOPICS_CACHE_KEY)
    if cached:
        return cached

    topics = [
        TopicResponse.model_validate(topic).model_dump()
        for topic in question_service.list_topics(db)
    ]
    cache_service.set(TOPICS_CACHE_KEY, topics, ttl=settings.TOPICS_CACHE_TTL)
    return topics


@router.get("/quiz/attempts/active", response_model=AttemptResponse)
async def get_active_attempt(
    user_id: int = Query(..., alias="userId"),
    topic_id: int = Query(..., alias="topicId"),
    db: Session = Depends(get_db)
):
    """
    Fetch the in-progress attempt for a user and topic

    Returns 404 when there is none; the client then starts a new attempt.
    """
    attempt = attempt_service.get_active_attempt(db, user_id, topic_id)
    if not attempt:
        raise NotFoundError("No active quiz attempt found for this user and topic.")
    return _attempt_response(attempt)


@router.post("/quiz/start", response_model=QuizStartResponse, status_code=201)
async def start_quiz(request: QuizStartRequest, db: Session = Depends(get_db)):
    """
    Start a quiz attempt, or return the one already in progress

    - Concurrent starts for the same user and topic are coalesced with a
      short Redis lock; the loser waits for the winner's attempt
    - The partial unique index on in-progress attempts is the final arbiter
    - totalQuestionsInAttempt is frozen at creation
    """
    lock_key = cache_service.start_lock_key(request.user_id, request.topic_id)
    token = cache_service.acquire_lock(lock_key, ttl=settings.START_LOCK_TTL)

    if token is None:
        waited = 0.0
        while waited < settings.START_LOCK_WAIT_SECONDS:
            await asyncio.sleep(START_POLL_INTERVAL)
            waited += START_POLL_INTERVAL
            db.expire_all()
            winner = attempt_service.get_active_attempt(db, request.user_id, request.topic_id)
            if winner:
                return QuizStartResponse(
                    quizAttemptId=winner.id,
                    totalQuestionsInAttempt=winner.total_questions_in_attempt or 0,
                    resumed=True,
                )
        logger.warning(f"Start lock wait timed out for {lock_key}; starting directly")

    try:
        attempt, created = attempt_service.start_attempt(db, request.user_id, request.topic_id)
    finally:
        if token is not None:
            cache_service.release_lock(lock_key, token)

    return QuizStartResponse(
        quizAttemptId=attempt.id,
        totalQuestionsInAttempt=attempt.total_questions_in_attempt or 0,
        resumed=not created,
    )


@router.post("/quiz/attempts/{attempt_id}/abandon", response_model=AttemptResponse)
async def abandon_attempt(attempt_id: int, db: Session = Depends(get_db)):
    """Abandon an in-progress attempt so the topic can be restarted"""
    attempt = attempt_service.abandon_attempt(db, attempt_id)
    return _attempt_response(attempt)


@router.get("/quiz/{topic_id}/questions", response_model=List[QuestionResponse])
async def get_quiz_questions(
    topic_id: int,
    user_id: Optional[int] = Query(None, alias="userId"),
    db: Session = Depends(get_db)
):
    """
    Eligible questions for a quiz session

    Approved questions for the topic, minus any this user answered in the
    last 24 hours. An empty list means the pool is exhausted for now.
    """
    if user_id is None:
        user_id = settings.DEFAULT_USER_ID

    return question_selector.select_questions(db, topic_id, user_id)


@router.post("/answers", response_model=AnswerResult)
async def submit_answer(
    submission: AnswerSubmission,
    db: Session = Depends(get_db)
):
    """
    Submit and grade one answer, then advance the attempt's progress

    Grading strategy:
    - MCQ: Exact match, 5 or 0
    - Free-text: Gemini score 0-5, degrading to 0 with a notice if grading fails
    """
    logger.info(
        f"Answer for question {submission.question_id} in attempt {submission.quiz_attempt_id} "
        f"(index {submission.answered_question_index})"
    )

    result = await quiz_service.submit_answer(db, submission)

    return AnswerResult(
        score=result.score,
        feedback=result.feedback,
        suggestedAnswer=result.suggested_answer,
    )
