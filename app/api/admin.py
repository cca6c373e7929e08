"""
Admin moderation API endpoints
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.database import get_db
from app.models import Question, QuestionStatus
from app.schemas.admin import (
    AdminQuestionResponse,
    GenerateQuestionsRequest,
    GenerateQuestionsResponse,
    MessageResponse,
)
from app.services.question_service import question_service


router = APIRouter(prefix="/admin/questions", tags=["admin"])
logger = logging.getLogger(__name__)


def _admin_question(question: Question) -> AdminQuestionResponse:
    return AdminQuestionResponse(
        id=question.id,
        topic_id=question.topic_id,
        topic_name=question.topic.name if question.topic else None,
        question_text=question.question_text,
        question_type=question.question_type,
        options=question.options,
        answer_key=question.answer_key,
        difficulty=question.difficulty,
        status=question.status,
    )


def _list(db: Session, status: str, topic_id: Optional[int]) -> List[AdminQuestionResponse]:
    return [_admin_question(q) for q in question_service.list_by_status(db, status, topic_id)]


@router.post("/generate", response_model=GenerateQuestionsResponse, status_code=201)
async def generate_questions(request: GenerateQuestionsRequest, db: Session = Depends(get_db)):
    """
    Generate a batch of questions for a topic using Gemini

    - Replies are schema-validated; invalid items are skipped
    - Stored questions start as pending and wait for approval
    """
    topic = question_service.get_topic(db, request.topic_id)

    logger.info(f"Generating {request.number_of_questions} questions for topic {topic.name}")
    stored = await question_service.generate_and_store(db, topic, request.number_of_questions)

    return GenerateQuestionsResponse(
        message=f"{len(stored)} questions generated and are pending approval.",
        generatedQuestions=[_admin_question(q) for q in stored],
    )


@router.get("/pending", response_model=List[AdminQuestionResponse])
async def list_pending(
    topic_id: Optional[int] = Query(None, alias="topicId"),
    db: Session = Depends(get_db)
):
    return _list(db, QuestionStatus.PENDING, topic_id)


@router.get("/approved", response_model=List[AdminQuestionResponse])
async def list_approved(
    topic_id: Optional[int] = Query(None, alias="topicId"),
    db: Session = Depends(get_db)
):
    return _list(db, QuestionStatus.APPROVED, topic_id)


@router.get("/deactivated", response_model=List[AdminQuestionResponse])
async def list_deactivated(
    topic_id: Optional[int] = Query(None, alias="topicId"),
    db: Session = Depends(get_db)
):
    return _list(db, QuestionStatus.DEACTIVATED, topic_id)


@router.get("/{question_id}", response_model=AdminQuestionResponse)
async def get_question(question_id: int, db: Session = Depends(get_db)):
    return _admin_question(question_service.get_question(db, question_id))


@router.post("/{question_id}/approve", response_model=MessageResponse)
async def approve_question(question_id: int, db: Session = Depends(get_db)):
    """Approve a pending or deactivated question"""
    question_service.approve(db, question_id)
    return MessageResponse(message=f"Question {question_id} approved successfully.")


@router.post("/{question_id}/deactivate", response_model=MessageResponse)
async def deactivate_question(question_id: int, db: Session = Depends(get_db)):
    """Take an approved question out of quiz rotation"""
    question_service.deactivate(db, question_id)
    return MessageResponse(message=f"Question {question_id} deactivated successfully.")


@router.post("/{question_id}/make-pending", response_model=MessageResponse)
async def make_question_pending(question_id: int, db: Session = Depends(get_db)):
    """Send an approved or deactivated question back to review"""
    question_service.make_pending(db, question_id)
    return MessageResponse(message=f"Question {question_id} status set to pending successfully.")


@router.delete("/{question_id}/reject", response_model=MessageResponse)
async def reject_question(question_id: int, db: Session = Depends(get_db)):
    """
    Reject a question

    Hard delete: the question and every answer recorded for it are removed.
    """
    question_service.reject(db, question_id)
    return MessageResponse(message=f"Question {question_id} rejected and deleted successfully.")
