"""
Pydantic schemas for the admin moderation endpoints
"""
from pydantic import BaseModel, Field
from typing import List, Optional

from app.config import settings
from app.schemas.quiz import QuestionResponse


class GenerateQuestionsRequest(BaseModel):
    """Request schema for LLM question generation"""
    topic_id: int = Field(..., alias="topicId", ge=1)
    number_of_questions: int = Field(
        ...,
        alias="numberOfQuestions",
        ge=1,
        le=settings.MAX_GENERATED_QUESTIONS,
        description=f"Questions per batch (1-{settings.MAX_GENERATED_QUESTIONS})"
    )

    class Config:
        populate_by_name = True


class AdminQuestionResponse(QuestionResponse):
    """Question with its topic name, for moderation lists"""
    topic_name: Optional[str] = None


class GenerateQuestionsResponse(BaseModel):
    message: str
    generatedQuestions: List[AdminQuestionResponse]


class MessageResponse(BaseModel):
    message: str
