"""
Pydantic schemas for quiz-taking requests and responses
"""
from pydantic import BaseModel, Field, model_validator
from typing import Dict, Optional
from datetime import datetime

from app.models import QuestionType


class TopicResponse(BaseModel):
    """Topic list entry"""
    id: int
    name: str

    class Config:
        from_attributes = True


class QuestionResponse(BaseModel):
    """Question as served to quiz takers and admins"""
    id: int
    topic_id: int
    question_text: str
    question_type: str
    options: Optional[Dict[str, str]] = None
    answer_key: Optional[str] = None
    difficulty: Optional[str] = None
    status: str

    class Config:
        from_attributes = True


class QuizStartRequest(BaseModel):
    """Schema for starting (or resuming) a quiz attempt"""
    user_id: int = Field(..., alias="userId", ge=1)
    topic_id: int = Field(..., alias="topicId", ge=1)

    class Config:
        populate_by_name = True


class QuizStartResponse(BaseModel):
    """Attempt id plus the frozen question count used for progress display"""
    quizAttemptId: int
    totalQuestionsInAttempt: int
    resumed: bool = False


class AttemptResponse(BaseModel):
    """
    Attempt state used by the client to resume after a reload

    Key casing follows the existing client contract.
    """
    quizAttemptId: int
    userId: int
    topicId: int
    status: str
    current_question_index: int
    current_score: float
    totalQuestionsInAttempt: int
    start_time: Optional[datetime] = None
    last_activity_time: Optional[datetime] = None


class AnswerSubmission(BaseModel):
    """Schema for a single answer submission"""
    question_id: int = Field(..., alias="questionId")
    question_text: str = Field(..., alias="questionText", min_length=1)
    question_type: str = Field(
        ...,
        alias="questionType",
        pattern="^(free-text|multiple-choice)$",
        description="Question type"
    )
    user_answer: str = Field(..., alias="userAnswer")
    mcq_answer_key: Optional[str] = Field(None, alias="mcqAnswerKey")
    user_id: int = Field(..., alias="userId", ge=1)
    quiz_attempt_id: int = Field(..., alias="quizAttemptId")
    answered_question_index: int = Field(..., alias="answeredQuestionIndex", ge=0)
    current_total_score_before_this_answer: float = Field(
        ..., alias="currentTotalScoreBeforeThisAnswer", ge=0
    )

    class Config:
        populate_by_name = True

    @model_validator(mode="after")
    def require_mcq_answer_key(self):
        if self.question_type == QuestionType.MULTIPLE_CHOICE and self.mcq_answer_key is None:
            raise ValueError("mcqAnswerKey is required for multiple-choice questions")
        return self


class AnswerResult(BaseModel):
    """Grading result for one answer"""
    score: int
    feedback: str
    suggestedAnswer: str
