"""
Database models package
"""
from app.models.user import User
from app.models.topic import Topic
from app.models.question import Question, QuestionStatus, QuestionType
from app.models.quiz_attempt import QuizAttempt, AttemptStatus
from app.models.answer import Answer

__all__ = [
    "User",
    "Topic",
    "Question",
    "QuestionStatus",
    "QuestionType",
    "QuizAttempt",
    "AttemptStatus",
    "Answer",
]
