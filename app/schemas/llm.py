"""
Schemas for validating untrusted LLM output before it is used or persisted
"""
from pydantic import BaseModel, Field, StrictInt, StrictStr, model_validator
from typing import Dict, Literal, Optional


class LLMGrade(BaseModel):
    """Free-text grading reply; any deviation fails the whole reply"""
    score: StrictInt = Field(..., ge=0, le=5)
    feedback: StrictStr
    suggested_answer: StrictStr = Field(..., alias="suggestedAnswer")


class GeneratedQuestion(BaseModel):
    """One generated question as returned by the LLM"""
    question_text: str = Field(..., min_length=1)
    question_type: Literal["free-text", "multiple-choice"]
    answer_key: str = Field(..., min_length=1)
    options: Optional[Dict[str, str]] = None
    difficulty: Optional[str] = None

    @model_validator(mode="after")
    def check_options(self):
        if self.question_type == "multiple-choice":
            if not self.options:
                raise ValueError("multiple-choice question without options")
            if self.answer_key not in self.options:
                raise ValueError(f"answer key {self.answer_key!r} is not one of the options")
        else:
            self.options = None
        return self
