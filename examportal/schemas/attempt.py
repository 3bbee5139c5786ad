# examportal/schemas/attempt.py

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from examportal.schemas.test import TestResponse, TestWithAnswers


class AttemptStart(BaseModel):
    test_id: int = Field(..., gt=0)


class AnswerSubmit(BaseModel):
    question_id: int = Field(..., gt=0)
    option_id: int = Field(..., gt=0)


class AnswerSubmitResponse(BaseModel):
    success: bool = True
    message: str = "Answer saved"
    is_correct: bool


class StudentAnswerResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    question_id: int
    selected_option_id: Optional[int] = None
    is_correct: Optional[bool] = None
    answered_at: datetime


class AttemptResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    test_id: int
    status: str
    score: Optional[int] = None
    total_points: Optional[int] = None
    time_taken_seconds: Optional[int] = None
    percentage: float = 0.0
    started_at: datetime
    completed_at: Optional[datetime] = None


class AttemptWithTest(AttemptResponse):
    test_title: Optional[str] = None
    passing_score: Optional[int] = None
    passed: Optional[bool] = None


class AttemptInProgress(BaseModel):
    """An attempt being taken: questions without correct answers"""

    attempt: AttemptResponse
    test: TestResponse
    answered: dict[int, Optional[int]] = {}
    time_limit_seconds: int


class AttemptResults(BaseModel):
    attempt: AttemptResponse
    test: TestWithAnswers
    answers: List[StudentAnswerResponse]
    percentage: float
    passed: bool


class AttemptSearchFilter(BaseModel):
    user_id: Optional[int] = None
    student_name: Optional[str] = None
    test_name: Optional[str] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    score_min: Optional[int] = None
    score_max: Optional[int] = None


class AttemptSearchResult(AttemptWithTest):
    username: Optional[str] = None
