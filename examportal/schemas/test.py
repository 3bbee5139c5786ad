# examportal/schemas/test.py

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

EXAM_STANDARDS = ["GCSE", "A-Level", "Primary", "Secondary"]
DIFFICULTIES = ["Easy", "Medium", "Hard"]
OPTIONS_PER_QUESTION = 4


# ==================== Authoring ====================


class AnswerOptionCreate(BaseModel):
    option_text: str = Field(..., min_length=1, max_length=1000)
    is_correct: bool = False

    @field_validator("option_text")
    def strip_text(cls, v):
        if not v.strip():
            raise ValueError("Option text is required")
        return v.strip()


class QuestionCreate(BaseModel):
    question_text: str = Field(..., min_length=1, max_length=5000)
    image_url: Optional[str] = None
    points: int = Field(1, gt=0, description="Points awarded for a correct answer")
    options: List[AnswerOptionCreate]

    @field_validator("question_text")
    def strip_text(cls, v):
        if not v.strip():
            raise ValueError("Question text is required")
        return v.strip()

    @model_validator(mode="after")
    def check_options(self):
        if len(self.options) != OPTIONS_PER_QUESTION:
            raise ValueError(
                f"A question must have exactly {OPTIONS_PER_QUESTION} answer options"
            )
        correct = sum(1 for opt in self.options if opt.is_correct)
        if correct == 0:
            raise ValueError("One option must be marked as correct")
        if correct > 1:
            raise ValueError("Only one option can be marked as correct")
        return self


class TestBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    subject: Optional[str] = Field(None, max_length=100)
    exam_standard: Optional[str] = None
    difficulty: Optional[str] = None
    time_limit_minutes: int = Field(30, gt=0, description="Time limit in minutes")
    passing_score: int = Field(60, ge=0, le=100, description="Pass mark in percent")

    @field_validator("exam_standard")
    def validate_standard(cls, v):
        if v is not None and v not in EXAM_STANDARDS:
            raise ValueError(f"Invalid exam standard. Must be one of {EXAM_STANDARDS}")
        return v

    @field_validator("difficulty")
    def validate_difficulty(cls, v):
        if v is not None and v not in DIFFICULTIES:
            raise ValueError(f"Invalid difficulty. Must be one of {DIFFICULTIES}")
        return v


class TestCreate(TestBase):
    __test__ = False

    questions: List[QuestionCreate] = Field(..., min_length=1)


class AnswerOptionEdit(BaseModel):
    id: int
    option_text: str = Field(..., min_length=1, max_length=1000)

    @field_validator("option_text")
    def strip_text(cls, v):
        if not v.strip():
            raise ValueError("Option text is required")
        return v.strip()


class QuestionEdit(BaseModel):
    """In-place edit of an existing question, keyed by its id"""

    id: int
    question_text: Optional[str] = Field(None, min_length=1, max_length=5000)
    image_url: Optional[str] = None
    points: Optional[int] = Field(None, gt=0)
    correct_option_id: Optional[int] = None
    options: Optional[List[AnswerOptionEdit]] = None

    @field_validator("question_text")
    def strip_text(cls, v):
        if v is not None:
            if not v.strip():
                raise ValueError("Question text is required")
            return v.strip()
        return v


class TestUpdate(BaseModel):
    __test__ = False

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    subject: Optional[str] = Field(None, max_length=100)
    exam_standard: Optional[str] = None
    difficulty: Optional[str] = None
    time_limit_minutes: Optional[int] = Field(None, gt=0)
    passing_score: Optional[int] = Field(None, ge=0, le=100)
    questions: Optional[List[QuestionCreate]] = Field(None, min_length=1)
    question_edits: Optional[List[QuestionEdit]] = None

    @model_validator(mode="after")
    def check_question_changes(self):
        if self.questions is not None and self.question_edits is not None:
            raise ValueError("Replace questions or edit them in place, not both")
        return self

    @field_validator("exam_standard")
    def validate_standard(cls, v):
        if v is not None and v not in EXAM_STANDARDS:
            raise ValueError(f"Invalid exam standard. Must be one of {EXAM_STANDARDS}")
        return v

    @field_validator("difficulty")
    def validate_difficulty(cls, v):
        if v is not None and v not in DIFFICULTIES:
            raise ValueError(f"Invalid difficulty. Must be one of {DIFFICULTIES}")
        return v


# ==================== Responses ====================


class AnswerOptionResponse(BaseModel):
    """Option as shown to a student: correctness hidden"""

    model_config = ConfigDict(from_attributes=True)

    id: int
    option_text: str
    option_order: int


class AnswerOptionWithAnswer(AnswerOptionResponse):
    is_correct: bool


class QuestionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    question_text: str
    image_url: Optional[str] = None
    question_order: int
    points: int
    options: List[AnswerOptionResponse]


class QuestionWithAnswers(QuestionResponse):
    options: List[AnswerOptionWithAnswer]


class TestSummary(BaseModel):
    __test__ = False

    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: Optional[str] = None
    subject: Optional[str] = None
    exam_standard: Optional[str] = None
    difficulty: Optional[str] = None
    time_limit_minutes: int
    passing_score: int
    published: bool
    created_by: Optional[int] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class TestResponse(TestSummary):
    """Test as shown to a student taking it"""

    questions: List[QuestionResponse] = []


class TestWithAnswers(TestSummary):
    """Test as shown to its author or an admin"""

    questions: List[QuestionWithAnswers] = []


class TestOverview(TestSummary):
    """Author dashboard row: a test with its attempt aggregates"""

    total_attempts: int = 0
    completed_attempts: int = 0
    average_score: float = 0.0
