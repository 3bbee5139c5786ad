# examportal/models/test.py
from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.sql import func

from examportal.core.database import Base


class Test(Base):
    __tablename__ = "tests"
    __test__ = False  # not a pytest test class

    id = Column(Integer, primary_key=True, index=True)

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    subject = Column(String(100), nullable=True, index=True)
    exam_standard = Column(String(50), nullable=True)  # GCSE, A-Level, Primary, Secondary
    difficulty = Column(String(20), nullable=True)  # Easy, Medium, Hard

    # Scoring settings
    time_limit_minutes = Column(Integer, nullable=False, default=30)
    passing_score = Column(Integer, nullable=False, default=60)  # percentage 0-100
    published = Column(Boolean, default=False, nullable=False)

    created_by = Column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )

    # Timestamps
    created_at = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self):
        return f"<Test(id={self.id}, title='{self.title}', published={self.published})>"


class Question(Base):
    __tablename__ = "questions"
    __table_args__ = (
        UniqueConstraint("test_id", "question_order", name="uq_questions_test_order"),
    )

    id = Column(Integer, primary_key=True, index=True)
    test_id = Column(
        Integer, ForeignKey("tests.id", ondelete="CASCADE"), nullable=False, index=True
    )

    question_text = Column(Text, nullable=False)
    image_url = Column(Text, nullable=True)
    question_order = Column(Integer, nullable=False)
    points = Column(Integer, nullable=False, default=1)

    created_at = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    def __repr__(self):
        return f"<Question(id={self.id}, test_id={self.test_id}, points={self.points})>"


class AnswerOption(Base):
    __tablename__ = "answer_options"
    __table_args__ = (
        UniqueConstraint(
            "question_id", "option_order", name="uq_answer_options_question_order"
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    question_id = Column(
        Integer,
        ForeignKey("questions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    option_text = Column(Text, nullable=False)
    is_correct = Column(Boolean, default=False, nullable=False)
    option_order = Column(Integer, nullable=False)  # 1-4

    created_at = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    def __repr__(self):
        return f"<AnswerOption(id={self.id}, question_id={self.question_id})>"
