# examportal/models/student_answer.py
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.sql import func

from examportal.core.database import Base


class StudentAnswer(Base):
    __tablename__ = "student_answers"
    __table_args__ = (
        # One answer per question per attempt; resubmission is an upsert
        UniqueConstraint(
            "attempt_id", "question_id", name="uq_student_answers_attempt_question"
        ),
    )

    id = Column(Integer, primary_key=True, index=True)

    attempt_id = Column(
        Integer,
        ForeignKey("test_attempts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    question_id = Column(
        Integer, ForeignKey("questions.id", ondelete="CASCADE"), nullable=False
    )
    selected_option_id = Column(
        Integer, ForeignKey("answer_options.id", ondelete="SET NULL"), nullable=True
    )
    is_correct = Column(Boolean, nullable=True)

    answered_at = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    def __repr__(self):
        return (
            f"<StudentAnswer(attempt_id={self.attempt_id}, "
            f"question_id={self.question_id}, is_correct={self.is_correct})>"
        )
