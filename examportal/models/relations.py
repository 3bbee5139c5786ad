# examportal/models/relations.py

from sqlalchemy.orm import relationship

from .student_answer import StudentAnswer
from .test import AnswerOption, Question, Test
from .test_attempt import TestAttempt
from .user import User
from .user_stats import UserStats


def setup_relationships():
    """
    Configure all SQLAlchemy relationships between models.
    """

    # --- Rubric ---

    # 1. Test to Questions (One-to-Many)
    Test.questions = relationship(
        "Question",
        back_populates="test",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Question.question_order",
    )
    Question.test = relationship("Test", back_populates="questions")

    # 2. Question to Options (One-to-Many)
    Question.options = relationship(
        "AnswerOption",
        back_populates="question",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="AnswerOption.option_order",
    )
    AnswerOption.question = relationship("Question", back_populates="options")

    # 3. User to authored Tests (One-to-Many)
    User.tests_created = relationship("Test", back_populates="creator")
    Test.creator = relationship("User", back_populates="tests_created")

    # --- Attempts ---

    # 4. Test to Attempts (One-to-Many)
    Test.attempts = relationship(
        "TestAttempt",
        back_populates="test",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    TestAttempt.test = relationship("Test", back_populates="attempts")

    # 5. User to Attempts (One-to-Many)
    User.attempts = relationship(
        "TestAttempt",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    TestAttempt.user = relationship("User", back_populates="attempts")

    # 6. Attempt to Answers (One-to-Many)
    TestAttempt.answers = relationship(
        "StudentAnswer",
        back_populates="attempt",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="StudentAnswer.question_id",
    )
    StudentAnswer.attempt = relationship("TestAttempt", back_populates="answers")
    StudentAnswer.question = relationship("Question")
    StudentAnswer.selected_option = relationship("AnswerOption")

    # --- Statistics ---

    # 7. User to Stats (One-to-One)
    User.stats = relationship(
        "UserStats",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    UserStats.user = relationship("User", back_populates="stats")
