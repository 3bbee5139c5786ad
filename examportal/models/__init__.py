# examportal/models/__init__.py

"""
Models package initialization
Import all models and setup relationships
"""

from .relations import setup_relationships
from .student_answer import StudentAnswer
from .test import AnswerOption, Question, Test
from .test_attempt import TestAttempt
from .user import User
from .user_stats import UserStats

# Setup all relationships after models are imported
setup_relationships()

__all__ = [
    "AnswerOption",
    "Question",
    "StudentAnswer",
    "Test",
    "TestAttempt",
    "User",
    "UserStats",
]
