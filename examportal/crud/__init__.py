# examportal/crud/__init__.py

from .crud_answer import CRUDAnswer
from .crud_attempt import CRUDAttempt
from .crud_stats import CRUDStats
from .crud_test import CRUDTest
from .crud_user import CRUDUser

__all__ = ["CRUDAnswer", "CRUDAttempt", "CRUDStats", "CRUDTest", "CRUDUser"]
