# examportal/crud/crud_attempt.py

from datetime import date, datetime
from typing import Dict, List, Tuple

from sqlalchemy import Float, and_, case, cast, func, update
from sqlalchemy.orm import Session, selectinload

from examportal.core.decorator import InvalidStateError, NotFoundError, db_exception
from examportal.models.test import Test
from examportal.models.test_attempt import (
    STATUS_ABANDONED,
    STATUS_COMPLETED,
    STATUS_IN_PROGRESS,
    TestAttempt,
)
from examportal.models.user import User
from examportal.schemas.attempt import AttemptSearchFilter
from examportal.utils.time_utils import utc_date


class CRUDAttempt:
    """Attempt store. Writes are flushed, never committed, here."""

    def __init__(self, db: Session):
        self.db = db

    @db_exception
    def create_attempt(
        self, user_id: int, test_id: int, started_at: datetime
    ) -> TestAttempt:
        attempt = TestAttempt(
            user_id=user_id,
            test_id=test_id,
            started_at=started_at,
            completed_at=None,
            score=None,
            total_points=None,
            time_taken_seconds=None,
            status=STATUS_IN_PROGRESS,
        )
        self.db.add(attempt)
        self.db.flush()
        return attempt

    @db_exception
    def get_attempt(self, attempt_id: int) -> TestAttempt:
        attempt = (
            self.db.query(TestAttempt).filter(TestAttempt.id == attempt_id).first()
        )
        if not attempt:
            raise NotFoundError("Attempt not found")
        return attempt

    @db_exception
    def complete_attempt(
        self,
        attempt_id: int,
        score: int,
        total_points: int,
        elapsed_seconds: int,
        completed_at: datetime,
    ) -> None:
        """
        Single guarded status transition. Only one caller can move the row out
        of ``in_progress``; everyone else gets ``InvalidStateError``.
        """
        result = self.db.execute(
            update(TestAttempt)
            .where(
                TestAttempt.id == attempt_id,
                TestAttempt.status == STATUS_IN_PROGRESS,
            )
            .values(
                completed_at=completed_at,
                score=score,
                total_points=total_points,
                time_taken_seconds=elapsed_seconds,
                status=STATUS_COMPLETED,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise InvalidStateError("Attempt is not in progress")

    @db_exception
    def abandon_attempt(self, attempt_id: int) -> None:
        result = self.db.execute(
            update(TestAttempt)
            .where(
                TestAttempt.id == attempt_id,
                TestAttempt.status == STATUS_IN_PROGRESS,
            )
            .values(status=STATUS_ABANDONED)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise InvalidStateError("Only an in-progress attempt can be abandoned")

    @db_exception
    def list_completion_dates(self, user_id: int) -> List[date]:
        """Distinct UTC calendar dates with a completed attempt, newest first."""
        rows = (
            self.db.query(TestAttempt.completed_at)
            .filter(
                TestAttempt.user_id == user_id,
                TestAttempt.status == STATUS_COMPLETED,
                TestAttempt.completed_at.isnot(None),
            )
            .all()
        )
        return sorted({utc_date(row.completed_at) for row in rows}, reverse=True)

    @db_exception
    def list_recent_completed(
        self, user_id: int, limit: int, offset: int = 0
    ) -> List[Tuple[int, int]]:
        """(score, total_points) of completed attempts with a non-zero total."""
        rows = (
            self.db.query(TestAttempt.score, TestAttempt.total_points)
            .filter(
                TestAttempt.user_id == user_id,
                TestAttempt.status == STATUS_COMPLETED,
                TestAttempt.total_points > 0,
            )
            .order_by(TestAttempt.completed_at.desc(), TestAttempt.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return [(row.score or 0, row.total_points) for row in rows]

    @db_exception
    def list_completed_with_tests(self, user_id: int) -> List[TestAttempt]:
        """Every completed attempt, oldest first, with its test loaded."""
        return (
            self.db.query(TestAttempt)
            .options(selectinload(TestAttempt.test))
            .filter(
                TestAttempt.user_id == user_id,
                TestAttempt.status == STATUS_COMPLETED,
            )
            .order_by(TestAttempt.completed_at.asc(), TestAttempt.id.asc())
            .all()
        )

    @db_exception
    def performance(self, user_id: int) -> Tuple[int, float]:
        """Completed attempt count and average percentage over scored attempts."""
        total_attempts = (
            self.db.query(func.count(TestAttempt.id))
            .filter(
                TestAttempt.user_id == user_id,
                TestAttempt.status == STATUS_COMPLETED,
            )
            .scalar()
            or 0
        )

        average = (
            self.db.query(
                func.avg(
                    cast(TestAttempt.score, Float)
                    / cast(TestAttempt.total_points, Float)
                    * 100
                )
            )
            .filter(
                TestAttempt.user_id == user_id,
                TestAttempt.status == STATUS_COMPLETED,
                TestAttempt.total_points > 0,
            )
            .scalar()
        )
        return total_attempts, float(average or 0)

    @db_exception
    def summarize_by_test(
        self, test_ids: List[int]
    ) -> Dict[int, Tuple[int, int, float]]:
        """
        Per-test attempt count, completed count and average raw score over
        completed attempts, keyed by test id. Tests without attempts are absent.
        """
        if not test_ids:
            return {}

        completed = and_(
            TestAttempt.status == STATUS_COMPLETED, TestAttempt.score.isnot(None)
        )
        rows = (
            self.db.query(
                TestAttempt.test_id,
                func.count(TestAttempt.id),
                func.sum(case((completed, 1), else_=0)),
                func.avg(
                    case((completed, cast(TestAttempt.score, Float)), else_=None)
                ),
            )
            .filter(TestAttempt.test_id.in_(test_ids))
            .group_by(TestAttempt.test_id)
            .all()
        )
        return {
            test_id: (int(total), int(done or 0), float(average or 0))
            for test_id, total, done, average in rows
        }

    @db_exception
    def list_user_attempts(self, user_id: int, limit: int) -> List[TestAttempt]:
        return (
            self.db.query(TestAttempt)
            .options(selectinload(TestAttempt.test))
            .filter(TestAttempt.user_id == user_id)
            .order_by(TestAttempt.created_at.desc(), TestAttempt.id.desc())
            .limit(limit)
            .all()
        )

    @db_exception
    def list_test_attempts(self, test_id: int) -> List[TestAttempt]:
        return (
            self.db.query(TestAttempt)
            .options(selectinload(TestAttempt.user), selectinload(TestAttempt.test))
            .filter(TestAttempt.test_id == test_id)
            .order_by(TestAttempt.started_at.desc(), TestAttempt.id.desc())
            .all()
        )

    @db_exception
    def search_attempts(self, search: AttemptSearchFilter) -> List[TestAttempt]:
        activity_at = func.coalesce(TestAttempt.completed_at, TestAttempt.started_at)

        query = (
            self.db.query(TestAttempt)
            .join(User, TestAttempt.user_id == User.id)
            .join(Test, TestAttempt.test_id == Test.id)
            .options(selectinload(TestAttempt.user), selectinload(TestAttempt.test))
        )

        if search.user_id is not None:
            query = query.filter(TestAttempt.user_id == search.user_id)
        if search.student_name:
            query = query.filter(User.username.ilike(f"%{search.student_name}%"))
        if search.test_name:
            query = query.filter(Test.title.ilike(f"%{search.test_name}%"))
        if search.date_from is not None:
            query = query.filter(activity_at >= search.date_from)
        if search.date_to is not None:
            query = query.filter(activity_at <= search.date_to)
        if search.score_min is not None:
            query = query.filter(TestAttempt.score >= search.score_min)
        if search.score_max is not None:
            query = query.filter(TestAttempt.score <= search.score_max)

        return query.order_by(activity_at.desc(), TestAttempt.id.desc()).all()

