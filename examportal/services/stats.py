# examportal/services/stats.py
import logging
from datetime import date
from typing import Iterable, List, Sequence, Tuple

from sqlalchemy.orm import Session

from examportal.core.config import settings
from examportal.core.decorator import NotFoundError
from examportal.crud.crud_attempt import CRUDAttempt
from examportal.crud.crud_stats import CRUDStats
from examportal.models.test_attempt import TestAttempt
from examportal.models.user_stats import UserStats
from examportal.schemas.attempt import AttemptWithTest
from examportal.schemas.stats import (
    DashboardStats,
    StreakStats,
    TestPerformance,
    TrendStats,
    UserStatsResponse,
)
from examportal.services.scoring import is_passed, percentage
from examportal.utils.time_utils import utcnow

logger = logging.getLogger(__name__)


def compute_streaks(days: Sequence[date]) -> StreakStats:
    """
    Walk distinct completion dates from newest to oldest.

    Consecutive calendar days extend the running streak; any gap closes it and
    starts a new one at 1. ``current`` is whatever run the walk ends on, so it
    is not anchored to today.
    """
    current = 0
    best = 0
    previous = None

    for day in days:
        if previous is None:
            current = 1
            best = 1
        elif (previous - day).days == 1:
            current += 1
            best = max(best, current)
        else:
            best = max(best, current)
            current = 1
        previous = day

    return StreakStats(current=current, best=max(best, current))


def average_percentage(rows: Iterable[Tuple[int, int]]) -> float:
    values = [percentage(score, total) for score, total in rows]
    if not values:
        return 0.0
    return sum(values) / len(values)


def apply_completion(
    stats: UserStats, score: int, total_points: int, passing_score: int
) -> UserStats:
    stats.total_points += score or 0
    stats.tests_completed += 1
    if is_passed(score, total_points, passing_score):
        stats.tests_passed += 1
    return stats


class StatsService:
    def __init__(self, db: Session):
        self.db = db
        self.stats = CRUDStats(db)
        self.attempts = CRUDAttempt(db)

    def get_or_init_stats(self, user_id: int) -> UserStats:
        try:
            return self.stats.get_stats(user_id)
        except NotFoundError:
            logger.info(f"Initializing statistics for user {user_id}")
            return self.stats.init_stats(user_id)

    def get_streaks(self, user_id: int) -> StreakStats:
        return compute_streaks(self.attempts.list_completion_dates(user_id))

    def get_trend(self, user_id: int) -> TrendStats:
        window = settings.trend_window
        recent = self.attempts.list_recent_completed(user_id, limit=window, offset=0)
        previous = self.attempts.list_recent_completed(
            user_id, limit=window, offset=window
        )

        recent_average = average_percentage(recent)
        previous_average = average_percentage(previous)
        return TrendStats(
            recent_average=recent_average,
            previous_average=previous_average,
            improvement=recent_average - previous_average,
        )

    def record_completion(
        self, user_id: int, score: int, total_points: int, passing_score: int
    ) -> UserStats:
        """
        Fold one newly completed attempt into the rollup.

        Must only be called from the attempt completion path, once per
        attempt; calling it again for the same attempt double counts.
        """
        stats = self.get_or_init_stats(user_id)
        apply_completion(stats, score, total_points, passing_score)

        streak = self.get_streaks(user_id)
        stats.current_streak = streak.current
        stats.best_streak = streak.best
        stats.updated_at = utcnow()

        return self.stats.save_stats(stats)

    def rebuild_stats(self, user_id: int) -> UserStats:
        """Recompute the rollup by replaying every completed attempt."""
        stats = self.get_or_init_stats(user_id)
        stats.total_points = 0
        stats.tests_completed = 0
        stats.tests_passed = 0

        for attempt in self.attempts.list_completed_with_tests(user_id):
            apply_completion(
                stats, attempt.score, attempt.total_points, attempt.test.passing_score
            )

        streak = self.get_streaks(user_id)
        stats.current_streak = streak.current
        stats.best_streak = streak.best
        stats.updated_at = utcnow()

        self.stats.save_stats(stats)
        self.db.commit()
        self.db.refresh(stats)

        logger.info(
            f"Rebuilt statistics for user {user_id}: "
            f"{stats.tests_completed} completed, {stats.total_points} points"
        )
        return stats

    def get_performance(self, user_id: int) -> TestPerformance:
        total_attempts, average_score = self.attempts.performance(user_id)
        trend = self.get_trend(user_id)
        return TestPerformance(
            total_attempts=total_attempts,
            average_score=average_score,
            recent_average=trend.recent_average,
            improvement=trend.improvement,
        )

    def get_dashboard(self, user_id: int) -> DashboardStats:
        stats = self.get_or_init_stats(user_id)
        self.db.commit()

        recent: List[TestAttempt] = self.attempts.list_user_attempts(
            user_id, limit=settings.recent_attempts_limit
        )

        return DashboardStats(
            stats=UserStatsResponse.model_validate(stats),
            streak=self.get_streaks(user_id),
            performance=self.get_performance(user_id),
            recent_attempts=[attempt_with_test(a) for a in recent],
        )


def attempt_with_test(attempt: TestAttempt) -> AttemptWithTest:
    item = AttemptWithTest.model_validate(attempt)
    if attempt.test is not None:
        item.test_title = attempt.test.title
        item.passing_score = attempt.test.passing_score
        if attempt.score is not None:
            item.passed = is_passed(
                attempt.score, attempt.total_points, attempt.test.passing_score
            )
    return item
