# examportal/crud/crud_stats.py

from sqlalchemy.orm import Session

from examportal.core.decorator import NotFoundError, db_exception
from examportal.models.user_stats import UserStats


class CRUDStats:
    """Stats store. A missing row is reported, not papered over with zeros."""

    def __init__(self, db: Session):
        self.db = db

    @db_exception
    def get_stats(self, user_id: int) -> UserStats:
        stats = self.db.query(UserStats).filter(UserStats.user_id == user_id).first()
        if not stats:
            raise NotFoundError("User statistics not found")
        return stats

    @db_exception
    def init_stats(self, user_id: int) -> UserStats:
        stats = UserStats(
            user_id=user_id,
            total_points=0,
            tests_completed=0,
            tests_passed=0,
            current_streak=0,
            best_streak=0,
        )
        self.db.add(stats)
        self.db.flush()
        return stats

    @db_exception
    def save_stats(self, stats: UserStats) -> UserStats:
        self.db.add(stats)
        self.db.flush()
        return stats
