# examportal/models/user_stats.py
from sqlalchemy import Column, DateTime, ForeignKey, Integer
from sqlalchemy.sql import func

from examportal.core.database import Base


class UserStats(Base):
    """Per-user rollup, reproducible by replaying completed attempts."""

    __tablename__ = "user_stats"

    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )

    total_points = Column(Integer, default=0, nullable=False)
    tests_completed = Column(Integer, default=0, nullable=False)
    tests_passed = Column(Integer, default=0, nullable=False)
    current_streak = Column(Integer, default=0, nullable=False)
    best_streak = Column(Integer, default=0, nullable=False)

    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    def __repr__(self):
        return (
            f"<UserStats(user_id={self.user_id}, total_points={self.total_points}, "
            f"completed={self.tests_completed}, passed={self.tests_passed})>"
        )
