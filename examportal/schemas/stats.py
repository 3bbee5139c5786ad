# examportal/schemas/stats.py

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from examportal.schemas.attempt import AttemptWithTest


class UserStatsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: int
    total_points: int
    tests_completed: int
    tests_passed: int
    current_streak: int
    best_streak: int
    updated_at: Optional[datetime] = None


class StreakStats(BaseModel):
    current: int = 0
    best: int = 0


class TrendStats(BaseModel):
    recent_average: float = 0.0
    previous_average: float = 0.0
    improvement: float = 0.0


class TestPerformance(BaseModel):
    """Aggregates over a user's completed attempts"""

    __test__ = False

    total_attempts: int
    average_score: float
    recent_average: float
    improvement: float


class DashboardStats(BaseModel):
    stats: UserStatsResponse
    streak: StreakStats
    performance: TestPerformance
    recent_attempts: List[AttemptWithTest] = []
