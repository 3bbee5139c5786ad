# examportal/routers/stats.py

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from examportal.core.database import get_db
from examportal.core.dependencies import (
    get_current_admin,
    get_current_staff,
    get_current_user,
)
from examportal.models.user import User
from examportal.schemas.stats import DashboardStats, UserStatsResponse
from examportal.services.stats import StatsService
from examportal.services.user import UserService

router = APIRouter(
    prefix="/stats",
    tags=["stats"],
)


@router.get("/me", response_model=DashboardStats)
def my_stats(
    db: Session = Depends(get_db), current_user: User = Depends(get_current_user)
):
    service = StatsService(db)
    return service.get_dashboard(current_user.id)


@router.get("/user/{user_id}", response_model=DashboardStats)
def user_stats(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_staff),
):
    """Teacher/admin view of a student's dashboard statistics."""
    UserService(db).get_user(user_id)
    service = StatsService(db)
    return service.get_dashboard(user_id)


@router.post("/user/{user_id}/rebuild", response_model=UserStatsResponse)
def rebuild_user_stats(
    user_id: int,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    """Recompute a user's rollup from their completed attempts."""
    UserService(db).get_user(user_id)
    service = StatsService(db)
    return service.rebuild_stats(user_id)
