# examportal/routers/users.py

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from examportal.core.database import get_db
from examportal.core.dependencies import get_current_admin, get_current_user
from examportal.models.user import User
from examportal.schemas.user import (
    UserActiveUpdate,
    UserCreate,
    UserResponse,
    UserRoleUpdate,
)
from examportal.services.user import UserService

router = APIRouter(
    prefix="/users",
    tags=["users"],
)


@router.get("/me", response_model=UserResponse)
def get_me(current_user: User = Depends(get_current_user)):
    return current_user


@router.get("/", response_model=List[UserResponse])
def list_users(
    role: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    service = UserService(db)
    return service.list_users(role=role)


@router.post("/", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    user_in: UserCreate,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    service = UserService(db)
    return service.create_user(user_in.username, user_in.email, user_in.role)


@router.patch("/{user_id}/role", response_model=UserResponse)
def update_user_role(
    user_id: int,
    role_in: UserRoleUpdate,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    service = UserService(db)
    return service.update_role(user_id, role_in.role)


@router.patch("/{user_id}/active", response_model=UserResponse)
def set_user_active(
    user_id: int,
    active_in: UserActiveUpdate,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    """Activate or deactivate an account. Inactive users are refused at auth."""
    service = UserService(db)
    return service.set_active(user_id, active_in.is_active)
