# examportal/routers/catalog.py

from typing import List, Optional, Union

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from examportal.core.database import get_db
from examportal.core.dependencies import get_current_staff, get_current_user
from examportal.models.user import User
from examportal.schemas.attempt import AttemptSearchResult
from examportal.schemas.test import (
    TestCreate,
    TestOverview,
    TestResponse,
    TestSummary,
    TestUpdate,
    TestWithAnswers,
)
from examportal.services.attempt import AttemptService
from examportal.services.rubric import RubricService

router = APIRouter(
    prefix="/tests",
    tags=["tests"],
)


@router.get("/", response_model=List[TestSummary])
def list_tests(
    subject: Optional[str] = Query(None),
    difficulty: Optional[str] = Query(None),
    title: Optional[str] = Query(None, description="Title substring"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    List tests. Students only see published tests.
    """
    service = RubricService(db)
    return service.list_tests(
        current_user, subject=subject, difficulty=difficulty, title=title
    )


@router.post("/", response_model=TestWithAnswers, status_code=status.HTTP_201_CREATED)
def create_test(
    test_in: TestCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_staff),
):
    """Create a test with all of its questions (teacher/admin)."""
    service = RubricService(db)
    return service.create_test(test_in, current_user)


@router.get("/mine", response_model=List[TestOverview])
def list_my_tests(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_staff),
):
    """Author dashboard: own tests with attempt counts and average score."""
    service = RubricService(db)
    return service.list_own_tests(current_user)


@router.get("/{test_id}", response_model=Union[TestWithAnswers, TestResponse])
def get_test(
    test_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    service = RubricService(db)
    return service.get_test_for_viewer(test_id, current_user)


@router.put("/{test_id}", response_model=TestWithAnswers)
def update_test(
    test_id: int,
    test_in: TestUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_staff),
):
    service = RubricService(db)
    return service.update_test(test_id, test_in, current_user)


@router.post("/{test_id}/publish", response_model=TestSummary)
def publish_test(
    test_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_staff),
):
    service = RubricService(db)
    return service.set_published(test_id, True, current_user)


@router.post("/{test_id}/unpublish", response_model=TestSummary)
def unpublish_test(
    test_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_staff),
):
    service = RubricService(db)
    return service.set_published(test_id, False, current_user)


@router.delete("/{test_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_test(
    test_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_staff),
):
    """Delete a test together with its questions, attempts and answers."""
    service = RubricService(db)
    service.delete_test(test_id, current_user)


@router.get("/{test_id}/attempts", response_model=List[AttemptSearchResult])
def list_test_attempts(
    test_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_staff),
):
    service = AttemptService(db)
    return service.list_test_attempts(test_id, current_user)
