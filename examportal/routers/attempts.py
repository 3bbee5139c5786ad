# examportal/routers/attempts.py

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from examportal.core.config import settings
from examportal.core.database import get_db
from examportal.core.dependencies import (
    get_current_admin,
    get_current_staff,
    get_current_user,
)
from examportal.models.user import User
from examportal.schemas.attempt import (
    AnswerSubmit,
    AnswerSubmitResponse,
    AttemptInProgress,
    AttemptResponse,
    AttemptResults,
    AttemptSearchFilter,
    AttemptSearchResult,
    AttemptStart,
    AttemptWithTest,
)
from examportal.services.answer_ledger import AnswerLedger
from examportal.services.attempt import AttemptService

router = APIRouter(
    prefix="/attempts",
    tags=["attempts"],
)


@router.post("/", response_model=AttemptResponse, status_code=status.HTTP_201_CREATED)
def start_attempt(
    attempt_in: AttemptStart,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Start a new attempt at a test."""
    service = AttemptService(db)
    return service.start_attempt(
        current_user.id, attempt_in.test_id, allow_unpublished=current_user.is_staff
    )


@router.get("/me", response_model=List[AttemptWithTest])
def my_attempts(
    limit: int = Query(settings.recent_attempts_limit, ge=1, le=settings.max_page_size),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    service = AttemptService(db)
    return service.list_user_attempts(current_user.id, limit=limit)


@router.get("/search", response_model=List[AttemptSearchResult])
def search_attempts(
    user_id: Optional[int] = Query(None),
    student_name: Optional[str] = Query(None),
    test_name: Optional[str] = Query(None),
    date_from: Optional[datetime] = Query(None),
    date_to: Optional[datetime] = Query(None),
    score_min: Optional[int] = Query(None),
    score_max: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_staff),
):
    """Search attempts across students (teacher/admin)."""
    search = AttemptSearchFilter(
        user_id=user_id,
        student_name=student_name,
        test_name=test_name,
        date_from=date_from,
        date_to=date_to,
        score_min=score_min,
        score_max=score_max,
    )
    service = AttemptService(db)
    return service.search_attempts(search)


@router.get("/{attempt_id}", response_model=AttemptInProgress)
def take_attempt(
    attempt_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Questions of an in-progress attempt with the answers chosen so far.
    Correct options are never included.
    """
    service = AttemptService(db)
    return service.get_attempt_for_taking(attempt_id, current_user)


@router.post("/{attempt_id}/answers", response_model=AnswerSubmitResponse)
def submit_answer(
    attempt_id: int,
    answer_in: AnswerSubmit,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    AttemptService(db).get_owned_attempt(attempt_id, current_user)

    ledger = AnswerLedger(db)
    is_correct = ledger.submit_answer(
        attempt_id, answer_in.question_id, answer_in.option_id
    )
    return AnswerSubmitResponse(is_correct=is_correct)


@router.post("/{attempt_id}/complete", response_model=AttemptResponse)
def complete_attempt(
    attempt_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Submit the whole test for scoring."""
    service = AttemptService(db)
    service.get_owned_attempt(attempt_id, current_user)
    return service.complete_attempt(attempt_id)


@router.get("/{attempt_id}/results", response_model=AttemptResults)
def attempt_results(
    attempt_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    service = AttemptService(db)
    return service.get_results(attempt_id, current_user)


@router.post("/{attempt_id}/abandon", response_model=AttemptResponse)
def abandon_attempt(
    attempt_id: int,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    """Administratively close an in-progress attempt without scoring it."""
    service = AttemptService(db)
    return service.abandon_attempt(attempt_id)
