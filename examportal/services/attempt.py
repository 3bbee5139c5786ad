# examportal/services/attempt.py
import logging
from typing import List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from examportal.core.decorator import (
    DBException,
    InvalidStateError,
    NotFoundError,
    PermissionDeniedError,
)
from examportal.crud.crud_answer import CRUDAnswer
from examportal.crud.crud_attempt import CRUDAttempt
from examportal.crud.crud_test import CRUDTest
from examportal.models.test_attempt import STATUS_IN_PROGRESS, TestAttempt
from examportal.models.user import User
from examportal.schemas.attempt import (
    AttemptInProgress,
    AttemptResponse,
    AttemptResults,
    AttemptSearchFilter,
    AttemptSearchResult,
    AttemptWithTest,
    StudentAnswerResponse,
)
from examportal.schemas.test import TestResponse, TestWithAnswers
from examportal.services.scoring import compute_score, is_passed, percentage
from examportal.services.stats import StatsService, attempt_with_test
from examportal.utils.time_utils import elapsed_seconds, utcnow

logger = logging.getLogger(__name__)


class AttemptService:
    def __init__(self, db: Session):
        self.db = db
        self.tests = CRUDTest(db)
        self.attempts = CRUDAttempt(db)
        self.answers = CRUDAnswer(db)
        self.stats = StatsService(db)

    # ==================== Lifecycle ====================

    def start_attempt(
        self, user_id: int, test_id: int, allow_unpublished: bool = True
    ) -> TestAttempt:
        """
        Create a new in-progress attempt for an existing test.

        With allow_unpublished=False a draft is reported as missing, the same
        way the catalogue hides it from students.
        """
        try:
            test = self.tests.get_test(test_id)
            if not allow_unpublished and not test.published:
                raise NotFoundError("Test not found")
            attempt = self.attempts.create_attempt(
                user_id=user_id, test_id=test_id, started_at=utcnow()
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(attempt)
        logger.info(f"Attempt {attempt.id} started: user={user_id} test={test_id}")
        return attempt

    def complete_attempt(self, attempt_id: int) -> TestAttempt:
        """
        Score an in-progress attempt and mark it completed.

        Score, total and status are written by one guarded update inside one
        transaction; on any failure it is rolled back and the attempt keeps
        its prior state. The statistics update runs afterwards in its own
        transaction and its failure does not fail the completion.
        """
        try:
            attempt = self.attempts.get_attempt(attempt_id)
            if attempt.status != STATUS_IN_PROGRESS:
                raise InvalidStateError("Attempt is not in progress")

            test = self.tests.get_test_with_questions(attempt.test_id)
            answers = self.answers.list_answers(attempt_id)
            score, total_points = compute_score(test.questions, answers)

            completed_at = utcnow()
            self.attempts.complete_attempt(
                attempt_id,
                score=score,
                total_points=total_points,
                elapsed_seconds=elapsed_seconds(attempt.started_at, completed_at),
                completed_at=completed_at,
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(attempt)
        logger.info(
            f"Attempt {attempt_id} completed: score={score}/{total_points} "
            f"({percentage(score, total_points):.1f}%)"
        )

        self._update_stats(attempt, test.passing_score)
        return attempt

    def _update_stats(self, attempt: TestAttempt, passing_score: int) -> None:
        try:
            self.stats.record_completion(
                attempt.user_id, attempt.score, attempt.total_points, passing_score
            )
            self.db.commit()
        except (DBException, SQLAlchemyError) as e:
            self.db.rollback()
            logger.error(
                f"Failed to update statistics for user {attempt.user_id} "
                f"after attempt {attempt.id}: {e}"
            )

    def abandon_attempt(self, attempt_id: int) -> TestAttempt:
        try:
            attempt = self.attempts.get_attempt(attempt_id)
            self.attempts.abandon_attempt(attempt_id)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(attempt)
        logger.info(f"Attempt {attempt_id} abandoned")
        return attempt

    # ==================== Reads ====================

    def get_attempt(self, attempt_id: int) -> TestAttempt:
        return self.attempts.get_attempt(attempt_id)

    def get_owned_attempt(self, attempt_id: int, user: User) -> TestAttempt:
        attempt = self.attempts.get_attempt(attempt_id)
        if attempt.user_id != user.id:
            raise PermissionDeniedError("Attempt belongs to another user")
        return attempt

    def get_attempt_for_taking(self, attempt_id: int, user: User) -> AttemptInProgress:
        """The attempt with its questions, correct answers hidden"""
        attempt = self.get_owned_attempt(attempt_id, user)
        if attempt.status != STATUS_IN_PROGRESS:
            raise InvalidStateError("Attempt is no longer in progress")

        test = self.tests.get_test_with_questions(attempt.test_id)
        answered = {
            a.question_id: a.selected_option_id
            for a in self.answers.list_answers(attempt_id)
        }

        return AttemptInProgress(
            attempt=AttemptResponse.model_validate(attempt),
            test=TestResponse.model_validate(test),
            answered=answered,
            time_limit_seconds=test.time_limit_minutes * 60,
        )

    def get_results(self, attempt_id: int, user: User) -> AttemptResults:
        attempt = self.attempts.get_attempt(attempt_id)
        test = self.tests.get_test_with_questions(attempt.test_id)

        if attempt.user_id != user.id and not self._can_review(user):
            raise PermissionDeniedError("Not allowed to view these results")
        if attempt.status == STATUS_IN_PROGRESS:
            raise InvalidStateError("Results are available once the attempt is finished")

        answers = self.answers.list_answers(attempt_id)
        return AttemptResults(
            attempt=AttemptResponse.model_validate(attempt),
            test=TestWithAnswers.model_validate(test),
            answers=[StudentAnswerResponse.model_validate(a) for a in answers],
            percentage=percentage(attempt.score, attempt.total_points),
            passed=is_passed(attempt.score, attempt.total_points, test.passing_score),
        )

    def list_user_attempts(self, user_id: int, limit: int) -> List[AttemptWithTest]:
        return [
            attempt_with_test(a)
            for a in self.attempts.list_user_attempts(user_id, limit=limit)
        ]

    def list_test_attempts(self, test_id: int, user: User) -> List[AttemptSearchResult]:
        self.tests.get_test(test_id)
        if not self._can_review(user):
            raise PermissionDeniedError("Not allowed to view attempts for this test")

        return [
            self._search_result(a) for a in self.attempts.list_test_attempts(test_id)
        ]

    def search_attempts(self, search: AttemptSearchFilter) -> List[AttemptSearchResult]:
        return [self._search_result(a) for a in self.attempts.search_attempts(search)]

    @staticmethod
    def _search_result(attempt: TestAttempt) -> AttemptSearchResult:
        item = AttemptSearchResult(**attempt_with_test(attempt).model_dump())
        if attempt.user is not None:
            item.username = attempt.user.username
        return item

    @staticmethod
    def _can_review(user: User) -> bool:
        return user.is_staff
