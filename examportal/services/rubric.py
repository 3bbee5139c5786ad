# examportal/services/rubric.py
import logging
from typing import List, Optional, Union

from sqlalchemy.orm import Session

from examportal.core.decorator import (
    InvalidStateError,
    NotFoundError,
    PermissionDeniedError,
)
from examportal.crud.crud_attempt import CRUDAttempt
from examportal.crud.crud_test import CRUDTest
from examportal.models.test import Test
from examportal.models.user import ROLE_ADMIN, User
from examportal.schemas.test import (
    TestCreate,
    TestOverview,
    TestResponse,
    TestUpdate,
    TestWithAnswers,
)

logger = logging.getLogger(__name__)


class RubricService:
    """Authoring and catalogue of tests"""

    def __init__(self, db: Session):
        self.db = db
        self.tests = CRUDTest(db)
        self.attempts = CRUDAttempt(db)

    def create_test(self, test_in: TestCreate, author: User) -> Test:
        try:
            test = self.tests.create_test(test_in, created_by=author.id)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            f"Test {test.id} created by user {author.id} "
            f"with {len(test_in.questions)} questions"
        )
        return self.tests.get_test_with_questions(test.id)

    def update_test(self, test_id: int, test_in: TestUpdate, editor: User) -> Test:
        """
        Apply metadata changes, in-place question edits, or a wholesale
        question replacement.

        In-place edits are allowed while attempts exist; weights are read when
        an attempt completes, so an in-progress attempt sees the new points.
        Replacement deletes every question and is refused once any attempt
        references the test.
        """
        try:
            test = self._get_editable(test_id, editor)
            self.tests.update_test(test, test_in)

            for edit in test_in.question_edits or []:
                self.tests.edit_question(test, edit)

            if test_in.questions is not None:
                if self.tests.count_attempts(test_id):
                    raise InvalidStateError(
                        "Questions cannot be replaced once the test has attempts"
                    )
                self.tests.replace_questions(test, test_in.questions)

            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"Test {test_id} updated by user {editor.id}")
        self.db.expire_all()
        return self.tests.get_test_with_questions(test_id)

    def set_published(self, test_id: int, published: bool, editor: User) -> Test:
        try:
            test = self._get_editable(test_id, editor)
            self.tests.set_published(test, published)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(test)
        logger.info(f"Test {test_id} {'published' if published else 'unpublished'}")
        return test

    def delete_test(self, test_id: int, editor: User) -> None:
        try:
            test = self._get_editable(test_id, editor)
            self.tests.delete_test(test)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"Test {test_id} deleted by user {editor.id}")

    def list_tests(
        self,
        viewer: User,
        subject: Optional[str] = None,
        difficulty: Optional[str] = None,
        title: Optional[str] = None,
    ) -> List[Test]:
        return self.tests.list_tests(
            published_only=not viewer.is_staff,
            subject=subject,
            difficulty=difficulty,
            title=title,
        )

    def list_own_tests(self, author: User) -> List[TestOverview]:
        """Tests written by the author, drafts included, with attempt aggregates."""
        tests = self.tests.list_tests(published_only=False, created_by=author.id)
        summaries = self.attempts.summarize_by_test([t.id for t in tests])

        overview = []
        for test in tests:
            total, completed, average = summaries.get(test.id, (0, 0, 0.0))
            item = TestOverview.model_validate(test)
            item.total_attempts = total
            item.completed_attempts = completed
            item.average_score = round(average, 1)
            overview.append(item)
        return overview

    def get_test_for_viewer(
        self, test_id: int, viewer: User
    ) -> Union[TestResponse, TestWithAnswers]:
        """Authors and admins see correct options; students do not."""
        test = self.tests.get_test_with_questions(test_id)

        if self._can_edit(test, viewer):
            return TestWithAnswers.model_validate(test)
        if not test.published and not viewer.is_staff:
            raise NotFoundError("Test not found")
        return TestResponse.model_validate(test)

    def _get_editable(self, test_id: int, editor: User) -> Test:
        test = self.tests.get_test(test_id)
        if not self._can_edit(test, editor):
            raise PermissionDeniedError("Only the author or an admin can modify this test")
        return test

    @staticmethod
    def _can_edit(test: Test, user: User) -> bool:
        return user.role == ROLE_ADMIN or (
            user.is_staff and test.created_by == user.id
        )
