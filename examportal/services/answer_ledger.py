# examportal/services/answer_ledger.py
import logging
from typing import List

from sqlalchemy.orm import Session

from examportal.core.decorator import InvalidInputError, InvalidStateError
from examportal.crud.crud_answer import CRUDAnswer
from examportal.crud.crud_attempt import CRUDAttempt
from examportal.crud.crud_test import CRUDTest
from examportal.models.student_answer import StudentAnswer
from examportal.models.test_attempt import STATUS_IN_PROGRESS
from examportal.services.scoring import is_correct_option
from examportal.utils.time_utils import utcnow

logger = logging.getLogger(__name__)


class AnswerLedger:
    """Records the option chosen per question of an attempt."""

    def __init__(self, db: Session):
        self.db = db
        self.answers = CRUDAnswer(db)
        self.attempts = CRUDAttempt(db)
        self.tests = CRUDTest(db)

    def submit_answer(self, attempt_id: int, question_id: int, option_id: int) -> bool:
        """
        Record ``option_id`` as the answer to ``question_id`` and return
        whether it is correct. Resubmitting replaces the earlier selection.

        Ownership of the attempt is checked by the caller.
        """
        try:
            attempt = self.attempts.get_attempt(attempt_id)
            if attempt.status != STATUS_IN_PROGRESS:
                raise InvalidStateError("Attempt is not in progress")

            question = self.tests.get_question(question_id)
            if question.test_id != attempt.test_id:
                raise InvalidInputError("Question does not belong to this test")

            option = self.tests.get_option(option_id)
            if option.question_id != question.id:
                raise InvalidInputError("Option does not belong to this question")

            is_correct = is_correct_option(question, option_id)
            self.answers.upsert_answer(
                attempt_id=attempt_id,
                question_id=question_id,
                option_id=option_id,
                is_correct=is_correct,
                answered_at=utcnow(),
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.debug(
            f"Answer recorded: attempt={attempt_id} question={question_id} "
            f"option={option_id}"
        )
        return is_correct

    def list_answers(self, attempt_id: int) -> List[StudentAnswer]:
        return self.answers.list_answers(attempt_id)
