# examportal/crud/crud_answer.py

from datetime import datetime
from typing import List

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from examportal.core.decorator import db_exception
from examportal.models.student_answer import StudentAnswer


class CRUDAnswer:
    """Answer store keyed by (attempt_id, question_id)."""

    def __init__(self, db: Session):
        self.db = db

    def _insert(self):
        dialect = self.db.get_bind().dialect.name
        if dialect == "sqlite":
            return sqlite_insert(StudentAnswer)
        return pg_insert(StudentAnswer)

    @db_exception
    def upsert_answer(
        self,
        attempt_id: int,
        question_id: int,
        option_id: int,
        is_correct: bool,
        answered_at: datetime,
    ) -> StudentAnswer:
        """
        Insert the answer or replace the previous selection for the same
        question. Concurrent submissions resolve to last writer wins on the
        unique constraint, never to a second row.
        """
        stmt = self._insert().values(
            attempt_id=attempt_id,
            question_id=question_id,
            selected_option_id=option_id,
            is_correct=is_correct,
            answered_at=answered_at,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[StudentAnswer.attempt_id, StudentAnswer.question_id],
            set_={
                "selected_option_id": stmt.excluded.selected_option_id,
                "is_correct": stmt.excluded.is_correct,
                "answered_at": stmt.excluded.answered_at,
            },
        )
        self.db.execute(stmt)

        return (
            self.db.query(StudentAnswer)
            .filter(
                StudentAnswer.attempt_id == attempt_id,
                StudentAnswer.question_id == question_id,
            )
            .populate_existing()
            .one()
        )

    @db_exception
    def list_answers(self, attempt_id: int) -> List[StudentAnswer]:
        return (
            self.db.query(StudentAnswer)
            .filter(StudentAnswer.attempt_id == attempt_id)
            .order_by(StudentAnswer.question_id)
            .populate_existing()
            .all()
        )
