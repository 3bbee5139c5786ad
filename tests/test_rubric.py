import pytest
from pydantic import ValidationError

from conftest import build_test_payload, correct_option, question_payload, wrong_option
from examportal.core.decorator import (
    InvalidInputError,
    InvalidStateError,
    NotFoundError,
    PermissionDeniedError,
)
from examportal.models.test import AnswerOption, Question
from examportal.schemas.test import (
    AnswerOptionEdit,
    QuestionEdit,
    TestCreate,
    TestResponse,
    TestUpdate,
    TestWithAnswers,
)
from examportal.services.answer_ledger import AnswerLedger
from examportal.services.attempt import AttemptService
from examportal.services.rubric import RubricService


class TestAuthoringValidation:
    def test_valid_payload(self):
        test_in = TestCreate(**build_test_payload(weights=(1, 2)))
        assert len(test_in.questions) == 2

    def test_title_required(self):
        with pytest.raises(ValidationError):
            TestCreate(**build_test_payload(title=""))

    def test_title_too_long(self):
        with pytest.raises(ValidationError):
            TestCreate(**build_test_payload(title="x" * 256))

    def test_at_least_one_question(self):
        payload = build_test_payload()
        payload["questions"] = []
        with pytest.raises(ValidationError):
            TestCreate(**payload)

    @pytest.mark.parametrize("passing_score", [-1, 101])
    def test_passing_score_range(self, passing_score):
        with pytest.raises(ValidationError):
            TestCreate(**build_test_payload(passing_score=passing_score))

    def test_time_limit_positive(self):
        with pytest.raises(ValidationError):
            TestCreate(**build_test_payload(time_limit_minutes=0))

    def test_unknown_exam_standard(self):
        with pytest.raises(ValidationError):
            TestCreate(**build_test_payload(exam_standard="IB"))

    def test_unknown_difficulty(self):
        with pytest.raises(ValidationError):
            TestCreate(**build_test_payload(difficulty="Extreme"))

    def test_points_positive(self):
        payload = build_test_payload()
        payload["questions"][0]["points"] = 0
        with pytest.raises(ValidationError):
            TestCreate(**payload)

    def test_exactly_four_options(self):
        payload = build_test_payload()
        payload["questions"][0]["options"].pop()
        with pytest.raises(ValidationError):
            TestCreate(**payload)

    def test_exactly_one_correct_option(self):
        payload = build_test_payload()
        payload["questions"][0]["options"][1]["is_correct"] = True
        with pytest.raises(ValidationError):
            TestCreate(**payload)

        payload["questions"][0]["options"][0]["is_correct"] = False
        payload["questions"][0]["options"][1]["is_correct"] = False
        with pytest.raises(ValidationError):
            TestCreate(**payload)

    def test_blank_option_text(self):
        payload = build_test_payload()
        payload["questions"][0]["options"][2]["option_text"] = "   "
        with pytest.raises(ValidationError):
            TestCreate(**payload)


class TestAuthoring:
    def test_create_assigns_order_indexes(self, db_session, teacher):
        service = RubricService(db_session)
        test = service.create_test(
            TestCreate(**build_test_payload(weights=(1, 2, 3))), teacher
        )

        assert test.published is False
        assert test.created_by == teacher.id
        assert [q.question_order for q in test.questions] == [1, 2, 3]
        assert [q.points for q in test.questions] == [1, 2, 3]
        for question in test.questions:
            assert [o.option_order for o in question.options] == [1, 2, 3, 4]
            assert sum(o.is_correct for o in question.options) == 1

    def test_update_metadata(self, db_session, teacher, make_test):
        test = make_test()
        service = RubricService(db_session)

        updated = service.update_test(
            test.id, TestUpdate(title="Renamed", passing_score=75), teacher
        )

        assert updated.title == "Renamed"
        assert updated.passing_score == 75
        assert len(updated.questions) == 1

    def test_replace_questions(self, db_session, teacher, make_test):
        test = make_test(weights=(1, 1, 1))
        service = RubricService(db_session)

        updated = service.update_test(
            test.id,
            TestUpdate(questions=[question_payload(text="Only one", points=5)]),
            teacher,
        )

        assert [q.question_text for q in updated.questions] == ["Only one"]
        assert db_session.query(Question).filter_by(test_id=test.id).count() == 1

    def test_questions_locked_once_attempted(
        self, db_session, teacher, student, make_test
    ):
        test = make_test()
        AttemptService(db_session).start_attempt(student.id, test.id)

        with pytest.raises(InvalidStateError):
            RubricService(db_session).update_test(
                test.id, TestUpdate(questions=[question_payload()]), teacher
            )

    def test_only_author_or_admin_edits(self, db_session, make_user, admin, make_test):
        test = make_test()
        other_teacher = make_user("teacher")
        service = RubricService(db_session)

        with pytest.raises(PermissionDeniedError):
            service.set_published(test.id, False, other_teacher)

        assert service.set_published(test.id, False, admin).published is False

    def test_delete_cascades(self, db_session, teacher, student, make_test):
        test = make_test(weights=(1, 1))
        question_ids = [q.id for q in test.questions]
        AttemptService(db_session).start_attempt(student.id, test.id)

        RubricService(db_session).delete_test(test.id, teacher)

        assert db_session.query(Question).filter(Question.id.in_(question_ids)).count() == 0
        assert (
            db_session.query(AnswerOption)
            .filter(AnswerOption.question_id.in_(question_ids))
            .count()
            == 0
        )
        with pytest.raises(NotFoundError):
            RubricService(db_session).tests.get_test(test.id)


class TestInPlaceEdits:
    def test_weight_change_reaches_in_progress_attempt(
        self, db_session, teacher, student, make_test
    ):
        test = make_test(weights=(1,))
        question = test.questions[0]
        attempts = AttemptService(db_session)
        attempt = attempts.start_attempt(student.id, test.id)
        AnswerLedger(db_session).submit_answer(
            attempt.id, question.id, correct_option(question).id
        )

        updated = RubricService(db_session).update_test(
            test.id,
            TestUpdate(question_edits=[QuestionEdit(id=question.id, points=5)]),
            teacher,
        )
        assert updated.questions[0].points == 5

        completed = attempts.complete_attempt(attempt.id)

        assert completed.total_points == 5
        assert completed.score == 5

    def test_edit_text_and_options(self, db_session, teacher, make_test):
        test = make_test()
        question = test.questions[0]
        first = question.options[0]

        updated = RubricService(db_session).update_test(
            test.id,
            TestUpdate(
                question_edits=[
                    QuestionEdit(
                        id=question.id,
                        question_text="  What is 3 + 3?  ",
                        options=[AnswerOptionEdit(id=first.id, option_text="Six")],
                    )
                ]
            ),
            teacher,
        )

        edited = updated.questions[0]
        assert edited.question_text == "What is 3 + 3?"
        assert edited.options[0].option_text == "Six"
        assert edited.id == question.id

    def test_change_correct_option(self, db_session, teacher, make_test):
        test = make_test()
        question = test.questions[0]
        new_correct = wrong_option(question)

        updated = RubricService(db_session).update_test(
            test.id,
            TestUpdate(
                question_edits=[
                    QuestionEdit(id=question.id, correct_option_id=new_correct.id)
                ]
            ),
            teacher,
        )

        flags = {opt.id: opt.is_correct for opt in updated.questions[0].options}
        assert flags[new_correct.id] is True
        assert sum(flags.values()) == 1

    def test_question_of_another_test(self, db_session, teacher, make_test):
        test = make_test()
        other = make_test()

        with pytest.raises(InvalidInputError):
            RubricService(db_session).update_test(
                test.id,
                TestUpdate(
                    question_edits=[QuestionEdit(id=other.questions[0].id, points=2)]
                ),
                teacher,
            )

    def test_option_of_another_question(self, db_session, teacher, make_test):
        test = make_test(weights=(1, 1))
        q1, q2 = test.questions

        with pytest.raises(InvalidInputError):
            RubricService(db_session).update_test(
                test.id,
                TestUpdate(
                    question_edits=[
                        QuestionEdit(id=q1.id, correct_option_id=correct_option(q2).id)
                    ]
                ),
                teacher,
            )
        db_session.expire_all()
        assert q1.options[0].is_correct is True

    def test_replace_and_edit_together_rejected(self):
        with pytest.raises(ValidationError):
            TestUpdate(
                questions=[question_payload()],
                question_edits=[{"id": 1, "points": 2}],
            )

class TestCatalogue:
    def test_students_see_published_only(self, db_session, student, teacher, make_test):
        published = make_test(title="Published")
        make_test(title="Draft", published=False)
        service = RubricService(db_session)

        assert [t.id for t in service.list_tests(student)] == [published.id]
        assert len(service.list_tests(teacher)) == 2

    def test_filters(self, db_session, teacher, make_test):
        make_test(title="Fractions", difficulty="Hard")
        make_test(title="Decimals", difficulty="Easy")
        service = RubricService(db_session)

        assert [t.title for t in service.list_tests(teacher, difficulty="Hard")] == [
            "Fractions"
        ]
        assert [t.title for t in service.list_tests(teacher, title="deci")] == [
            "Decimals"
        ]

    def test_author_overview(self, db_session, teacher, make_user, make_test):
        mine = make_test(weights=(2, 2), title="Mine")
        draft = make_test(title="My draft", published=False)
        make_test(title="Someone else's", author=make_user("teacher"))
        attempts = AttemptService(db_session)
        ledger = AnswerLedger(db_session)
        q1, q2 = mine.questions

        first = attempts.start_attempt(make_user().id, mine.id)
        ledger.submit_answer(first.id, q1.id, correct_option(q1).id)
        attempts.complete_attempt(first.id)

        second = attempts.start_attempt(make_user().id, mine.id)
        ledger.submit_answer(second.id, q1.id, correct_option(q1).id)
        ledger.submit_answer(second.id, q2.id, correct_option(q2).id)
        attempts.complete_attempt(second.id)

        attempts.start_attempt(make_user().id, mine.id)

        overview = {t.id: t for t in RubricService(db_session).list_own_tests(teacher)}

        assert set(overview) == {mine.id, draft.id}
        assert overview[mine.id].total_attempts == 3
        assert overview[mine.id].completed_attempts == 2
        assert overview[mine.id].average_score == pytest.approx(3.0)
        assert overview[draft.id].total_attempts == 0
        assert overview[draft.id].completed_attempts == 0
        assert overview[draft.id].average_score == 0.0

    def test_student_view_hides_correct_option(self, db_session, student, make_test):
        test = make_test()

        view = RubricService(db_session).get_test_for_viewer(test.id, student)

        assert isinstance(view, TestResponse)
        assert not isinstance(view, TestWithAnswers)
        assert "is_correct" not in view.model_dump()["questions"][0]["options"][0]

    def test_author_view_shows_correct_option(self, db_session, teacher, make_test):
        test = make_test()

        view = RubricService(db_session).get_test_for_viewer(test.id, teacher)

        assert isinstance(view, TestWithAnswers)
        assert view.questions[0].options[0].is_correct is True

    def test_draft_hidden_from_students(self, db_session, student, make_test):
        test = make_test(published=False)

        with pytest.raises(NotFoundError):
            RubricService(db_session).get_test_for_viewer(test.id, student)
