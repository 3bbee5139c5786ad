# examportal/services/scoring.py

"""
Pure scoring rules over the rubric. Nothing here touches the database.

A question is answered correctly when the selected option is that question's
option flagged ``is_correct``. Percentage and pass/fail are derived from the
stored score and total; they are never persisted.
"""

from typing import Iterable, Optional, Tuple

from examportal.models.student_answer import StudentAnswer
from examportal.models.test import Question


def is_correct_option(question: Question, option_id: Optional[int]) -> bool:
    if option_id is None:
        return False
    return any(opt.id == option_id and opt.is_correct for opt in question.options)


def compute_score(
    questions: Iterable[Question], answers: Iterable[StudentAnswer]
) -> Tuple[int, int]:
    """
    Return ``(score, total_points)``.

    Each question contributes its points once if its answer is marked
    correct; unanswered questions contribute nothing. The total is taken from
    the current point weights.
    """
    correct_questions = {a.question_id for a in answers if a.is_correct}

    score = 0
    total_points = 0
    for question in questions:
        total_points += question.points
        if question.id in correct_questions:
            score += question.points

    return score, total_points


def percentage(score: Optional[int], total_points: Optional[int]) -> float:
    if not total_points or score is None:
        return 0.0
    return 100 * score / total_points


def is_passed(
    score: Optional[int], total_points: Optional[int], passing_score: int
) -> bool:
    # Integer comparison so an exact boundary is never lost to rounding
    if not total_points or score is None:
        return 0 >= passing_score
    return score * 100 >= passing_score * total_points
