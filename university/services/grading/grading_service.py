"""
Grading Service

Automatic grading of single-choice exams. A submit call validates the answer
set, locks the student's submission row, enforces the duration window,
awards the full question score for the correct option (nothing otherwise),
stores one answer row per accepted answer and finalizes the submission, all
inside one transaction.

Answers that name a question outside the exam are skipped by default. With
strict mode (``strict=True`` or ``EXAM_STRICT_ANSWERS``) such answers, and
option ids that are not options of their question, are rejected instead.

Author: Campus Development Team
Version: 1.0.0
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Iterable, List, Optional, Tuple

from django.conf import settings
from django.db import transaction
from django.db.models import Prefetch
from django.utils import timezone

from ...exams.models import ExamAnswer, ExamQuestion, ExamSubmission, MCQOption
from ...exams.validators import validate_id
from ...exceptions import (
    AlreadySubmittedError,
    NotStartedError,
    TimeExpiredError,
    ValidationError,
)

logger = logging.getLogger(__name__)

TWO_PLACES = Decimal("0.01")


def calculate_percentage(score: Decimal, total: Decimal) -> Decimal:
    """Score as a percentage of ``total``, rounded to two decimals; 0 for an empty total."""
    if not total or total <= 0:
        return Decimal("0.00")
    return (Decimal(score) / Decimal(total) * 100).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def display_name(user) -> str:
    if user is None:
        return ""
    return user.get_full_name() or user.get_username()


@dataclass
class QuestionResult:
    """Grading outcome for one accepted answer."""

    question_id: int
    question_text: str
    max_score: Decimal
    points_awarded: Decimal
    is_correct: bool
    selected_option_id: Optional[int] = None
    selected_option_text: Optional[str] = None
    correct_option_id: Optional[int] = None
    correct_option_text: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "question_id": self.question_id,
            "question_text": self.question_text,
            "max_score": self.max_score,
            "points_awarded": self.points_awarded,
            "is_correct": self.is_correct,
            "selected_option_id": self.selected_option_id,
            "selected_option_text": self.selected_option_text,
            "correct_option_id": self.correct_option_id,
            "correct_option_text": self.correct_option_text,
        }


@dataclass
class ExamResult:
    """
    Result of a submitted exam.

    Attributes:
        score: Sum of the points awarded
        total_points: The exam's configured maximum
        percentage: ``score / total_points * 100`` rounded to two decimals
        correct_answers: Number of answers that chose the correct option
        total_questions: Number of questions in the exam
        question_results: Breakdown of the accepted answers only
    """

    submission_id: int
    exam_id: int
    exam_title: str
    student_id: int
    student_name: str
    score: Decimal
    total_points: Decimal
    percentage: Decimal
    correct_answers: int
    total_questions: int
    is_submitted: bool
    is_graded: bool
    started_at: datetime
    submitted_at: Optional[datetime]
    graded_by: Optional[int] = None
    graded_by_name: Optional[str] = None
    question_results: List[QuestionResult] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "submission_id": self.submission_id,
            "exam_id": self.exam_id,
            "exam_title": self.exam_title,
            "student_id": self.student_id,
            "student_name": self.student_name,
            "score": self.score,
            "total_points": self.total_points,
            "percentage": self.percentage,
            "correct_answers": self.correct_answers,
            "total_questions": self.total_questions,
            "is_submitted": self.is_submitted,
            "is_graded": self.is_graded,
            "started_at": self.started_at,
            "submitted_at": self.submitted_at,
            "graded_by": self.graded_by,
            "graded_by_name": self.graded_by_name,
            "question_results": [result.to_dict() for result in self.question_results],
        }


def build_exam_result(
    submission: ExamSubmission, question_results: List[QuestionResult], total_questions: int
) -> ExamResult:
    exam = submission.exam
    score = submission.score if submission.score is not None else Decimal("0")
    return ExamResult(
        submission_id=submission.pk,
        exam_id=exam.pk,
        exam_title=exam.title,
        student_id=submission.student_id,
        student_name=display_name(submission.student),
        score=score,
        total_points=exam.total_points,
        percentage=calculate_percentage(score, exam.total_points),
        correct_answers=sum(1 for result in question_results if result.is_correct),
        total_questions=total_questions,
        is_submitted=submission.is_submitted,
        is_graded=submission.is_graded,
        started_at=submission.started_at,
        submitted_at=submission.submitted_at,
        graded_by=submission.graded_by_id,
        graded_by_name=display_name(submission.graded_by) if submission.graded_by_id else None,
        question_results=question_results,
    )


def question_result_from_answer(answer: ExamAnswer) -> QuestionResult:
    """Rebuild the breakdown entry of a stored answer."""
    question = answer.question
    correct = question.correct_option()
    selected = answer.selected_option
    return QuestionResult(
        question_id=question.pk,
        question_text=question.text,
        max_score=question.score,
        points_awarded=answer.points_awarded,
        is_correct=answer.is_correct,
        selected_option_id=answer.selected_option_ref,
        selected_option_text=selected.text if selected else None,
        correct_option_id=correct.pk if correct else None,
        correct_option_text=correct.text if correct else None,
    )


class GradingService:
    """Service that grades and finalizes exam submissions."""

    def __init__(self):
        self.logger = logger

    def submit_exam(
        self,
        exam_id: int,
        student_id: int,
        answers: Iterable[Dict[str, Any]],
        strict: Optional[bool] = None,
    ) -> ExamResult:
        """
        Grade an answer set and finalize the student's submission.

        Args:
            exam_id: Exam being submitted
            student_id: Student submitting
            answers: Dicts with ``question_id`` and ``selected_option_id``
            strict: Reject instead of skip answers outside the exam;
                defaults to ``settings.EXAM_STRICT_ANSWERS``

        Returns:
            ExamResult with the breakdown of the accepted answers

        Raises:
            ValidationError: Malformed ids, a question answered twice, or
                (strict mode) an answer outside the exam
            NotStartedError: No live submission for the pair
            AlreadySubmittedError: The submission is already finalized
            TimeExpiredError: Submitted after ``started_at + duration``
        """
        exam_id = validate_id(exam_id, "exam id")
        student_id = validate_id(student_id, "student id")
        if strict is None:
            strict = getattr(settings, "EXAM_STRICT_ANSWERS", False)
        parsed = self._parse_answers(answers)

        with transaction.atomic():
            submission = (
                ExamSubmission.objects.select_for_update()
                .select_related("exam", "student")
                .filter(exam_id=exam_id, student_id=student_id)
                .first()
            )
            if submission is None:
                raise NotStartedError()
            if submission.is_submitted:
                self.logger.warning(
                    f"Repeated submit of exam {exam_id} by student {student_id} rejected"
                )
                raise AlreadySubmittedError()

            now = timezone.now()
            if now > submission.deadline:
                self.logger.warning(
                    f"Late submit of exam {exam_id} by student {student_id}: "
                    f"deadline was {submission.deadline.isoformat()}"
                )
                raise TimeExpiredError()

            exam = submission.exam
            questions = {
                question.pk: question
                for question in ExamQuestion.objects.filter(exam=exam).prefetch_related(
                    Prefetch("options", queryset=MCQOption.objects.order_by("order_number", "id"))
                )
            }

            total_score = Decimal("0")
            question_results: List[QuestionResult] = []
            answer_rows: List[ExamAnswer] = []
            for question_id, option_id in parsed:
                question = questions.get(question_id)
                if question is None:
                    if strict:
                        raise ValidationError(
                            f"Question {question_id} is not part of this exam.",
                            field="answers",
                        )
                    self.logger.warning(
                        f"Skipping answer to question {question_id}: not part of exam {exam.pk}"
                    )
                    continue

                options = {option.pk: option for option in question.options.all()}
                selected = options.get(option_id)
                if selected is None and strict:
                    raise ValidationError(
                        f"Option {option_id} is not an option of question {question_id}.",
                        field="answers",
                    )
                correct = question.correct_option()

                is_correct = selected is not None and selected.is_correct
                points = question.score if is_correct else Decimal("0")
                total_score += points

                answer_rows.append(
                    ExamAnswer(
                        submission=submission,
                        question=question,
                        selected_option=selected,
                        selected_option_ref=option_id,
                        is_correct=is_correct,
                        points_awarded=points,
                    )
                )
                question_results.append(
                    QuestionResult(
                        question_id=question.pk,
                        question_text=question.text,
                        max_score=question.score,
                        points_awarded=points,
                        is_correct=is_correct,
                        selected_option_id=option_id,
                        selected_option_text=selected.text if selected else None,
                        correct_option_id=correct.pk if correct else None,
                        correct_option_text=correct.text if correct else None,
                    )
                )

            ExamAnswer.objects.bulk_create(answer_rows)

            submission.submitted_at = now
            submission.score = total_score
            submission.save(update_fields=["submitted_at", "score"])

        result = build_exam_result(submission, question_results, len(questions))
        self.logger.info(
            f"Exam {exam.pk} submitted by student {student_id}: "
            f"{result.score}/{result.total_points} ({result.percentage}%), "
            f"{result.correct_answers}/{result.total_questions} correct"
        )
        return result

    def _parse_answers(self, answers: Iterable[Dict[str, Any]]) -> List[Tuple[int, int]]:
        """
        Normalize the answer set to ``(question_id, option_id)`` pairs.

        Answers with a non-positive question id are dropped; a question named
        twice is an error.
        """
        if answers is None:
            raise ValidationError("Answers are required", field="answers")

        parsed: List[Tuple[int, int]] = []
        seen = set()
        for answer in answers:
            if not isinstance(answer, dict):
                raise ValidationError("Each answer must be an object", field="answers")

            raw_question_id = answer.get("question_id")
            if isinstance(raw_question_id, (bool, float)):
                raise ValidationError("Invalid question id.", field="answers")
            try:
                question_id = int(raw_question_id)
            except (TypeError, ValueError):
                raise ValidationError("Invalid question id.", field="answers")
            if question_id <= 0:
                continue

            option_id = validate_id(answer.get("selected_option_id"), "selected option id")

            if question_id in seen:
                raise ValidationError(
                    f"Duplicate answer detected for question {question_id}.", field="answers"
                )
            seen.add(question_id)
            parsed.append((question_id, option_id))
        return parsed
