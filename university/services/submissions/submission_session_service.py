"""
Submission Session Service

A student gets exactly one attempt per exam. ``start_exam`` creates the
submission row and ``GradingService.submit_exam`` finalizes it; there is no
background timer, the duration window is checked when the student submits.

Single-attempt guarantee:
- The exam row is locked for the whole start, the same lock the exam catalog
  takes before authoring writes.
- An existing submission, soft-deleted or not, rejects the start.
- A database unique constraint on (exam, student) backs the check; the
  insert runs in a savepoint and a lost race surfaces as
  ``AlreadyStartedError``.

Author: Campus Development Team
Version: 1.0.0
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from django.db import IntegrityError, transaction
from django.db.models import Prefetch, QuerySet
from django.utils import timezone

from ...exams.models import Exam, ExamAnswer, ExamSubmission, MCQOption
from ...exams.validators import validate_id
from ...exceptions import (
    AlreadyStartedError,
    ExamNotAvailableError,
    NoQuestionsError,
    NotFoundError,
    StateConflictError,
)
from ..grading.grading_service import (
    ExamResult,
    build_exam_result,
    display_name,
    question_result_from_answer,
)

logger = logging.getLogger(__name__)


@dataclass
class SubmissionStatus:
    """Projection of a submission row for status and listing endpoints."""

    submission_id: int
    exam_id: int
    exam_title: str
    student_id: int
    student_name: str
    state: str
    started_at: datetime
    submitted_at: Optional[datetime]
    score: Optional[Decimal]
    is_submitted: bool
    is_graded: bool
    graded_by: Optional[int] = None
    is_deleted: bool = False

    @classmethod
    def from_submission(cls, submission: ExamSubmission) -> "SubmissionStatus":
        return cls(
            submission_id=submission.pk,
            exam_id=submission.exam_id,
            exam_title=submission.exam.title,
            student_id=submission.student_id,
            student_name=display_name(submission.student),
            state=str(submission.state),
            started_at=submission.started_at,
            submitted_at=submission.submitted_at,
            score=submission.score,
            is_submitted=submission.is_submitted,
            is_graded=submission.is_graded,
            graded_by=submission.graded_by_id,
            is_deleted=submission.is_deleted,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "submission_id": self.submission_id,
            "exam_id": self.exam_id,
            "exam_title": self.exam_title,
            "student_id": self.student_id,
            "student_name": self.student_name,
            "state": self.state,
            "started_at": self.started_at,
            "submitted_at": self.submitted_at,
            "score": self.score,
            "is_submitted": self.is_submitted,
            "is_graded": self.is_graded,
            "graded_by": self.graded_by,
            "is_deleted": self.is_deleted,
        }


class SubmissionSessionService:
    """
    Service managing the ``NoSubmission -> Started -> Submitted`` lifecycle.
    """

    def __init__(self):
        self.logger = logger

    def start_exam(self, exam_id: int, student_id: int) -> SubmissionStatus:
        """
        Open the student's single attempt at an exam.

        Raises:
            ValidationError: Invalid ids
            NotFoundError: Exam missing or deleted
            AlreadyStartedError: A submission already exists for the pair
            NoQuestionsError: The exam has no questions
            ExamNotAvailableError: The exam is scheduled in the future
        """
        exam_id = validate_id(exam_id, "exam id")
        student_id = validate_id(student_id, "student id")

        with transaction.atomic():
            exam = (
                Exam.objects.select_for_update()
                .filter(pk=exam_id, course__is_deleted=False)
                .first()
            )
            if exam is None:
                raise NotFoundError(f"Exam with ID {exam_id} not found", resource="exam")

            if self._has_submission(exam, student_id):
                self.logger.warning(
                    f"Student {student_id} tried to start exam {exam_id} a second time"
                )
                raise AlreadyStartedError()

            if not exam.questions.exists():
                raise NoQuestionsError()

            now = timezone.now()
            if exam.exam_date > now:
                raise ExamNotAvailableError()

            try:
                with transaction.atomic():
                    submission = ExamSubmission.objects.create(
                        exam=exam,
                        student_id=student_id,
                        started_at=now,
                        submitted_at=None,
                        score=None,
                    )
            except IntegrityError:
                self.logger.warning(
                    f"Concurrent start of exam {exam_id} by student {student_id} rejected"
                )
                raise AlreadyStartedError()

        submission = self._submissions().get(pk=submission.pk)
        self.logger.info(
            f"Student {student_id} started exam {exam_id} (submission {submission.pk}), "
            f"deadline {submission.deadline.isoformat()}"
        )
        return SubmissionStatus.from_submission(submission)

    def get_submission_status(self, exam_id: int, student_id: int) -> Optional[SubmissionStatus]:
        exam_id = validate_id(exam_id, "exam id")
        student_id = validate_id(student_id, "student id")
        submission = self._submissions().filter(exam_id=exam_id, student_id=student_id).first()
        if submission is None:
            return None
        return SubmissionStatus.from_submission(submission)

    def get_exam_result(self, exam_id: int, student_id: int) -> Optional[ExamResult]:
        """
        Rebuild the result of a submitted exam from its stored answers.

        Returns:
            ExamResult, or None if the student has no finalized submission
        """
        exam_id = validate_id(exam_id, "exam id")
        student_id = validate_id(student_id, "student id")
        submission = (
            self._submissions()
            .prefetch_related(
                Prefetch(
                    "answers",
                    queryset=ExamAnswer.objects.select_related(
                        "question", "selected_option"
                    ).prefetch_related(
                        Prefetch(
                            "question__options",
                            queryset=MCQOption.objects.order_by("order_number", "id"),
                        )
                    ),
                )
            )
            .filter(exam_id=exam_id, student_id=student_id)
            .first()
        )
        if submission is None or not submission.is_submitted:
            return None

        question_results = [
            question_result_from_answer(answer) for answer in submission.answers.all()
        ]
        return build_exam_result(
            submission, question_results, submission.exam.questions.count()
        )

    def list_student_submissions(self, student_id: int) -> List[SubmissionStatus]:
        student_id = validate_id(student_id, "student id")
        submissions = self._submissions().filter(student_id=student_id)
        return [SubmissionStatus.from_submission(submission) for submission in submissions]

    def list_exam_results(self, exam_id: int) -> List[SubmissionStatus]:
        """Finalized submissions of an exam, best score first."""
        exam_id = validate_id(exam_id, "exam id")
        submissions = (
            self._submissions()
            .filter(exam_id=exam_id, submitted_at__isnull=False)
            .order_by("-score", "submitted_at")
        )
        return [SubmissionStatus.from_submission(submission) for submission in submissions]

    def list_all_submissions_including_deleted(self) -> List[SubmissionStatus]:
        submissions = ExamSubmission.all_objects.select_related(
            "exam", "student", "graded_by"
        ).order_by("-started_at")
        return [SubmissionStatus.from_submission(submission) for submission in submissions]

    def delete_submission(self, submission_id: int) -> bool:
        """
        Soft-delete a submission. The row keeps blocking a new start.

        Returns:
            False if there is no live submission with this id
        """
        submission_id = validate_id(submission_id, "submission id")
        updated = ExamSubmission.objects.filter(pk=submission_id).soft_delete()
        if not updated:
            return False

        self.logger.info(f"Submission {submission_id} soft-deleted")
        return True

    def restore_submission(self, submission_id: int) -> bool:
        submission_id = validate_id(submission_id, "submission id")

        with transaction.atomic():
            submission = (
                ExamSubmission.all_objects.select_for_update().filter(pk=submission_id).first()
            )
            if submission is None:
                return False
            if not submission.is_deleted:
                raise StateConflictError(
                    f"Submission {submission_id} is not deleted", error_code="not_deleted"
                )

            submission.is_deleted = False
            submission.deleted_at = None
            submission.save(update_fields=["is_deleted", "deleted_at"])

        self.logger.info(f"Submission {submission_id} restored")
        return True

    def _has_submission(self, exam: Exam, student_id: int) -> bool:
        return ExamSubmission.all_objects.filter(exam=exam, student_id=student_id).exists()

    def _submissions(self) -> QuerySet:
        return ExamSubmission.objects.select_related("exam", "student", "graded_by")
