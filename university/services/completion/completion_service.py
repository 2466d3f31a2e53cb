"""
Course Completion Service

Derives a student's completion status in a course from their exam
submissions and writes the final grade onto the enrollment.

Rules:
- Only submitted exams count towards the average, which is the sum of the
  submitted scores over the sum of the submitted exams' total points.
- While any exam of the course is unsubmitted the enrollment stays
  ``InProgress`` and is not written.
- Once every exam is submitted the enrollment becomes ``Completed`` with a
  letter grade, or ``Failed`` with an ``F`` below the pass percentage.
- A dropped enrollment is reported but never overwritten.

Author: Campus Development Team
Version: 1.0.0
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional

from django.conf import settings
from django.db import transaction

from ...courses.models import Enrollment
from ...exams.models import Exam, ExamSubmission
from ...exams.validators import validate_id
from ...exceptions import NoExamsError, NotFoundError
from ..grading.grading_service import calculate_percentage, display_name

logger = logging.getLogger(__name__)

DEFAULT_PASS_PERCENTAGE = Decimal("60")

# Lower bound of each letter band, highest first.
GRADE_BANDS = (
    (Decimal("97"), "A+"),
    (Decimal("93"), "A"),
    (Decimal("90"), "A-"),
    (Decimal("87"), "B+"),
    (Decimal("83"), "B"),
    (Decimal("80"), "B-"),
    (Decimal("77"), "C+"),
    (Decimal("73"), "C"),
    (Decimal("70"), "C-"),
    (Decimal("67"), "D+"),
    (Decimal("63"), "D"),
    (Decimal("60"), "D-"),
)


def grade_letter_for(percentage: Decimal) -> str:
    """Letter grade for a percentage, ``F`` below the lowest band."""
    for lower_bound, letter in GRADE_BANDS:
        if percentage >= lower_bound:
            return letter
    return "F"


def pass_percentage() -> Decimal:
    return Decimal(str(getattr(settings, "EXAM_PASS_PERCENTAGE", DEFAULT_PASS_PERCENTAGE)))


@dataclass
class ExamCompletion:
    """Per-exam line of a completion report. Unsubmitted exams are zero-filled."""

    exam_id: int
    exam_title: str
    score: Decimal
    total_points: Decimal
    percentage: Decimal
    is_passed: bool
    is_submitted: bool
    submitted_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "exam_id": self.exam_id,
            "exam_title": self.exam_title,
            "score": self.score,
            "total_points": self.total_points,
            "percentage": self.percentage,
            "is_passed": self.is_passed,
            "is_submitted": self.is_submitted,
            "submitted_at": self.submitted_at,
        }


@dataclass
class CourseCompletionStatus:
    """
    Completion report of one enrollment.

    Attributes:
        status: Enrollment status after the check (InProgress, Completed,
            Failed, or the untouched status of a dropped enrollment)
        average_score: Aggregate percentage over the submitted exams,
            None while nothing is submitted
        final_grade: The persisted final grade, None while in progress
        exam_details: One line per live exam of the course
    """

    enrollment_id: int
    student_id: int
    student_name: str
    course_id: int
    course_name: str
    course_code: str
    is_completed: bool
    total_exams: int
    submitted_exams: int
    average_score: Optional[Decimal]
    final_grade: Optional[Decimal]
    grade_letter: Optional[str]
    status: str
    exam_details: List[ExamCompletion] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "enrollment_id": self.enrollment_id,
            "student_id": self.student_id,
            "student_name": self.student_name,
            "course_id": self.course_id,
            "course_name": self.course_name,
            "course_code": self.course_code,
            "is_completed": self.is_completed,
            "total_exams": self.total_exams,
            "submitted_exams": self.submitted_exams,
            "average_score": self.average_score,
            "final_grade": self.final_grade,
            "grade_letter": self.grade_letter,
            "status": self.status,
            "exam_details": [detail.to_dict() for detail in self.exam_details],
        }


class CompletionService:
    """Service aggregating exam results into an enrollment's completion status."""

    def __init__(self):
        self.logger = logger

    def check_course_completion(self, student_id: int, course_id: int) -> CourseCompletionStatus:
        """
        Recompute the completion status of a student's enrollment.

        Raises:
            ValidationError: Invalid ids
            NotFoundError: No live enrollment of the student in the course
            NoExamsError: The course has no exams
        """
        student_id = validate_id(student_id, "student id")
        course_id = validate_id(course_id, "course id")

        with transaction.atomic():
            enrollment = (
                Enrollment.objects.select_for_update()
                .select_related("course", "student")
                .filter(student_id=student_id, course_id=course_id, course__is_deleted=False)
                .first()
            )
            if enrollment is None:
                raise NotFoundError(
                    f"Student {student_id} is not enrolled in course {course_id}",
                    resource="enrollment",
                )
            course = enrollment.course

            exams = list(Exam.objects.filter(course=course).order_by("exam_date", "id"))
            if not exams:
                raise NoExamsError()

            submissions = {
                submission.exam_id: submission
                for submission in ExamSubmission.objects.filter(
                    student_id=student_id,
                    exam__in=exams,
                    submitted_at__isnull=False,
                )
            }

            threshold = pass_percentage()
            details: List[ExamCompletion] = []
            submitted_score = Decimal("0")
            submitted_total = Decimal("0")
            for exam in exams:
                submission = submissions.get(exam.pk)
                if submission is None:
                    details.append(
                        ExamCompletion(
                            exam_id=exam.pk,
                            exam_title=exam.title,
                            score=Decimal("0"),
                            total_points=exam.total_points,
                            percentage=Decimal("0.00"),
                            is_passed=False,
                            is_submitted=False,
                        )
                    )
                    continue

                exam_average = self._average(submission.score, exam.total_points, 1)
                submitted_score += submission.score
                submitted_total += exam.total_points
                details.append(
                    ExamCompletion(
                        exam_id=exam.pk,
                        exam_title=exam.title,
                        score=submission.score,
                        total_points=exam.total_points,
                        percentage=calculate_percentage(submission.score, exam.total_points),
                        is_passed=exam_average >= threshold,
                        is_submitted=True,
                        submitted_at=submission.submitted_at,
                    )
                )

            submitted_count = len(submissions)
            average = self._average(submitted_score, submitted_total, submitted_count)

            if enrollment.status == Enrollment.Status.DROPPED:
                self.logger.info(
                    f"Enrollment {enrollment.pk} is dropped; completion not written"
                )
            elif submitted_count < len(exams):
                return self._report(
                    enrollment, details, average, status=Enrollment.Status.IN_PROGRESS,
                    final_grade=None, grade_letter=None,
                )
            else:
                if average >= threshold:
                    enrollment.status = Enrollment.Status.COMPLETED
                    enrollment.grade_letter = grade_letter_for(average)
                else:
                    enrollment.status = Enrollment.Status.FAILED
                    enrollment.grade_letter = "F"
                enrollment.final_grade = average.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
                enrollment.save(update_fields=["status", "final_grade", "grade_letter", "updated_at"])
                self.logger.info(
                    f"Enrollment {enrollment.pk} of student {student_id} in {course.code}: "
                    f"{enrollment.status} with {enrollment.final_grade}% ({enrollment.grade_letter})"
                )

        return self._report(
            enrollment, details, average, status=enrollment.status,
            final_grade=enrollment.final_grade, grade_letter=enrollment.grade_letter,
        )

    def recompute_course(self, course_id: int) -> List[CourseCompletionStatus]:
        """Run the completion check for every live enrollment of a course."""
        course_id = validate_id(course_id, "course id")
        if not Exam.objects.filter(course_id=course_id).exists():
            raise NoExamsError()
        student_ids = list(
            Enrollment.objects.filter(course_id=course_id)
            .order_by("student_id")
            .values_list("student_id", flat=True)
        )
        return [self.check_course_completion(student_id, course_id) for student_id in student_ids]

    def _average(
        self, submitted_score: Decimal, submitted_total: Decimal, submitted_count: int
    ) -> Optional[Decimal]:
        # Unrounded; pass/fail and the letter band are decided before rounding.
        if submitted_count == 0:
            return None
        if submitted_total <= 0:
            return Decimal("0")
        return submitted_score / submitted_total * 100

    def _report(
        self,
        enrollment: Enrollment,
        details: List[ExamCompletion],
        average: Optional[Decimal],
        status: str,
        final_grade: Optional[Decimal],
        grade_letter: Optional[str],
    ) -> CourseCompletionStatus:
        course = enrollment.course
        return CourseCompletionStatus(
            enrollment_id=enrollment.pk,
            student_id=enrollment.student_id,
            student_name=display_name(enrollment.student),
            course_id=course.pk,
            course_name=course.name,
            course_code=course.code,
            is_completed=status == Enrollment.Status.COMPLETED,
            total_exams=len(details),
            submitted_exams=sum(1 for detail in details if detail.is_submitted),
            average_score=(
                average.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
                if average is not None
                else None
            ),
            final_grade=final_grade,
            grade_letter=grade_letter,
            status=str(status),
            exam_details=details,
        )
