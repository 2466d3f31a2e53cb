"""
Exam Catalog Service

Authoring of exams, questions and options. Once any submission exists for an
exam (started or finished) its content is frozen: updates and deletes of the
exam and any change to its questions are rejected with ``ExamLockedError``.

The lock check and the authoring write run in one transaction with the exam
row locked (``SELECT ... FOR UPDATE``). Starting an exam takes the same row
lock, so an exam cannot be started between the check and the write.

Author: Campus Development Team
Version: 1.0.0
"""

import logging
from typing import Any, Dict, Iterable, Optional

from django.db import transaction
from django.db.models import Prefetch, QuerySet
from django.utils import timezone

from ...courses.models import Course
from ...exams.models import Exam, ExamQuestion, MCQOption
from ...exams.validators import (
    validate_exam_fields,
    validate_id,
    validate_question_fields,
)
from ...exceptions import ExamLockedError, NotFoundError

logger = logging.getLogger(__name__)


class ExamCatalogService:
    """
    Service for exam, question and option authoring.

    All lookups are scoped: an exam is only found under its own course and a
    question only under its own exam. A mismatch is reported exactly like a
    missing row.
    """

    def __init__(self):
        self.logger = logger

    # --- Exams ---

    def list_exams_for_course(self, course_id: int) -> QuerySet:
        course_id = validate_id(course_id, "course id")
        return Exam.objects.filter(course_id=course_id, course__is_deleted=False).select_related(
            "course"
        )

    def get_exam(self, exam_id: int, course_id: int) -> Exam:
        exam_id = validate_id(exam_id, "exam id")
        course_id = validate_id(course_id, "course id")
        return self._get_exam(exam_id, course_id)

    def get_exam_with_questions(self, exam_id: int, course_id: int) -> Exam:
        """
        Load an exam with its questions and options, both ordered by order number.

        Raises:
            NotFoundError: If the exam does not exist or belongs to another course
        """
        exam_id = validate_id(exam_id, "exam id")
        course_id = validate_id(course_id, "course id")
        exam = (
            Exam.objects.select_related("course")
            .prefetch_related(
                Prefetch(
                    "questions",
                    queryset=ExamQuestion.objects.order_by("order_number", "id").prefetch_related(
                        Prefetch("options", queryset=MCQOption.objects.order_by("order_number", "id"))
                    ),
                )
            )
            .filter(pk=exam_id, course_id=course_id, course__is_deleted=False)
            .first()
        )
        if exam is None:
            raise NotFoundError(
                f"Exam with ID {exam_id} not found in course {course_id}", resource="exam"
            )
        return exam

    def create_exam(
        self,
        course_id: int,
        title: str,
        exam_date,
        duration_minutes: int,
        total_points,
        description: Optional[str] = None,
    ) -> Exam:
        course_id = validate_id(course_id, "course id")
        fields = validate_exam_fields(
            title, exam_date, duration_minutes, total_points, description
        )

        course = Course.objects.filter(pk=course_id).first()
        if course is None:
            raise NotFoundError(f"Course with ID {course_id} not found", resource="course")

        exam = Exam.objects.create(course=course, **fields)
        self.logger.info(f"Exam created: '{exam.title}' (ID {exam.pk}) in course {course.code}")
        return exam

    def update_exam(
        self,
        exam_id: int,
        course_id: int,
        title: str,
        exam_date,
        duration_minutes: int,
        total_points,
        description: Optional[str] = None,
    ) -> Exam:
        exam_id = validate_id(exam_id, "exam id")
        course_id = validate_id(course_id, "course id")
        fields = validate_exam_fields(
            title, exam_date, duration_minutes, total_points, description
        )

        with transaction.atomic():
            exam = self._get_exam(exam_id, course_id, for_update=True)
            self._ensure_unlocked(exam, "update exam")

            for name, value in fields.items():
                setattr(exam, name, value)
            exam.save()

        self.logger.info(f"Exam updated: '{exam.title}' (ID {exam.pk})")
        return exam

    def delete_exam(self, exam_id: int, course_id: int) -> bool:
        exam_id = validate_id(exam_id, "exam id")
        course_id = validate_id(course_id, "course id")

        with transaction.atomic():
            exam = self._get_exam(exam_id, course_id, for_update=True)
            self._ensure_unlocked(exam, "delete exam")

            exam.is_deleted = True
            exam.deleted_at = timezone.now()
            exam.save(update_fields=["is_deleted", "deleted_at", "updated_at"])

        self.logger.info(f"Exam soft-deleted: '{exam.title}' (ID {exam.pk})")
        return True

    # --- Questions ---

    def list_questions(self, exam_id: int) -> QuerySet:
        exam_id = validate_id(exam_id, "exam id")
        return (
            ExamQuestion.objects.filter(
                exam_id=exam_id, exam__is_deleted=False, exam__course__is_deleted=False
            )
            .prefetch_related("options")
            .order_by("order_number", "id")
        )

    def get_question(self, question_id: int, exam_id: int) -> ExamQuestion:
        question_id = validate_id(question_id, "question id")
        exam_id = validate_id(exam_id, "exam id")
        return self._get_question(question_id, exam_id)

    def add_question(
        self,
        exam_id: int,
        text: str,
        score,
        order_number: int,
        options: Iterable[Dict[str, Any]],
        course_id: Optional[int] = None,
    ) -> ExamQuestion:
        """
        Add a question with its options to an exam that nobody has started yet.

        Args:
            exam_id: Owning exam
            text: Question text
            score: Points for the correct option
            order_number: Position of the question in the exam
            options: Dicts with ``text``, ``order_number`` and ``is_correct``
            course_id: Optional course the exam must belong to

        Raises:
            ValidationError: Malformed input
            BusinessRuleError: Fewer than two options or not exactly one correct
            NotFoundError: Exam missing (or not in ``course_id``)
            ExamLockedError: The exam already has submissions
        """
        exam_id = validate_id(exam_id, "exam id")
        if course_id is not None:
            course_id = validate_id(course_id, "course id")
        fields = validate_question_fields(text, score, order_number, options)

        with transaction.atomic():
            exam = self._get_exam(exam_id, course_id, for_update=True)
            self._ensure_unlocked(exam, "add question")

            question = ExamQuestion.objects.create(
                exam=exam,
                text=fields["text"],
                score=fields["score"],
                order_number=fields["order_number"],
            )
            MCQOption.objects.bulk_create(
                [
                    MCQOption(
                        question=question,
                        text=option["text"],
                        order_number=option["order_number"],
                        is_correct=option["is_correct"],
                    )
                    for option in fields["options"]
                ]
            )

        self.logger.info(
            f"Question {question.pk} added to exam {exam.pk} with {len(fields['options'])} options"
        )
        return self._get_question(question.pk, exam.pk)

    def update_question(
        self,
        question_id: int,
        exam_id: int,
        text: str,
        score,
        order_number: int,
        options: Iterable[Dict[str, Any]],
    ) -> ExamQuestion:
        """
        Replace a question's text, score, order and options.

        Options with an ``id`` update the existing option, options without one
        are created and existing options missing from the list are removed.
        """
        question_id = validate_id(question_id, "question id")
        exam_id = validate_id(exam_id, "exam id")
        fields = validate_question_fields(text, score, order_number, options)

        with transaction.atomic():
            exam = self._get_exam(exam_id, None, for_update=True)
            question = self._get_question(question_id, exam.pk)
            self._ensure_unlocked(exam, "update question")

            question.text = fields["text"]
            question.score = fields["score"]
            question.order_number = fields["order_number"]
            question.save()

            existing = {option.pk: option for option in question.options.all()}
            keep_ids = {option["id"] for option in fields["options"] if "id" in option}
            unknown = keep_ids - existing.keys()
            if unknown:
                raise NotFoundError(
                    f"Option with ID {min(unknown)} not found on question {question_id}",
                    resource="option",
                )

            MCQOption.objects.filter(question=question).exclude(pk__in=keep_ids).delete()
            for option in fields["options"]:
                if "id" in option:
                    current = existing[option["id"]]
                    current.text = option["text"]
                    current.order_number = option["order_number"]
                    current.is_correct = option["is_correct"]
                    current.save()
                else:
                    MCQOption.objects.create(
                        question=question,
                        text=option["text"],
                        order_number=option["order_number"],
                        is_correct=option["is_correct"],
                    )

        self.logger.info(f"Question {question.pk} of exam {exam.pk} updated")
        return self._get_question(question.pk, exam.pk)

    def delete_question(self, question_id: int, exam_id: int) -> bool:
        question_id = validate_id(question_id, "question id")
        exam_id = validate_id(exam_id, "exam id")

        with transaction.atomic():
            exam = self._get_exam(exam_id, None, for_update=True)
            question = self._get_question(question_id, exam.pk)
            self._ensure_unlocked(exam, "delete question")
            question.delete()

        self.logger.info(f"Question {question_id} deleted from exam {exam_id}")
        return True

    # --- Helpers ---

    def _get_exam(self, exam_id: int, course_id: Optional[int], for_update: bool = False) -> Exam:
        queryset = Exam.objects.select_related("course")
        if for_update:
            queryset = queryset.select_for_update()
        queryset = queryset.filter(pk=exam_id, course__is_deleted=False)
        if course_id is not None:
            queryset = queryset.filter(course_id=course_id)

        exam = queryset.first()
        if exam is None:
            if course_id is not None:
                message = f"Exam with ID {exam_id} not found in course {course_id}"
            else:
                message = f"Exam with ID {exam_id} not found"
            raise NotFoundError(message, resource="exam")
        return exam

    def _get_question(self, question_id: int, exam_id: int) -> ExamQuestion:
        question = (
            ExamQuestion.objects.select_related("exam")
            .prefetch_related(
                Prefetch("options", queryset=MCQOption.objects.order_by("order_number", "id"))
            )
            .filter(
                pk=question_id,
                exam_id=exam_id,
                exam__is_deleted=False,
                exam__course__is_deleted=False,
            )
            .first()
        )
        if question is None:
            raise NotFoundError(
                f"Question with ID {question_id} not found", resource="question"
            )
        return question

    def _ensure_unlocked(self, exam: Exam, action: str) -> None:
        if exam.has_submissions():
            self.logger.warning(
                f"Rejected '{action}' on exam {exam.pk}: students have already started it"
            )
            raise ExamLockedError(
                f"Cannot {action} - students have already started this exam"
            )
