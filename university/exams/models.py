"""
University Exam Models

Models:
- Exam: A timed single-choice exam belonging to one course
- ExamQuestion: A question with a point value and ordered options
- MCQOption: One answer option; exactly one per question is correct
- ExamSubmission: A student's single attempt at an exam
- ExamAnswer: One graded answer of a submission

An exam and its questions and options are frozen as soon as any submission
exists for the exam. The services in ``university.services`` enforce this;
the models only describe the rows and their database constraints.

Author: Campus Development Team
Version: 1.0.0
"""

import datetime
from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models
from django.db.models import Q
from django.utils.translation import gettext_lazy as _

from ..courses.models import Course
from ..managers import LiveManager, AllObjectsManager

User = settings.AUTH_USER_MODEL


class Exam(models.Model):
    course = models.ForeignKey(Course, on_delete=models.PROTECT, related_name="exams")
    title = models.CharField(max_length=200)
    description = models.TextField(blank=True, null=True)
    exam_date = models.DateTimeField(
        help_text=_("Scheduled date. Students cannot start the exam before it.")
    )
    duration_minutes = models.PositiveSmallIntegerField(
        validators=[MinValueValidator(1), MaxValueValidator(480)],
        help_text=_("Time allowed from the moment a student starts the exam."),
    )
    total_points = models.DecimalField(
        max_digits=7,
        decimal_places=2,
        validators=[MinValueValidator(0), MaxValueValidator(1000)],
        help_text=_("Maximum score, entered by the instructor."),
    )
    is_deleted = models.BooleanField(default=False)
    deleted_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = LiveManager()
    all_objects = AllObjectsManager()

    class Meta:
        verbose_name = _("Exam")
        verbose_name_plural = _("Exams")
        ordering = ["exam_date", "id"]

    def __str__(self):
        return f"{self.title} ({self.course.code})"

    @property
    def duration(self) -> datetime.timedelta:
        return datetime.timedelta(minutes=self.duration_minutes)

    def has_submissions(self) -> bool:
        # Soft-deleted submissions still lock the exam.
        return ExamSubmission.all_objects.filter(exam=self).exists()


class ExamQuestion(models.Model):
    exam = models.ForeignKey(Exam, on_delete=models.CASCADE, related_name="questions")
    text = models.TextField()
    order_number = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    score = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        validators=[MinValueValidator(0), MaxValueValidator(100)],
        help_text=_("Points awarded for choosing the correct option."),
    )

    class Meta:
        verbose_name = _("Exam Question")
        verbose_name_plural = _("Exam Questions")
        ordering = ["exam", "order_number", "id"]

    def __str__(self):
        return f"Q{self.order_number}: {self.text[:40]}"

    def correct_option(self):
        for option in self.options.all():
            if option.is_correct:
                return option
        return None


class MCQOption(models.Model):
    question = models.ForeignKey(
        ExamQuestion, on_delete=models.CASCADE, related_name="options"
    )
    text = models.CharField(max_length=500)
    order_number = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    is_correct = models.BooleanField(default=False)

    class Meta:
        verbose_name = _("MCQ Option")
        verbose_name_plural = _("MCQ Options")
        ordering = ["question", "order_number", "id"]

    def __str__(self):
        marker = " (correct)" if self.is_correct else ""
        return f"{self.text}{marker}"


class ExamSubmission(models.Model):
    class State(models.TextChoices):
        STARTED = "started", _("Started")
        SUBMITTED = "submitted", _("Submitted")

    exam = models.ForeignKey(Exam, on_delete=models.PROTECT, related_name="submissions")
    student = models.ForeignKey(
        User, on_delete=models.PROTECT, related_name="exam_submissions"
    )
    graded_by = models.ForeignKey(
        User,
        related_name="graded_exam_submissions",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
    )
    started_at = models.DateTimeField()
    submitted_at = models.DateTimeField(null=True, blank=True)
    score = models.DecimalField(
        max_digits=7,
        decimal_places=2,
        null=True,
        blank=True,
        help_text=_("Total points. Calculated automatically on submit."),
    )
    is_deleted = models.BooleanField(default=False)
    deleted_at = models.DateTimeField(null=True, blank=True)

    objects = LiveManager()
    all_objects = AllObjectsManager()

    class Meta:
        verbose_name = _("Exam Submission")
        verbose_name_plural = _("Exam Submissions")
        ordering = ["-started_at"]
        constraints = [
            # Covers soft-deleted rows as well: deleting never reopens an exam.
            models.UniqueConstraint(
                fields=["exam", "student"], name="uniq_submission_exam_student"
            ),
            models.CheckConstraint(
                condition=(
                    Q(submitted_at__isnull=True, score__isnull=True)
                    | Q(submitted_at__isnull=False, score__isnull=False)
                ),
                name="submission_score_iff_submitted",
            ),
        ]
        indexes = [
            models.Index(fields=["student"]),
        ]

    def __str__(self):
        return f"Submission for {self.exam.title} by {self.student}"

    @property
    def state(self) -> str:
        if self.submitted_at is not None:
            return self.State.SUBMITTED
        return self.State.STARTED

    @property
    def is_submitted(self) -> bool:
        return self.submitted_at is not None

    @property
    def is_graded(self) -> bool:
        return self.graded_by_id is not None

    @property
    def deadline(self):
        return self.started_at + self.exam.duration


class ExamAnswer(models.Model):
    submission = models.ForeignKey(
        ExamSubmission, on_delete=models.CASCADE, related_name="answers"
    )
    question = models.ForeignKey(
        ExamQuestion, on_delete=models.PROTECT, related_name="answers"
    )
    selected_option = models.ForeignKey(
        MCQOption,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="+",
        help_text=_("Empty when the submitted id is not an option of the question."),
    )
    selected_option_ref = models.PositiveBigIntegerField(
        help_text=_("Option id exactly as submitted by the student.")
    )
    is_correct = models.BooleanField(default=False)
    points_awarded = models.DecimalField(
        max_digits=5, decimal_places=2, default=Decimal("0")
    )

    class Meta:
        verbose_name = _("Exam Answer")
        verbose_name_plural = _("Exam Answers")
        ordering = ["submission", "question__order_number", "id"]
        constraints = [
            models.UniqueConstraint(
                fields=["submission", "question"], name="uniq_answer_submission_question"
            ),
        ]

    def __str__(self):
        return f"Answer to {self.question_id} in submission {self.submission_id}"
