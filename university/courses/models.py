"""
University Course Models

Courses and enrollments are owned by the course directory of the platform.
Only the fields the exam subsystem reads are modelled here, plus the
completion fields of an enrollment, which are written exclusively by the
completion aggregator.

Models:
- Course: A course taught by one instructor, owning its exams
- Enrollment: A student's membership in a course with completion status and grade

Author: Campus Development Team
Version: 1.0.0
"""

from django.conf import settings
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models
from django.utils.translation import gettext_lazy as _

from ..managers import LiveManager, AllObjectsManager

User = settings.AUTH_USER_MODEL


class Course(models.Model):
    code = models.CharField(max_length=20, unique=True)
    name = models.CharField(max_length=200)
    credits = models.PositiveSmallIntegerField(
        default=3, validators=[MinValueValidator(1), MaxValueValidator(12)]
    )
    instructor = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="taught_courses",
        help_text=_("Instructor responsible for the course and its exams."),
    )
    is_deleted = models.BooleanField(default=False)
    deleted_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = LiveManager()
    all_objects = AllObjectsManager()

    class Meta:
        verbose_name = _("Course")
        verbose_name_plural = _("Courses")
        ordering = ["code"]

    def __str__(self):
        return f"{self.code} - {self.name}"

    def is_taught_by(self, user) -> bool:
        if not user or not user.is_authenticated:
            return False
        return self.instructor_id == user.pk


class Enrollment(models.Model):
    class Status(models.TextChoices):
        ENROLLED = "Enrolled", _("Enrolled")
        IN_PROGRESS = "InProgress", _("In progress")
        COMPLETED = "Completed", _("Completed")
        FAILED = "Failed", _("Failed")
        DROPPED = "Dropped", _("Dropped")

    student = models.ForeignKey(
        User, on_delete=models.CASCADE, related_name="enrollments"
    )
    course = models.ForeignKey(
        Course, on_delete=models.CASCADE, related_name="enrollments"
    )
    enrolled_at = models.DateTimeField(auto_now_add=True)
    status = models.CharField(
        max_length=12, choices=Status.choices, default=Status.ENROLLED
    )
    final_grade = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(0)],
        help_text=_("Average exam percentage. Calculated automatically."),
    )
    grade_letter = models.CharField(
        max_length=2,
        blank=True,
        null=True,
        help_text=_("Letter grade (A+ to F). Calculated automatically."),
    )
    is_deleted = models.BooleanField(default=False)
    deleted_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = LiveManager()
    all_objects = AllObjectsManager()

    class Meta:
        verbose_name = _("Enrollment")
        verbose_name_plural = _("Enrollments")
        ordering = ["course", "student"]
        constraints = [
            models.UniqueConstraint(
                fields=["student", "course"], name="uniq_enrollment_student_course"
            ),
        ]

    def __str__(self):
        return f"{self.student} in {self.course.code} ({self.status})"
