from rest_framework.permissions import BasePermission

from .courses.models import Course, Enrollment
from .exams.models import Exam
from .exceptions import NotFoundError

# ------------------------------------------------------------
# Roles: staff users are university admins, a user referenced
# as ``Course.instructor`` is an instructor of that course and
# every other authenticated user acts as a student for themself.
# ------------------------------------------------------------


def is_university_admin(user) -> bool:
    return bool(user and user.is_authenticated and user.is_staff)


def is_instructor(user) -> bool:
    if not user or not user.is_authenticated:
        return False
    return Course.objects.filter(instructor=user).exists()


def ensure_course_access(user, course_id: int) -> None:
    """
    Raise ``NotFoundError`` unless ``user`` may manage the course.

    A course taught by someone else is reported as missing.
    """
    if is_university_admin(user):
        return
    if not Course.objects.filter(pk=course_id, instructor=user).exists():
        raise NotFoundError(f"Course with ID {course_id} not found", resource="course")


def ensure_exam_access(user, exam_id: int) -> None:
    """Same as ``ensure_course_access`` for the course owning ``exam_id``."""
    if is_university_admin(user):
        return
    if not Exam.objects.filter(pk=exam_id, course__instructor=user).exists():
        raise NotFoundError(f"Exam with ID {exam_id} not found", resource="exam")


def ensure_enrolled(user, course_id: int) -> None:
    """Raise ``NotFoundError`` unless ``user`` is actively enrolled in the course."""
    enrolled = (
        Enrollment.objects.filter(student=user, course_id=course_id, course__is_deleted=False)
        .exclude(status=Enrollment.Status.DROPPED)
        .exists()
    )
    if not enrolled:
        raise NotFoundError(f"Course with ID {course_id} not found", resource="course")


class IsUniversityAdmin(BasePermission):
    """Staff users only."""

    def has_permission(self, request, view):
        return is_university_admin(request.user)


class IsInstructorOrAdmin(BasePermission):
    """Admins and users teaching at least one course."""

    def has_permission(self, request, view):
        return is_university_admin(request.user) or is_instructor(request.user)
