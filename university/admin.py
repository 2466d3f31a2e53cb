"""
University Application Django Admin Configuration

Admin screens for courses, enrollments, exams and submissions.

- Enrollment completion fields are read-only; they are written by the
  completion check only.
- Questions and options of an exam that students have started are locked.
- Submissions and their answers can be inspected but not created or edited.
  Exam sessions are opened and graded through the API only.

Author: Campus Development Team
Version: 1.0.0
"""

from django.contrib import admin
from django.db.models import QuerySet
from django.http import HttpRequest
from django.utils.translation import gettext_lazy as _

from .models import (
    Course,
    Enrollment,
    Exam,
    ExamQuestion,
    MCQOption,
    ExamSubmission,
    ExamAnswer,
)

# --- Courses ---


@admin.register(Course)
class CourseAdmin(admin.ModelAdmin):
    list_display = ("code", "name", "credits", "instructor", "is_deleted")
    list_filter = ("is_deleted",)
    search_fields = ("code", "name", "instructor__username")

    def get_queryset(self, request: HttpRequest) -> QuerySet:
        return Course.all_objects.select_related("instructor")


@admin.register(Enrollment)
class EnrollmentAdmin(admin.ModelAdmin):
    list_display = ("student", "course", "status", "final_grade", "grade_letter")
    list_filter = ("status", "course")
    search_fields = ("student__username", "student__email", "course__code")
    readonly_fields = ("status", "final_grade", "grade_letter", "enrolled_at")

    fieldsets = (
        (_("Enrollment"), {"fields": ("student", "course", "enrolled_at")}),
        (_("Completion"), {"fields": ("status", "final_grade", "grade_letter")}),
    )


# --- Exams ---
# Once any submission exists, an exam's questions and options can no
# longer be added, changed or deleted here.


def exam_is_locked(exam) -> bool:
    return exam is not None and exam.has_submissions()


class MCQOptionInline(admin.TabularInline):
    model = MCQOption
    extra = 0

    def has_add_permission(self, request: HttpRequest, obj=None) -> bool:
        if obj is not None and exam_is_locked(obj.exam):
            return False
        return super().has_add_permission(request, obj)

    def has_change_permission(self, request: HttpRequest, obj=None) -> bool:
        if obj is not None and exam_is_locked(obj.exam):
            return False
        return super().has_change_permission(request, obj)

    def has_delete_permission(self, request: HttpRequest, obj=None) -> bool:
        if obj is not None and exam_is_locked(obj.exam):
            return False
        return super().has_delete_permission(request, obj)


@admin.register(ExamQuestion)
class ExamQuestionAdmin(admin.ModelAdmin):
    list_display = ("exam", "order_number", "score", "text")
    list_filter = ("exam",)
    search_fields = ("text", "exam__title")
    inlines = [MCQOptionInline]

    def formfield_for_foreignkey(self, db_field, request: HttpRequest, **kwargs):
        """Only exams nobody has started can receive questions."""
        if db_field.name == "exam":
            kwargs["queryset"] = Exam.objects.filter(
                submissions__isnull=True
            ).select_related("course")
        return super().formfield_for_foreignkey(db_field, request, **kwargs)

    def has_change_permission(self, request: HttpRequest, obj=None) -> bool:
        if obj is not None and exam_is_locked(obj.exam):
            return False
        return super().has_change_permission(request, obj)

    def has_delete_permission(self, request: HttpRequest, obj=None) -> bool:
        if obj is not None and exam_is_locked(obj.exam):
            return False
        return super().has_delete_permission(request, obj)

    def delete_queryset(self, request: HttpRequest, queryset: QuerySet) -> None:
        """Bulk delete from the changelist skips questions of locked exams."""
        locked_exam_ids = ExamSubmission.all_objects.values("exam_id")
        super().delete_queryset(request, queryset.exclude(exam_id__in=locked_exam_ids))


class ExamQuestionInline(admin.TabularInline):
    model = ExamQuestion
    extra = 0
    show_change_link = True

    def has_add_permission(self, request: HttpRequest, obj=None) -> bool:
        if exam_is_locked(obj):
            return False
        return super().has_add_permission(request, obj)

    def has_delete_permission(self, request: HttpRequest, obj=None) -> bool:
        if exam_is_locked(obj):
            return False
        return super().has_delete_permission(request, obj)


@admin.register(Exam)
class ExamAdmin(admin.ModelAdmin):
    list_display = ("title", "course", "exam_date", "duration_minutes", "total_points")
    list_filter = ("course", "exam_date")
    search_fields = ("title", "course__code")
    inlines = [ExamQuestionInline]

    def has_change_permission(self, request: HttpRequest, obj=None) -> bool:
        if obj is not None and obj.has_submissions():
            return False
        return super().has_change_permission(request, obj)

    def has_delete_permission(self, request: HttpRequest, obj=None) -> bool:
        if obj is not None and obj.has_submissions():
            return False
        return super().has_delete_permission(request, obj)


# --- Submissions ---


class ExamAnswerInline(admin.TabularInline):
    model = ExamAnswer
    extra = 0
    can_delete = False
    readonly_fields = (
        "question",
        "selected_option",
        "selected_option_ref",
        "is_correct",
        "points_awarded",
    )

    def has_add_permission(self, request: HttpRequest, obj=None) -> bool:
        return False


@admin.register(ExamSubmission)
class ExamSubmissionAdmin(admin.ModelAdmin):
    list_display = ("student", "exam", "started_at", "submitted_at", "score", "is_deleted")
    list_filter = ("exam", "is_deleted", "submitted_at")
    search_fields = ("student__username", "student__email", "exam__title")
    readonly_fields = (
        "exam",
        "student",
        "graded_by",
        "started_at",
        "submitted_at",
        "score",
        "is_deleted",
        "deleted_at",
    )
    inlines = [ExamAnswerInline]

    def has_add_permission(self, request: HttpRequest) -> bool:
        """Submissions are created by starting an exam through the API."""
        return False

    def has_delete_permission(self, request: HttpRequest, obj=None) -> bool:
        return False

    def get_queryset(self, request: HttpRequest) -> QuerySet:
        return ExamSubmission.all_objects.select_related("exam", "student", "graded_by")
