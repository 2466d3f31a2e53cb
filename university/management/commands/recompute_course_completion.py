"""
Recompute Course Completion Management Command

Runs the completion check for every live enrollment of one course, or of
every course, and prints the resulting status per student. Enrollments of
courses without exams are reported and skipped.

Usage:
    python manage.py recompute_course_completion --course 12
    python manage.py recompute_course_completion

Author: Campus Development Team
Version: 1.0.0
"""

import logging

from django.core.management.base import BaseCommand, CommandError

from ...courses.models import Course
from ...exceptions import NoExamsError, UniversityServiceError
from ...services.completion import CompletionService

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = "Recompute enrollment completion status and final grade from exam results."

    def add_arguments(self, parser):
        parser.add_argument(
            "--course",
            type=int,
            dest="course_id",
            help="Only recompute enrollments of this course id",
        )

    def handle(self, *args, **options):
        course_id = options.get("course_id")
        if course_id is not None:
            if not Course.objects.filter(pk=course_id).exists():
                raise CommandError(f"Course with ID {course_id} not found")
            courses = Course.objects.filter(pk=course_id)
        else:
            courses = Course.objects.all()

        service = CompletionService()
        updated = 0
        for course in courses:
            try:
                reports = service.recompute_course(course.pk)
            except NoExamsError:
                self.stdout.write(
                    self.style.WARNING(f"{course.code}: no exams, skipped")
                )
                continue
            except UniversityServiceError as e:
                logger.error(
                    f"Completion recompute failed for course {course.code}: {e.message}",
                    exc_info=True,
                )
                raise CommandError(f"{course.code}: {e.message}")

            for report in reports:
                self.stdout.write(
                    f"  {course.code} - {report.student_name or report.student_id}: "
                    f"{report.status} ({report.submitted_exams}/{report.total_exams} exams"
                    + (f", {report.final_grade}% {report.grade_letter})" if report.final_grade is not None else ")")
                )
            updated += len(reports)

        self.stdout.write(self.style.SUCCESS(f"{updated} enrollments checked."))
