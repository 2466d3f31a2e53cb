from rest_framework import permissions
from rest_framework.views import APIView
from rest_framework.response import Response

from ..permissions import IsInstructorOrAdmin, ensure_course_access
from ..services.completion import CompletionService


class MyCourseCompletionView(APIView):
    """Completion check of the caller's own enrollment."""

    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, course_id):
        report = CompletionService().check_course_completion(request.user.pk, course_id)
        return Response(report.to_dict())


class StudentCourseCompletionView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsInstructorOrAdmin]

    def get(self, request, course_id, student_id):
        ensure_course_access(request.user, course_id)
        report = CompletionService().check_course_completion(student_id, course_id)
        return Response(report.to_dict())
