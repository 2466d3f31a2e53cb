from rest_framework import permissions, status
from rest_framework.views import APIView
from rest_framework.response import Response

from ...exceptions import NotFoundError
from ...permissions import ensure_enrolled
from ...services.exam_catalog import ExamCatalogService
from ...services.grading import GradingService
from ...services.submissions import SubmissionSessionService
from ..serializers import ExamSheetSerializer, SubmitExamSerializer

__all__ = [
    "ExamSheetView",
    "StartExamView",
    "SubmitExamView",
    "SubmissionStatusView",
    "ExamResultView",
    "MySubmissionsView",
]

# Students always act for themselves: the student id is the caller's user id.


class ExamSheetView(APIView):
    """Exam with questions and options for an enrolled student, without the answer key."""

    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, course_id, exam_id):
        ensure_enrolled(request.user, course_id)
        exam = ExamCatalogService().get_exam_with_questions(exam_id, course_id)
        return Response(ExamSheetSerializer(exam).data)


class StartExamView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, exam_id):
        submission = SubmissionSessionService().start_exam(exam_id, request.user.pk)
        return Response(submission.to_dict(), status=status.HTTP_201_CREATED)


class SubmitExamView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, exam_id):
        serializer = SubmitExamSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = GradingService().submit_exam(
            exam_id, request.user.pk, serializer.validated_data["answers"]
        )
        return Response(result.to_dict(), status=status.HTTP_200_OK)


class SubmissionStatusView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, exam_id):
        submission = SubmissionSessionService().get_submission_status(exam_id, request.user.pk)
        if submission is None:
            raise NotFoundError("You have not started this exam.", resource="submission")
        return Response(submission.to_dict())


class ExamResultView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, exam_id):
        result = SubmissionSessionService().get_exam_result(exam_id, request.user.pk)
        if result is None:
            raise NotFoundError("No submitted result for this exam.", resource="result")
        return Response(result.to_dict())


class MySubmissionsView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        submissions = SubmissionSessionService().list_student_submissions(request.user.pk)
        return Response([submission.to_dict() for submission in submissions])
