from rest_framework import permissions, status
from rest_framework.views import APIView
from rest_framework.response import Response

from ...exceptions import NotFoundError
from ...permissions import IsUniversityAdmin
from ...services.submissions import SubmissionSessionService

__all__ = [
    "AllSubmissionsView",
    "SubmissionDeleteView",
    "SubmissionRestoreView",
]


class AllSubmissionsView(APIView):
    """Every submission including soft-deleted ones, newest first."""

    permission_classes = [permissions.IsAuthenticated, IsUniversityAdmin]

    def get(self, request):
        submissions = SubmissionSessionService().list_all_submissions_including_deleted()
        return Response([submission.to_dict() for submission in submissions])


class SubmissionDeleteView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsUniversityAdmin]

    def delete(self, request, submission_id):
        if not SubmissionSessionService().delete_submission(submission_id):
            raise NotFoundError(
                f"Submission with ID {submission_id} not found", resource="submission"
            )
        return Response(status=status.HTTP_204_NO_CONTENT)


class SubmissionRestoreView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsUniversityAdmin]

    def post(self, request, submission_id):
        if not SubmissionSessionService().restore_submission(submission_id):
            raise NotFoundError(
                f"Submission with ID {submission_id} not found", resource="submission"
            )
        return Response({"message": "Submission restored."}, status=status.HTTP_200_OK)
