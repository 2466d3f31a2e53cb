from rest_framework import permissions, status
from rest_framework.views import APIView
from rest_framework.response import Response

from ...permissions import IsInstructorOrAdmin, ensure_course_access, ensure_exam_access
from ...services.exam_catalog import ExamCatalogService
from ...services.submissions import SubmissionSessionService
from ..serializers import (
    ExamDetailSerializer,
    ExamInputSerializer,
    ExamQuestionSerializer,
    ExamSerializer,
    QuestionInputSerializer,
)

__all__ = [
    "ExamListCreateView",
    "ExamDetailView",
    "ExamQuestionsView",
    "QuestionCreateView",
    "QuestionDetailView",
    "ExamResultsView",
]


class ExamListCreateView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsInstructorOrAdmin]

    def get(self, request, course_id):
        ensure_course_access(request.user, course_id)
        exams = ExamCatalogService().list_exams_for_course(course_id)
        return Response(ExamSerializer(exams, many=True).data)

    def post(self, request, course_id):
        ensure_course_access(request.user, course_id)
        serializer = ExamInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        exam = ExamCatalogService().create_exam(course_id, **serializer.validated_data)
        return Response(ExamSerializer(exam).data, status=status.HTTP_201_CREATED)


class ExamDetailView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsInstructorOrAdmin]

    def get(self, request, course_id, exam_id):
        ensure_course_access(request.user, course_id)
        exam = ExamCatalogService().get_exam(exam_id, course_id)
        return Response(ExamSerializer(exam).data)

    def put(self, request, course_id, exam_id):
        ensure_course_access(request.user, course_id)
        serializer = ExamInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        exam = ExamCatalogService().update_exam(exam_id, course_id, **serializer.validated_data)
        return Response(ExamSerializer(exam).data)

    def delete(self, request, course_id, exam_id):
        ensure_course_access(request.user, course_id)
        ExamCatalogService().delete_exam(exam_id, course_id)
        return Response(status=status.HTTP_204_NO_CONTENT)


class ExamQuestionsView(APIView):
    """Exam with questions and options, both ordered by order number."""

    permission_classes = [permissions.IsAuthenticated, IsInstructorOrAdmin]

    def get(self, request, course_id, exam_id):
        ensure_course_access(request.user, course_id)
        exam = ExamCatalogService().get_exam_with_questions(exam_id, course_id)
        return Response(ExamDetailSerializer(exam).data)


class QuestionCreateView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsInstructorOrAdmin]

    def post(self, request, exam_id):
        ensure_exam_access(request.user, exam_id)
        serializer = QuestionInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        question = ExamCatalogService().add_question(exam_id, **serializer.validated_data)
        return Response(ExamQuestionSerializer(question).data, status=status.HTTP_201_CREATED)


class QuestionDetailView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsInstructorOrAdmin]

    def get(self, request, exam_id, question_id):
        ensure_exam_access(request.user, exam_id)
        question = ExamCatalogService().get_question(question_id, exam_id)
        return Response(ExamQuestionSerializer(question).data)

    def put(self, request, exam_id, question_id):
        ensure_exam_access(request.user, exam_id)
        serializer = QuestionInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        question = ExamCatalogService().update_question(
            question_id, exam_id, **serializer.validated_data
        )
        return Response(ExamQuestionSerializer(question).data)

    def delete(self, request, exam_id, question_id):
        ensure_exam_access(request.user, exam_id)
        ExamCatalogService().delete_question(question_id, exam_id)
        return Response(status=status.HTTP_204_NO_CONTENT)


class ExamResultsView(APIView):
    """Finalized submissions of one exam, best score first."""

    permission_classes = [permissions.IsAuthenticated, IsInstructorOrAdmin]

    def get(self, request, exam_id):
        ensure_exam_access(request.user, exam_id)
        results = SubmissionSessionService().list_exam_results(exam_id)
        return Response([result.to_dict() for result in results])
