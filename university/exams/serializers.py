from rest_framework import serializers

from .models import Exam, ExamQuestion, MCQOption


# --- Output ---


class MCQOptionSerializer(serializers.ModelSerializer):
    class Meta:
        model = MCQOption
        fields = ["id", "text", "order_number", "is_correct"]


class ExamQuestionSerializer(serializers.ModelSerializer):
    options = MCQOptionSerializer(many=True, read_only=True)

    class Meta:
        model = ExamQuestion
        fields = ["id", "exam", "text", "order_number", "score", "options"]


class ExamSerializer(serializers.ModelSerializer):
    course_code = serializers.CharField(source="course.code", read_only=True)

    class Meta:
        model = Exam
        fields = [
            "id",
            "course",
            "course_code",
            "title",
            "description",
            "exam_date",
            "duration_minutes",
            "total_points",
            "created_at",
            "updated_at",
        ]


class ExamDetailSerializer(ExamSerializer):
    """Exam with its questions and options, for the authoring screens."""

    questions = ExamQuestionSerializer(many=True, read_only=True)

    class Meta(ExamSerializer.Meta):
        fields = ExamSerializer.Meta.fields + ["questions"]


# Exam sheet handed to students: never exposes which option is correct.


class ExamSheetOptionSerializer(serializers.ModelSerializer):
    class Meta:
        model = MCQOption
        fields = ["id", "text", "order_number"]


class ExamSheetQuestionSerializer(serializers.ModelSerializer):
    options = ExamSheetOptionSerializer(many=True, read_only=True)

    class Meta:
        model = ExamQuestion
        fields = ["id", "text", "order_number", "score", "options"]


class ExamSheetSerializer(ExamSerializer):
    questions = ExamSheetQuestionSerializer(many=True, read_only=True)

    class Meta(ExamSerializer.Meta):
        fields = ExamSerializer.Meta.fields + ["questions"]


# --- Input ---
# Only the request shape is checked here; value rules live in
# ``university.exams.validators`` and are applied by the services.


class ExamInputSerializer(serializers.Serializer):
    title = serializers.CharField(allow_blank=True)
    description = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    exam_date = serializers.DateTimeField()
    duration_minutes = serializers.IntegerField()
    total_points = serializers.DecimalField(max_digits=10, decimal_places=2)


class OptionInputSerializer(serializers.Serializer):
    id = serializers.IntegerField(required=False)
    text = serializers.CharField(allow_blank=True, trim_whitespace=False)
    order_number = serializers.IntegerField()
    is_correct = serializers.BooleanField(default=False)


class QuestionInputSerializer(serializers.Serializer):
    text = serializers.CharField(allow_blank=True)
    score = serializers.DecimalField(max_digits=10, decimal_places=2)
    order_number = serializers.IntegerField()
    options = OptionInputSerializer(many=True, allow_empty=True)


class AnswerInputSerializer(serializers.Serializer):
    question_id = serializers.IntegerField()
    selected_option_id = serializers.IntegerField()


class SubmitExamSerializer(serializers.Serializer):
    answers = AnswerInputSerializer(many=True, allow_empty=True)
