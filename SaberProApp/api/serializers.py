"""Serializers for enrollments, homework, submissions, grades, notifications and the school directory.

Write serializers accept the camelCase keys clients send and map them onto
service keyword arguments through ``source=``. Read serializers render model
fields as stored.
"""

from django.contrib.auth import get_user_model
from rest_framework import serializers
from rest_framework.exceptions import AuthenticationFailed
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer

from SaberProApp.core.choices import EnrollmentStatus, QuestionType, UserRole
from SaberProApp.courses.models import Enrollment, Subject
from SaberProApp.learning.models import Answer, Grade, Homework, Question, Submission
from SaberProApp.learning.status import submission_status
from SaberProApp.notifications.models import Notification
from SaberProApp.users.models import Student, Teacher

User = get_user_model()


# ---------- Users ----------

class UserSerializer(serializers.ModelSerializer):
    """Public, safe representation of a user."""

    class Meta:
        model = User
        fields = ["id", "email", "name", "role", "image", "is_onboarded"]


class MeSerializer(UserSerializer):
    """The caller with the ids of its role profiles."""
    student_id = serializers.UUIDField(read_only=True, allow_null=True)
    teacher_id = serializers.UUIDField(read_only=True, allow_null=True)

    class Meta(UserSerializer.Meta):
        fields = UserSerializer.Meta.fields + ["student_id", "teacher_id", "created_at"]


class PasswordChangeSerializer(serializers.Serializer):
    currentPassword = serializers.CharField(source="current_password", write_only=True)
    newPassword = serializers.CharField(source="new_password", write_only=True)


class StudentActivationSerializer(serializers.Serializer):
    studentId = serializers.CharField(source="code")
    password = serializers.CharField(write_only=True)
    confirmPassword = serializers.CharField(source="confirm_password", write_only=True)


class ActivatedTokenObtainPairSerializer(TokenObtainPairSerializer):
    """Token login that refuses student accounts which were never activated."""

    def validate(self, attrs):
        data = super().validate(attrs)
        student = getattr(self.user, "student", None)
        if self.user.role == UserRole.STUDENT and (student is None or not student.is_activated):
            raise AuthenticationFailed(
                "This account is not activated. Please create a password.", code="account_not_activated"
            )
        return data


class ProfileUpdateSerializer(serializers.Serializer):
    name = serializers.CharField(required=False, min_length=1)
    email = serializers.EmailField(required=False)
    image = serializers.URLField(required=False)


# ---------- Directory ----------

class TeacherBriefSerializer(serializers.ModelSerializer):
    name = serializers.CharField(source="user.name", read_only=True)
    email = serializers.EmailField(source="user.email", read_only=True)

    class Meta:
        model = Teacher
        fields = ["id", "name", "email", "department"]


class SubjectReadSerializer(serializers.ModelSerializer):
    """Subject with its instructing teacher."""
    teacher = TeacherBriefSerializer(read_only=True)

    class Meta:
        model = Subject
        fields = [
            "id", "name", "code", "description", "start_date", "end_date",
            "teacher", "created_at", "updated_at",
        ]


class SubjectBriefSerializer(serializers.ModelSerializer):
    class Meta:
        model = Subject
        fields = ["id", "name", "code"]


class SubjectWriteSerializer(serializers.Serializer):
    """Payload for creating or updating a subject."""
    name = serializers.CharField(max_length=200)
    code = serializers.CharField(max_length=32)
    description = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    startDate = serializers.DateTimeField(source="start_date")
    endDate = serializers.DateTimeField(source="end_date")
    teacherId = serializers.UUIDField(source="teacher_id")


class TeacherReadSerializer(serializers.ModelSerializer):
    """Teacher profile with user data and the subjects they instruct."""
    user = UserSerializer(read_only=True)
    subjects = SubjectBriefSerializer(many=True, read_only=True)

    class Meta:
        model = Teacher
        fields = ["id", "department", "bio", "user", "subjects"]


class TeacherWriteSerializer(serializers.Serializer):
    """Payload for creating or updating a teacher."""
    name = serializers.CharField(max_length=150)
    email = serializers.EmailField()
    password = serializers.CharField(required=False, allow_blank=True, write_only=True)
    department = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    bio = serializers.CharField(required=False, allow_null=True, allow_blank=True)


class StudentReadSerializer(serializers.ModelSerializer):
    """Student profile with user data."""
    user = UserSerializer(read_only=True)

    class Meta:
        model = Student
        fields = ["id", "student_code", "is_activated", "joined_at", "user"]


class StudentWriteSerializer(serializers.Serializer):
    """Payload for creating or updating a student."""
    name = serializers.CharField(max_length=150)
    email = serializers.EmailField()
    studentCode = serializers.CharField(source="student_code", max_length=6)
    password = serializers.CharField(required=False, allow_blank=True, write_only=True)
    isActivated = serializers.BooleanField(source="is_activated", required=False)


# ---------- Enrollments ----------

class EnrollmentReadSerializer(serializers.ModelSerializer):
    """Enrollment with student and subject."""
    student = StudentReadSerializer(read_only=True)
    subject = SubjectReadSerializer(read_only=True)

    class Meta:
        model = Enrollment
        fields = ["id", "status", "student", "subject", "enrolled_at", "updated_at"]


class EnrollmentWriteSerializer(serializers.Serializer):
    """Payload to request or create an enrollment."""
    studentId = serializers.UUIDField(source="student_id")
    subjectId = serializers.UUIDField(source="subject_id")
    status = serializers.ChoiceField(choices=EnrollmentStatus.choices, default=EnrollmentStatus.PENDING)


class EnrollmentStatusSerializer(serializers.Serializer):
    """Payload to approve or reject an enrollment."""
    enrollmentId = serializers.UUIDField(source="enrollment_id")
    status = serializers.ChoiceField(choices=[EnrollmentStatus.APPROVED, EnrollmentStatus.REJECTED])
    reason = serializers.CharField(required=False, allow_null=True, allow_blank=True)


# ---------- Homework ----------

class OptionSerializer(serializers.Serializer):
    id = serializers.CharField(required=False)
    text = serializers.CharField(allow_blank=True)


class QuestionWriteSerializer(serializers.Serializer):
    """One question inside a homework payload; cross-field rules are checked by the service."""
    order = serializers.IntegerField(min_value=1)
    text = serializers.CharField()
    type = serializers.ChoiceField(choices=QuestionType.choices)
    points = serializers.IntegerField(min_value=1)
    options = OptionSerializer(many=True, required=False, allow_null=True)
    correctAnswer = serializers.CharField(source="correct_answer", required=False, allow_null=True, allow_blank=True)


class HomeworkWriteSerializer(serializers.Serializer):
    """Payload for creating homework with its questions."""
    title = serializers.CharField(max_length=200)
    description = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    subjectId = serializers.UUIDField(source="subject_id")
    teacherId = serializers.UUIDField(source="teacher_id")
    dueDate = serializers.DateTimeField(source="due_date")
    allowFileUpload = serializers.BooleanField(source="allow_file_upload", default=False)
    totalPoints = serializers.IntegerField(source="total_points", min_value=1)
    questions = QuestionWriteSerializer(many=True, allow_empty=False)


class QuestionReadSerializer(serializers.ModelSerializer):
    class Meta:
        model = Question
        fields = ["id", "order", "text", "type", "points", "options", "correct_answer"]


class HomeworkReadSerializer(serializers.ModelSerializer):
    """Homework with questions.

    ``status`` is present for student callers and ``submission_count`` for
    staff. Correct answers are withheld while ``answers_revealed`` is False.
    """
    subject = SubjectBriefSerializer(read_only=True)
    questions = QuestionReadSerializer(many=True, read_only=True)
    status = serializers.CharField(source="student_status", read_only=True)
    submission_count = serializers.IntegerField(read_only=True)

    class Meta:
        model = Homework
        fields = [
            "id", "title", "description", "subject", "teacher_id", "due_date",
            "allow_file_upload", "total_points", "created_at", "questions",
            "status", "submission_count",
        ]

    def to_representation(self, instance):
        data = super().to_representation(instance)
        if not getattr(instance, "answers_revealed", True):
            for question in data["questions"]:
                question["correct_answer"] = None
        return data


class HomeworkSummarySerializer(serializers.Serializer):
    total = serializers.IntegerField()
    completed = serializers.IntegerField()
    graded = serializers.IntegerField()
    pending = serializers.IntegerField()
    overdue = serializers.IntegerField()


# ---------- Submissions & grades ----------

class AnswerWriteSerializer(serializers.Serializer):
    questionId = serializers.UUIDField(source="question_id")
    answerText = serializers.CharField(source="answer_text", required=False, allow_null=True, allow_blank=True)
    answerOption = serializers.CharField(source="answer_option", required=False, allow_null=True)


class SubmissionWriteSerializer(serializers.Serializer):
    """Payload for a student's submission."""
    studentId = serializers.UUIDField(source="student_id")
    homeworkId = serializers.UUIDField(source="homework_id")
    answers = AnswerWriteSerializer(many=True)
    fileUrl = serializers.URLField(source="file_url", required=False, allow_null=True, allow_blank=True, max_length=500)


class AnswerReadSerializer(serializers.ModelSerializer):
    class Meta:
        model = Answer
        fields = ["id", "question_id", "answer_text", "answer_option"]


class GradeReadSerializer(serializers.ModelSerializer):
    """Grade with its ids and the homework it belongs to."""
    homework_id = serializers.UUIDField(source="submission.homework_id", read_only=True)

    class Meta:
        model = Grade
        fields = ["id", "submission_id", "homework_id", "student_id", "teacher_id", "score", "feedback", "graded_at"]


class GradeWriteSerializer(serializers.Serializer):
    """Payload for creating or updating a grade."""
    submissionId = serializers.UUIDField(source="submission_id")
    teacherId = serializers.UUIDField(source="teacher_id")
    studentId = serializers.UUIDField(source="student_id")
    score = serializers.FloatField(min_value=0, max_value=100)
    feedback = serializers.CharField(required=False, allow_null=True, allow_blank=True)


class SubmissionReadSerializer(serializers.ModelSerializer):
    """Submission with answers, grade and derived status."""
    student = StudentReadSerializer(read_only=True)
    answers = AnswerReadSerializer(many=True, read_only=True)
    grade = serializers.SerializerMethodField()
    derived_status = serializers.SerializerMethodField()

    class Meta:
        model = Submission
        fields = [
            "id", "homework_id", "student", "status", "derived_status",
            "file_url", "submitted_at", "answers", "grade",
        ]

    def get_grade(self, obj) -> dict | None:
        if not hasattr(obj, "grade"):
            return None
        return GradeReadSerializer(obj.grade).data

    def get_derived_status(self, obj) -> str:
        return submission_status(obj)


class StudentDetailSerializer(StudentReadSerializer):
    """Student profile with enrollments, submissions and grades."""
    enrollments = serializers.SerializerMethodField()
    submissions = serializers.SerializerMethodField()
    grades = GradeReadSerializer(many=True, read_only=True)

    class Meta(StudentReadSerializer.Meta):
        fields = StudentReadSerializer.Meta.fields + ["enrollments", "submissions", "grades"]

    def get_enrollments(self, obj) -> list[dict]:
        return [
            {
                "id": str(enrollment.id),
                "status": enrollment.status,
                "enrolled_at": serializers.DateTimeField().to_representation(enrollment.enrolled_at),
                "subject": SubjectReadSerializer(enrollment.subject).data,
            }
            for enrollment in obj.enrollments.all()
        ]

    def get_submissions(self, obj) -> list[dict]:
        return [
            {
                "id": str(submission.id),
                "homework_id": str(submission.homework_id),
                "homework_title": submission.homework.title,
                "subject_id": str(submission.homework.subject_id),
                "submitted_at": serializers.DateTimeField().to_representation(submission.submitted_at),
                "status": submission_status(submission),
            }
            for submission in obj.submissions.all()
        ]


# ---------- Notifications ----------

class NotificationSerializer(serializers.ModelSerializer):
    class Meta:
        model = Notification
        fields = ["id", "user_id", "title", "message", "is_read", "created_at"]


class NotificationWriteSerializer(serializers.Serializer):
    """Payload for sending a notification to a user."""
    userId = serializers.UUIDField(source="user_id")
    title = serializers.CharField(max_length=200)
    message = serializers.CharField()
