"""REST API views for enrollments, homework, submissions, grades, notifications and the school directory.

Views stay thin: they validate the payload, call the matching domain service
with ``request.user`` as actor, and wrap the result under a named key.
"""

from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from drf_spectacular.utils import (
    extend_schema,
    extend_schema_view,
    OpenApiParameter,
    OpenApiResponse,
)

from SaberProApp.api.mixins import EnvelopeMixin
from SaberProApp.api.serializers import (
    EnrollmentReadSerializer,
    EnrollmentStatusSerializer,
    EnrollmentWriteSerializer,
    GradeReadSerializer,
    GradeWriteSerializer,
    HomeworkReadSerializer,
    HomeworkSummarySerializer,
    HomeworkWriteSerializer,
    MeSerializer,
    NotificationSerializer,
    NotificationWriteSerializer,
    PasswordChangeSerializer,
    ProfileUpdateSerializer,
    StudentActivationSerializer,
    StudentDetailSerializer,
    StudentReadSerializer,
    StudentWriteSerializer,
    SubjectReadSerializer,
    SubjectWriteSerializer,
    SubmissionReadSerializer,
    SubmissionWriteSerializer,
    TeacherReadSerializer,
    TeacherWriteSerializer,
    UserSerializer,
)
from SaberProApp.api.throttles import SubmissionRateThrottle
from SaberProApp.core.exceptions import ValidationError
from SaberProApp.core.permissions import (
    IsAdmin,
    IsRecipientOrAdmin,
    IsStaffMember,
    IsStudent,
    IsSuperAdmin,
)
from SaberProApp.domain.services import (
    directory_service,
    enrollment_service,
    grading_service,
    learning_service,
    notification_service,
)
from SaberProApp.notifications.models import Notification

AUTH_RESPONSES = {
    401: OpenApiResponse(description="Authentication required."),
    403: OpenApiResponse(description="Forbidden"),
    404: OpenApiResponse(description="Not Found"),
}

VALIDATION_RESPONSE = {
    400: OpenApiResponse(description="Invalid data or conflicting state."),
}

ID_PARAM = OpenApiParameter("id", str, OpenApiParameter.QUERY, required=False)


def _success() -> Response:
    return Response({"success": True})


def _required_id(request: Request) -> str:
    value = request.query_params.get("id")
    if not value:
        raise ValidationError({"id": ["This query parameter is required."]})
    return value


# ---------- Enrollments ----------
class EnrollmentView(EnvelopeMixin, APIView):
    """Create, list and delete enrollments."""

    @extend_schema(
        tags=["Enrollments"],
        parameters=[
            OpenApiParameter("studentId", str, OpenApiParameter.QUERY, required=False),
            OpenApiParameter("subjectId", str, OpenApiParameter.QUERY, required=False),
            OpenApiParameter("status", str, OpenApiParameter.QUERY, required=False),
        ],
        responses={200: EnrollmentReadSerializer(many=True), **AUTH_RESPONSES},
    )
    def get(self, request: Request) -> Response:
        enrollments = enrollment_service.list_enrollments(
            request.user,
            student_id=self.query_param("studentId", "student_id"),
            subject_id=self.query_param("subjectId", "subject_id"),
            status=self.query_param("status"),
        )
        return self.respond("enrollments", EnrollmentReadSerializer, enrollments, many=True)

    @extend_schema(
        tags=["Enrollments"],
        request=EnrollmentWriteSerializer,
        responses={201: EnrollmentReadSerializer, **AUTH_RESPONSES, **VALIDATION_RESPONSE},
    )
    def post(self, request: Request) -> Response:
        data = self.validated(EnrollmentWriteSerializer)
        enrollment = enrollment_service.request_or_create_enrollment(request.user, **data)
        return self.respond("enrollment", EnrollmentReadSerializer, enrollment, status_code=status.HTTP_201_CREATED)

    @extend_schema(
        tags=["Enrollments"],
        parameters=[ID_PARAM],
        responses={200: OpenApiResponse(description="Deleted"), **AUTH_RESPONSES, **VALIDATION_RESPONSE},
    )
    def delete(self, request: Request) -> Response:
        enrollment_service.delete_enrollment(request.user, request.query_params.get("id"))
        return _success()


class EnrollmentStatusView(EnvelopeMixin, APIView):
    """Approve or reject an enrollment."""
    permission_classes = [IsStaffMember]

    @extend_schema(
        tags=["Enrollments"],
        request=EnrollmentStatusSerializer,
        responses={200: EnrollmentReadSerializer, **AUTH_RESPONSES, **VALIDATION_RESPONSE},
    )
    def put(self, request: Request) -> Response:
        data = self.validated(EnrollmentStatusSerializer)
        enrollment = enrollment_service.set_enrollment_status(request.user, **data)
        return self.respond("enrollment", EnrollmentReadSerializer, enrollment)


# ---------- Homework ----------
class HomeworkView(EnvelopeMixin, APIView):
    """Create and list homework."""

    def get_permissions(self):
        if self.request.method == "POST":
            return [IsStaffMember()]
        return [IsAuthenticated()]

    @extend_schema(
        tags=["Homework"],
        parameters=[
            OpenApiParameter("subjectId", str, OpenApiParameter.QUERY, required=False),
            OpenApiParameter("homeworkId", str, OpenApiParameter.QUERY, required=False),
        ],
        responses={200: HomeworkReadSerializer(many=True), **AUTH_RESPONSES},
    )
    def get(self, request: Request) -> Response:
        homeworks = learning_service.list_homeworks(
            request.user,
            subject_id=self.query_param("subjectId", "subject_id"),
            homework_id=self.query_param("homeworkId", "homework_id"),
        )
        return self.respond("homeworks", HomeworkReadSerializer, homeworks, many=True)

    @extend_schema(
        tags=["Homework"],
        request=HomeworkWriteSerializer,
        responses={201: HomeworkReadSerializer, **AUTH_RESPONSES, **VALIDATION_RESPONSE},
    )
    def post(self, request: Request) -> Response:
        data = self.validated(HomeworkWriteSerializer)
        homework = learning_service.create_homework(request.user, **data)
        return self.respond("homework", HomeworkReadSerializer, homework, status_code=status.HTTP_201_CREATED)


class HomeworkSummaryView(EnvelopeMixin, APIView):
    """Homework counts by derived status for one student."""

    @extend_schema(
        tags=["Homework"],
        parameters=[
            OpenApiParameter("studentId", str, OpenApiParameter.QUERY, required=False),
            OpenApiParameter("subjectId", str, OpenApiParameter.QUERY, required=False),
        ],
        responses={200: HomeworkSummarySerializer, **AUTH_RESPONSES},
    )
    def get(self, request: Request) -> Response:
        summary = learning_service.homework_summary(
            request.user,
            student_id=self.query_param("studentId", "student_id"),
            subject_id=self.query_param("subjectId", "subject_id"),
        )
        return self.respond("summary", HomeworkSummarySerializer, summary)


# ---------- Submissions ----------
class SubmissionView(EnvelopeMixin, APIView):
    """Submit homework and list submissions."""

    def get_permissions(self):
        if self.request.method == "POST":
            return [IsStudent()]
        return [IsAuthenticated()]

    def get_throttles(self):
        if self.request.method == "POST":
            return [SubmissionRateThrottle()]
        return super().get_throttles()

    @extend_schema(
        tags=["Submissions"],
        parameters=[
            OpenApiParameter("studentId", str, OpenApiParameter.QUERY, required=False),
            OpenApiParameter("homeworkId", str, OpenApiParameter.QUERY, required=False),
        ],
        responses={200: SubmissionReadSerializer(many=True), **AUTH_RESPONSES},
    )
    def get(self, request: Request) -> Response:
        submissions = learning_service.list_submissions(
            request.user,
            student_id=self.query_param("studentId", "student_id"),
            homework_id=self.query_param("homeworkId", "homework_id"),
        )
        return self.respond("submissions", SubmissionReadSerializer, submissions, many=True)

    @extend_schema(
        tags=["Submissions"],
        description="Submit a homework (rate limited per user).",
        request=SubmissionWriteSerializer,
        responses={201: SubmissionReadSerializer, **AUTH_RESPONSES, **VALIDATION_RESPONSE},
    )
    def post(self, request: Request) -> Response:
        data = self.validated(SubmissionWriteSerializer)
        submission = learning_service.submit_homework(request.user, **data)
        return self.respond("submission", SubmissionReadSerializer, submission, status_code=status.HTTP_201_CREATED)


# ---------- Grades ----------
class GradeView(EnvelopeMixin, APIView):
    """Grade submissions and list grades."""

    def get_permissions(self):
        if self.request.method == "POST":
            return [IsStaffMember()]
        return [IsAuthenticated()]

    @extend_schema(
        tags=["Grades"],
        parameters=[
            OpenApiParameter("studentId", str, OpenApiParameter.QUERY, required=False),
            OpenApiParameter("submissionId", str, OpenApiParameter.QUERY, required=False),
            OpenApiParameter("homeworkId", str, OpenApiParameter.QUERY, required=False),
            OpenApiParameter("subjectId", str, OpenApiParameter.QUERY, required=False),
        ],
        responses={200: GradeReadSerializer(many=True), **AUTH_RESPONSES},
    )
    def get(self, request: Request) -> Response:
        grades = grading_service.list_grades(
            request.user,
            student_id=self.query_param("studentId", "student_id"),
            submission_id=self.query_param("submissionId", "submission_id"),
            homework_id=self.query_param("homeworkId", "homework_id"),
            subject_id=self.query_param("subjectId", "subject_id"),
        )
        return self.respond("grades", GradeReadSerializer, grades, many=True)

    @extend_schema(
        tags=["Grades"],
        request=GradeWriteSerializer,
        responses={200: GradeReadSerializer, **AUTH_RESPONSES, **VALIDATION_RESPONSE},
    )
    def post(self, request: Request) -> Response:
        data = self.validated(GradeWriteSerializer)
        grade = grading_service.grade_submission(request.user, **data)
        return self.respond("grade", GradeReadSerializer, grade)


# ---------- Notifications ----------
@extend_schema_view(
    list=extend_schema(
        tags=["Notifications"],
        parameters=[OpenApiParameter("unread", bool, OpenApiParameter.QUERY, required=False)],
        responses={200: NotificationSerializer(many=True), **AUTH_RESPONSES},
    ),
    create=extend_schema(
        tags=["Notifications"],
        request=NotificationWriteSerializer,
        responses={201: NotificationSerializer, **AUTH_RESPONSES, **VALIDATION_RESPONSE},
    ),
    destroy=extend_schema(tags=["Notifications"], responses={200: OpenApiResponse(description="Deleted"), **AUTH_RESPONSES}),
    read=extend_schema(tags=["Notifications"], request=None, responses={200: OpenApiResponse(description="Marked read"), **AUTH_RESPONSES}),
    read_all=extend_schema(tags=["Notifications"], request=None, responses={200: OpenApiResponse(description="Count updated"), **AUTH_RESPONSES}),
)
class NotificationViewSet(EnvelopeMixin, mixins.ListModelMixin, viewsets.GenericViewSet):
    """The caller's notifications; staff may send notifications to any user."""
    serializer_class = NotificationSerializer
    queryset = Notification.objects.all()

    def get_permissions(self):
        if self.action == "create":
            return [IsStaffMember()]
        if self.action in ("destroy", "read"):
            return [IsAuthenticated(), IsRecipientOrAdmin()]
        return [IsAuthenticated()]

    def list(self, request: Request, *args, **kwargs) -> Response:
        unread = request.query_params.get("unread", "").lower() in ("1", "true")
        notifications = notification_service.list_notifications(request.user, unread_only=unread)
        return self.respond("notifications", NotificationSerializer, notifications, many=True)

    def create(self, request: Request, *args, **kwargs) -> Response:
        data = self.validated(NotificationWriteSerializer)
        notification = notification_service.create_notification(request.user, **data)
        return self.respond("notification", NotificationSerializer, notification, status_code=status.HTTP_201_CREATED)

    def destroy(self, request: Request, pk=None) -> Response:
        notification = self.get_object()
        notification_service.delete_notification(request.user, notification.pk)
        return _success()

    @action(detail=True, methods=["put"], url_path="read")
    def read(self, request: Request, pk=None) -> Response:
        notification = self.get_object()
        notification_service.mark_read(request.user, notification.pk)
        return _success()

    @action(detail=False, methods=["put"], url_path="readAll")
    def read_all(self, request: Request) -> Response:
        count = notification_service.mark_all_read(request.user)
        return Response({"success": True, "count": count})


# ---------- Students ----------
class StudentView(EnvelopeMixin, APIView):
    """Student directory: admins manage, teachers list their students, students read themselves."""

    def get_permissions(self):
        if self.request.method in ("POST", "PUT"):
            return [IsAdmin()]
        if self.request.method == "DELETE":
            return [IsSuperAdmin()]
        return [IsAuthenticated()]

    @extend_schema(
        tags=["Students"],
        parameters=[ID_PARAM],
        responses={200: StudentDetailSerializer, **AUTH_RESPONSES},
    )
    def get(self, request: Request) -> Response:
        student_id = request.query_params.get("id")
        if student_id:
            student = directory_service.get_student(request.user, student_id)
            return self.respond("student", StudentDetailSerializer, student)
        students = directory_service.list_students(request.user)
        return self.respond("students", StudentReadSerializer, students, many=True)

    @extend_schema(
        tags=["Students"],
        request=StudentWriteSerializer,
        responses={201: StudentReadSerializer, **AUTH_RESPONSES, **VALIDATION_RESPONSE},
    )
    def post(self, request: Request) -> Response:
        data = self.validated(StudentWriteSerializer)
        student = directory_service.create_student(request.user, **data)
        return self.respond("student", StudentReadSerializer, student, status_code=status.HTTP_201_CREATED)

    @extend_schema(
        tags=["Students"],
        parameters=[ID_PARAM],
        request=StudentWriteSerializer,
        responses={200: StudentReadSerializer, **AUTH_RESPONSES, **VALIDATION_RESPONSE},
    )
    def put(self, request: Request) -> Response:
        data = self.validated(StudentWriteSerializer, partial=True)
        student = directory_service.update_student(request.user, _required_id(request), **data)
        return self.respond("student", StudentReadSerializer, student)

    @extend_schema(tags=["Students"], parameters=[ID_PARAM], responses={200: OpenApiResponse(description="Deleted"), **AUTH_RESPONSES})
    def delete(self, request: Request) -> Response:
        directory_service.delete_student(request.user, _required_id(request))
        return _success()


class StudentCheckView(APIView):
    """Public lookup of a student code's activation state."""
    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(
        tags=["Students"],
        parameters=[OpenApiParameter("id", str, OpenApiParameter.QUERY, required=True)],
        responses={200: OpenApiResponse(description="Existence and activation flags")},
    )
    def get(self, request: Request) -> Response:
        return Response(directory_service.check_student_code(request.query_params.get("id")))


class StudentActivateView(EnvelopeMixin, APIView):
    """Public first-password setup for a student account, keyed by student code."""
    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(
        tags=["Students"],
        request=StudentActivationSerializer,
        responses={200: StudentReadSerializer, **VALIDATION_RESPONSE, 404: AUTH_RESPONSES[404]},
    )
    def post(self, request: Request) -> Response:
        student = directory_service.activate_student(**self.validated(StudentActivationSerializer))
        return self.respond("student", StudentReadSerializer, student)


# ---------- Teachers ----------
class TeacherView(EnvelopeMixin, APIView):
    """Teacher directory."""

    def get_permissions(self):
        if self.request.method in ("POST", "PUT"):
            return [IsAdmin()]
        if self.request.method == "DELETE":
            return [IsSuperAdmin()]
        return [IsAuthenticated()]

    @extend_schema(tags=["Teachers"], parameters=[ID_PARAM], responses={200: TeacherReadSerializer, **AUTH_RESPONSES})
    def get(self, request: Request) -> Response:
        teacher_id = request.query_params.get("id")
        if teacher_id:
            teacher = directory_service.get_teacher(request.user, teacher_id)
            return self.respond("teacher", TeacherReadSerializer, teacher)
        teachers = directory_service.list_teachers(request.user)
        return self.respond("teachers", TeacherReadSerializer, teachers, many=True)

    @extend_schema(
        tags=["Teachers"],
        request=TeacherWriteSerializer,
        responses={201: TeacherReadSerializer, **AUTH_RESPONSES, **VALIDATION_RESPONSE},
    )
    def post(self, request: Request) -> Response:
        data = self.validated(TeacherWriteSerializer)
        teacher = directory_service.create_teacher(request.user, **data)
        return self.respond("teacher", TeacherReadSerializer, teacher, status_code=status.HTTP_201_CREATED)

    @extend_schema(
        tags=["Teachers"],
        parameters=[ID_PARAM],
        request=TeacherWriteSerializer,
        responses={200: TeacherReadSerializer, **AUTH_RESPONSES, **VALIDATION_RESPONSE},
    )
    def put(self, request: Request) -> Response:
        data = self.validated(TeacherWriteSerializer, partial=True)
        data.pop("password", None)
        teacher = directory_service.update_teacher(request.user, _required_id(request), **data)
        return self.respond("teacher", TeacherReadSerializer, teacher)

    @extend_schema(tags=["Teachers"], parameters=[ID_PARAM], responses={200: OpenApiResponse(description="Deleted"), **AUTH_RESPONSES})
    def delete(self, request: Request) -> Response:
        directory_service.delete_teacher(request.user, _required_id(request))
        return _success()


# ---------- Subjects ----------
class SubjectView(EnvelopeMixin, APIView):
    """Subject catalogue."""

    def get_permissions(self):
        if self.request.method in ("POST", "PUT"):
            return [IsAdmin()]
        if self.request.method == "DELETE":
            return [IsSuperAdmin()]
        return [IsAuthenticated()]

    @extend_schema(tags=["Subjects"], parameters=[ID_PARAM], responses={200: SubjectReadSerializer, **AUTH_RESPONSES})
    def get(self, request: Request) -> Response:
        subject_id = request.query_params.get("id")
        if subject_id:
            subject = directory_service.get_subject(request.user, subject_id)
            return self.respond("subject", SubjectReadSerializer, subject)
        subjects = directory_service.list_subjects(request.user)
        return self.respond("subjects", SubjectReadSerializer, subjects, many=True)

    @extend_schema(
        tags=["Subjects"],
        request=SubjectWriteSerializer,
        responses={201: SubjectReadSerializer, **AUTH_RESPONSES, **VALIDATION_RESPONSE},
    )
    def post(self, request: Request) -> Response:
        data = self.validated(SubjectWriteSerializer)
        subject = directory_service.create_subject(request.user, **data)
        return self.respond("subject", SubjectReadSerializer, subject, status_code=status.HTTP_201_CREATED)

    @extend_schema(
        tags=["Subjects"],
        parameters=[ID_PARAM],
        request=SubjectWriteSerializer,
        responses={200: SubjectReadSerializer, **AUTH_RESPONSES, **VALIDATION_RESPONSE},
    )
    def put(self, request: Request) -> Response:
        data = self.validated(SubjectWriteSerializer, partial=True)
        subject = directory_service.update_subject(request.user, _required_id(request), **data)
        return self.respond("subject", SubjectReadSerializer, subject)

    @extend_schema(tags=["Subjects"], parameters=[ID_PARAM], responses={200: OpenApiResponse(description="Deleted"), **AUTH_RESPONSES})
    def delete(self, request: Request) -> Response:
        directory_service.delete_subject(request.user, _required_id(request))
        return _success()


# ---------- Users ----------
class UserPasswordView(APIView):
    """Change a user's password."""

    @extend_schema(
        tags=["Users"],
        request=PasswordChangeSerializer,
        responses={200: OpenApiResponse(description="Password updated"), **AUTH_RESPONSES, **VALIDATION_RESPONSE},
    )
    def put(self, request: Request, user_id: str) -> Response:
        ser = PasswordChangeSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        directory_service.change_password(request.user, user_id, **ser.validated_data)
        return Response({"message": "Password updated successfully"})


class UserDetailView(EnvelopeMixin, APIView):
    """Read or update a user's public profile."""

    @extend_schema(tags=["Users"], responses={200: UserSerializer, **AUTH_RESPONSES})
    def get(self, request: Request, user_id: str) -> Response:
        user = directory_service.get_user(request.user, user_id)
        return self.respond("user", UserSerializer, user)

    @extend_schema(
        tags=["Users"],
        request=ProfileUpdateSerializer,
        responses={200: UserSerializer, **AUTH_RESPONSES, **VALIDATION_RESPONSE},
    )
    def put(self, request: Request, user_id: str) -> Response:
        data = self.validated(ProfileUpdateSerializer, partial=True)
        user = directory_service.update_profile(request.user, user_id, **data)
        return self.respond("user", UserSerializer, user)

    patch = put


class MeView(EnvelopeMixin, APIView):
    """The authenticated caller."""

    @extend_schema(tags=["Users"], responses={200: MeSerializer, **AUTH_RESPONSES})
    def get(self, request: Request) -> Response:
        return self.respond("user", MeSerializer, directory_service.me(request.user))
