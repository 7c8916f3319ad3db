from django.urls import path, include
from rest_framework.routers import SimpleRouter
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView

from SaberProApp.api.views import (
    EnrollmentStatusView,
    EnrollmentView,
    GradeView,
    HomeworkSummaryView,
    HomeworkView,
    MeView,
    NotificationViewSet,
    StudentActivateView,
    StudentCheckView,
    StudentView,
    SubjectView,
    SubmissionView,
    TeacherView,
    UserDetailView,
    UserPasswordView,
)

router = SimpleRouter()
router.register(r"notifications", NotificationViewSet, basename="notification")

urlpatterns = [
    path("schema/", SpectacularAPIView.as_view(), name="schema"),
    path("docs/", SpectacularSwaggerView.as_view(url_name="schema"), name="docs"),
    path("auth/token/", TokenObtainPairView.as_view(), name="token_obtain_pair"),
    path("auth/token/refresh/", TokenRefreshView.as_view(), name="token_refresh"),
    path("enrollments/", EnrollmentView.as_view(), name="enrollments"),
    path("enrollments/status/", EnrollmentStatusView.as_view(), name="enrollment-status"),
    path("homeworks/", HomeworkView.as_view(), name="homeworks"),
    path("homeworks/summary/", HomeworkSummaryView.as_view(), name="homework-summary"),
    path("submissions/", SubmissionView.as_view(), name="submissions"),
    path("grades/", GradeView.as_view(), name="grades"),
    path("students/", StudentView.as_view(), name="students"),
    path("students/check/", StudentCheckView.as_view(), name="student-check"),
    path("students/activate/", StudentActivateView.as_view(), name="student-activate"),
    path("teachers/", TeacherView.as_view(), name="teachers"),
    path("subjects/", SubjectView.as_view(), name="subjects"),
    path("users/me/", MeView.as_view(), name="user-me"),
    path("users/<uuid:user_id>/", UserDetailView.as_view(), name="user-detail"),
    path("users/<uuid:user_id>/password/", UserPasswordView.as_view(), name="user-password"),
    path("", include(router.urls)),
]
