"""API throttling classes."""

from rest_framework.throttling import UserRateThrottle


class SubmissionRateThrottle(UserRateThrottle):
    """Throttle limiting homework submissions per user (rate from ``DEFAULT_THROTTLE_RATES``)."""
    scope = "submission_create"
