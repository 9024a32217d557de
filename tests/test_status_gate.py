"""
Tests for the completion gate.

Only admins and chefs can put a task straight into Completed; everyone
else is routed through Review Pending. All other moves pass through.
"""

import pytest

from jobdesk.models import ProfileRole, TaskStatus
from jobdesk.services.status_gate import apply_completion_gate, can_complete


class TestApplyCompletionGate:
    """Requested status -> applied status."""

    @pytest.mark.parametrize("role", [ProfileRole.ADMIN, ProfileRole.CHEF])
    def test_privileged_roles_complete_directly(self, role):
        assert apply_completion_gate(role, TaskStatus.COMPLETED) == TaskStatus.COMPLETED

    def test_staff_completion_goes_to_review(self):
        assert (
            apply_completion_gate(ProfileRole.STAFF, TaskStatus.COMPLETED)
            == TaskStatus.REVIEW_PENDING
        )

    @pytest.mark.parametrize("role", [None, "", "owner", "ADMIN"])
    def test_unknown_or_missing_role_goes_to_review(self, role):
        """Role matching is exact; anything unrecognized is unprivileged."""
        assert apply_completion_gate(role, TaskStatus.COMPLETED) == TaskStatus.REVIEW_PENDING

    @pytest.mark.parametrize(
        "requested",
        [TaskStatus.PENDING, TaskStatus.IN_PROGRESS, TaskStatus.REVIEW_PENDING],
    )
    @pytest.mark.parametrize("role", [ProfileRole.STAFF, ProfileRole.CHEF, None])
    def test_non_completion_requests_pass_through(self, role, requested):
        assert apply_completion_gate(role, requested) == requested

    def test_accepts_raw_strings(self):
        assert apply_completion_gate("chef", "Completed") == TaskStatus.COMPLETED
        assert apply_completion_gate("staff", "Completed") == TaskStatus.REVIEW_PENDING

    def test_rejects_unknown_status(self):
        with pytest.raises(ValueError):
            apply_completion_gate(ProfileRole.ADMIN, "Done")


class TestCanComplete:

    def test_roles(self):
        assert can_complete(ProfileRole.ADMIN)
        assert can_complete("chef")
        assert not can_complete(ProfileRole.STAFF)
        assert not can_complete(None)
        assert not can_complete("janitor")
