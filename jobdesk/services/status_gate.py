"""Completion gate for the task status workflow.

Staff request completion, a privileged role confirms it: a request to move
a task to ``Completed`` by anyone other than an admin or chef lands in
``Review Pending`` instead. Every other transition passes through, including
backward moves such as ``Completed`` -> ``Pending``.
"""

from ..models import ProfileRole, TaskStatus

PRIVILEGED_ROLES = frozenset({ProfileRole.ADMIN, ProfileRole.CHEF})


def can_complete(actor_role: ProfileRole | str | None) -> bool:
    """Whether the role may set ``Completed`` directly."""
    if actor_role is None:
        return False
    try:
        role = ProfileRole(actor_role)
    except ValueError:
        return False
    return role in PRIVILEGED_ROLES


def apply_completion_gate(
    actor_role: ProfileRole | str | None,
    requested_status: TaskStatus | str,
) -> TaskStatus:
    """Map a requested status to the status that is actually applied.

    Evaluated against the acting user's role, never the task's current state.
    """
    requested = TaskStatus(requested_status)
    if requested != TaskStatus.COMPLETED:
        return requested
    if can_complete(actor_role):
        return TaskStatus.COMPLETED
    return TaskStatus.REVIEW_PENDING
