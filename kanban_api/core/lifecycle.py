"""
Result codes and the work item lifecycle.

Every anticipated repository outcome is one of the `Response` members; callers
branch on the code instead of catching exceptions.
"""
from __future__ import annotations

import enum


class Response(str, enum.Enum):
    """Closed set of outcomes returned by repository operations."""
    CREATED = "Created"
    UPDATED = "Updated"
    DELETED = "Deleted"
    NOT_FOUND = "NotFound"
    CONFLICT = "Conflict"
    BAD_REQUEST = "BadRequest"


class State(str, enum.Enum):
    """Work item states: New -> Active -> Resolved / Closed / Removed."""
    NEW = "New"
    ACTIVE = "Active"
    RESOLVED = "Resolved"
    CLOSED = "Closed"
    REMOVED = "Removed"


# Resolved, Closed and Removed items can no longer be deleted.
DELETE_PROTECTED_STATES = frozenset({State.RESOLVED, State.CLOSED, State.REMOVED})


# PUBLIC_INTERFACE
def deletion_outcome(state: State) -> Response:
    """
    Return what deleting a work item in `state` does.

    - New: the row is physically removed -> Deleted
    - Active: soft delete, state becomes Removed -> Updated
    - Resolved/Closed/Removed: refused -> Conflict
    """
    if state in DELETE_PROTECTED_STATES:
        return Response.CONFLICT
    if state == State.ACTIVE:
        return Response.UPDATED
    return Response.DELETED
