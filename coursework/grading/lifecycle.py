import enum

from coursework.core.errors import InvalidTransition


class RevisionStatus(str, enum.Enum):
    SUBMITTED = "SUBMITTED"
    NEEDS_FIX = "NEEDS_FIX"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"


INITIAL_STATUS = RevisionStatus.SUBMITTED

# Staying in the same status is always allowed (regrade without a status change).
# There is no terminal status: ACCEPTED/REJECTED can be reopened.
ALLOWED_TRANSITIONS: dict[RevisionStatus, frozenset[RevisionStatus]] = {
    RevisionStatus.SUBMITTED: frozenset(
        {RevisionStatus.NEEDS_FIX, RevisionStatus.ACCEPTED, RevisionStatus.REJECTED}
    ),
    RevisionStatus.NEEDS_FIX: frozenset({RevisionStatus.SUBMITTED}),
    RevisionStatus.ACCEPTED: frozenset({RevisionStatus.NEEDS_FIX}),
    RevisionStatus.REJECTED: frozenset({RevisionStatus.NEEDS_FIX}),
}


def can_transition(current: RevisionStatus, target: RevisionStatus) -> bool:
    if current == target:
        return True
    return target in ALLOWED_TRANSITIONS[current]


def transition(current: RevisionStatus, target: RevisionStatus) -> RevisionStatus:
    """Return the new status, or raise InvalidTransition carrying (current, target)."""
    current = RevisionStatus(current)
    target = RevisionStatus(target)
    if not can_transition(current, target):
        raise InvalidTransition(current, target)
    return target
