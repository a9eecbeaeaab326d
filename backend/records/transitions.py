from __future__ import annotations

from .access import Actor, Visibility, can_decide, can_resubmit, evaluate
from .errors import RecordAuthorizationError, RecordConflictError, RecordNotFoundError
from .models import AcademicRecord, RecordTransition

Status = AcademicRecord.Status
Event = RecordTransition.Event


# status -> {event: next status}. Verified is terminal until the record is deleted.
ALLOWED_TRANSITIONS: dict[str, dict[str, str]] = {
    Status.PENDING: {Event.VERIFY: Status.VERIFIED, Event.REJECT: Status.REJECTED},
    Status.VERIFIED: {},
    Status.REJECTED: {Event.RESUBMIT: Status.PENDING},
}

_ACTOR_CHECKS = {
    Event.VERIFY: can_decide,
    Event.REJECT: can_decide,
    Event.RESUBMIT: can_resubmit,
}


def assert_transition(actor: Actor, record: AcademicRecord, event: str) -> str:
    """Validate `event` on `record` for `actor` and return the target status.

    Authorization is checked before state so an unauthorized caller learns
    nothing about the record's current status.
    """

    check = _ACTOR_CHECKS.get(event)
    if check is None:
        raise ValueError(f"Unknown transition event: {event}")

    if not check(actor, record):
        if evaluate(actor, record) == Visibility.DENY:
            raise RecordNotFoundError()
        raise RecordAuthorizationError()

    to_status = ALLOWED_TRANSITIONS.get(record.status, {}).get(event)
    if to_status is None:
        raise RecordConflictError(f"Transición no permitida: {record.status} -> {event}")
    return to_status
