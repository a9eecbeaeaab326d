"""Capability matrix for academic records.

Everything here is a pure function of the actor and the record's parties and
status, so the whole decision table can be audited in one place:

1. Admin -> record and document.
2. Owning student -> record and document, whatever the status.
3. Issuing institution -> record and document, whatever the status.
4. Verified company -> record and document only once the record is verified.
5. Anyone else -> nothing.

Mutations additionally require the exact role named by the transition table
(see `transitions.py`); seeing a record is necessary but never sufficient.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from django.db.models import Q

from .models import AcademicRecord


class Role(str, Enum):
    STUDENT = "STUDENT"
    INSTITUTION = "INSTITUTION"
    COMPANY = "COMPANY"
    ADMIN = "ADMIN"


class Visibility(str, Enum):
    DENY = "deny"
    METADATA_ONLY = "visible-metadata-only"
    WITH_DOCUMENT = "visible-with-document"


@dataclass(frozen=True)
class Actor:
    id: Optional[int]
    role: Optional[Role]
    verified: bool = False

    @classmethod
    def from_user(cls, user: Any) -> "Actor":
        if user is None or not getattr(user, "is_authenticated", False):
            return cls(id=None, role=None, verified=False)
        try:
            role = Role(str(getattr(user, "role", "") or ""))
        except ValueError:
            role = None
        return cls(id=user.pk, role=role, verified=bool(getattr(user, "is_verified", False)))


def _is_owner(actor: Actor, record) -> bool:
    return actor.role == Role.STUDENT and actor.id is not None and actor.id == record.owner_id


def _is_issuer(actor: Actor, record) -> bool:
    return actor.role == Role.INSTITUTION and actor.id is not None and actor.id == record.issuer_id


def evaluate(actor: Actor, record) -> Visibility:
    if actor.role == Role.ADMIN:
        return Visibility.WITH_DOCUMENT
    if _is_owner(actor, record):
        return Visibility.WITH_DOCUMENT
    if _is_issuer(actor, record):
        return Visibility.WITH_DOCUMENT
    if actor.role == Role.COMPANY and actor.verified:
        if record.status == AcademicRecord.Status.VERIFIED:
            return Visibility.WITH_DOCUMENT
        return Visibility.DENY
    return Visibility.DENY


def public_visibility(record) -> Visibility:
    """What the unauthenticated fingerprint oracle may reveal about a record."""

    if record.status == AcademicRecord.Status.VERIFIED:
        return Visibility.METADATA_ONLY
    return Visibility.DENY


def visible_records_q(actor: Actor) -> Q:
    """ORM filter equivalent to `evaluate(...) != DENY` for listings."""

    if actor.role == Role.ADMIN:
        return Q()
    if actor.id is None:
        return Q(pk__in=[])
    if actor.role == Role.STUDENT:
        return Q(owner_id=actor.id)
    if actor.role == Role.INSTITUTION:
        return Q(issuer_id=actor.id)
    if actor.role == Role.COMPANY and actor.verified:
        return Q(status=AcademicRecord.Status.VERIFIED)
    return Q(pk__in=[])


def can_decide(actor: Actor, record) -> bool:
    return _is_issuer(actor, record)


def can_resubmit(actor: Actor, record) -> bool:
    return _is_owner(actor, record)


def can_delete(actor: Actor, record) -> bool:
    if actor.role == Role.ADMIN:
        return True
    return _is_owner(actor, record) and record.status == AcademicRecord.Status.PENDING
