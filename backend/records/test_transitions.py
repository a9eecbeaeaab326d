from django.test import SimpleTestCase

from .access import Actor, Role
from .errors import RecordAuthorizationError, RecordConflictError, RecordNotFoundError
from .models import AcademicRecord
from .transitions import ALLOWED_TRANSITIONS, assert_transition

Status = AcademicRecord.Status


class TransitionTableTests(SimpleTestCase):
    def test_transition_table_shape(self):
        self.assertEqual(ALLOWED_TRANSITIONS[Status.VERIFIED], {})
        self.assertEqual(
            ALLOWED_TRANSITIONS[Status.PENDING],
            {"verify": Status.VERIFIED, "reject": Status.REJECTED},
        )
        self.assertEqual(ALLOWED_TRANSITIONS[Status.REJECTED], {"resubmit": Status.PENDING})

    def test_assert_transition_checks_actor_before_state(self):
        record = AcademicRecord(owner_id=10, issuer_id=20, status=Status.VERIFIED)
        issuer = Actor(id=20, role=Role.INSTITUTION)
        owner = Actor(id=10, role=Role.STUDENT)
        stranger = Actor(id=99, role=Role.INSTITUTION)

        with self.assertRaises(RecordConflictError):
            assert_transition(issuer, record, "verify")
        with self.assertRaises(RecordAuthorizationError):
            assert_transition(owner, record, "verify")
        with self.assertRaises(RecordNotFoundError):
            assert_transition(stranger, record, "reject")

        record.status = Status.PENDING
        self.assertEqual(assert_transition(issuer, record, "reject"), Status.REJECTED)
        with self.assertRaises(RecordConflictError):
            assert_transition(owner, record, "resubmit")

    def test_unknown_event_is_rejected(self):
        record = AcademicRecord(owner_id=10, issuer_id=20, status=Status.PENDING)
        with self.assertRaises(ValueError):
            assert_transition(Actor(id=1, role=Role.ADMIN), record, "archive")
