from django.test import SimpleTestCase

from .access import Actor, Role, Visibility, can_decide, can_delete, can_resubmit, evaluate, public_visibility
from .models import AcademicRecord

OWNER_ID = 10
ISSUER_ID = 20

Status = AcademicRecord.Status


def _record(status):
    return AcademicRecord(owner_id=OWNER_ID, issuer_id=ISSUER_ID, status=status)


class AccessMatrixTests(SimpleTestCase):
    def test_every_role_and_status(self):
        actors = {
            "admin": Actor(id=1, role=Role.ADMIN),
            "owner": Actor(id=OWNER_ID, role=Role.STUDENT),
            "other_student": Actor(id=11, role=Role.STUDENT),
            "issuer": Actor(id=ISSUER_ID, role=Role.INSTITUTION),
            "other_institution": Actor(id=21, role=Role.INSTITUTION),
            "verified_company": Actor(id=30, role=Role.COMPANY, verified=True),
            "unverified_company": Actor(id=31, role=Role.COMPANY, verified=False),
            "anonymous": Actor(id=None, role=None),
        }
        expected_verified_only = {
            Status.PENDING: Visibility.DENY,
            Status.VERIFIED: Visibility.WITH_DOCUMENT,
            Status.REJECTED: Visibility.DENY,
        }

        for status in Status.values:
            record = _record(status)
            with self.subTest(status=status):
                self.assertEqual(evaluate(actors["admin"], record), Visibility.WITH_DOCUMENT)
                self.assertEqual(evaluate(actors["owner"], record), Visibility.WITH_DOCUMENT)
                self.assertEqual(evaluate(actors["issuer"], record), Visibility.WITH_DOCUMENT)
                self.assertEqual(evaluate(actors["verified_company"], record), expected_verified_only[status])
                self.assertEqual(evaluate(actors["other_student"], record), Visibility.DENY)
                self.assertEqual(evaluate(actors["other_institution"], record), Visibility.DENY)
                self.assertEqual(evaluate(actors["unverified_company"], record), Visibility.DENY)
                self.assertEqual(evaluate(actors["anonymous"], record), Visibility.DENY)

    def test_matching_id_with_wrong_role_is_not_a_party(self):
        record = _record(Status.PENDING)
        # Same numeric id as the owner but acting as a company.
        self.assertEqual(evaluate(Actor(id=OWNER_ID, role=Role.COMPANY, verified=True), record), Visibility.DENY)
        self.assertEqual(evaluate(Actor(id=ISSUER_ID, role=Role.STUDENT), record), Visibility.DENY)

    def test_public_visibility_only_shows_verified_metadata(self):
        self.assertEqual(public_visibility(_record(Status.VERIFIED)), Visibility.METADATA_ONLY)
        self.assertEqual(public_visibility(_record(Status.PENDING)), Visibility.DENY)
        self.assertEqual(public_visibility(_record(Status.REJECTED)), Visibility.DENY)

    def test_mutation_capabilities(self):
        owner = Actor(id=OWNER_ID, role=Role.STUDENT)
        issuer = Actor(id=ISSUER_ID, role=Role.INSTITUTION)
        admin = Actor(id=1, role=Role.ADMIN)

        self.assertTrue(can_decide(issuer, _record(Status.PENDING)))
        self.assertFalse(can_decide(admin, _record(Status.PENDING)))
        self.assertFalse(can_decide(owner, _record(Status.PENDING)))

        self.assertTrue(can_resubmit(owner, _record(Status.REJECTED)))
        self.assertFalse(can_resubmit(issuer, _record(Status.REJECTED)))

        self.assertTrue(can_delete(owner, _record(Status.PENDING)))
        self.assertFalse(can_delete(owner, _record(Status.VERIFIED)))
        self.assertFalse(can_delete(owner, _record(Status.REJECTED)))
        self.assertTrue(can_delete(admin, _record(Status.VERIFIED)))
        self.assertFalse(can_delete(issuer, _record(Status.PENDING)))

    def test_actor_from_user_handles_anonymous_and_unknown_roles(self):
        class _Anon:
            is_authenticated = False

        class _User:
            is_authenticated = True
            pk = 7
            role = "TEACHER"
            is_verified = True

        anonymous = Actor.from_user(_Anon())
        self.assertIsNone(anonymous.id)
        self.assertIsNone(anonymous.role)
        actor = Actor.from_user(_User())
        self.assertEqual(actor.id, 7)
        self.assertIsNone(actor.role)
        self.assertEqual(evaluate(actor, _record(Status.VERIFIED)), Visibility.DENY)
