import threading
from unittest import mock

from django.core.cache import cache
from django.db import DatabaseError
from django.test import TestCase, override_settings
from rest_framework import status
from rest_framework.test import APIClient

from .access import Actor, Visibility
from .errors import (
    RecordAuthorizationError,
    RecordConflictError,
    RecordNotFoundError,
    RecordValidationError,
    StorageError,
    StorageTimeoutError,
)
from .models import AcademicRecord, FingerprintCheckEvent, RecordTransition
from .testing import DOCX_CONTENT_TYPE, PDF_BYTES, RecordsFixturesMixin, pdf_upload

Status = AcademicRecord.Status


class RecordWorkflowServiceTests(RecordsFixturesMixin, TestCase):
    def _submit(self, student=None, title="Ingeniería de Sistemas", record_type="degree", document=None):
        student = student or self.student
        return self.service.submit(
            Actor.from_user(student),
            record_type=record_type,
            title=title,
            document=document or pdf_upload(),
        )

    def test_submit_creates_pending_record_and_blob(self):
        view = self._submit()
        record = view.record

        self.assertEqual(record.status, Status.PENDING)
        self.assertEqual(record.owner_id, self.student.pk)
        self.assertEqual(record.issuer_id, self.institution.pk)
        self.assertEqual(record.original_format, "pdf")
        self.assertEqual(record.size_bytes, len(PDF_BYTES))
        self.assertEqual(len(record.fingerprint), 64)
        self.assertEqual(self.blob_store.blobs[record.document_ref], PDF_BYTES)
        self.assertTrue(record.document_ref.startswith("academic_records/"))
        self.assertTrue(record.document_ref.endswith(".pdf"))

        self.assertEqual(view.visibility, Visibility.WITH_DOCUMENT)
        self.assertIsNotNone(view.link)
        self.assertEqual(
            list(record.transitions.values_list("event", "from_status", "to_status")),
            [("submit", "", "pending")],
        )

    def test_submit_identical_metadata_twice_gives_distinct_fingerprints(self):
        first = self._submit().record
        second = self._submit().record
        self.assertNotEqual(first.fingerprint, second.fingerprint)
        self.assertNotEqual(first.document_ref, second.document_ref)

    def test_submit_accepts_docx(self):
        view = self._submit(document=pdf_upload("notas.docx", b"PK\x03\x04docx", DOCX_CONTENT_TYPE))
        self.assertEqual(view.record.original_format, "docx")
        self.assertTrue(view.record.document_ref.endswith(".docx"))

    def test_submit_rejects_invalid_documents_without_storing(self):
        cases = [
            ("document", None),
            ("document", pdf_upload("foto.png", b"\x89PNG", "image/png")),
            ("document", pdf_upload("vacio.pdf", b"")),
            ("document", pdf_upload("diploma.exe", PDF_BYTES)),
        ]
        for field, document in cases:
            with self.subTest(document=getattr(document, "name", None)):
                with self.assertRaises(RecordValidationError) as ctx:
                    self.service.submit(Actor.from_user(self.student), record_type="degree", title="X", document=document)
                self.assertEqual(ctx.exception.field, field)

        self.assertEqual(self.blob_store.blobs, {})
        self.assertEqual(AcademicRecord.objects.count(), 0)

    @override_settings(RECORDS_MAX_UPLOAD_BYTES=16)
    def test_submit_rejects_oversized_document(self):
        with self.assertRaises(RecordValidationError) as ctx:
            self._submit()
        self.assertEqual(ctx.exception.field, "document")
        self.assertEqual(self.blob_store.blobs, {})

    def test_submit_validates_metadata(self):
        with self.assertRaises(RecordValidationError) as ctx:
            self._submit(record_type="diploma")
        self.assertEqual(ctx.exception.field, "record_type")

        with self.assertRaises(RecordValidationError) as ctx:
            self._submit(title="   ")
        self.assertEqual(ctx.exception.field, "title")

    def test_submit_requires_student_with_institution(self):
        with self.assertRaises(RecordAuthorizationError):
            self._submit(student=self.company)

        self.student.institution = None
        self.student.save(update_fields=["institution"])
        with self.assertRaises(RecordValidationError) as ctx:
            self._submit()
        self.assertEqual(ctx.exception.field, "issuer")

    def test_submit_storage_failure_leaves_nothing_behind(self):
        self.blob_store.fail_store = True
        with self.assertRaises(StorageError):
            self._submit()
        self.assertEqual(AcademicRecord.objects.count(), 0)
        self.assertEqual(self.blob_store.blobs, {})

    def test_submit_persistence_failure_deletes_new_blob(self):
        with mock.patch.object(RecordTransition.objects, "create", side_effect=DatabaseError("boom")):
            with self.assertRaises(DatabaseError):
                self._submit()

        self.assertEqual(AcademicRecord.objects.count(), 0)
        self.assertEqual(self.blob_store.blobs, {})
        self.assertEqual(len(self.blob_store.deleted), 1)

    def test_submit_store_timeout_discards_late_write(self):
        self.blob_store.timeout_seconds = 0.05
        self.blob_store.store_gate = threading.Event()

        with self.assertRaises(StorageTimeoutError):
            self._submit()

        self.blob_store.store_gate.set()
        self.blob_store._executor.shutdown(wait=True)
        self.assertEqual(self.blob_store.blobs, {})
        self.assertEqual(AcademicRecord.objects.count(), 0)

    # Scenario: submit, verify, company reads the document.
    def test_verify_then_verified_company_reads_document(self):
        record = self._submit().record

        decided = self.service.decide(Actor.from_user(self.institution), record.pk, "verify")
        self.assertEqual(decided.record.status, Status.VERIFIED)
        self.assertIsNotNone(decided.record.decided_at)
        self.assertEqual(decided.record.rejection_reason, "")

        view = self.service.read(Actor.from_user(self.company), record.pk)
        self.assertEqual(view.visibility, Visibility.WITH_DOCUMENT)
        self.assertIn(record.document_ref, view.link.url)

    # Scenario: reject, resubmit, verify.
    def test_reject_resubmit_verify(self):
        record = self._submit().record
        old_ref, old_fingerprint = record.document_ref, record.fingerprint

        rejected = self.service.decide(Actor.from_user(self.institution), record.pk, "reject", "Documento ilegible")
        self.assertEqual(rejected.record.status, Status.REJECTED)
        self.assertEqual(rejected.record.rejection_reason, "Documento ilegible")

        resubmitted = self.service.resubmit(Actor.from_user(self.student), record.pk, pdf_upload("v2.pdf", PDF_BYTES + b"v2"))
        record.refresh_from_db()
        self.assertEqual(record.status, Status.PENDING)
        self.assertEqual(record.rejection_reason, "")
        self.assertIsNone(record.decided_at)
        self.assertNotEqual(record.fingerprint, old_fingerprint)
        self.assertNotEqual(record.document_ref, old_ref)
        self.assertNotIn(old_ref, self.blob_store.blobs)
        self.assertEqual(self.blob_store.blobs[record.document_ref], PDF_BYTES + b"v2")
        self.assertEqual(resubmitted.record.pk, record.pk)

        self.service.decide(Actor.from_user(self.institution), record.pk, "verify")
        self.assertEqual(
            list(record.transitions.values_list("event", flat=True)),
            ["submit", "reject", "resubmit", "verify"],
        )

    def test_resubmit_old_blob_cleanup_failure_does_not_fail_resubmission(self):
        record = self._submit().record
        self.service.decide(Actor.from_user(self.institution), record.pk, "reject", "Falta firma")

        self.blob_store.fail_delete = True
        view = self.service.resubmit(Actor.from_user(self.student), record.pk, pdf_upload())
        self.assertEqual(view.record.status, Status.PENDING)

    def test_resubmit_requires_owner_and_rejected_status(self):
        record = self._submit().record

        with self.assertRaises(RecordConflictError):
            self.service.resubmit(Actor.from_user(self.student), record.pk, pdf_upload())
        with self.assertRaises(RecordNotFoundError):
            self.service.resubmit(Actor.from_user(self.other_student), record.pk, pdf_upload())
        with self.assertRaises(RecordAuthorizationError):
            self.service.resubmit(Actor.from_user(self.institution), record.pk, pdf_upload())
        self.assertEqual(len(self.blob_store.blobs), 1)

    def test_resubmit_loses_race_when_status_changed_underneath(self):
        record = self._submit().record
        self.service.decide(Actor.from_user(self.institution), record.pk, "reject", "Falta firma")
        old_ref = record.document_ref
        stale = AcademicRecord.objects.get(pk=record.pk)
        # A concurrent resubmission commits between our read and our write.
        AcademicRecord.objects.filter(pk=record.pk).update(status=Status.PENDING, rejection_reason="")

        with mock.patch.object(self.service, "_get", return_value=stale):
            with self.assertRaises(RecordConflictError):
                self.service.resubmit(Actor.from_user(self.student), record.pk, pdf_upload("v2.pdf", PDF_BYTES + b"v2"))

        record.refresh_from_db()
        self.assertEqual(record.document_ref, old_ref)
        self.assertEqual(set(self.blob_store.blobs), {old_ref})
        self.assertEqual(len(self.blob_store.deleted), 1)
        self.assertNotEqual(self.blob_store.deleted[0], old_ref)
        self.assertFalse(record.transitions.filter(event="resubmit").exists())

    def test_resubmit_persistence_failure_deletes_new_blob(self):
        record = self._submit().record
        self.service.decide(Actor.from_user(self.institution), record.pk, "reject", "Falta firma")
        old_ref, old_fingerprint = record.document_ref, record.fingerprint

        with mock.patch.object(RecordTransition.objects, "create", side_effect=DatabaseError("boom")):
            with self.assertRaises(DatabaseError):
                self.service.resubmit(Actor.from_user(self.student), record.pk, pdf_upload("v2.pdf", PDF_BYTES + b"v2"))

        record.refresh_from_db()
        self.assertEqual(record.status, Status.REJECTED)
        self.assertEqual(record.document_ref, old_ref)
        self.assertEqual(record.fingerprint, old_fingerprint)
        self.assertEqual(set(self.blob_store.blobs), {old_ref})
        self.assertEqual(len(self.blob_store.deleted), 1)

    # Scenario: a verified record cannot be decided again.
    def test_decide_verified_record_is_conflict(self):
        record = self._submit().record
        self.service.decide(Actor.from_user(self.institution), record.pk, "verify")

        with self.assertRaises(RecordConflictError) as ctx:
            self.service.decide(Actor.from_user(self.institution), record.pk, "reject", "Tarde")
        self.assertTrue(ctx.exception.retryable_after_reread)

        record.refresh_from_db()
        self.assertEqual(record.status, Status.VERIFIED)

    def test_decide_requires_issuer_and_reason(self):
        record = self._submit().record

        with self.assertRaises(RecordValidationError) as ctx:
            self.service.decide(Actor.from_user(self.institution), record.pk, "reject", "   ")
        self.assertEqual(ctx.exception.field, "rejection_reason")

        with self.assertRaises(RecordValidationError) as ctx:
            self.service.decide(Actor.from_user(self.institution), record.pk, "approve")
        self.assertEqual(ctx.exception.field, "action")

        with self.assertRaises(RecordNotFoundError):
            self.service.decide(Actor.from_user(self.other_institution), record.pk, "verify")
        with self.assertRaises(RecordAuthorizationError):
            self.service.decide(Actor.from_user(self.student), record.pk, "verify")
        with self.assertRaises(RecordNotFoundError):
            self.service.decide(Actor.from_user(self.institution), 999999, "verify")

    def test_decide_loses_race_when_status_changed_underneath(self):
        record = self._submit().record
        stale = AcademicRecord.objects.get(pk=record.pk)
        # Another decider commits between our read and our write.
        AcademicRecord.objects.filter(pk=record.pk).update(status=Status.REJECTED, rejection_reason="Duplicado")

        with mock.patch.object(self.service, "_get", return_value=stale):
            with self.assertRaises(RecordConflictError):
                self.service.decide(Actor.from_user(self.institution), record.pk, "verify")

        record.refresh_from_db()
        self.assertEqual(record.status, Status.REJECTED)
        self.assertFalse(record.transitions.filter(event="verify").exists())

    def test_verifying_duplicate_fingerprint_is_conflict(self):
        first = self._submit().record
        second = self._submit().record
        AcademicRecord.objects.filter(pk=second.pk).update(fingerprint=first.fingerprint)

        self.service.decide(Actor.from_user(self.institution), first.pk, "verify")
        with self.assertRaises(RecordConflictError):
            self.service.decide(Actor.from_user(self.institution), second.pk, "verify")

        self.assertEqual(AcademicRecord.objects.filter(fingerprint=first.fingerprint, status=Status.VERIFIED).count(), 1)

    def test_owner_and_issuer_cannot_change(self):
        record_id = self._submit().record.pk

        record = AcademicRecord.objects.get(pk=record_id)
        record.issuer = self.other_institution
        with self.assertRaises(ValueError):
            record.save()

        record = AcademicRecord.objects.get(pk=record_id)
        record.owner = self.other_student
        with self.assertRaises(ValueError):
            record.save()

        record = AcademicRecord.objects.get(pk=record_id)
        self.assertEqual((record.owner_id, record.issuer_id), (self.student.pk, self.institution.pk))
        record.title = "Maestría en Datos"
        record.save()

    # Scenario: unverified company is denied.
    def test_unverified_company_and_strangers_cannot_read(self):
        record = self._submit().record
        self.service.decide(Actor.from_user(self.institution), record.pk, "verify")

        for user in (self.unverified_company, self.other_student, self.other_institution):
            with self.subTest(user=user.username):
                with self.assertRaises(RecordNotFoundError):
                    self.service.read(Actor.from_user(user), record.pk)

    def test_verified_company_cannot_read_pending_record(self):
        record = self._submit().record
        with self.assertRaises(RecordNotFoundError):
            self.service.read(Actor.from_user(self.company), record.pk)

    def test_each_read_mints_an_independent_link(self):
        record = self._submit().record
        first = self.service.read(Actor.from_user(self.student), record.pk)
        second = self.service.read(Actor.from_user(self.student), record.pk)
        self.assertNotEqual(first.link.url, second.link.url)

    def test_read_surfaces_link_failures(self):
        record = self._submit().record

        self.blob_store.fail_signed_url = True
        with self.assertRaises(StorageError):
            self.service.read(Actor.from_user(self.admin), record.pk)

        self.blob_store.fail_signed_url = False
        self.blob_store.empty_signed_url = True
        with self.assertRaises(StorageError):
            self.service.read(Actor.from_user(self.admin), record.pk)

    def test_listing_marks_link_failures_per_record(self):
        self._submit()
        self.blob_store.fail_signed_url = True

        views = self.service.list_for_owner(Actor.from_user(self.student))
        self.assertEqual(len(views), 1)
        self.assertIsNone(views[0].link)
        self.assertEqual(views[0].link_error, "storage_error")

    def test_check_fingerprint_only_validates_verified_records(self):
        record = self._submit().record

        pending = self.service.check_fingerprint(record.fingerprint)
        self.assertTrue(pending.found)
        self.assertFalse(pending.is_valid)
        self.assertIsNone(pending.payload)

        self.service.decide(Actor.from_user(self.institution), record.pk, "verify")
        verified = self.service.check_fingerprint("  " + record.fingerprint.upper() + "\n")
        self.assertTrue(verified.is_valid)
        self.assertEqual(verified.payload["issuer_name"], "Universidad Central")
        self.assertNotIn("owner_id", verified.payload)
        self.assertNotIn("document_ref", verified.payload)

        missing = self.service.check_fingerprint("0" * 64)
        self.assertFalse(missing.found)
        self.assertEqual(FingerprintCheckEvent.objects.count(), 3)

    # Scenario: deleting a pending record.
    def test_owner_deletes_pending_record_and_blob(self):
        record = self._submit().record
        self.service.delete(Actor.from_user(self.student), record.pk)

        self.assertFalse(AcademicRecord.objects.filter(pk=record.pk).exists())
        self.assertFalse(RecordTransition.objects.filter(record_id=record.pk).exists())
        self.assertNotIn(record.document_ref, self.blob_store.blobs)

    def test_owner_cannot_delete_decided_record_but_admin_can(self):
        record = self._submit().record
        self.service.decide(Actor.from_user(self.institution), record.pk, "verify")

        with self.assertRaises(RecordAuthorizationError):
            self.service.delete(Actor.from_user(self.student), record.pk)
        with self.assertRaises(RecordNotFoundError):
            self.service.delete(Actor.from_user(self.other_student), record.pk)

        self.service.delete(Actor.from_user(self.admin), record.pk)
        self.assertEqual(AcademicRecord.objects.count(), 0)

    def test_delete_blob_failure_keeps_record(self):
        record = self._submit().record
        self.blob_store.fail_delete = True

        with self.assertRaises(StorageError):
            self.service.delete(Actor.from_user(self.student), record.pk)
        self.assertTrue(AcademicRecord.objects.filter(pk=record.pk).exists())

    def test_listings_follow_access_rules(self):
        mine = self._submit().record
        theirs = self._submit(student=self.other_student).record
        self.service.decide(Actor.from_user(self.institution), theirs.pk, "verify")

        owner_ids = [v.record.pk for v in self.service.list_for_owner(Actor.from_user(self.student))]
        self.assertEqual(owner_ids, [mine.pk])

        pending_ids = [v.record.pk for v in self.service.list_pending(Actor.from_user(self.institution))]
        self.assertEqual(pending_ids, [mine.pk])

        verified = self.service.list_for_issuer(Actor.from_user(self.institution), status="verified")
        self.assertEqual([v.record.pk for v in verified], [theirs.pk])
        with self.assertRaises(RecordAuthorizationError):
            self.service.list_for_issuer(Actor.from_user(self.other_institution), issuer_id=self.institution.pk)
        with self.assertRaises(RecordValidationError):
            self.service.list_for_issuer(Actor.from_user(self.institution), status="archived")
        self.assertEqual(len(self.service.list_for_issuer(Actor.from_user(self.admin), issuer_id=self.institution.pk)), 2)

        company_view = self.service.list_for_student(Actor.from_user(self.company), self.student.pk)
        self.assertEqual(company_view, [])
        company_view = self.service.list_for_student(Actor.from_user(self.company), self.other_student.pk)
        self.assertEqual([v.record.pk for v in company_view], [theirs.pk])
        with self.assertRaises(RecordAuthorizationError):
            self.service.list_for_student(Actor.from_user(self.unverified_company), self.other_student.pk)
        with self.assertRaises(RecordAuthorizationError):
            self.service.list_for_student(Actor.from_user(self.student), self.other_student.pk)

        self.assertEqual(len(self.service.list_all(Actor.from_user(self.admin))), 2)
        with self.assertRaises(RecordAuthorizationError):
            self.service.list_all(Actor.from_user(self.institution))


class RecordsApiTests(RecordsFixturesMixin, TestCase):
    def setUp(self):
        super().setUp()
        cache.clear()
        self.client = APIClient()

    def _submit(self, user=None):
        self.client.force_authenticate(user=user or self.student)
        res = self.client.post(
            "/api/records/",
            {"record_type": "certificate", "title": "Diplomado en Datos", "document": pdf_upload()},
            format="multipart",
        )
        self.assertEqual(res.status_code, status.HTTP_201_CREATED, res.data)
        return res.data

    def test_submit_returns_record_with_document_link(self):
        data = self._submit()
        self.assertEqual(data["status"], "pending")
        self.assertEqual(data["issuer"], self.institution.pk)
        self.assertEqual(data["visibility"], "visible-with-document")
        self.assertTrue(data["document"]["url"])
        self.assertNotIn("document_ref", data)

    def test_submit_rejects_wrong_role_and_bad_files(self):
        self.client.force_authenticate(user=self.company)
        res = self.client.post(
            "/api/records/",
            {"record_type": "certificate", "title": "X", "document": pdf_upload()},
            format="multipart",
        )
        self.assertEqual(res.status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(user=self.student)
        res = self.client.post(
            "/api/records/",
            {"record_type": "certificate", "title": "X", "document": pdf_upload("foto.png", b"\x89PNG", "image/png")},
            format="multipart",
        )
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("document", res.data)

    def test_requires_authentication(self):
        res = self.client.get("/api/records/my-records/")
        self.assertEqual(res.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_decision_flow_over_http(self):
        record_id = self._submit()["id"]

        self.client.force_authenticate(user=self.institution)
        res = self.client.get("/api/records/pending/")
        self.assertEqual([r["id"] for r in res.data], [record_id])

        res = self.client.put(f"/api/records/verify/{record_id}/", {"action": "reject"}, format="json")
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("rejection_reason", res.data)

        res = self.client.put(
            f"/api/records/verify/{record_id}/",
            {"action": "reject", "rejection_reason": "Sello ilegible"},
            format="json",
        )
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["status"], "rejected")

        res = self.client.put(f"/api/records/verify/{record_id}/", {"action": "verify"}, format="json")
        self.assertEqual(res.status_code, status.HTTP_409_CONFLICT)

        self.client.force_authenticate(user=self.student)
        res = self.client.put(f"/api/records/{record_id}/", {"document": pdf_upload("v2.pdf")}, format="multipart")
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["status"], "pending")

        self.client.force_authenticate(user=self.institution)
        res = self.client.put(f"/api/records/verify/{record_id}/", {"action": "verify"}, format="json")
        self.assertEqual(res.data["status"], "verified")

        res = self.client.get("/api/records/institution/?status=verified")
        self.assertEqual([r["id"] for r in res.data], [record_id])

    def test_company_access_over_http(self):
        record_id = self._submit()["id"]

        self.client.force_authenticate(user=self.company)
        self.assertEqual(self.client.get(f"/api/records/{record_id}/").status_code, status.HTTP_404_NOT_FOUND)

        self.service.decide(Actor.from_user(self.institution), record_id, "verify")
        res = self.client.get(f"/api/records/{record_id}/")
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertTrue(res.data["document"]["url"])

        self.client.force_authenticate(user=self.unverified_company)
        self.assertEqual(self.client.get(f"/api/records/{record_id}/").status_code, status.HTTP_404_NOT_FOUND)

    def test_delete_over_http(self):
        record_id = self._submit()["id"]

        self.client.force_authenticate(user=self.institution)
        self.assertEqual(self.client.delete(f"/api/records/{record_id}/").status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(user=self.student)
        self.assertEqual(self.client.delete(f"/api/records/{record_id}/").status_code, status.HTTP_204_NO_CONTENT)
        self.assertEqual(self.client.get(f"/api/records/{record_id}/").status_code, status.HTTP_404_NOT_FOUND)

    def test_admin_listing(self):
        self._submit()
        self.client.force_authenticate(user=self.admin)
        res = self.client.get("/api/records/admin/all/")
        self.assertEqual(len(res.data), 1)

        res = self.client.get("/api/records/admin/all/?status=verified")
        self.assertEqual(res.data, [])
        res = self.client.get("/api/records/admin/all/?title=datos&record_type=certificate")
        self.assertEqual(len(res.data), 1)
        res = self.client.get("/api/records/admin/all/?status=archived")
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("status", res.data)

        self.client.force_authenticate(user=self.student)
        self.assertEqual(self.client.get("/api/records/admin/all/").status_code, status.HTTP_403_FORBIDDEN)

    def test_check_hash_is_public_and_minimal(self):
        data = self._submit()
        fingerprint = data["fingerprint"]
        self.client.force_authenticate(user=None)

        res = self.client.get(f"/api/records/check-hash/{fingerprint}/")
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertFalse(res.data["is_valid"])
        self.assertNotIn("record", res.data)

        self.service.decide(Actor.from_user(self.institution), data["id"], "verify")
        res = self.client.get(f"/api/records/check-hash/{fingerprint}/")
        self.assertTrue(res.data["is_valid"])
        self.assertEqual(
            set(res.data["record"]),
            {"fingerprint", "record_type", "record_type_label", "title", "issuer_name", "status", "verified_at"},
        )

        res = self.client.get(f"/api/records/check-hash/{'f' * 64}/")
        self.assertEqual(res.status_code, status.HTTP_404_NOT_FOUND)
        self.assertFalse(res.data["is_valid"])

        evt = FingerprintCheckEvent.objects.order_by("-id").first()
        self.assertEqual(evt.outcome, FingerprintCheckEvent.Outcome.NOT_FOUND)
        self.assertEqual(evt.fingerprint_prefix, "f" * 12)

    @override_settings(PUBLIC_CHECK_HASH_THROTTLE_RATE="2/min")
    def test_check_hash_throttles(self):
        url = f"/api/records/check-hash/{'a' * 64}/"
        self.assertEqual(self.client.get(url).status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(self.client.get(url).status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(self.client.get(url).status_code, status.HTTP_429_TOO_MANY_REQUESTS)
