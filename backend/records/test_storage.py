import shutil
import tempfile
from datetime import timedelta
from io import StringIO
import threading
import time
from unittest import mock

from django.apps import apps
from django.core import signing
from django.core.management import call_command
from django.test import SimpleTestCase, TestCase, override_settings
from django.utils import timezone
from rest_framework.test import APIClient

from .access import Actor
from .errors import BlobNotFoundError, StorageError
from .links import SignedLinkIssuer, build_public_absolute_url, effective_ttl_seconds
from .models import AcademicRecord
from .services import RecordWorkflowService
from .storage import DOWNLOAD_TOKEN_SALT, PrivateStorageBlobStore, content_type_for, extension_for
from .testing import PDF_BYTES, InMemoryBlobStore, RecordsFixturesMixin, pdf_upload


class _TempStorageMixin:
    def setUp(self):
        super().setUp()
        self.root = tempfile.mkdtemp(prefix="records-test-")
        self.addCleanup(shutil.rmtree, self.root, ignore_errors=True)
        self.store = PrivateStorageBlobStore(location=self.root, timeout_seconds=5)
        self.addCleanup(self.store.close)


class PrivateStorageBlobStoreTests(_TempStorageMixin, SimpleTestCase):
    def test_store_exists_delete(self):
        ref = self.store.store(PDF_BYTES, "application/pdf")

        self.assertTrue(ref.startswith("academic_records/"))
        self.assertTrue(ref.endswith(".pdf"))
        self.assertTrue(self.store.exists(ref))
        self.assertEqual(self.store.list_refs(), [ref])
        with self.store.open(ref) as handle:
            self.assertEqual(handle.read(), PDF_BYTES)

        self.store.delete(ref)
        self.assertFalse(self.store.exists(ref))
        self.assertEqual(self.store.list_refs(), [])

    def test_signed_url_for_missing_blob(self):
        with self.assertRaises(BlobNotFoundError):
            self.store.signed_url("academic_records/missing.pdf", 60)

    @override_settings(PUBLIC_BASE_URL="https://creds.example.org")
    def test_signed_url_points_at_public_download(self):
        ref = self.store.store(PDF_BYTES, "application/pdf")
        link = self.store.signed_url(ref, 60)

        self.assertTrue(link.url.startswith("https://creds.example.org/api/public/records/files/"))
        self.assertGreater(link.expires_at, timezone.now())
        self.assertLessEqual(link.expires_at, timezone.now() + timedelta(seconds=61))

        token = link.url.rstrip("/").rsplit("/", 1)[-1]
        self.assertEqual(PrivateStorageBlobStore.resolve_download_token(token), ref)

    def test_links_are_independent(self):
        ref = self.store.store(PDF_BYTES, "application/pdf")
        self.assertNotEqual(self.store.signed_url(ref, 60).url, self.store.signed_url(ref, 60).url)

    def test_expired_and_forged_tokens(self):
        past = (timezone.now() - timedelta(seconds=5)).timestamp()
        expired = signing.dumps({"ref": "academic_records/a.pdf", "exp": past, "n": "x"}, salt=DOWNLOAD_TOKEN_SALT)
        with self.assertRaises(signing.SignatureExpired):
            PrivateStorageBlobStore.resolve_download_token(expired)

        forged = signing.dumps({"ref": "academic_records/a.pdf", "exp": past + 3600}, salt="other")
        with self.assertRaises(signing.BadSignature):
            PrivateStorageBlobStore.resolve_download_token(forged)
        with self.assertRaises(signing.BadSignature):
            PrivateStorageBlobStore.resolve_download_token("")

    def test_provider_errors_become_storage_errors(self):
        with mock.patch.object(self.store.storage, "delete", side_effect=OSError("disk gone")):
            with self.assertRaises(StorageError):
                self.store.delete("academic_records/a.pdf")


class LinkHelpersTests(SimpleTestCase):
    @override_settings(RECORDS_SIGNED_URL_TTL_SECONDS=3600, RECORDS_SIGNED_URL_MAX_TTL_SECONDS=7200)
    def test_ttl_is_clamped(self):
        self.assertEqual(effective_ttl_seconds(), 3600)
        self.assertEqual(effective_ttl_seconds(10), 10)
        self.assertEqual(effective_ttl_seconds(0), 1)
        self.assertEqual(effective_ttl_seconds(99999), 7200)

    @override_settings(PUBLIC_BASE_URL="")
    def test_relative_url_without_public_base(self):
        self.assertEqual(build_public_absolute_url("/api/x/"), "/api/x/")

    def test_content_type_helpers(self):
        self.assertEqual(extension_for("application/msword"), "doc")
        self.assertEqual(extension_for("text/plain"), "bin")
        self.assertEqual(content_type_for("academic_records/x.pdf"), "application/pdf")
        self.assertEqual(content_type_for("academic_records/x"), "application/octet-stream")

    def test_issuer_requires_reference(self):
        store = InMemoryBlobStore()
        self.addCleanup(store.close)
        with self.assertRaises(BlobNotFoundError):
            SignedLinkIssuer(store).issue("")


class WorkflowServiceConfigTests(SimpleTestCase):
    def test_concurrent_first_use_builds_one_service(self):
        config = apps.get_app_config("records")
        previous = config.workflow_service
        config.workflow_service = None
        self.addCleanup(setattr, config, "workflow_service", previous)

        built = []

        def slow_build():
            time.sleep(0.05)
            store = InMemoryBlobStore()
            self.addCleanup(store.close)
            built.append(store)
            return store

        barrier = threading.Barrier(8)
        results = []

        def worker():
            barrier.wait()
            results.append(config.get_workflow_service())

        with mock.patch("records.storage.build_blob_store", side_effect=slow_build):
            threads = [threading.Thread(target=worker) for _ in range(8)]
            for thread in threads:
                thread.start()
            for thread in threads:
                thread.join()

        self.assertEqual(len(built), 1)
        self.assertEqual(len(results), 8)
        self.assertTrue(all(service is results[0] for service in results))
        self.assertIs(results[0].blob_store, built[0])

class SignedDownloadTests(RecordsFixturesMixin, _TempStorageMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.service = RecordWorkflowService(self.store)
        apps.get_app_config("records").workflow_service = self.service
        self.client = APIClient()

    def test_download_with_signed_link(self):
        view = self.service.submit(
            Actor.from_user(self.student), record_type="course", title="Python", document=pdf_upload()
        )
        link = self.service.read(Actor.from_user(self.student), view.record.pk).link

        res = self.client.get(link.url)
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res["Content-Type"], "application/pdf")
        self.assertIn("attachment", res["Content-Disposition"])
        self.assertEqual(b"".join(res.streaming_content), PDF_BYTES)

    def test_download_rejects_bad_and_expired_tokens(self):
        res = self.client.get("/api/public/records/files/not-a-token/")
        self.assertEqual(res.status_code, 404)

        past = (timezone.now() - timedelta(seconds=1)).timestamp()
        token = signing.dumps({"ref": "academic_records/a.pdf", "exp": past, "n": "x"}, salt=DOWNLOAD_TOKEN_SALT)
        res = self.client.get(f"/api/public/records/files/{token}/")
        self.assertEqual(res.status_code, 410)

    def test_download_after_delete_is_gone(self):
        view = self.service.submit(
            Actor.from_user(self.student), record_type="course", title="Python", document=pdf_upload()
        )
        link = view.link
        self.service.delete(Actor.from_user(self.student), view.record.pk)

        res = self.client.get(link.url)
        self.assertEqual(res.status_code, 404)


class PurgeOrphanBlobsCommandTests(RecordsFixturesMixin, TestCase):
    def test_dry_run_then_apply(self):
        view = self.service.submit(
            Actor.from_user(self.student), record_type="degree", title="Derecho", document=pdf_upload()
        )
        orphan = self.blob_store.store(b"left behind", "application/pdf")

        out = StringIO()
        call_command("purge_orphan_blobs", stdout=out)
        self.assertIn("Found 1 orphaned blob(s)", out.getvalue())
        self.assertIn(orphan, self.blob_store.blobs)

        out = StringIO()
        call_command("purge_orphan_blobs", "--apply", stdout=out)
        self.assertIn("Deleted 1", out.getvalue())
        self.assertNotIn(orphan, self.blob_store.blobs)
        self.assertIn(view.record.document_ref, self.blob_store.blobs)
        self.assertEqual(AcademicRecord.objects.count(), 1)
