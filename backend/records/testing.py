"""In-memory blob store and fixtures shared by the records test modules."""

from __future__ import annotations

from datetime import timedelta
from io import BytesIO
import secrets
import threading

from django.apps import apps
from django.contrib.auth import get_user_model
from django.core.files.uploadedfile import SimpleUploadedFile
from django.utils import timezone

from .errors import BlobNotFoundError
from .links import SignedLink
from .services import RecordWorkflowService
from .storage import BlobStore

PDF_BYTES = b"%PDF-1.4\n1 0 obj<<>>endobj\ntrailer<<>>\n%%EOF\n"
DOCX_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


class InMemoryBlobStore(BlobStore):
    def __init__(self, **kwargs):
        kwargs.setdefault("timeout_seconds", 5)
        super().__init__(**kwargs)
        self.blobs: dict[str, bytes] = {}
        self.lock = threading.Lock()
        self.fail_store = False
        self.fail_delete = False
        self.fail_signed_url = False
        self.empty_signed_url = False
        # When set, `_store` blocks until the event fires.
        self.store_gate: threading.Event | None = None
        self.deleted: list[str] = []

    def _store(self, blob_ref, content, content_type):
        if self.store_gate is not None:
            self.store_gate.wait(timeout=10)
        if self.fail_store:
            raise OSError("store unavailable")
        with self.lock:
            self.blobs[blob_ref] = bytes(content)
        return blob_ref

    def _delete(self, blob_ref):
        if self.fail_delete:
            raise OSError("delete unavailable")
        with self.lock:
            self.blobs.pop(blob_ref, None)
            self.deleted.append(blob_ref)

    def _exists(self, blob_ref):
        return blob_ref in self.blobs

    def _list_refs(self):
        return sorted(self.blobs)

    def _open(self, blob_ref):
        if blob_ref not in self.blobs:
            raise BlobNotFoundError()
        return BytesIO(self.blobs[blob_ref])

    def _signed_url(self, blob_ref, ttl_seconds):
        if self.fail_signed_url:
            raise OSError("signer unavailable")
        if blob_ref not in self.blobs:
            raise BlobNotFoundError()
        expires_at = timezone.now() + timedelta(seconds=ttl_seconds)
        if self.empty_signed_url:
            return SignedLink(url="", expires_at=expires_at)
        return SignedLink(url=f"https://blobs.test/{blob_ref}?sig={secrets.token_hex(8)}", expires_at=expires_at)


def pdf_upload(name: str = "diploma.pdf", content: bytes = PDF_BYTES, content_type: str = "application/pdf"):
    return SimpleUploadedFile(name, content, content_type=content_type)


class RecordsFixturesMixin:
    """Users for every role, created once per class, plus a workflow service backed by `InMemoryBlobStore`.

    Installs the service on the records app config for the duration of each test
    so the HTTP views use it too.
    """

    @classmethod
    def setUpTestData(cls):
        super().setUpTestData()
        User = get_user_model()
        cls.admin = User.objects.create_user(username="admin", email="admin@example.com", password="pw", role=User.ROLE_ADMIN)
        cls.institution = User.objects.create_user(
            username="uni", email="uni@example.com", password="pw", role=User.ROLE_INSTITUTION, display_name="Universidad Central"
        )
        cls.other_institution = User.objects.create_user(
            username="uni2", email="uni2@example.com", password="pw", role=User.ROLE_INSTITUTION
        )
        cls.student = User.objects.create_user(
            username="ana", email="ana@example.com", password="pw", role=User.ROLE_STUDENT, institution=cls.institution
        )
        cls.other_student = User.objects.create_user(
            username="luis", email="luis@example.com", password="pw", role=User.ROLE_STUDENT, institution=cls.institution
        )
        cls.company = User.objects.create_user(
            username="acme", email="acme@example.com", password="pw", role=User.ROLE_COMPANY, is_verified=True
        )
        cls.unverified_company = User.objects.create_user(
            username="newco", email="newco@example.com", password="pw", role=User.ROLE_COMPANY
        )

    def setUp(self):
        super().setUp()
        self.blob_store = InMemoryBlobStore()
        self.service = RecordWorkflowService(self.blob_store)

        config = apps.get_app_config("records")
        previous = config.workflow_service
        config.workflow_service = self.service

        def restore():
            config.workflow_service = previous
            self.blob_store.close()

        self.addCleanup(restore)
