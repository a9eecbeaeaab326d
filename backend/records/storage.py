"""Adapters for the private blob store that holds record documents.

The records workflow only talks to a `BlobStore`: `store`, `delete` and
`signed_url` (plus `exists`/`list_refs` for maintenance). Every call runs in a
worker thread and is bounded by RECORDS_BLOB_STORE_TIMEOUT_SECONDS; a caller
never waits on the provider longer than that.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from datetime import timedelta
from pathlib import Path
import logging
import secrets
import uuid

from django.conf import settings
from django.core import signing
from django.core.files.base import ContentFile
from django.core.files.storage import FileSystemStorage
from django.urls import reverse
from django.utils import timezone
from django.utils.module_loading import import_string

from .errors import BlobNotFoundError, RecordError, StorageError, StorageTimeoutError
from .links import SignedLink, build_public_absolute_url

logger = logging.getLogger(__name__)

DOWNLOAD_TOKEN_SALT = "records.private-download"


def extension_for(content_type: str) -> str:
    allowed = getattr(settings, "RECORDS_ALLOWED_CONTENT_TYPES", {}) or {}
    return str(allowed.get(content_type) or "bin")


def content_type_for(blob_ref: str) -> str:
    ext = blob_ref.rsplit(".", 1)[-1].lower() if "." in blob_ref else ""
    allowed = getattr(settings, "RECORDS_ALLOWED_CONTENT_TYPES", {}) or {}
    for content_type, known_ext in allowed.items():
        if known_ext == ext:
            return content_type
    return "application/octet-stream"


class BlobStore:
    """Timeout-bounded template around a concrete provider.

    Subclasses implement `_store`, `_delete`, `_exists`, `_signed_url`,
    `_list_refs` and `_open`; they may block, the public methods never block
    longer than `timeout_seconds`.
    """

    def __init__(self, *, timeout_seconds: float | None = None, prefix: str | None = None, max_workers: int = 4):
        if timeout_seconds is None:
            timeout_seconds = float(getattr(settings, "RECORDS_BLOB_STORE_TIMEOUT_SECONDS", 15))
        self.timeout_seconds = float(timeout_seconds)
        self.prefix = (prefix or getattr(settings, "RECORDS_PRIVATE_DIR", "academic_records")).strip("/")
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="blobstore")

    # Provider hooks -------------------------------------------------------

    def _store(self, blob_ref: str, content: bytes, content_type: str) -> str:
        raise NotImplementedError

    def _delete(self, blob_ref: str) -> None:
        raise NotImplementedError

    def _exists(self, blob_ref: str) -> bool:
        raise NotImplementedError

    def _signed_url(self, blob_ref: str, ttl_seconds: int) -> SignedLink:
        raise NotImplementedError

    def _list_refs(self) -> list[str]:
        raise NotImplementedError

    def _open(self, blob_ref: str):
        raise NotImplementedError

    # Public contract -------------------------------------------------------

    def new_ref(self, content_type: str) -> str:
        return f"{self.prefix}/{uuid.uuid4().hex}.{extension_for(content_type)}"

    def store(self, content: bytes, content_type: str) -> str:
        blob_ref = self.new_ref(content_type)
        future = self._executor.submit(self._store, blob_ref, content, content_type)
        try:
            return future.result(timeout=self.timeout_seconds)
        except FutureTimeoutError:
            # The write may still land later; remove it as soon as it does.
            future.add_done_callback(self._discard_late_write)
            logger.warning("records.blob_store_timeout", extra={"blob_ref": blob_ref, "operation": "store"})
            raise StorageTimeoutError()
        except RecordError:
            raise
        except Exception as exc:
            logger.exception("records.blob_store_failed", extra={"blob_ref": blob_ref, "operation": "store"})
            # A partial write may have landed; clean it up off the request path.
            self._executor.submit(self._delete_quietly, blob_ref)
            raise StorageError() from exc

    def delete(self, blob_ref: str) -> None:
        self._call("delete", self._delete, blob_ref)

    def exists(self, blob_ref: str) -> bool:
        return bool(self._call("exists", self._exists, blob_ref))

    def signed_url(self, blob_ref: str, ttl_seconds: int) -> SignedLink:
        return self._call("signed_url", self._signed_url, blob_ref, int(ttl_seconds))

    def list_refs(self) -> list[str]:
        return list(self._call("list_refs", self._list_refs))

    def open(self, blob_ref: str):
        return self._call("open", self._open, blob_ref)

    def close(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)

    # Helpers ---------------------------------------------------------------

    def _call(self, operation: str, fn, *args):
        future = self._executor.submit(fn, *args)
        try:
            return future.result(timeout=self.timeout_seconds)
        except FutureTimeoutError:
            logger.warning("records.blob_store_timeout", extra={"operation": operation})
            raise StorageTimeoutError()
        except RecordError:
            raise
        except Exception as exc:
            logger.exception("records.blob_store_failed", extra={"operation": operation})
            raise StorageError() from exc

    def _delete_quietly(self, blob_ref: str) -> None:
        try:
            self._delete(blob_ref)
        except Exception:
            logger.exception("records.blob_cleanup_failed", extra={"blob_ref": blob_ref})

    def _discard_late_write(self, future) -> None:
        if future.cancelled() or future.exception() is not None:
            return
        self._delete_quietly(future.result())


class PrivateStorageBlobStore(BlobStore):
    """Documents on a private filesystem root, served through signed tokens.

    Links point at the public download endpoint and carry the blob reference
    and the expiry inside a `django.core.signing` token; nothing about the
    link is stored server-side.
    """

    def __init__(self, *, location: str | Path | None = None, **kwargs):
        super().__init__(**kwargs)
        root = Path(location or getattr(settings, "PRIVATE_STORAGE_ROOT"))
        self.storage = FileSystemStorage(location=str(root))

    def _store(self, blob_ref: str, content: bytes, content_type: str) -> str:
        return self.storage.save(blob_ref, ContentFile(content))

    def _delete(self, blob_ref: str) -> None:
        self.storage.delete(blob_ref)

    def _exists(self, blob_ref: str) -> bool:
        return self.storage.exists(blob_ref)

    def _list_refs(self) -> list[str]:
        if not self.storage.exists(self.prefix):
            return []
        _dirs, files = self.storage.listdir(self.prefix)
        return sorted(f"{self.prefix}/{name}" for name in files)

    def _open(self, blob_ref: str):
        if not self.storage.exists(blob_ref):
            raise BlobNotFoundError()
        return self.storage.open(blob_ref, "rb")

    def _signed_url(self, blob_ref: str, ttl_seconds: int) -> SignedLink:
        if not self.storage.exists(blob_ref):
            raise BlobNotFoundError()

        expires_at = timezone.now() + timedelta(seconds=ttl_seconds)
        token = signing.dumps(
            {"ref": blob_ref, "exp": expires_at.timestamp(), "n": secrets.token_urlsafe(6)},
            salt=DOWNLOAD_TOKEN_SALT,
            compress=True,
        )
        path = reverse("public-record-file", kwargs={"token": token})
        return SignedLink(url=build_public_absolute_url(path), expires_at=expires_at)

    @staticmethod
    def resolve_download_token(token: str) -> str:
        """Returns the blob reference carried by a still-valid download token.

        Raises `signing.SignatureExpired` for expired links and
        `signing.BadSignature` for anything forged or malformed.
        """

        max_age = int(getattr(settings, "RECORDS_SIGNED_URL_MAX_TTL_SECONDS", 86400))
        payload = signing.loads(str(token or ""), salt=DOWNLOAD_TOKEN_SALT, max_age=max_age)
        if not isinstance(payload, dict) or not payload.get("ref"):
            raise signing.BadSignature("Malformed download token")
        try:
            expires = float(payload.get("exp"))
        except (TypeError, ValueError):
            raise signing.BadSignature("Malformed download token")
        if timezone.now().timestamp() > expires:
            raise signing.SignatureExpired("Download link expired")
        return str(payload["ref"])


def build_blob_store() -> BlobStore:
    store_class = import_string(getattr(settings, "RECORDS_BLOB_STORE", "records.storage.PrivateStorageBlobStore"))
    return store_class()
