from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from urllib.parse import urljoin
import logging

from django.conf import settings

from .errors import BlobNotFoundError, StorageError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SignedLink:
    url: str
    expires_at: datetime

    def as_dict(self) -> dict:
        return {"url": self.url, "expires_at": self.expires_at.isoformat()}


def build_public_absolute_url(path: str) -> str:
    """Builds a public absolute URL using PUBLIC_BASE_URL when available.

    If PUBLIC_BASE_URL is not configured, returns the path as-is.
    """

    base = str(getattr(settings, "PUBLIC_BASE_URL", "") or "").strip()
    if not base:
        return path
    return urljoin(base.rstrip("/") + "/", path.lstrip("/"))


def effective_ttl_seconds(ttl_seconds: int | None = None) -> int:
    default_ttl = int(getattr(settings, "RECORDS_SIGNED_URL_TTL_SECONDS", 3600))
    max_ttl = int(getattr(settings, "RECORDS_SIGNED_URL_MAX_TTL_SECONDS", 86400))
    ttl = default_ttl if ttl_seconds is None else int(ttl_seconds)
    return max(1, min(ttl, max_ttl))


class SignedLinkIssuer:
    """Mints a fresh, independently expiring retrieval link per read.

    Links are never cached or stored: revoking visibility leaves at most the
    already issued TTL window open.
    """

    def __init__(self, blob_store):
        self.blob_store = blob_store

    def issue(self, document_ref: str, ttl_seconds: int | None = None) -> SignedLink:
        if not document_ref:
            raise BlobNotFoundError()

        link = self.blob_store.signed_url(document_ref, effective_ttl_seconds(ttl_seconds))
        if link is None or not link.url:
            logger.error("records.signed_link_empty", extra={"blob_ref": document_ref})
            raise StorageError("El proveedor no devolvió un enlace firmado.")
        return link
