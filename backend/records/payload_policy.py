from __future__ import annotations

from typing import Any

from .access import Visibility, public_visibility
from .models import AcademicRecord


# Fields the unauthenticated fingerprint check may reveal about a verified record.
# Owner identity, document reference and rejection details never leave through it.
_ALLOWED_PUBLIC_KEYS = (
    "fingerprint",
    "record_type",
    "record_type_label",
    "title",
    "issuer_name",
    "status",
    "verified_at",
)


def _issuer_name(record: AcademicRecord) -> str:
    issuer = getattr(record, "issuer", None)
    if issuer is None:
        return ""
    return str(getattr(issuer, "public_name", "") or "").strip()


def build_public_record_payload(record: AcademicRecord) -> dict[str, Any] | None:
    """Minimal metadata for a verified record, or None when nothing may be shown."""

    if public_visibility(record) != Visibility.METADATA_ONLY:
        return None

    raw = {
        "fingerprint": record.fingerprint,
        "record_type": record.record_type,
        "record_type_label": record.get_record_type_display(),
        "title": (record.title or "").strip(),
        "issuer_name": _issuer_name(record),
        "status": record.status,
        "verified_at": record.decided_at.isoformat() if record.decided_at else None,
    }
    return {key: raw[key] for key in _ALLOWED_PUBLIC_KEYS if raw.get(key) not in (None, "")}
