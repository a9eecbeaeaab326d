from __future__ import annotations

import hashlib
import re
import secrets
import time

_FINGERPRINT_RE = re.compile(r"^[0-9a-f]{64}$")


def make_submission_nonce() -> str:
    """Current time in milliseconds plus a random component.

    Two uploads with identical metadata never share a nonce, so they never
    share a fingerprint either.
    """

    return f"{int(time.time() * 1000)}_{secrets.token_hex(8)}"


def fingerprint(owner_id, issuer_id, title: str, record_type: str, nonce: str) -> str:
    """Content identifier for a record submission (SHA-256, hex).

    Pure and deterministic over its inputs. It is an integrity/lookup handle,
    not a proof of authorship.
    """

    material = f"{owner_id}_{issuer_id}_{title}_{record_type}_{nonce}"
    return hashlib.sha256(material.encode("utf-8")).hexdigest()


def new_fingerprint(owner_id, issuer_id, title: str, record_type: str) -> str:
    return fingerprint(owner_id, issuer_id, title, record_type, make_submission_nonce())


def normalize_fingerprint(value: str) -> str:
    # QR scanners and copy/paste tend to add whitespace or change case.
    return str(value or "").strip().lower()


def is_well_formed(value: str) -> bool:
    return bool(_FINGERPRINT_RE.match(value or ""))
