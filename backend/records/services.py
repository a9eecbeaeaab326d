"""Workflow for academic records: submission, decision, resubmission, reads.

Every state change is a compare-and-set on the current status inside a
transaction, so two concurrent deciders can never both win. Blob writes happen
before the database row exists and are compensated if the row is never
committed; blob deletes on record deletion happen while the row is locked.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import PurePath
from typing import Any, Iterable, Optional
import logging

from django.apps import apps
from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.db.utils import OperationalError, ProgrammingError
from django.utils import timezone

from .access import Actor, Role, Visibility, can_delete, evaluate, visible_records_q
from .errors import (
    RecordAuthorizationError,
    RecordConflictError,
    RecordNotFoundError,
    RecordValidationError,
    StorageError,
)
from .filters import AcademicRecordFilter
from .fingerprint import is_well_formed, new_fingerprint, normalize_fingerprint
from .links import SignedLink, SignedLinkIssuer
from .models import AcademicRecord, FingerprintCheckEvent, RecordTransition
from .payload_policy import build_public_record_payload
from .transitions import assert_transition

logger = logging.getLogger(__name__)

Status = AcademicRecord.Status
Event = RecordTransition.Event

TITLE_MAX_LENGTH = AcademicRecord._meta.get_field("title").max_length


@dataclass
class RecordView:
    record: AcademicRecord
    visibility: Visibility
    link: Optional[SignedLink] = None
    # Set when the document is visible but a link could not be minted.
    link_error: str = ""

    @property
    def includes_document(self) -> bool:
        return self.visibility == Visibility.WITH_DOCUMENT


@dataclass
class FingerprintCheckResult:
    fingerprint: str
    is_valid: bool
    record: Optional[AcademicRecord] = None
    payload: Optional[dict[str, Any]] = None

    @property
    def found(self) -> bool:
        return self.record is not None


# Input validation -----------------------------------------------------------


def validate_record_type(value: Any) -> str:
    record_type = str(value or "").strip().lower()
    if record_type not in AcademicRecord.RecordType.values:
        raise RecordValidationError("record_type", "Tipo de registro inválido.")
    return record_type


def validate_title(value: Any) -> str:
    title = str(value or "").strip()
    if not title:
        raise RecordValidationError("title", "El título es obligatorio.")
    if len(title) > TITLE_MAX_LENGTH:
        raise RecordValidationError("title", f"El título no puede superar {TITLE_MAX_LENGTH} caracteres.")
    return title


def validate_document(document) -> str:
    """Check size, declared content type and extension; return the stored format."""

    if document is None:
        raise RecordValidationError("document", "Debes adjuntar el documento.")

    max_bytes = int(getattr(settings, "RECORDS_MAX_UPLOAD_BYTES", 10 * 1024 * 1024))
    size = int(getattr(document, "size", 0) or 0)
    if size <= 0:
        raise RecordValidationError("document", "El documento está vacío.")
    if size > max_bytes:
        max_mb = max_bytes // (1024 * 1024)
        raise RecordValidationError("document", f"El documento supera el tamaño máximo permitido ({max_mb} MB).")

    allowed = getattr(settings, "RECORDS_ALLOWED_CONTENT_TYPES", {}) or {}
    content_type = str(getattr(document, "content_type", "") or "").split(";")[0].strip().lower()
    original_format = allowed.get(content_type)
    if not original_format:
        raise RecordValidationError("document", "Tipo de archivo inválido. Solo se permiten PDF, DOC y DOCX.")

    suffix = PurePath(str(getattr(document, "name", "") or "")).suffix.lstrip(".").lower()
    if suffix and suffix not in set(allowed.values()):
        raise RecordValidationError("document", "La extensión del archivo no es válida.")

    return original_format


def _read_document(document) -> bytes:
    if hasattr(document, "seek"):
        document.seek(0)
    if hasattr(document, "chunks"):
        return b"".join(document.chunks())
    return document.read()


def _content_type(document) -> str:
    return str(getattr(document, "content_type", "") or "").split(";")[0].strip().lower()


@contextmanager
def uploaded_blob(blob_store, content: bytes, content_type: str):
    """Store a blob and delete it again if the enclosed block fails.

    Cleanup failures are logged and never replace the original error.
    """

    blob_ref = blob_store.store(content, content_type)
    try:
        yield blob_ref
    except BaseException:
        _release_blob(blob_store, blob_ref, reason="rollback")
        raise


def _release_blob(blob_store, blob_ref: str, *, reason: str) -> None:
    try:
        blob_store.delete(blob_ref)
    except Exception:
        logger.exception("records.blob_release_failed", extra={"blob_ref": blob_ref, "reason": reason})


def _get_client_ip(request) -> str:
    # Best-effort extraction behind reverse proxies.
    xff = request.META.get("HTTP_X_FORWARDED_FOR")
    if xff:
        return xff.split(",")[0].strip()
    return str(request.META.get("REMOTE_ADDR") or "").strip()


def _try_log_check_event(*, request, result: "FingerprintCheckResult") -> None:
    try:
        if result.record is None:
            outcome = FingerprintCheckEvent.Outcome.NOT_FOUND
        elif result.is_valid:
            outcome = FingerprintCheckEvent.Outcome.VALID
        else:
            outcome = FingerprintCheckEvent.Outcome.INVALID

        meta = getattr(request, "META", {}) if request is not None else {}
        FingerprintCheckEvent.objects.create(
            fingerprint_hash=FingerprintCheckEvent.hash_fingerprint(result.fingerprint),
            fingerprint_prefix=result.fingerprint[:12],
            record_status=result.record.status if result.record is not None else "",
            outcome=outcome,
            ip_address=_get_client_ip(request)[:64] if request is not None else "",
            user_agent=str(meta.get("HTTP_USER_AGENT") or "")[:255],
            path=str(getattr(request, "path", "") or "")[:255],
        )
    except (OperationalError, ProgrammingError):
        # Table not migrated yet (deploy); the lookup itself must still answer.
        logger.warning("records.check_event_unavailable")
    except Exception:
        logger.exception("records.check_event_failed")


# Service ------------------------------------------------------------------------


class RecordWorkflowService:
    def __init__(self, blob_store, link_issuer: SignedLinkIssuer | None = None):
        self.blob_store = blob_store
        self.link_issuer = link_issuer or SignedLinkIssuer(blob_store)

    # Helpers

    def _get(self, record_id) -> AcademicRecord:
        try:
            return AcademicRecord.objects.select_related("owner", "issuer").get(pk=record_id)
        except (AcademicRecord.DoesNotExist, ValueError, TypeError):
            raise RecordNotFoundError()

    def _issuer_for(self, actor: Actor) -> int:
        User = get_user_model()
        institution_id = User.objects.filter(pk=actor.id).values_list("institution_id", flat=True).first()
        if institution_id is None:
            raise RecordValidationError("issuer", "El estudiante no está asociado a ninguna institución.")
        if not User.objects.filter(pk=institution_id, role=User.ROLE_INSTITUTION, is_active=True).exists():
            raise RecordValidationError("issuer", "La institución asociada no está disponible.")
        return int(institution_id)

    def _log_transition(self, record: AcademicRecord, event: str, from_status: str, actor: Actor, reason: str = ""):
        RecordTransition.objects.create(
            record=record,
            event=event,
            from_status=from_status,
            to_status=record.status,
            actor_id=actor.id,
            actor_role=actor.role.value if actor.role else "",
            reason=reason,
            fingerprint=record.fingerprint,
        )

    def _present(self, actor: Actor, record: AcademicRecord, *, strict: bool) -> RecordView:
        visibility = evaluate(actor, record)
        view = RecordView(record=record, visibility=visibility)
        if visibility != Visibility.WITH_DOCUMENT:
            return view
        try:
            view.link = self.link_issuer.issue(record.document_ref)
        except StorageError as exc:
            if strict:
                raise
            view.link_error = exc.default_code
        return view

    def _present_many(self, actor: Actor, records: Iterable[AcademicRecord]) -> list[RecordView]:
        return [self._present(actor, record, strict=False) for record in records]

    # Operations

    def submit(self, actor: Actor, *, record_type, title, document) -> RecordView:
        if actor.role != Role.STUDENT:
            raise RecordAuthorizationError("Solo los estudiantes pueden radicar registros académicos.")

        record_type = validate_record_type(record_type)
        title = validate_title(title)
        original_format = validate_document(document)
        issuer_id = self._issuer_for(actor)

        content = _read_document(document)
        content_type = _content_type(document)

        with uploaded_blob(self.blob_store, content, content_type) as blob_ref:
            with transaction.atomic():
                record = AcademicRecord.objects.create(
                    owner_id=actor.id,
                    issuer_id=issuer_id,
                    record_type=record_type,
                    title=title,
                    document_ref=blob_ref,
                    original_format=original_format,
                    content_type=content_type,
                    size_bytes=len(content),
                    fingerprint=new_fingerprint(actor.id, issuer_id, title, record_type),
                    status=Status.PENDING,
                )
                self._log_transition(record, Event.SUBMIT, "", actor)

        logger.info(
            "records.submit",
            extra={"record_id": record.pk, "owner_id": actor.id, "issuer_id": issuer_id, "record_type": record_type},
        )
        return self._present(actor, self._get(record.pk), strict=False)

    def decide(self, actor: Actor, record_id, action, reason: Any = "") -> RecordView:
        action = str(action or "").strip().lower()
        if action not in (Event.VERIFY, Event.REJECT):
            raise RecordValidationError("action", "Acción inválida. Usa 'verify' o 'reject'.")
        reason = str(reason or "").strip()
        if action == Event.REJECT and not reason:
            raise RecordValidationError("rejection_reason", "El motivo de rechazo es obligatorio.")

        record = self._get(record_id)
        to_status = assert_transition(actor, record, action)

        now = timezone.now()
        try:
            with transaction.atomic():
                changed = AcademicRecord.objects.filter(pk=record.pk, status=Status.PENDING).update(
                    status=to_status,
                    rejection_reason=reason if action == Event.REJECT else "",
                    decided_at=now,
                    updated_at=now,
                )
                if not changed:
                    raise RecordConflictError()
                record.refresh_from_db()
                self._log_transition(record, action, Status.PENDING, actor, reason)
        except IntegrityError as exc:
            raise RecordConflictError("Ya existe un registro verificado con esta huella.") from exc

        logger.info(
            "records.decide",
            extra={"record_id": record.pk, "issuer_id": actor.id, "action": action, "status": to_status},
        )
        return self._present(actor, record, strict=False)

    def resubmit(self, actor: Actor, record_id, document) -> RecordView:
        record = self._get(record_id)
        assert_transition(actor, record, Event.RESUBMIT)
        original_format = validate_document(document)

        content = _read_document(document)
        content_type = _content_type(document)
        previous_ref = record.document_ref
        previous_fingerprint = record.fingerprint

        fingerprint = new_fingerprint(record.owner_id, record.issuer_id, record.title, record.record_type)
        while fingerprint == previous_fingerprint:
            fingerprint = new_fingerprint(record.owner_id, record.issuer_id, record.title, record.record_type)

        now = timezone.now()
        with uploaded_blob(self.blob_store, content, content_type) as blob_ref:
            with transaction.atomic():
                changed = AcademicRecord.objects.filter(
                    pk=record.pk, status=Status.REJECTED, document_ref=previous_ref
                ).update(
                    document_ref=blob_ref,
                    original_format=original_format,
                    content_type=content_type,
                    size_bytes=len(content),
                    fingerprint=fingerprint,
                    status=Status.PENDING,
                    rejection_reason="",
                    decided_at=None,
                    updated_at=now,
                )
                if not changed:
                    raise RecordConflictError()
                record.refresh_from_db()
                self._log_transition(record, Event.RESUBMIT, Status.REJECTED, actor)

        # The row no longer points at the previous document.
        _release_blob(self.blob_store, previous_ref, reason="replaced")

        logger.info("records.resubmit", extra={"record_id": record.pk, "owner_id": actor.id})
        return self._present(actor, record, strict=False)

    def read(self, actor: Actor, record_id) -> RecordView:
        record = self._get(record_id)
        if evaluate(actor, record) == Visibility.DENY:
            # Unrelated actors cannot tell a hidden record from a missing one.
            raise RecordNotFoundError()
        return self._present(actor, record, strict=True)

    def check_fingerprint(self, value: Any, request=None) -> FingerprintCheckResult:
        fingerprint = normalize_fingerprint(value)
        record = None
        if is_well_formed(fingerprint):
            matches = AcademicRecord.objects.select_related("issuer").filter(fingerprint=fingerprint)
            record = matches.filter(status=Status.VERIFIED).first() or matches.first()

        payload = build_public_record_payload(record) if record is not None else None
        result = FingerprintCheckResult(
            fingerprint=fingerprint,
            is_valid=payload is not None,
            record=record,
            payload=payload,
        )
        _try_log_check_event(request=request, result=result)
        return result

    def delete(self, actor: Actor, record_id) -> None:
        with transaction.atomic():
            try:
                record = AcademicRecord.objects.select_for_update().get(pk=record_id)
            except (AcademicRecord.DoesNotExist, ValueError, TypeError):
                raise RecordNotFoundError()

            if not can_delete(actor, record):
                if evaluate(actor, record) == Visibility.DENY:
                    raise RecordNotFoundError()
                raise RecordAuthorizationError("Solo puedes eliminar registros pendientes.")

            # A storage failure here rolls the whole deletion back.
            self.blob_store.delete(record.document_ref)
            record_pk = record.pk
            record.delete()

        logger.info("records.delete", extra={"record_id": record_pk, "actor_id": actor.id})

    # Listings

    def list_for_owner(self, actor: Actor) -> list[RecordView]:
        if actor.role != Role.STUDENT:
            raise RecordAuthorizationError()
        records = AcademicRecord.objects.select_related("owner", "issuer").filter(owner_id=actor.id)
        return self._present_many(actor, records)

    def list_pending(self, actor: Actor) -> list[RecordView]:
        if actor.role != Role.INSTITUTION:
            raise RecordAuthorizationError()
        records = AcademicRecord.objects.select_related("owner", "issuer").filter(
            issuer_id=actor.id, status=Status.PENDING
        )
        return self._present_many(actor, records)

    def list_for_issuer(self, actor: Actor, issuer_id=None, status: str | None = None) -> list[RecordView]:
        if issuer_id is None:
            issuer_id = actor.id
        try:
            issuer_id = int(issuer_id)
        except (TypeError, ValueError):
            raise RecordValidationError("issuer", "Institución inválida.")

        if actor.role == Role.INSTITUTION:
            if issuer_id != actor.id:
                raise RecordAuthorizationError("Solo puedes consultar los registros de tu institución.")
        elif actor.role != Role.ADMIN:
            raise RecordAuthorizationError()

        records = AcademicRecord.objects.select_related("owner", "issuer").filter(issuer_id=issuer_id)
        status = str(status or "").strip().lower()
        if status:
            if status not in Status.values:
                raise RecordValidationError("status", "Estado inválido.")
            records = records.filter(status=status)
        return self._present_many(actor, records)

    def list_for_student(self, actor: Actor, student_id) -> list[RecordView]:
        try:
            student_id = int(student_id)
        except (TypeError, ValueError):
            raise RecordValidationError("student", "Estudiante inválido.")

        if actor.role == Role.STUDENT and actor.id != student_id:
            raise RecordAuthorizationError("Solo puedes consultar tus propios registros.")
        if actor.role == Role.COMPANY and not actor.verified:
            raise RecordAuthorizationError("Tu empresa aún no ha sido verificada.")
        if actor.role is None:
            raise RecordAuthorizationError()

        records = (
            AcademicRecord.objects.select_related("owner", "issuer")
            .filter(owner_id=student_id)
            .filter(visible_records_q(actor))
        )
        return self._present_many(actor, records)

    def list_all(self, actor: Actor, filters=None) -> list[RecordView]:
        if actor.role != Role.ADMIN:
            raise RecordAuthorizationError()

        filterset = AcademicRecordFilter(filters or {}, queryset=AcademicRecord.objects.select_related("owner", "issuer"))
        if not filterset.is_valid():
            field, messages = next(iter(filterset.errors.items()))
            raise RecordValidationError(field, str(messages[0]))
        return self._present_many(actor, filterset.qs)


def get_workflow_service() -> RecordWorkflowService:
    return apps.get_app_config("records").get_workflow_service()
