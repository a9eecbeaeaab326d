from __future__ import annotations

import hashlib

from django.conf import settings
from django.db import models
from django.db.models import Q


class AcademicRecord(models.Model):
    class RecordType(models.TextChoices):
        CERTIFICATE = "certificate", "Certificado"
        DEGREE = "degree", "Título"
        COURSE = "course", "Curso"
        TRANSCRIPT = "transcript", "Certificado de notas"

    class Status(models.TextChoices):
        PENDING = "pending", "Pendiente"
        VERIFIED = "verified", "Verificado"
        REJECTED = "rejected", "Rechazado"

    class Format(models.TextChoices):
        PDF = "pdf", "PDF"
        DOC = "doc", "Word 97-2003"
        DOCX = "docx", "Word"

    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="academic_records",
        limit_choices_to={"role": "STUDENT"},
    )
    issuer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="issued_academic_records",
        limit_choices_to={"role": "INSTITUTION"},
    )

    record_type = models.CharField(max_length=20, choices=RecordType.choices)
    title = models.CharField(max_length=255)

    # Opaque reference into the private blob store; never a public URL.
    document_ref = models.CharField(max_length=255, unique=True)
    original_format = models.CharField(max_length=8, choices=Format.choices)
    content_type = models.CharField(max_length=120, blank=True, default="")
    size_bytes = models.PositiveIntegerField(default=0)

    fingerprint = models.CharField(max_length=64, db_index=True)

    status = models.CharField(max_length=10, choices=Status.choices, default=Status.PENDING)
    rejection_reason = models.TextField(blank=True, default="")
    decided_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["owner", "status"], name="records_owner_status_idx"),
            models.Index(fields=["issuer", "status"], name="records_issuer_status_idx"),
        ]
        constraints = [
            # Only one verified record may carry a given fingerprint; pending and
            # rejected rows may share one transiently.
            models.UniqueConstraint(
                fields=["fingerprint"],
                condition=Q(status="verified"),
                name="uniq_verified_record_fingerprint",
            )
        ]

    def __str__(self) -> str:
        return f"{self.get_record_type_display()}: {self.title} ({self.status})"

    @classmethod
    def from_db(cls, db, field_names, values):
        instance = super().from_db(db, field_names, values)
        instance._loaded_parties = (instance.__dict__.get("owner_id"), instance.__dict__.get("issuer_id"))
        return instance

    def save(self, *args, **kwargs):
        loaded = getattr(self, "_loaded_parties", None)
        if loaded is not None and loaded != (self.owner_id, self.issuer_id):
            raise ValueError("owner and issuer of an academic record cannot change")
        super().save(*args, **kwargs)
        self._loaded_parties = (self.owner_id, self.issuer_id)


class RecordTransition(models.Model):
    class Event(models.TextChoices):
        SUBMIT = "submit", "Radicado"
        VERIFY = "verify", "Verificado"
        REJECT = "reject", "Rechazado"
        RESUBMIT = "resubmit", "Reenviado"

    record = models.ForeignKey(AcademicRecord, on_delete=models.CASCADE, related_name="transitions")

    event = models.CharField(max_length=10, choices=Event.choices)
    from_status = models.CharField(max_length=10, choices=AcademicRecord.Status.choices, blank=True, default="")
    to_status = models.CharField(max_length=10, choices=AcademicRecord.Status.choices)

    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="academic_record_transitions",
        null=True,
        blank=True,
    )
    actor_role = models.CharField(max_length=20, blank=True, default="")

    reason = models.TextField(blank=True, default="")
    fingerprint = models.CharField(max_length=64, blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at", "id"]

    def __str__(self) -> str:
        return f"{self.record_id}: {self.from_status or '-'} -> {self.to_status}"


class FingerprintCheckEvent(models.Model):
    class Outcome(models.TextChoices):
        NOT_FOUND = "NOT_FOUND", "No encontrado"
        VALID = "VALID", "Válido"
        INVALID = "INVALID", "No verificado"

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    fingerprint_hash = models.CharField(max_length=64, db_index=True)
    fingerprint_prefix = models.CharField(max_length=16, blank=True, default="")

    record_status = models.CharField(max_length=10, blank=True, default="")
    outcome = models.CharField(max_length=12, choices=Outcome.choices, db_index=True)

    ip_address = models.CharField(max_length=64, blank=True, default="", db_index=True)
    user_agent = models.CharField(max_length=255, blank=True, default="")
    path = models.CharField(max_length=255, blank=True, default="")

    @staticmethod
    def hash_fingerprint(value: str) -> str:
        return hashlib.sha256(value.encode("utf-8")).hexdigest()
