from __future__ import annotations

from django.conf import settings
from django.core.validators import FileExtensionValidator
from rest_framework import serializers

from .models import AcademicRecord, RecordTransition


def _allowed_extensions() -> list[str]:
    allowed = getattr(settings, "RECORDS_ALLOWED_CONTENT_TYPES", {}) or {}
    return sorted(set(allowed.values()))


class AcademicRecordSerializer(serializers.ModelSerializer):
    """Record metadata. Document fields are added by `present_record_view`."""

    owner_name = serializers.CharField(source="owner.public_name", read_only=True)
    issuer_name = serializers.CharField(source="issuer.public_name", read_only=True)
    record_type_label = serializers.CharField(source="get_record_type_display", read_only=True)
    status_label = serializers.CharField(source="get_status_display", read_only=True)

    class Meta:
        model = AcademicRecord
        fields = [
            "id",
            "owner",
            "owner_name",
            "issuer",
            "issuer_name",
            "record_type",
            "record_type_label",
            "title",
            "fingerprint",
            "status",
            "status_label",
            "rejection_reason",
            "decided_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


def present_record_view(view) -> dict:
    data = dict(AcademicRecordSerializer(view.record).data)
    data["visibility"] = view.visibility.value
    if not view.includes_document:
        return data

    record = view.record
    data["original_format"] = record.original_format
    data["content_type"] = record.content_type
    data["size_bytes"] = record.size_bytes
    data["document"] = view.link.as_dict() if view.link else None
    if view.link_error:
        data["document_error"] = view.link_error
    return data


class RecordSubmitSerializer(serializers.Serializer):
    record_type = serializers.CharField()
    title = serializers.CharField(max_length=255)
    document = serializers.FileField(validators=[FileExtensionValidator(allowed_extensions=_allowed_extensions())])


class RecordResubmitSerializer(serializers.Serializer):
    document = serializers.FileField(validators=[FileExtensionValidator(allowed_extensions=_allowed_extensions())])


class RecordDecisionSerializer(serializers.Serializer):
    action = serializers.ChoiceField(choices=[RecordTransition.Event.VERIFY, RecordTransition.Event.REJECT])
    rejection_reason = serializers.CharField(required=False, allow_blank=True, default="")
