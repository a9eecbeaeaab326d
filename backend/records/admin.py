from django.contrib import admin

from .models import AcademicRecord, FingerprintCheckEvent, RecordTransition


class RecordTransitionInline(admin.TabularInline):
    model = RecordTransition
    extra = 0
    can_delete = False
    readonly_fields = ("event", "from_status", "to_status", "actor", "actor_role", "reason", "fingerprint", "created_at")


@admin.register(AcademicRecord)
class AcademicRecordAdmin(admin.ModelAdmin):
    list_display = ("title", "record_type", "status", "owner", "issuer", "created_at", "decided_at")
    search_fields = ("title", "fingerprint", "document_ref", "owner__username", "issuer__username")
    list_filter = ("status", "record_type", "original_format")
    readonly_fields = ("owner", "issuer", "document_ref", "fingerprint", "size_bytes", "content_type", "created_at", "updated_at")
    ordering = ("-created_at",)
    inlines = [RecordTransitionInline]


@admin.register(FingerprintCheckEvent)
class FingerprintCheckEventAdmin(admin.ModelAdmin):
    list_display = ("created_at", "outcome", "record_status", "ip_address", "fingerprint_prefix")
    search_fields = ("fingerprint_hash", "fingerprint_prefix", "ip_address", "path", "user_agent")
    list_filter = ("outcome", "record_status")
    ordering = ("-created_at",)
