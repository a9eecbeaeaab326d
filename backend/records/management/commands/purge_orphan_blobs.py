from __future__ import annotations

from django.core.management.base import BaseCommand

from records.models import AcademicRecord
from records.services import get_workflow_service


class Command(BaseCommand):
    help = (
        "Find stored record documents that no academic record references (left behind by "
        "failed cleanups). By default it runs in dry-run mode. Use --apply to delete them."
    )

    def add_arguments(self, parser):
        parser.add_argument(
            "--apply",
            action="store_true",
            help="Actually delete orphaned blobs (default: dry-run).",
        )
        parser.add_argument(
            "--limit",
            type=int,
            default=0,
            help="Process at most N blobs (0 = no limit).",
        )

    def handle(self, *args, **options):
        apply = bool(options.get("apply"))
        limit = int(options.get("limit") or 0)

        blob_store = get_workflow_service().blob_store
        stored = blob_store.list_refs()
        referenced = set(AcademicRecord.objects.filter(document_ref__in=stored).values_list("document_ref", flat=True))
        orphans = [ref for ref in stored if ref not in referenced]

        if limit > 0:
            orphans = orphans[:limit]

        self.stdout.write(f"Found {len(orphans)} orphaned blob(s) out of {len(stored)} stored.")
        if not orphans:
            return

        if not apply:
            self.stdout.write("Dry-run: no changes written. Use --apply to delete them.")
            for ref in orphans[:5]:
                self.stdout.write(f"- {ref}")
            return

        deleted = 0
        for ref in orphans:
            blob_store.delete(ref)
            deleted += 1

        self.stdout.write(self.style.SUCCESS(f"Deleted {deleted} orphaned blob(s)."))
