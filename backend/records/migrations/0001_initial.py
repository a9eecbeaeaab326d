import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


STATUS_CHOICES = [("pending", "Pendiente"), ("verified", "Verificado"), ("rejected", "Rechazado")]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="AcademicRecord",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "record_type",
                    models.CharField(
                        choices=[
                            ("certificate", "Certificado"),
                            ("degree", "Título"),
                            ("course", "Curso"),
                            ("transcript", "Certificado de notas"),
                        ],
                        max_length=20,
                    ),
                ),
                ("title", models.CharField(max_length=255)),
                ("document_ref", models.CharField(max_length=255, unique=True)),
                (
                    "original_format",
                    models.CharField(
                        choices=[("pdf", "PDF"), ("doc", "Word 97-2003"), ("docx", "Word")],
                        max_length=8,
                    ),
                ),
                ("content_type", models.CharField(blank=True, default="", max_length=120)),
                ("size_bytes", models.PositiveIntegerField(default=0)),
                ("fingerprint", models.CharField(db_index=True, max_length=64)),
                ("status", models.CharField(choices=STATUS_CHOICES, default="pending", max_length=10)),
                ("rejection_reason", models.TextField(blank=True, default="")),
                ("decided_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "issuer",
                    models.ForeignKey(
                        limit_choices_to={"role": "INSTITUTION"},
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="issued_academic_records",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "owner",
                    models.ForeignKey(
                        limit_choices_to={"role": "STUDENT"},
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="academic_records",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at", "-id"],
                "indexes": [
                    models.Index(fields=["owner", "status"], name="records_owner_status_idx"),
                    models.Index(fields=["issuer", "status"], name="records_issuer_status_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("status", "verified")),
                        fields=("fingerprint",),
                        name="uniq_verified_record_fingerprint",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="RecordTransition",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "event",
                    models.CharField(
                        choices=[
                            ("submit", "Radicado"),
                            ("verify", "Verificado"),
                            ("reject", "Rechazado"),
                            ("resubmit", "Reenviado"),
                        ],
                        max_length=10,
                    ),
                ),
                ("from_status", models.CharField(blank=True, choices=STATUS_CHOICES, default="", max_length=10)),
                ("to_status", models.CharField(choices=STATUS_CHOICES, max_length=10)),
                ("actor_role", models.CharField(blank=True, default="", max_length=20)),
                ("reason", models.TextField(blank=True, default="")),
                ("fingerprint", models.CharField(blank=True, default="", max_length=64)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "actor",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="academic_record_transitions",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "record",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="transitions",
                        to="records.academicrecord",
                    ),
                ),
            ],
            options={
                "ordering": ["created_at", "id"],
            },
        ),
        migrations.CreateModel(
            name="FingerprintCheckEvent",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("fingerprint_hash", models.CharField(db_index=True, max_length=64)),
                ("fingerprint_prefix", models.CharField(blank=True, default="", max_length=16)),
                ("record_status", models.CharField(blank=True, default="", max_length=10)),
                (
                    "outcome",
                    models.CharField(
                        choices=[("NOT_FOUND", "No encontrado"), ("VALID", "Válido"), ("INVALID", "No verificado")],
                        db_index=True,
                        max_length=12,
                    ),
                ),
                ("ip_address", models.CharField(blank=True, db_index=True, default="", max_length=64)),
                ("user_agent", models.CharField(blank=True, default="", max_length=255)),
                ("path", models.CharField(blank=True, default="", max_length=255)),
            ],
        ),
    ]
