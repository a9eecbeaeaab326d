from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    ROLE_ADMIN = "ADMIN"
    ROLE_INSTITUTION = "INSTITUTION"
    ROLE_STUDENT = "STUDENT"
    ROLE_COMPANY = "COMPANY"

    ROLES = (
        (ROLE_ADMIN, "Administrador"),
        (ROLE_INSTITUTION, "Institución"),
        (ROLE_STUDENT, "Estudiante"),
        (ROLE_COMPANY, "Empresa"),
    )

    role = models.CharField(max_length=20, choices=ROLES)
    email = models.EmailField(unique=True, blank=True, null=True, verbose_name="Correo electrónico")
    display_name = models.CharField(max_length=200, blank=True, default="", verbose_name="Nombre visible")

    # Companies must pass an administrative verification before seeing any record content.
    is_verified = models.BooleanField(default=False, verbose_name="Verificado")

    # Students belong to the institution that issues (and verifies) their records.
    institution = models.ForeignKey(
        "self",
        on_delete=models.PROTECT,
        related_name="students",
        null=True,
        blank=True,
        limit_choices_to={"role": ROLE_INSTITUTION},
    )

    REQUIRED_FIELDS = ["email", "role"]

    def __str__(self) -> str:
        return f"{self.username} ({self.get_role_display()})"

    @property
    def public_name(self) -> str:
        return self.display_name or self.get_full_name() or self.username
