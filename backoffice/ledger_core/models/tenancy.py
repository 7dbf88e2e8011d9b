from django.conf import settings
from django.contrib.auth.models import AbstractUser
from django.core.exceptions import ValidationError
from django.db import models
from ..managers import TenantManager


# ---------- Tenant / Business unit ----------
class BusinessUnit(models.Model):
    """Tenant: one restaurant (or branch) with its own books."""

    name = models.CharField(max_length=200)
    # URL-friendly identifier, no two business units share it
    slug = models.SlugField(max_length=80, unique=True)

    # creator / admin of the business unit
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        # if user is deleted, the business unit stays without owner
        on_delete=models.SET_NULL,
        related_name="owned_business_units",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ("name",)

    def __str__(self):
        return self.name


# ---------- Custom User ----------
class User(AbstractUser):
    """
    AUTH_USER_MODEL = "ledger_core.User" must be set
    before the first migrate.
    """
    default_business_unit = models.ForeignKey(
        "BusinessUnit",
        # user might exist before being assigned a business unit
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="default_users",
    )

    class Meta:
        indexes = [models.Index(fields=["default_business_unit"], name="user_default_bu_idx")]

    def __str__(self):
        return self.get_full_name() or self.username


# ---------- Membership ----------
class Membership(models.Model):  # join model between User and BusinessUnit
    ROLE_CHOICES = [
        ("owner", "Owner"),
        ("admin", "Admin"),
        ("accountant", "Accountant"),  # can post journals and close periods
        ("viewer", "Viewer"),  # read-only access
    ]

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="memberships",
    )
    business_unit = models.ForeignKey(
        "BusinessUnit", on_delete=models.CASCADE, related_name="memberships"
    )
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default="viewer")
    # suspend access without deleting the record
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    objects = TenantManager()

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["user", "business_unit"], name="uq_user_business_unit_membership"
            ),
        ]
        indexes = [models.Index(fields=["business_unit", "user"], name="membership_bu_user_idx")]

    def __str__(self):
        return f"{self.user} @ {self.business_unit} ({self.role})"

    def clean(self):
        # a user's default business unit must be one they belong to;
        # the membership being saved counts
        if self.user_id and self.user.default_business_unit_id:
            default_id = self.user.default_business_unit_id
            existing = self.user.memberships.exclude(pk=self.pk).values_list(
                "business_unit_id", flat=True
            )
            if default_id not in existing and default_id != self.business_unit_id:
                raise ValidationError(
                    f"Default business unit {self.user.default_business_unit} "
                    "must be one of the user's memberships."
                )

    def save(self, *args, **kwargs):
        self.full_clean()  # run validations before saving
        return super().save(*args, **kwargs)
