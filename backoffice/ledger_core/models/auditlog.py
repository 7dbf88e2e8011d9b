from django.conf import settings
from django.db import models
from ..managers import TenantManager
from .tenancy import BusinessUnit


# ---------- Audit / Event log ----------
class AuditLog(models.Model):  # who posted, deleted or closed what, and when
    # Nullable: system-wide events have no business unit
    business_unit = models.ForeignKey(
        BusinessUnit,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="audit_logs",
    )
    # Nullable for automated actions (celery task, management command)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.SET_NULL
    )
    action = models.CharField(max_length=50)  # post, delete, create, close, ...
    object_type = models.CharField(max_length=100)  # e.g. "JournalEntry"
    object_id = models.CharField(max_length=100)
    # before/after details, JSON serialisable
    changes = models.JSONField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    # Enforce tenant scoping
    objects = TenantManager()

    class Meta:
        ordering = ("-created_at", "-id")
        indexes = [
            models.Index(fields=["business_unit", "created_at"], name="auditlog_bu_created_idx"),
            models.Index(fields=["object_type", "object_id"], name="auditlog_object_idx"),
        ]

    def __str__(self):
        return (
            f"[{self.created_at:%Y-%m-%d %H:%M}] {self.user} "
            f"{self.action} {self.object_type}({self.object_id})"
        )
