from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from ..managers import PeriodManager
from .tenancy import BusinessUnit


class PeriodStatus(models.TextChoices):
    OPEN = "OPEN", "Open"
    CLOSED = "CLOSED", "Closed"


# ---------- Accounting period ----------
class AccountingPeriod(models.Model):
    """
    Named date range gating which posting dates are writable.
    Created OPEN, moves to CLOSED through services.closing only.
    CLOSED is terminal: no postings, no edits, no reopening.
    """

    business_unit = models.ForeignKey(
        BusinessUnit,
        # periods are referenced by journal entries, never cascade them away
        on_delete=models.PROTECT,
        related_name="accounting_periods",
    )
    name = models.CharField(max_length=50)  # e.g. "Jan 2025"
    start_date = models.DateField()
    end_date = models.DateField()
    status = models.CharField(
        max_length=6, choices=PeriodStatus.choices, default=PeriodStatus.OPEN
    )
    closed_at = models.DateTimeField(null=True, blank=True)
    closed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="closed_periods",
    )

    objects = PeriodManager()

    class Meta:
        indexes = [
            models.Index(fields=["business_unit", "start_date"], name="period_bu_start_idx"),
            models.Index(fields=["business_unit", "status"], name="period_bu_status_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["business_unit", "name"], name="uq_business_unit_period_name"
            ),
            models.CheckConstraint(
                condition=models.Q(start_date__lt=models.F("end_date")),
                name="period_start_before_end",
            ),
        ]
        # periods come back chronologically per business unit
        ordering = ("business_unit", "start_date")

    def __str__(self):
        return f"{self.name} [{self.start_date} - {self.end_date}] {self.status}"

    @property
    def is_closed(self):
        return self.status == PeriodStatus.CLOSED

    def contains(self, date):
        return self.start_date <= date <= self.end_date

    def save(self, *args, **kwargs):
        if self.pk:
            orig = AccountingPeriod.objects.filter(pk=self.pk).values("status").first()
            # CLOSED is terminal, there is no way back to OPEN
            if orig and orig["status"] == PeriodStatus.CLOSED and self.status != PeriodStatus.CLOSED:
                raise ValidationError("Cannot reopen a closed accounting period.")
        return super().save(*args, **kwargs)
