from decimal import Decimal
from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from ..managers import TenantManager
from .account import GlAccount
from .period import AccountingPeriod
from .tenancy import BusinessUnit


class EntryStatus(models.TextChoices):
    DRAFT = "draft", "Draft"  # saved, no balance effect yet
    POSTED = "posted", "Posted"  # balances applied, immutable


# ---------- Journal (Header) & JournalEntryLine ----------
class JournalEntry(models.Model):  # one balanced accounting transaction
    business_unit = models.ForeignKey(
        BusinessUnit, on_delete=models.CASCADE, related_name="journal_entries"
    )
    doc_num = models.CharField(max_length=40)  # e.g. "JE-1042"
    posting_date = models.DateField()
    remarks = models.TextField(null=True, blank=True)
    status = models.CharField(
        max_length=10, choices=EntryStatus.choices, default=EntryStatus.DRAFT
    )
    posted_at = models.DateTimeField(null=True, blank=True)

    author = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="authored_entries",
    )
    approver = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="approved_entries",
    )

    # period resolved from posting_date when the entry was posted
    accounting_period = models.ForeignKey(
        AccountingPeriod,
        null=True,
        blank=True,
        on_delete=models.PROTECT,  # prevent breaking historical ledger
        related_name="journal_entries",
    )

    # where the entry came from (ar_invoice, incoming_payment, ...)
    source_type = models.CharField(max_length=50, null=True, blank=True)
    source_id = models.BigIntegerField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    objects = TenantManager()

    class Meta:
        verbose_name_plural = "journal entries"
        ordering = ("-posting_date", "-id")
        indexes = [
            models.Index(fields=["business_unit", "posting_date"], name="je_bu_date_idx"),
            models.Index(fields=["business_unit", "status"], name="je_bu_status_idx"),
            models.Index(fields=["source_type", "source_id"], name="je_source_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["business_unit", "doc_num"], name="uq_business_unit_doc_num"
            )
        ]

    def __str__(self):
        return f"{self.doc_num} {self.posting_date} [{self.status}]"

    @property
    def is_posted(self):
        return self.status == EntryStatus.POSTED

    def compute_totals(self):
        """Return (debits, credits) summed over this entry's lines."""
        aggs = self.lines.aggregate(
            total_debit=models.Sum("debit"),
            total_credit=models.Sum("credit"),
        )
        return (
            aggs["total_debit"] or Decimal("0.00"),
            aggs["total_credit"] or Decimal("0.00"),
        )

    def is_balanced(self):
        debit, credit = self.compute_totals()
        return abs(debit - credit) < Decimal(settings.LEDGER_BALANCE_TOLERANCE)

    def save(self, *args, **kwargs):
        if self.pk:
            orig = JournalEntry.objects.filter(pk=self.pk).only(
                "status", "posting_date", "business_unit_id"
            ).first()
            if orig and orig.status == EntryStatus.POSTED:
                # disallow toggling posted flag
                if self.status != EntryStatus.POSTED:
                    raise ValidationError("Cannot unpost a posted journal entry.")
                if (
                    orig.posting_date != self.posting_date
                    or orig.business_unit_id != self.business_unit_id
                ):
                    raise ValidationError(
                        "Cannot modify a posted journal entry. It is immutable."
                    )
        super().save(*args, **kwargs)


class JournalEntryLine(models.Model):  # debit / credit line of an entry
    entry = models.ForeignKey(
        JournalEntry,
        on_delete=models.CASCADE,  # entry owns its lines
        related_name="lines",
    )
    line_no = models.PositiveSmallIntegerField(default=1)

    # can't delete an account while lines point to it
    account = models.ForeignKey(
        GlAccount, on_delete=models.PROTECT, related_name="journal_lines"
    )
    description = models.CharField(max_length=400, null=True, blank=True)

    debit = models.DecimalField(max_digits=18, decimal_places=2, default=Decimal("0.00"))
    credit = models.DecimalField(max_digits=18, decimal_places=2, default=Decimal("0.00"))

    class Meta:
        ordering = ("entry", "line_no")
        indexes = [models.Index(fields=["account", "entry"], name="jel_account_entry_idx")]
        """ Only non-negativity is enforced in the database.
        One of debit/credit is non-zero by convention. """
        constraints = [
            models.CheckConstraint(
                condition=models.Q(debit__gte=0) & models.Q(credit__gte=0),
                name="jel_non_negative_amounts",
            ),
        ]

    def __str__(self):
        return f"{self.entry_id} | {self.account_id} | D:{self.debit} C:{self.credit}"

    def clean(self):
        if self.debit < 0 or self.credit < 0:
            raise ValidationError("Debit and credit must be >= 0")
        if self.account_id and self.entry_id:
            if self.account.business_unit_id != self.entry.business_unit_id:
                raise ValidationError(
                    "JournalEntryLine.account must belong to the entry's business unit."
                )

    def save(self, *args, **kwargs):
        # lines of a posted entry are frozen: balances were already applied
        if self.entry_id and JournalEntry.objects.filter(
            pk=self.entry_id, status=EntryStatus.POSTED
        ).exists():
            raise ValidationError("Cannot add or modify lines of a posted journal entry.")
        self.full_clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        if JournalEntry.objects.filter(pk=self.entry_id, status=EntryStatus.POSTED).exists():
            raise ValidationError(
                "Cannot delete JournalEntryLine: parent journal entry is posted."
            )
        return super().delete(*args, **kwargs)
