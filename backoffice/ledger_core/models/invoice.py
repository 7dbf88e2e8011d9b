from decimal import Decimal
from django.core.exceptions import ValidationError
from django.db import models
from ..managers import TenantManager
from .account import GlAccount
from .journal import JournalEntry
from .tenancy import BusinessUnit


class InvoiceBase(models.Model):
    """
    Fields shared by A/R (sales) and A/P (purchase) invoices.
    The GL side lives in journal_entry; the invoice only tracks
    what was billed and how much of it has been settled.
    """

    business_unit = models.ForeignKey(BusinessUnit, on_delete=models.CASCADE)
    doc_num = models.CharField(max_length=40)  # e.g. "ARI-7"
    # business partner (customer or supplier) code
    bp_code = models.CharField(max_length=40)
    posting_date = models.DateField()
    due_date = models.DateField(null=True, blank=True)
    remarks = models.TextField(null=True, blank=True)

    # Sum of all line amounts
    total_amount = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )
    # Raised by incoming/outgoing payments, never above total_amount
    amount_paid = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )

    # the entry may be removed by its own delete flow; keep the invoice
    journal_entry = models.OneToOneField(
        JournalEntry,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="%(class)s",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    # Enforce tenant scoping
    objects = TenantManager()

    class Meta:
        abstract = True
        ordering = ("-posting_date", "-id")

    def __str__(self):
        return f"{self.doc_num} {self.bp_code} {self.total_amount}"

    @property
    def outstanding_amount(self):
        return self.total_amount - self.amount_paid

    @property
    def has_payments(self):
        return self.amount_paid > 0

    def clean(self):
        if self.amount_paid < 0:
            raise ValidationError("Amount paid cannot be negative")
        # prevent "overpayment": receivable/payable would go negative
        if self.amount_paid > self.total_amount:
            raise ValidationError("Amount paid cannot exceed invoice total")


class InvoiceLineBase(models.Model):
    """One GL account + amount on an invoice."""

    account = models.ForeignKey(GlAccount, on_delete=models.PROTECT)
    description = models.CharField(max_length=400, null=True, blank=True)
    amount = models.DecimalField(max_digits=18, decimal_places=2)

    class Meta:
        abstract = True

    def __str__(self):
        return f"{self.account} {self.amount}"


class ArInvoice(InvoiceBase):  # customer invoice: Dr receivable / Cr revenue
    class Meta(InvoiceBase.Meta):
        verbose_name = "A/R invoice"
        constraints = [
            models.UniqueConstraint(
                fields=["business_unit", "doc_num"], name="uq_ar_invoice_doc_num"
            ),
            models.CheckConstraint(
                condition=models.Q(amount_paid__lte=models.F("total_amount")),
                name="ar_invoice_paid_within_total",
            ),
        ]


class ArInvoiceLine(InvoiceLineBase):
    invoice = models.ForeignKey(
        ArInvoice, on_delete=models.CASCADE, related_name="lines"
    )

    class Meta:
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount__gt=0), name="ar_line_positive_amount"
            ),
        ]


class ApInvoice(InvoiceBase):  # supplier bill: Dr expense / Cr payable
    class Meta(InvoiceBase.Meta):
        verbose_name = "A/P invoice"
        constraints = [
            models.UniqueConstraint(
                fields=["business_unit", "doc_num"], name="uq_ap_invoice_doc_num"
            ),
            models.CheckConstraint(
                condition=models.Q(amount_paid__lte=models.F("total_amount")),
                name="ap_invoice_paid_within_total",
            ),
        ]


class ApInvoiceLine(InvoiceLineBase):
    invoice = models.ForeignKey(
        ApInvoice, on_delete=models.CASCADE, related_name="lines"
    )

    class Meta:
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount__gt=0), name="ap_line_positive_amount"
            ),
        ]
