from decimal import Decimal
from django.core.exceptions import ValidationError
from django.db import models
from ..managers import TenantManager
from .account import AccountType, GlAccount
from .invoice import ApInvoice, ArInvoice
from .journal import JournalEntry
from .tenancy import BusinessUnit


# ---------- Banking ----------


class BankAccount(models.Model):  # Represents a bank account the restaurant keeps
    business_unit = models.ForeignKey(
        BusinessUnit, on_delete=models.CASCADE, related_name="bank_accounts"
    )
    name = models.CharField(max_length=200)  # e.g. "Operating Account"
    # Partial account number for display/security
    account_number = models.CharField(max_length=50, null=True, blank=True)
    # the ASSET account cash movements are posted to
    gl_account = models.ForeignKey(
        GlAccount, on_delete=models.PROTECT, related_name="bank_accounts"
    )

    # Enforce tenant scoping
    objects = TenantManager()

    class Meta:
        # A business unit cannot have two accounts with the same name
        constraints = [
            models.UniqueConstraint(
                fields=["business_unit", "name"], name="uq_business_unit_bankaccount_name"
            ),
        ]

    def __str__(self):
        if self.account_number:
            return f"{self.name} ({self.account_number})"
        return self.name

    def clean(self):
        if self.gl_account_id:
            if self.gl_account.business_unit_id != self.business_unit_id:
                raise ValidationError("GL account must belong to the same business unit.")
            if self.gl_account.account_type != AccountType.ASSET:
                raise ValidationError("Bank accounts must post to an ASSET account.")

    def save(self, *args, **kwargs):
        self.full_clean()  # run validations before saving
        return super().save(*args, **kwargs)


class PaymentBase(models.Model):
    """Money in or out of a bank account, optionally settling one invoice."""

    business_unit = models.ForeignKey(BusinessUnit, on_delete=models.CASCADE)
    doc_num = models.CharField(max_length=40)
    bp_code = models.CharField(max_length=40)
    payment_date = models.DateField()  # when it cleared
    amount = models.DecimalField(max_digits=18, decimal_places=2)
    # prevent BankAccount deletion if payments exist
    bank_account = models.ForeignKey(BankAccount, on_delete=models.PROTECT)
    # ticked off against the bank statement
    is_reconciled = models.BooleanField(default=False)
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
        ordering = ("-payment_date", "-id")

    def __str__(self):
        flag = "reconciled" if self.is_reconciled else "open"
        return f"{self.doc_num} {self.bp_code} {self.amount} ({flag})"

    def clean(self):
        if self.amount is not None and self.amount <= Decimal("0"):
            raise ValidationError("Payment amount must be positive")
        if self.bank_account_id and self.bank_account.business_unit_id != self.business_unit_id:
            raise ValidationError("Bank account must belong to the same business unit.")


class IncomingPayment(PaymentBase):  # customer pays us: Dr bank / Cr receivable
    ar_invoice = models.ForeignKey(
        ArInvoice,
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="payments",
    )

    class Meta(PaymentBase.Meta):
        indexes = [
            models.Index(fields=["business_unit", "payment_date"], name="inpay_bu_date_idx"),
            models.Index(fields=["business_unit", "is_reconciled"], name="inpay_bu_reconciled_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["business_unit", "doc_num"], name="uq_incoming_payment_doc_num"
            ),
        ]


class OutgoingPayment(PaymentBase):  # we pay a supplier: Dr payable / Cr bank
    ap_invoice = models.ForeignKey(
        ApInvoice,
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="payments",
    )

    class Meta(PaymentBase.Meta):
        indexes = [
            models.Index(fields=["business_unit", "payment_date"], name="outpay_bu_date_idx"),
            models.Index(fields=["business_unit", "is_reconciled"], name="outpay_bu_reconciled_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["business_unit", "doc_num"], name="uq_outgoing_payment_doc_num"
            ),
        ]
