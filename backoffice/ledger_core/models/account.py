from decimal import Decimal
from django.db import models
from ..managers import TenantManager
from .tenancy import BusinessUnit


class AccountType(models.TextChoices):
    ASSET = "ASSET", "Asset"
    LIABILITY = "LIABILITY", "Liability"
    EQUITY = "EQUITY", "Equity"
    REVENUE = "REVENUE", "Revenue"
    EXPENSE = "EXPENSE", "Expense"


# Types that increase with debits; everything else increases with credits
DEBIT_NORMAL_TYPES = (AccountType.ASSET, AccountType.EXPENSE)


class GlAccount(models.Model):
    """
    Ledger account in the chart of accounts.
    - code is unique per business unit
    - account_type decides the sign of every posting (see services.balances)
    - balance is a running projection of posted lines; only the
      posting engine writes it
    """

    business_unit = models.ForeignKey(
        BusinessUnit, on_delete=models.CASCADE, related_name="gl_accounts"
    )
    code = models.CharField(max_length=32)  # e.g. "1000"
    name = models.CharField(max_length=200)  # e.g. "Cash on Hand"
    account_type = models.CharField(max_length=10, choices=AccountType.choices)

    # marker for accounts that must reconcile with subledgers (AR, AP)
    is_control_account = models.BooleanField(default=False)

    balance = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )
    created_at = models.DateTimeField(auto_now_add=True)

    # Enforce tenant scoping
    objects = TenantManager()

    class Meta:
        ordering = ("business_unit", "code")
        indexes = [
            models.Index(fields=["business_unit", "account_type"], name="glaccount_bu_type_idx"),
        ]
        """ Codes repeat across business units but must be unique within one. """
        constraints = [
            models.UniqueConstraint(
                fields=["business_unit", "code"], name="uq_business_unit_account_code"
            )
        ]

    def __str__(self):
        return f"{self.code} - {self.name}"

    @property
    def is_debit_normal(self):
        return self.account_type in DEBIT_NORMAL_TYPES
