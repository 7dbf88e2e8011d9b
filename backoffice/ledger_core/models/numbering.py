from django.db import models
from ..managers import TenantManager
from .tenancy import BusinessUnit


class DocumentType(models.TextChoices):
    JOURNAL_ENTRY = "JOURNAL_ENTRY", "Journal entry"
    AR_INVOICE = "AR_INVOICE", "A/R invoice"
    AP_INVOICE = "AP_INVOICE", "A/P invoice"
    INCOMING_PAYMENT = "INCOMING_PAYMENT", "Incoming payment"
    OUTGOING_PAYMENT = "OUTGOING_PAYMENT", "Outgoing payment"


# ---------- Numbering series ----------
class NumberingSeries(models.Model):
    """
    Per business unit, per document type counter.
    Document numbers read f"{prefix}{next_number}".
    Only services.numbering touches next_number, under a row lock.
    """

    business_unit = models.ForeignKey(
        BusinessUnit, on_delete=models.CASCADE, related_name="numbering_series"
    )
    document_type = models.CharField(max_length=20, choices=DocumentType.choices)
    prefix = models.CharField(max_length=16, blank=True, default="")
    next_number = models.PositiveIntegerField(default=1)

    objects = TenantManager()

    class Meta:
        verbose_name_plural = "numbering series"
        constraints = [
            models.UniqueConstraint(
                fields=["business_unit", "document_type"],
                name="uq_business_unit_document_type_series",
            ),
            models.CheckConstraint(
                condition=models.Q(next_number__gte=1),
                name="series_next_number_positive",
            ),
        ]

    def __str__(self):
        return f"{self.business_unit} {self.document_type}: {self.prefix}{self.next_number}"

    def format_number(self, number):
        return f"{self.prefix}{number}"
