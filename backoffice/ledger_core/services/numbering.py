from django.conf import settings
from django.db import IntegrityError, transaction
from ..models import NumberingSeries


def _default_prefix(document_type):
    return settings.LEDGER_DEFAULT_PREFIXES.get(str(document_type), "")


def next_doc_number(business_unit, document_type) -> str:
    """
    Allocate the next document number for a business unit / document type.
    Must run inside the caller's transaction: the series row stays locked
    until that transaction commits, and a rollback gives the number back.
    """
    with transaction.atomic():
        try:
            series = NumberingSeries.objects.select_for_update().get(
                business_unit=business_unit, document_type=document_type
            )
        except NumberingSeries.DoesNotExist:
            # first document of this type: create the series on the fly
            try:
                with transaction.atomic():
                    series = NumberingSeries.objects.create(
                        business_unit=business_unit,
                        document_type=document_type,
                        prefix=_default_prefix(document_type),
                        next_number=1,
                    )
            except IntegrityError:
                # someone else created it first, lock theirs
                series = NumberingSeries.objects.select_for_update().get(
                    business_unit=business_unit, document_type=document_type
                )

        number = series.next_number
        series.next_number = number + 1
        series.save(update_fields=["next_number"])
        return series.format_number(number)
