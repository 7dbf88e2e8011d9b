from django.db.models.signals import pre_delete
from django.dispatch import receiver
from .exceptions import EntryHasPayments, PeriodClosedOrMissing, PeriodHasEntries
from .models import AccountingPeriod, ApInvoice, ArInvoice, JournalEntry

""" Block period deletion while journal entries are dated inside it.
    The entry -> period FK only exists on posted entries, drafts are
    caught by the date range. """


@receiver(pre_delete, sender=AccountingPeriod)
def prevent_delete_period_with_entries(sender, instance, **kwargs):
    if JournalEntry.objects.filter(
        business_unit_id=instance.business_unit_id,
        posting_date__gte=instance.start_date,
        posting_date__lte=instance.end_date,
    ).exists():
        raise PeriodHasEntries(
            f"Cannot delete period '{instance.name}' with existing journal entries."
        )


"""Block deleting entries of a closed period, whatever the code path."""


@receiver(pre_delete, sender=JournalEntry)
def prevent_delete_entry_in_closed_period(sender, instance, **kwargs):
    if instance.accounting_period_id and AccountingPeriod.objects.filter(
        pk=instance.accounting_period_id, status="CLOSED"
    ).exists():
        raise PeriodClosedOrMissing(
            f"Journal entry {instance.doc_num} belongs to a closed accounting period."
        )


"""Block invoice deletion if any payments are recorded."""


@receiver(pre_delete, sender=ArInvoice)
@receiver(pre_delete, sender=ApInvoice)
def prevent_delete_invoice_with_payments(sender, instance, **kwargs):
    if instance.amount_paid > 0:
        raise EntryHasPayments(f"Cannot delete invoice {instance.doc_num} with payments.")
