import logging
from dataclasses import dataclass, field
from decimal import Decimal
from django.conf import settings
from django.db import models, transaction
from django.utils import timezone
from ..exceptions import PeriodIntegrityError, PeriodNotCloseable
from ..models import (AccountingPeriod, EntryStatus, IncomingPayment,
                      JournalEntry, JournalEntryLine, OutgoingPayment,
                      PeriodStatus)
from .audit_helper import log_action
from .posting import retry_on_conflict

logger = logging.getLogger(__name__)


@dataclass
class PeriodValidation:
    """Outcome of the read-only pre-close check. Errors block, warnings don't."""

    period_id: int
    status: str
    errors: list = field(default_factory=list)
    warnings: list = field(default_factory=list)

    @property
    def is_valid(self):
        return not self.errors

    @property
    def can_close(self):
        return not self.errors and self.status == PeriodStatus.OPEN

    def as_dict(self):
        return {
            "period_id": self.period_id,
            "is_valid": self.is_valid,
            "can_close": self.can_close,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
        }


class CloseResult:
    """
    Wrapper for close results with success/failure info.

    Usage:
        result = close_period(period.pk, user=request.user)
        if result.success:
            message = result.message
        else:
            error_message, error_code = result.error, result.code
    """

    def __init__(self, success, message=None, error=None, code=None, period=None, validation=None):
        self.success = success
        self.message = message
        self.error = error
        self.code = code
        self.period = period
        self.validation = validation

    @classmethod
    def ok(cls, message, period=None):
        return cls(success=True, message=message, period=period)

    @classmethod
    def fail(cls, error, code=PeriodNotCloseable.code, period=None, validation=None):
        return cls(success=False, error=error, code=code, period=period, validation=validation)

    def as_dict(self):
        if self.success:
            return {"success": True, "message": self.message}
        return {"success": False, "error": self.error, "code": self.code}


def _balance_checks(period, entries):
    """Every posted entry balanced on its own, and the whole range together."""
    tolerance = Decimal(settings.LEDGER_BALANCE_TOLERANCE)
    errors = []

    per_entry = entries.filter(status=EntryStatus.POSTED).annotate(
        total_debit=models.Sum("lines__debit"),
        total_credit=models.Sum("lines__credit"),
    )
    for entry in per_entry:
        debit = entry.total_debit or Decimal("0")
        credit = entry.total_credit or Decimal("0")
        if abs(debit - credit) >= tolerance:
            # should be impossible: post_entry refuses unbalanced entries
            logger.error(
                "Integrity defect: posted entry %s is unbalanced (D %s / C %s)",
                entry.doc_num, debit, credit,
                extra={"period_id": period.pk, "entry_id": entry.pk},
            )
            errors.append(
                f"Journal entry {entry.doc_num} is not balanced (debits {debit}, credits {credit})."
            )

    totals = JournalEntryLine.objects.filter(
        entry__in=entries.filter(status=EntryStatus.POSTED)
    ).aggregate(debit=models.Sum("debit"), credit=models.Sum("credit"))
    debit = totals["debit"] or Decimal("0")
    credit = totals["credit"] or Decimal("0")
    if abs(debit - credit) >= tolerance:
        logger.error(
            "Integrity defect: period %s totals do not balance (D %s / C %s)",
            period.name, debit, credit,
            extra={"period_id": period.pk},
        )
        errors.append(str(PeriodIntegrityError(
            f"Posted entries in this period do not balance (debits {debit}, credits {credit})."
        )))
    return errors


def _run_checks(period):
    result = PeriodValidation(period_id=period.pk, status=period.status)
    bu = period.business_unit
    in_range = {"posting_date__gte": period.start_date, "posting_date__lte": period.end_date}
    paid_in_range = {"payment_date__gte": period.start_date, "payment_date__lte": period.end_date}

    if period.is_closed:
        result.warnings.append(f"Accounting period '{period.name}' is already closed.")

    entries = JournalEntry.objects.for_business_unit(bu).filter(**in_range)

    drafts = entries.filter(status=EntryStatus.DRAFT).count()
    if drafts:
        result.errors.append(f"Found {drafts} unposted (draft) journal entries in this period.")

    result.errors.extend(_balance_checks(period, entries))

    for model, label in ((IncomingPayment, "incoming"), (OutgoingPayment, "outgoing")):
        open_items = model.objects.for_business_unit(bu).filter(
            is_reconciled=False, **paid_in_range
        ).count()
        if open_items:
            result.warnings.append(
                f"{open_items} {label} payment(s) in this period are not reconciled."
            )
    return result


def validate_period(period_id) -> PeriodValidation:
    """Preview whether a period can be closed. Changes nothing."""
    period = AccountingPeriod.objects.select_related("business_unit").get(pk=period_id)
    return _run_checks(period)


@retry_on_conflict
def close_period(period_id, user=None) -> CloseResult:
    """
    Close an OPEN period. The re-check and the status flip run in one
    transaction with the period row locked, so no posting can land
    between validation and close. Closing a closed period is a no-op.
    """
    with transaction.atomic():
        period = AccountingPeriod.objects.select_for_update().get(pk=period_id)

        if period.is_closed:
            return CloseResult.ok(
                f"Accounting period '{period.name}' is already closed.", period=period
            )

        validation = _run_checks(period)
        if not validation.can_close:
            reason = validation.errors[0] if validation.errors else PeriodNotCloseable.default_message
            logger.warning(
                "Refused to close accounting period %s: %s", period.name, reason,
                extra={"period_id": period.pk, "business_unit_id": period.business_unit_id},
            )
            return CloseResult.fail(reason, period=period, validation=validation)

        period.status = PeriodStatus.CLOSED
        period.closed_at = timezone.now()
        if user is not None and getattr(user, "is_authenticated", False):
            period.closed_by = user
        period.save(update_fields=["status", "closed_at", "closed_by"])
        log_action(
            action="close",
            instance=period,
            user=user,
            changes={"status": [PeriodStatus.OPEN, PeriodStatus.CLOSED]},
        )

    logger.info(
        "Closed accounting period %s [%s - %s]", period.name, period.start_date, period.end_date,
        extra={"period_id": period.pk, "business_unit_id": period.business_unit_id},
    )
    return CloseResult.ok(f"Accounting period '{period.name}' closed successfully.", period=period)
