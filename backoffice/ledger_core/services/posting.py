import functools
import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from collections.abc import Mapping
from django.conf import settings
from django.db import OperationalError, connection, transaction
from django.utils import timezone
from ..exceptions import (EntryAlreadyPosted, EntryHasPayments,
                          InsufficientLines, InvalidLineAmount,
                          InvalidLineInput, PeriodClosedOrMissing,
                          UnbalancedEntry, UnknownAccount)
from ..models import (AccountingPeriod, ApInvoice, ArInvoice, DocumentType,
                      EntryStatus, GlAccount, IncomingPayment, JournalEntry,
                      JournalEntryLine, OutgoingPayment, PeriodStatus)
from .audit_helper import log_action
from .balances import apply_line_effects
from .numbering import next_doc_number
from .periods import find_period_containing

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


@dataclass
class LineInput:
    """A candidate journal line, before it is resolved against the chart."""

    account_code: str
    debit: Decimal = ZERO
    credit: Decimal = ZERO
    description: str = ""


def _parse_amount(value):
    try:
        amount = Decimal(str(value if value is not None else "0"))
    except (InvalidOperation, ValueError):
        raise InvalidLineAmount(f"'{value}' is not a valid amount.")
    if not amount.is_finite():
        raise InvalidLineAmount(f"'{value}' is not a valid amount.")
    return amount


def to_amount(value):
    return _parse_amount(value).quantize(CENT, rounding=ROUND_HALF_UP)


def _coerce_line(line) -> LineInput:
    # API payloads arrive as dicts, internal callers pass LineInput.
    # Amounts stay raw here; they are parsed after the structural checks.
    if isinstance(line, Mapping):
        line = LineInput(
            account_code=line.get("account_code"),
            debit=line.get("debit"),
            credit=line.get("credit"),
            description=line.get("description") or "",
        )
    elif not isinstance(line, LineInput):
        raise InvalidLineInput(f"Journal line must be an object, got {type(line).__name__}.")
    return LineInput(
        account_code=str(line.account_code) if line.account_code is not None else "",
        debit=line.debit,
        credit=line.credit,
        description=str(line.description or ""),
    )


def _round_side(amounts):
    """
    Round one side of an entry to cents so that its stored total equals
    its rounded raw total. The leftover cent(s) go to the largest line.
    """
    rounded = [amount.quantize(CENT, rounding=ROUND_HALF_UP) for amount in amounts]
    residue = sum(amounts, ZERO).quantize(CENT, rounding=ROUND_HALF_UP) - sum(rounded, ZERO)
    if residue and rounded:
        largest = max(range(len(amounts)), key=lambda i: amounts[i])
        rounded[largest] += residue
    return rounded


def validate_lines(business_unit, lines):
    """
    Check a candidate entry in order, first failure wins:
    line shape, line count, account existence, amounts and balance.
    Returns [(LineInput, GlAccount), ...] with amounts rounded to cents,
    ready to be written.
    """
    if isinstance(lines, (str, bytes, Mapping)):
        raise InvalidLineInput("Journal lines must be a list.")
    lines = [_coerce_line(line) for line in lines]
    if len(lines) < 2:
        raise InsufficientLines()

    codes = {line.account_code for line in lines}
    accounts = {
        account.code: account
        for account in GlAccount.objects.for_business_unit(business_unit).filter(code__in=codes)
    }
    for line in lines:
        if line.account_code not in accounts:
            raise UnknownAccount(f"GL account {line.account_code} not found.")

    debits = []
    credits = []
    for line in lines:
        debit = _parse_amount(line.debit)
        credit = _parse_amount(line.credit)
        if debit < 0 or credit < 0:
            raise InvalidLineAmount(
                f"Line for account {line.account_code} has a negative amount."
            )
        if to_amount(debit) == 0 and to_amount(credit) == 0:
            raise InvalidLineAmount(
                f"Line for account {line.account_code} has neither debit nor credit."
            )
        debits.append(debit)
        credits.append(credit)

    # tolerance absorbs rounding in currency math
    tolerance = Decimal(settings.LEDGER_BALANCE_TOLERANCE)
    total_debit = sum(debits, ZERO)
    total_credit = sum(credits, ZERO)
    if abs(total_debit - total_credit) >= tolerance:
        raise UnbalancedEntry(
            f"Journal entry is not balanced: debits {total_debit} != credits {total_credit}."
        )

    debits = _round_side(debits)
    credits = _round_side(credits)
    # what gets stored has to balance as well
    if abs(sum(debits, ZERO) - sum(credits, ZERO)) >= tolerance:
        raise UnbalancedEntry(
            f"Journal entry is not balanced in cents: debits {sum(debits, ZERO)} "
            f"!= credits {sum(credits, ZERO)}."
        )
    return [
        (LineInput(line.account_code, debit, credit, line.description), accounts[line.account_code])
        for line, debit, credit in zip(lines, debits, credits)
    ]


def _lock_open_period(business_unit, posting_date):
    """Lock and return the OPEN period holding posting_date."""
    period = find_period_containing(business_unit, posting_date)
    if period is None:
        raise PeriodClosedOrMissing(f"No accounting period covers {posting_date}.")
    # a close running in parallel waits for us, or we wait for it
    period = AccountingPeriod.objects.select_for_update().get(pk=period.pk)
    if period.status != PeriodStatus.OPEN:
        raise PeriodClosedOrMissing(
            f"Accounting period '{period.name}' is closed; cannot post on {posting_date}."
        )
    return period


def retry_on_conflict(func):
    """
    Re-run the whole call when the database reports a transaction
    conflict (deadlock, lock timeout, serialization failure).
    Only the outermost transaction owner retries: inside a caller's
    atomic block the error goes straight back to the caller.
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        attempts = 1 if connection.in_atomic_block else settings.LEDGER_MAX_POST_ATTEMPTS
        for attempt in range(1, attempts + 1):
            try:
                return func(*args, **kwargs)
            except OperationalError as exc:
                if attempt >= attempts:
                    raise
                logger.warning(
                    "%s hit a transaction conflict (attempt %s/%s): %s",
                    func.__name__, attempt, attempts, exc,
                )

    return wrapper


def _build_lines(entry, resolved):
    return [
        JournalEntryLine(
            entry=entry,
            line_no=index,
            account=account,
            description=line.description or None,
            debit=line.debit,
            credit=line.credit,
        )
        for index, (line, account) in enumerate(resolved, start=1)
    ]


# ----------------------------
# Journal-related workflows
# ----------------------------
@retry_on_conflict
def post_entry(
    business_unit,
    posting_date,
    lines,
    author=None,
    remarks=None,
    approver=None,
    source_type=None,
    source_id=None,
):
    """
    Validate and commit a balanced journal entry with its balance effects.
    Everything happens in one transaction: on any error no balance moves
    and no document number is consumed.
    """
    resolved = validate_lines(business_unit, lines)

    with transaction.atomic():
        period = _lock_open_period(business_unit, posting_date)
        doc_num = next_doc_number(business_unit, DocumentType.JOURNAL_ENTRY)

        entry = JournalEntry.objects.create(
            business_unit=business_unit,
            doc_num=doc_num,
            posting_date=posting_date,
            remarks=remarks,
            author=author,
            approver=approver,
            status=EntryStatus.POSTED,
            posted_at=timezone.now(),
            accounting_period=period,
            source_type=source_type,
            source_id=source_id,
        )
        entry_lines = JournalEntryLine.objects.bulk_create(_build_lines(entry, resolved))
        apply_line_effects(entry_lines)

        total = sum((line.debit for line, _ in resolved), ZERO)
        log_action(
            action="post",
            instance=entry,
            user=author,
            changes={"doc_num": doc_num, "total": str(total), "lines": len(entry_lines)},
        )

    logger.info(
        "Posted journal entry %s on %s for %s (%s lines, total %s)",
        doc_num, posting_date, business_unit, len(entry_lines), total,
        extra={"business_unit_id": business_unit.pk, "entry_id": entry.pk},
    )
    return entry


def draft_entry(business_unit, posting_date, lines, author=None, remarks=None):
    """
    Save a validated entry without touching balances.
    No open period is needed yet, but a closed one is refused.
    """
    resolved = validate_lines(business_unit, lines)

    with transaction.atomic():
        period = find_period_containing(business_unit, posting_date)
        if period is not None:
            # hold the period so a close cannot slip in before this draft commits
            period = AccountingPeriod.objects.select_for_update().get(pk=period.pk)
        if period is not None and period.is_closed:
            raise PeriodClosedOrMissing(
                f"Accounting period '{period.name}' is closed; cannot save a draft on {posting_date}."
            )
        doc_num = next_doc_number(business_unit, DocumentType.JOURNAL_ENTRY)
        entry = JournalEntry.objects.create(
            business_unit=business_unit,
            doc_num=doc_num,
            posting_date=posting_date,
            remarks=remarks,
            author=author,
            status=EntryStatus.DRAFT,
        )
        JournalEntryLine.objects.bulk_create(_build_lines(entry, resolved))
        log_action(action="draft", instance=entry, user=author, changes={"doc_num": doc_num})

    logger.info(
        "Saved draft journal entry %s on %s for %s", doc_num, posting_date, business_unit,
        extra={"business_unit_id": business_unit.pk, "entry_id": entry.pk},
    )
    return entry


@retry_on_conflict
def post_draft(entry_id, user=None):
    """Post a draft: re-check it completely, then apply its balances."""
    with transaction.atomic():
        # Lock the row to avoid two people posting the same draft
        entry = JournalEntry.objects.select_for_update().get(pk=entry_id)
        if entry.is_posted:
            raise EntryAlreadyPosted(f"Journal entry {entry.doc_num} is already posted.")

        lines = list(entry.lines.select_related("account"))
        validate_lines(
            entry.business_unit,
            [
                LineInput(line.account.code, line.debit, line.credit, line.description or "")
                for line in lines
            ],
        )
        period = _lock_open_period(entry.business_unit, entry.posting_date)

        entry.status = EntryStatus.POSTED
        entry.posted_at = timezone.now()
        entry.accounting_period = period
        if user is not None and getattr(user, "is_authenticated", False):
            entry.approver = user
        entry.save(update_fields=["status", "posted_at", "accounting_period", "approver"])
        apply_line_effects(lines)
        log_action(action="post", instance=entry, user=user, changes={"doc_num": entry.doc_num})

    logger.info(
        "Posted draft journal entry %s for %s", entry.doc_num, entry.business_unit,
        extra={"business_unit_id": entry.business_unit_id, "entry_id": entry.pk},
    )
    return entry


def _has_recorded_payments(entry):
    # invoice entries: something was already paid against the invoice
    if ArInvoice.objects.filter(journal_entry=entry, amount_paid__gt=0).exists():
        return True
    if ApInvoice.objects.filter(journal_entry=entry, amount_paid__gt=0).exists():
        return True
    # payment entries: the payment was applied to an invoice
    if IncomingPayment.objects.filter(journal_entry=entry, ar_invoice__isnull=False).exists():
        return True
    return OutgoingPayment.objects.filter(journal_entry=entry, ap_invoice__isnull=False).exists()


@retry_on_conflict
def delete_entry(entry_id, user=None):
    """
    Remove a journal entry and take back its balance effect.
    Only possible while its posting date sits in an OPEN period and
    no invoice/payment built on it has recorded payments.
    """
    with transaction.atomic():
        entry = JournalEntry.objects.select_for_update().get(pk=entry_id)
        # drafts may sit outside any period; anything inside one needs it OPEN
        if entry.is_posted or find_period_containing(entry.business_unit, entry.posting_date):
            _lock_open_period(entry.business_unit, entry.posting_date)

        if _has_recorded_payments(entry):
            raise EntryHasPayments(
                f"Journal entry {entry.doc_num} belongs to a document with recorded payments."
            )

        lines = list(entry.lines.select_related("account"))
        if entry.is_posted:
            apply_line_effects(lines, reverse=True)

        log_action(
            action="delete",
            instance=entry,
            user=user,
            changes={"doc_num": entry.doc_num, "status": entry.status},
        )
        doc_num = entry.doc_num
        business_unit = entry.business_unit
        entry.delete()  # lines go with it (CASCADE)

    logger.info(
        "Deleted journal entry %s for %s", doc_num, business_unit,
        extra={"business_unit_id": business_unit.pk},
    )


def get_entry(business_unit, entry_id):
    return (
        JournalEntry.objects.for_business_unit(business_unit)
        .prefetch_related("lines__account")
        .get(pk=entry_id)
    )


def list_entries(business_unit, date_from=None, date_to=None, status=None):
    qs = JournalEntry.objects.for_business_unit(business_unit)
    if date_from:
        qs = qs.filter(posting_date__gte=date_from)
    if date_to:
        qs = qs.filter(posting_date__lte=date_to)
    if status:
        qs = qs.filter(status=status)
    return qs.prefetch_related("lines__account")
