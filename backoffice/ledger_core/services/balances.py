import logging
from dataclasses import dataclass
from decimal import Decimal
from django.db import models
from django.db.models import F
from ..models import DEBIT_NORMAL_TYPES, EntryStatus, GlAccount, JournalEntryLine

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")


def balance_delta(account_type, debit, credit) -> Decimal:
    """
    Signed effect of one line on its account's balance.
    ASSET / EXPENSE grow with debits, everything else grows with credits.
    """
    debit = debit or ZERO
    credit = credit or ZERO
    if account_type in DEBIT_NORMAL_TYPES:
        return debit - credit
    return credit - debit


def apply_line_effects(lines, reverse=False):
    """
    Add (or, with reverse=True, take back) the balance effect of `lines`.
    Deltas are summed per account first, then written with F() increments
    so concurrent postings never overwrite each other's result.
    Call inside the posting transaction.
    """
    deltas = {}
    for line in lines:
        account = line.account
        delta = balance_delta(account.account_type, line.debit, line.credit)
        if reverse:
            delta = -delta
        deltas[account.pk] = deltas.get(account.pk, ZERO) + delta

    for account_id, delta in deltas.items():
        if delta:
            GlAccount.objects.filter(pk=account_id).update(balance=F("balance") + delta)
    return deltas


@dataclass
class BalanceDrift:
    account_id: int
    code: str
    cached: Decimal
    expected: Decimal

    @property
    def difference(self):
        return self.cached - self.expected


def expected_balance(account) -> Decimal:
    """Balance recomputed from every posted line on the account."""
    agg = JournalEntryLine.objects.filter(
        account=account, entry__status=EntryStatus.POSTED
    ).aggregate(
        debit=models.Sum("debit"),
        credit=models.Sum("credit"),
    )
    # If nothing was posted, Django returns None → so fallback to 0
    return balance_delta(account.account_type, agg["debit"], agg["credit"])


def reconcile_balances(business_unit, repair=False):
    """
    Compare each account's cached balance with its posted lines.
    Returns the accounts that drifted. With repair=True the cached
    balance is overwritten with the recomputed one.
    """
    drifts = []
    for account in GlAccount.objects.for_business_unit(business_unit):
        expected = expected_balance(account)
        if account.balance != expected:
            drift = BalanceDrift(account.pk, account.code, account.balance, expected)
            drifts.append(drift)
            logger.error(
                "Balance drift on account %s (%s): cached=%s expected=%s",
                account.code,
                business_unit,
                account.balance,
                expected,
                extra={"business_unit_id": business_unit.pk, "account_id": account.pk},
            )
            if repair:
                GlAccount.objects.filter(pk=account.pk).update(balance=expected)
                logger.warning("Repaired balance of account %s to %s", account.code, expected)
    return drifts
