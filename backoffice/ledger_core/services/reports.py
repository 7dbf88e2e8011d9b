from dataclasses import dataclass
from decimal import Decimal
from ..models import GlAccount

ZERO = Decimal("0.00")


@dataclass
class TrialBalanceRow:
    code: str
    name: str
    account_type: str
    debit: Decimal
    credit: Decimal

    def as_dict(self):
        return {
            "code": self.code,
            "name": self.name,
            "account_type": self.account_type,
            "debit": str(self.debit),
            "credit": str(self.credit),
        }


def trial_balance(business_unit):
    """
    One row per account from the cached balances.
    Debit-normal accounts show in the debit column, the rest in credit;
    a negative balance moves to the opposite column.
    Returns (rows, total_debit, total_credit).
    """
    rows = []
    total_debit = ZERO
    total_credit = ZERO
    for account in GlAccount.objects.for_business_unit(business_unit).order_by("code"):
        debit, credit = ZERO, ZERO
        if account.is_debit_normal:
            if account.balance >= 0:
                debit = account.balance
            else:
                credit = -account.balance
        else:
            if account.balance >= 0:
                credit = account.balance
            else:
                debit = -account.balance
        rows.append(TrialBalanceRow(account.code, account.name, account.account_type, debit, credit))
        total_debit += debit
        total_credit += credit
    return rows, total_debit, total_credit
