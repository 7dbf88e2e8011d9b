import datetime
from django.contrib.auth import get_user_model
from ledger_core.models import BankAccount, BusinessUnit, GlAccount, Membership
from ledger_core.services import LineInput, create_account, create_period

User = get_user_model()

# small restaurant chart used across the tests
CHART = [
    ("1000", "Cash", "ASSET"),
    ("1010", "Operating Bank", "ASSET"),
    ("1200", "Accounts Receivable", "ASSET"),
    ("2000", "Accounts Payable", "LIABILITY"),
    ("3000", "Owner's Equity", "EQUITY"),
    ("4000", "Sales Revenue", "REVENUE"),
    ("4100", "Beverage Sales", "REVENUE"),
    ("5000", "Food Cost", "EXPENSE"),
]

JAN_START = datetime.date(2025, 1, 1)
JAN_END = datetime.date(2025, 1, 31)


def make_business_unit(name="Test Bistro", slug="test-bistro", chart=CHART):
    business_unit = BusinessUnit.objects.create(name=name, slug=slug)
    for code, account_name, account_type in chart:
        create_account(business_unit, code, account_name, account_type)
    return business_unit


def make_january(business_unit, name="Jan 2025"):
    return create_period(business_unit, name, JAN_START, JAN_END)


def make_member(business_unit, username="alice", role="accountant"):
    user = User.objects.create_user(username=username, password="pw")
    Membership.objects.create(user=user, business_unit=business_unit, role=role)
    user.default_business_unit = business_unit
    user.save(update_fields=["default_business_unit"])
    return user


def make_bank(business_unit, gl_code="1010"):
    return BankAccount.objects.create(
        business_unit=business_unit,
        name="Operating Account",
        gl_account=GlAccount.objects.get(business_unit=business_unit, code=gl_code),
    )


def balance(business_unit, code):
    return GlAccount.objects.get(business_unit=business_unit, code=code).balance


def cash_sale(amount="500.00"):
    """Dr Cash / Cr Sales Revenue."""
    return [
        LineInput("1000", debit=amount, description="Till takings"),
        LineInput("4000", credit=amount),
    ]
