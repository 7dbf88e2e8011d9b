import datetime
from calendar import monthrange
from decimal import Decimal
from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction
from django.utils import timezone
from django.utils.text import slugify
from ledger_core.models import BankAccount, BusinessUnit, GlAccount, Membership
from ledger_core.services import (LineInput, create_account, create_period,
                                  find_period_containing, post_ar_invoice,
                                  post_entry, post_incoming_payment)

User = get_user_model()

# A small restaurant chart of accounts
DEMO_CHART = [
    ("1000", "Cash on Hand", "ASSET", False),
    ("1010", "Operating Bank Account", "ASSET", False),
    ("1200", "Accounts Receivable", "ASSET", True),
    ("1300", "Food Inventory", "ASSET", False),
    ("2000", "Accounts Payable", "LIABILITY", True),
    ("3000", "Owner's Equity", "EQUITY", False),
    ("4000", "Food Sales", "REVENUE", False),
    ("4100", "Beverage Sales", "REVENUE", False),
    ("5000", "Cost of Goods Sold", "EXPENSE", False),
    ("6000", "Rent Expense", "EXPENSE", False),
]


class Command(BaseCommand):
    help = "Create a demo restaurant (business unit), user, chart of accounts and sample postings."

    def add_arguments(self, parser):
        parser.add_argument("--name", default="Demo Bistro", help="Business unit name.")
        parser.add_argument("--username", default="demo", help="Username for the demo user.")
        parser.add_argument("--password", default="demo123", help="Password for the demo user.")

    def _unique_slug(self, name, max_tries=100):
        base = slugify(name) or "business-unit"
        slug, i = base, 1
        while BusinessUnit.objects.filter(slug=slug).exists():
            slug = f"{base}-{i}"
            i += 1
            if i > max_tries:
                raise CommandError("Couldn't generate unique slug")
        return slug

    @transaction.atomic
    def handle(self, *args, **options):
        name = options["name"]

        # 1. Business unit and user
        business_unit = BusinessUnit.objects.filter(name=name).first()
        if business_unit is None:
            business_unit = BusinessUnit.objects.create(name=name, slug=self._unique_slug(name))
        self.stdout.write(self.style.SUCCESS(f"Business unit: {business_unit}"))

        user, created = User.objects.get_or_create(
            username=options["username"],
            defaults={"email": f"{options['username']}@example.com"},
        )
        if created:
            user.set_password(options["password"])
            user.save()
        Membership.objects.get_or_create(
            user=user, business_unit=business_unit, defaults={"role": "owner"}
        )
        user.default_business_unit = business_unit
        user.save(update_fields=["default_business_unit"])
        if business_unit.owner_id is None:
            business_unit.owner = user
            business_unit.save(update_fields=["owner"])
        self.stdout.write(self.style.SUCCESS(f"User: {user.username}"))

        # 2. Chart of accounts (existing codes are left alone)
        existing = set(
            GlAccount.objects.for_business_unit(business_unit).values_list("code", flat=True)
        )
        for code, account_name, account_type, control in DEMO_CHART:
            if code not in existing:
                create_account(business_unit, code, account_name, account_type,
                               is_control_account=control, user=user)
        self.stdout.write(self.style.SUCCESS(f"Chart of accounts: {len(DEMO_CHART)} accounts"))

        # 3. Current month as an open period
        today = timezone.localdate()
        if find_period_containing(business_unit, today) is None:
            start = today.replace(day=1)
            end = today.replace(day=monthrange(today.year, today.month)[1])
            create_period(business_unit, start.strftime("%b %Y"), start, end, user=user)
            self.stdout.write(self.style.SUCCESS(f"Opened period {start:%b %Y}"))

        # 4. Sample postings, only on a fresh ledger
        if business_unit.journal_entries.exists():
            self.stdout.write(self.style.NOTICE("Ledger already has entries, skipping samples"))
            return

        bank, _ = BankAccount.objects.get_or_create(
            business_unit=business_unit,
            name="Operating Account",
            defaults={"gl_account": GlAccount.objects.get(business_unit=business_unit, code="1010")},
        )
        post_entry(
            business_unit,
            today,
            [
                LineInput("1010", debit=Decimal("10000.00"), description="Owner contribution"),
                LineInput("3000", credit=Decimal("10000.00")),
            ],
            author=user,
            remarks="Opening capital",
        )
        invoice = post_ar_invoice(
            business_unit,
            "C-CATERING",
            today,
            [
                {"account_code": "4000", "amount": "850.00", "description": "Catering food"},
                {"account_code": "4100", "amount": "150.00", "description": "Catering drinks"},
            ],
            author=user,
            due_date=today + datetime.timedelta(days=30),
        )
        post_incoming_payment(
            business_unit, "C-CATERING", today, Decimal("400.00"), bank,
            author=user, ar_invoice=invoice,
        )
        self.stdout.write(self.style.SUCCESS("Posted sample journal entry, invoice and payment"))
