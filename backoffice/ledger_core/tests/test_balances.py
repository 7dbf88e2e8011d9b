import datetime
from decimal import Decimal
from io import StringIO

import pytest
from django.core.management import call_command
from django.test import TestCase

from ledger_core.models import BusinessUnit, GlAccount
from ledger_core.services import (apply_line_effects, expected_balance,
                                  post_entry, reconcile_balances,
                                  trial_balance)
from ledger_core.tasks import (reconcile_account_balances,
                               reconcile_all_business_units)

from .helpers import (balance, cash_sale, make_business_unit, make_january)

JAN_15 = datetime.date(2025, 1, 15)


class BalanceReconciliationTests(TestCase):

    def setUp(self):
        self.bu = make_business_unit()
        make_january(self.bu)
        self.entry = post_entry(self.bu, JAN_15, cash_sale("500.00"))

    def _tamper(self, code, value):
        GlAccount.objects.filter(business_unit=self.bu, code=code).update(balance=Decimal(value))

    def test_cached_balances_match_posted_lines(self):
        self.assertEqual(reconcile_balances(self.bu), [])
        cash = GlAccount.objects.get(business_unit=self.bu, code="1000")
        self.assertEqual(expected_balance(cash), Decimal("500.00"))

    def test_drift_is_reported_not_repaired(self):
        self._tamper("1000", "450.00")

        drifts = reconcile_balances(self.bu)

        self.assertEqual(len(drifts), 1)
        self.assertEqual(drifts[0].code, "1000")
        self.assertEqual(drifts[0].difference, Decimal("-50.00"))
        self.assertEqual(balance(self.bu, "1000"), Decimal("450.00"))

    def test_repair_restores_balance(self):
        self._tamper("4000", "1.00")

        reconcile_balances(self.bu, repair=True)

        self.assertEqual(balance(self.bu, "4000"), Decimal("500.00"))
        self.assertEqual(reconcile_balances(self.bu), [])

    def test_reverse_takes_effect_back(self):
        lines = list(self.entry.lines.select_related("account"))
        deltas = apply_line_effects(lines, reverse=True)

        self.assertEqual(sorted(deltas.values()), [Decimal("-500.00"), Decimal("-500.00")])
        self.assertEqual(balance(self.bu, "1000"), Decimal("0.00"))
        self.assertEqual(balance(self.bu, "4000"), Decimal("0.00"))

    def test_task_reports_drift(self):
        self._tamper("1000", "0.00")

        result = reconcile_account_balances(self.bu.pk)

        self.assertEqual(result["business_unit_id"], self.bu.pk)
        self.assertFalse(result["repaired"])
        self.assertEqual(
            result["drifted"], [{"code": "1000", "cached": "0.00", "expected": "500.00"}]
        )

    def test_fan_out_runs_every_business_unit(self):
        make_business_unit(name="Other", slug="other", chart=[])
        self._tamper("1000", "0.00")

        # tasks run eagerly under tests
        count = reconcile_all_business_units(repair=True)

        self.assertEqual(count, BusinessUnit.objects.count())
        self.assertEqual(balance(self.bu, "1000"), Decimal("500.00"))

    def test_management_command(self):
        self._tamper("1000", "7.00")
        out = StringIO()

        call_command("reconcile_balances", self.bu.slug, "--repair", stdout=out)

        self.assertIn("Repaired 1 drifted account(s)", out.getvalue())
        self.assertEqual(balance(self.bu, "1000"), Decimal("500.00"))


class TrialBalanceTests(TestCase):

    def test_trial_balance_totals_agree(self):
        bu = make_business_unit()
        make_january(bu)
        post_entry(bu, JAN_15, cash_sale("500.00"))
        post_entry(
            bu,
            JAN_15,
            [{"account_code": "5000", "debit": "120"}, {"account_code": "1000", "credit": "120"}],
        )

        rows, total_debit, total_credit = trial_balance(bu)

        by_code = {row.code: row for row in rows}
        self.assertEqual(by_code["1000"].debit, Decimal("380.00"))
        self.assertEqual(by_code["4000"].credit, Decimal("500.00"))
        self.assertEqual(by_code["5000"].debit, Decimal("120.00"))
        self.assertEqual(total_debit, Decimal("500.00"))
        self.assertEqual(total_credit, total_debit)

    def test_negative_balance_moves_column(self):
        bu = make_business_unit()
        make_january(bu)
        # cash overdrawn
        post_entry(
            bu,
            JAN_15,
            [{"account_code": "5000", "debit": "40"}, {"account_code": "1000", "credit": "40"}],
        )
        rows, _, _ = trial_balance(bu)
        cash = next(row for row in rows if row.code == "1000")
        self.assertEqual(cash.debit, Decimal("0.00"))
        self.assertEqual(cash.credit, Decimal("40.00"))


@pytest.mark.django_db
def test_demo_tenant_books_are_consistent():
    out = StringIO()
    call_command("create_demo_tenant", name="Test Diner", username="tester", stdout=out)

    bu = BusinessUnit.objects.get(name="Test Diner")
    rows, total_debit, total_credit = trial_balance(bu)
    assert total_debit == total_credit
    assert reconcile_balances(bu) == []
    assert bu.journal_entries.count() == 3

    # running it again leaves the ledger alone
    call_command("create_demo_tenant", name="Test Diner", username="tester", stdout=out)
    assert bu.journal_entries.count() == 3
