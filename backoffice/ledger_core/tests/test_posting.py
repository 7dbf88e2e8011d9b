import datetime
from decimal import Decimal
from unittest import mock

import pytest
from django.core.exceptions import ValidationError
from django.test import TestCase

from ledger_core.exceptions import (EntryAlreadyPosted, InsufficientLines,
                                    InvalidLineAmount, InvalidLineInput,
                                    PeriodClosedOrMissing, UnbalancedEntry,
                                    UnknownAccount)
from ledger_core.models import (AccountingPeriod, AccountType, AuditLog,
                                EntryStatus, JournalEntry, JournalEntryLine)
from ledger_core.services import (LineInput, balance_delta, close_period,
                                  delete_entry, draft_entry, post_draft,
                                  post_entry, to_amount)

from .helpers import (balance, cash_sale, make_business_unit, make_january,
                      make_member)

JAN_15 = datetime.date(2025, 1, 15)


class PostEntrySuccessTests(TestCase):

    def setUp(self):
        self.bu = make_business_unit()
        self.period = make_january(self.bu)
        self.user = make_member(self.bu)

    """ Posting a cash sale moves both balances and takes JE-1 """
    def test_post_entry_updates_balances(self):
        entry = post_entry(self.bu, JAN_15, cash_sale("500.00"), author=self.user)

        entry.refresh_from_db()
        self.assertEqual(entry.doc_num, "JE-1")
        self.assertEqual(entry.status, EntryStatus.POSTED)
        self.assertIsNotNone(entry.posted_at)
        self.assertEqual(entry.accounting_period, self.period)
        self.assertEqual(entry.lines.count(), 2)

        # ASSET grows with debit, REVENUE grows with credit
        self.assertEqual(balance(self.bu, "1000"), Decimal("500.00"))
        self.assertEqual(balance(self.bu, "4000"), Decimal("500.00"))

    def test_document_numbers_are_sequential(self):
        first = post_entry(self.bu, JAN_15, cash_sale("500.00"))
        second = post_entry(self.bu, JAN_15, cash_sale("120.00"))

        self.assertEqual(first.doc_num, "JE-1")
        self.assertEqual(second.doc_num, "JE-2")
        self.assertEqual(balance(self.bu, "1000"), Decimal("620.00"))

    def test_expense_paid_in_cash_lowers_cash(self):
        post_entry(self.bu, JAN_15, cash_sale("500.00"))
        post_entry(
            self.bu,
            JAN_15,
            [LineInput("5000", debit="200.00"), LineInput("1000", credit="200.00")],
        )

        self.assertEqual(balance(self.bu, "1000"), Decimal("300.00"))
        self.assertEqual(balance(self.bu, "5000"), Decimal("200.00"))

    def test_lines_as_dicts_are_accepted(self):
        # API payload shape
        entry = post_entry(
            self.bu,
            JAN_15,
            [
                {"account_code": "1000", "debit": "75.50", "description": "Lunch"},
                {"account_code": "4000", "credit": 75.5},
            ],
        )
        debit, credit = entry.compute_totals()
        self.assertEqual(debit, Decimal("75.50"))
        self.assertEqual(credit, Decimal("75.50"))
        self.assertTrue(entry.is_balanced())

    def test_period_boundaries_are_inclusive(self):
        first = post_entry(self.bu, datetime.date(2025, 1, 1), cash_sale("10.00"))
        last = post_entry(self.bu, datetime.date(2025, 1, 31), cash_sale("10.00"))
        self.assertEqual(first.accounting_period, self.period)
        self.assertEqual(last.accounting_period, self.period)

    def test_posting_writes_audit_log(self):
        entry = post_entry(self.bu, JAN_15, cash_sale(), author=self.user)

        log = AuditLog.objects.get(object_type="JournalEntry", object_id=str(entry.pk))
        self.assertEqual(log.action, "post")
        self.assertEqual(log.user, self.user)
        self.assertEqual(log.business_unit, self.bu)
        self.assertEqual(log.changes["doc_num"], "JE-1")


""" Failure tests """
class PostEntryFailureTests(TestCase):

    def setUp(self):
        self.bu = make_business_unit()
        self.period = make_january(self.bu)

    def assertNothingPosted(self):
        self.assertFalse(JournalEntry.objects.exists())
        self.assertFalse(JournalEntryLine.objects.exists())
        self.assertEqual(balance(self.bu, "1000"), Decimal("0.00"))
        self.assertEqual(balance(self.bu, "4000"), Decimal("0.00"))

    """ Test for Unbalanced Entry """
    def test_unbalanced_entry_is_rejected(self):
        with self.assertRaises(UnbalancedEntry) as cm:
            post_entry(
                self.bu,
                JAN_15,
                [LineInput("1000", debit="500.00"), LineInput("4000", credit="400.00")],
            )
        self.assertEqual(cm.exception.code, "unbalanced_entry")
        self.assertNothingPosted()

    def test_failed_post_does_not_consume_a_number(self):
        with self.assertRaises(UnbalancedEntry):
            post_entry(
                self.bu,
                JAN_15,
                [LineInput("1000", debit="1.00"), LineInput("4000", credit="2.00")],
            )
        with self.assertRaises(PeriodClosedOrMissing):
            post_entry(self.bu, datetime.date(2025, 3, 1), cash_sale())

        # the next good posting still gets the first number
        entry = post_entry(self.bu, JAN_15, cash_sale())
        self.assertEqual(entry.doc_num, "JE-1")

    def test_single_line_is_rejected(self):
        with self.assertRaises(InsufficientLines):
            post_entry(self.bu, JAN_15, [LineInput("1000", debit="10.00")])
        self.assertNothingPosted()

    def test_line_count_checked_before_accounts(self):
        # one unknown line: the line count fails first
        with self.assertRaises(InsufficientLines):
            post_entry(self.bu, JAN_15, [LineInput("9999", debit="10.00")])

    def test_unknown_account_is_rejected(self):
        with self.assertRaises(UnknownAccount) as cm:
            post_entry(
                self.bu,
                JAN_15,
                [LineInput("1000", debit="10.00"), LineInput("9999", credit="10.00")],
            )
        self.assertIn("9999", str(cm.exception))
        self.assertNothingPosted()

    def test_negative_amount_is_rejected(self):
        with self.assertRaises(InvalidLineAmount):
            post_entry(
                self.bu,
                JAN_15,
                [LineInput("1000", debit="-10.00"), LineInput("4000", credit="-10.00")],
            )
        self.assertNothingPosted()

    def test_line_without_amount_is_rejected(self):
        with self.assertRaises(InvalidLineAmount):
            post_entry(
                self.bu,
                JAN_15,
                [
                    LineInput("1000", debit="10.00"),
                    LineInput("4000", credit="10.00"),
                    LineInput("5000"),
                ],
            )

    def test_garbage_amount_is_rejected(self):
        with self.assertRaises(InvalidLineAmount):
            post_entry(
                self.bu,
                JAN_15,
                [{"account_code": "1000", "debit": "ten"}, {"account_code": "4000", "credit": "10"}],
            )

    def test_bad_amount_on_single_line_fails_line_count_first(self):
        with self.assertRaises(InsufficientLines):
            post_entry(self.bu, JAN_15, [{"account_code": "1000", "debit": "abc"}])

    def test_bad_amount_on_unknown_account_fails_account_first(self):
        with self.assertRaises(UnknownAccount):
            post_entry(
                self.bu,
                JAN_15,
                [{"account_code": "9999", "debit": "abc"}, {"account_code": "4000", "credit": "10"}],
            )

    def test_non_object_lines_are_rejected(self):
        with self.assertRaises(InvalidLineInput):
            post_entry(self.bu, JAN_15, ["x", "y"])
        with self.assertRaises(InvalidLineInput):
            post_entry(self.bu, JAN_15, "1000,4000")
        self.assertNothingPosted()

    """ A difference of one full cent is outside the tolerance """
    def test_difference_of_exactly_one_cent_is_rejected(self):
        with self.assertRaises(UnbalancedEntry):
            post_entry(
                self.bu,
                JAN_15,
                [LineInput("1000", debit="100.01"), LineInput("4000", credit="100.00")],
            )
        self.assertNothingPosted()

    def test_entry_that_rounds_to_unbalanced_cents_is_rejected(self):
        # 0.009 apart as given, 100.01 vs 100.00 once stored
        with self.assertRaises(UnbalancedEntry):
            post_entry(
                self.bu,
                JAN_15,
                [LineInput("1000", debit="100.009"), LineInput("4000", credit="100.00")],
            )
        self.assertNothingPosted()

    def test_date_outside_any_period_is_rejected(self):
        with self.assertRaises(PeriodClosedOrMissing):
            post_entry(self.bu, datetime.date(2025, 2, 1), cash_sale())
        self.assertNothingPosted()

    """ Jan 2025 closed, a later post on the 20th must fail """
    def test_closed_period_rejects_posting(self):
        post_entry(self.bu, JAN_15, cash_sale("500.00"))
        self.assertTrue(close_period(self.period.pk).success)

        with self.assertRaises(PeriodClosedOrMissing):
            post_entry(self.bu, datetime.date(2025, 1, 20), cash_sale("50.00"))

        # the earlier posting is untouched
        self.assertEqual(balance(self.bu, "1000"), Decimal("500.00"))
        self.assertEqual(JournalEntry.objects.count(), 1)


class BalanceToleranceTests(TestCase):

    def setUp(self):
        self.bu = make_business_unit()
        self.period = make_january(self.bu)

    def test_sub_cent_difference_is_accepted(self):
        entry = post_entry(
            self.bu,
            JAN_15,
            [LineInput("1000", debit="100.004"), LineInput("4000", credit="100.00")],
        )
        self.assertTrue(entry.is_balanced())
        self.assertEqual(balance(self.bu, "1000"), Decimal("100.00"))
        self.assertEqual(balance(self.bu, "4000"), Decimal("100.00"))

    def test_fractional_split_that_balances_as_given_is_posted(self):
        entry = post_entry(
            self.bu,
            JAN_15,
            [
                LineInput("1000", debit="33.333"),
                LineInput("1000", debit="33.333"),
                LineInput("1000", debit="33.334"),
                LineInput("4000", credit="100.00"),
            ],
        )
        debits = [line.debit for line in entry.lines.order_by("line_no")]
        # the leftover cent lands on the largest line
        self.assertListEqual(debits[:3], [Decimal("33.33"), Decimal("33.33"), Decimal("33.34")])
        self.assertTrue(entry.is_balanced())
        self.assertEqual(balance(self.bu, "1000"), Decimal("100.00"))

        # the stored entry does not hold up a close
        self.assertTrue(close_period(self.period.pk).success)


class PostedEntryImmutabilityTests(TestCase):

    def setUp(self):
        self.bu = make_business_unit()
        make_january(self.bu)
        self.entry = post_entry(self.bu, JAN_15, cash_sale("500.00"))

    def test_posting_date_cannot_change(self):
        self.entry.posting_date = datetime.date(2025, 1, 16)
        with self.assertRaises(ValidationError):
            self.entry.save()

    def test_entry_cannot_be_unposted(self):
        self.entry.status = EntryStatus.DRAFT
        with self.assertRaises(ValidationError):
            self.entry.save()

    def test_lines_cannot_be_added_or_removed(self):
        with self.assertRaises(ValidationError):
            JournalEntryLine.objects.create(
                entry=self.entry,
                account=self.entry.lines.first().account,
                debit=Decimal("1.00"),
            )
        with self.assertRaises(ValidationError):
            self.entry.lines.first().delete()
        self.assertEqual(self.entry.lines.count(), 2)


class DraftEntryTests(TestCase):

    def setUp(self):
        self.bu = make_business_unit()
        self.period = make_january(self.bu)
        self.author = make_member(self.bu, username="author")
        self.approver = make_member(self.bu, username="approver")

    def test_draft_has_no_balance_effect(self):
        draft = draft_entry(self.bu, JAN_15, cash_sale("80.00"), author=self.author)

        self.assertEqual(draft.status, EntryStatus.DRAFT)
        self.assertIsNone(draft.accounting_period)
        self.assertEqual(draft.lines.count(), 2)
        self.assertEqual(balance(self.bu, "1000"), Decimal("0.00"))

    def test_draft_may_sit_outside_any_period(self):
        draft = draft_entry(self.bu, datetime.date(2025, 6, 1), cash_sale("80.00"))
        self.assertEqual(draft.status, EntryStatus.DRAFT)

    def test_post_draft_applies_balances(self):
        draft = draft_entry(self.bu, JAN_15, cash_sale("80.00"), author=self.author)

        entry = post_draft(draft.pk, user=self.approver)

        entry.refresh_from_db()
        self.assertTrue(entry.is_posted)
        self.assertEqual(entry.approver, self.approver)
        self.assertEqual(entry.accounting_period, self.period)
        self.assertEqual(balance(self.bu, "1000"), Decimal("80.00"))
        self.assertEqual(balance(self.bu, "4000"), Decimal("80.00"))

    def test_post_draft_twice_fails(self):
        draft = draft_entry(self.bu, JAN_15, cash_sale("80.00"))
        post_draft(draft.pk)

        with self.assertRaises(EntryAlreadyPosted):
            post_draft(draft.pk)
        # applied once only
        self.assertEqual(balance(self.bu, "1000"), Decimal("80.00"))

    def test_draft_outside_period_cannot_be_posted(self):
        draft = draft_entry(self.bu, datetime.date(2025, 6, 1), cash_sale("80.00"))
        with self.assertRaises(PeriodClosedOrMissing):
            post_draft(draft.pk)

        draft.refresh_from_db()
        self.assertEqual(draft.status, EntryStatus.DRAFT)

    def test_draft_in_closed_period_is_refused(self):
        close_period(self.period.pk)
        with self.assertRaises(PeriodClosedOrMissing):
            draft_entry(self.bu, JAN_15, cash_sale("80.00"))

    def test_draft_locks_its_period_row(self):
        with mock.patch.object(
            AccountingPeriod.objects, "select_for_update",
            wraps=AccountingPeriod.objects.select_for_update,
        ) as lock:
            draft_entry(self.bu, JAN_15, cash_sale())
        lock.assert_called_once_with()

    def test_draft_outside_periods_locks_nothing(self):
        with mock.patch.object(
            AccountingPeriod.objects, "select_for_update",
            wraps=AccountingPeriod.objects.select_for_update,
        ) as lock:
            draft_entry(self.bu, datetime.date(2025, 6, 1), cash_sale())
        lock.assert_not_called()


class DeleteEntryTests(TestCase):

    def setUp(self):
        self.bu = make_business_unit()
        self.period = make_january(self.bu)

    def test_delete_posted_entry_reverses_balances(self):
        entry = post_entry(self.bu, JAN_15, cash_sale("500.00"))
        keep = post_entry(self.bu, JAN_15, cash_sale("20.00"))

        delete_entry(entry.pk)

        self.assertFalse(JournalEntry.objects.filter(pk=entry.pk).exists())
        self.assertFalse(JournalEntryLine.objects.filter(entry_id=entry.pk).exists())
        self.assertTrue(JournalEntry.objects.filter(pk=keep.pk).exists())
        self.assertEqual(balance(self.bu, "1000"), Decimal("20.00"))
        self.assertEqual(balance(self.bu, "4000"), Decimal("20.00"))
        self.assertTrue(
            AuditLog.objects.filter(action="delete", object_id=str(entry.pk)).exists()
        )

    def test_delete_draft_leaves_balances_alone(self):
        post_entry(self.bu, JAN_15, cash_sale("500.00"))
        draft = draft_entry(self.bu, JAN_15, cash_sale("30.00"))

        delete_entry(draft.pk)

        self.assertEqual(balance(self.bu, "1000"), Decimal("500.00"))

    def test_delete_in_closed_period_is_refused(self):
        entry = post_entry(self.bu, JAN_15, cash_sale("500.00"))
        close_period(self.period.pk)

        with self.assertRaises(PeriodClosedOrMissing):
            delete_entry(entry.pk)
        self.assertTrue(JournalEntry.objects.filter(pk=entry.pk).exists())
        self.assertEqual(balance(self.bu, "1000"), Decimal("500.00"))

    def test_orm_delete_in_closed_period_is_refused(self):
        entry = post_entry(self.bu, JAN_15, cash_sale("500.00"))
        close_period(self.period.pk)

        with self.assertRaises(PeriodClosedOrMissing):
            entry.delete()


""" Pure helpers, no database needed """
@pytest.mark.parametrize(
    "account_type, debit, credit, expected",
    [
        (AccountType.ASSET, "100", "0", "100"),
        (AccountType.ASSET, "0", "40", "-40"),
        (AccountType.EXPENSE, "25", "0", "25"),
        (AccountType.LIABILITY, "0", "100", "100"),
        (AccountType.EQUITY, "10", "0", "-10"),
        (AccountType.REVENUE, "0", "500", "500"),
    ],
)
def test_balance_delta_sign_convention(account_type, debit, credit, expected):
    assert balance_delta(account_type, Decimal(debit), Decimal(credit)) == Decimal(expected)


def test_to_amount_rounds_to_cents():
    assert to_amount("10.005") == Decimal("10.01")
    assert to_amount(None) == Decimal("0.00")
    with pytest.raises(InvalidLineAmount):
        to_amount("NaN")
