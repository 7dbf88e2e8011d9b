import datetime
from decimal import Decimal

from django.test import TestCase

from ledger_core.exceptions import PeriodClosedOrMissing, PeriodNotCloseable
from ledger_core.models import (AuditLog, EntryStatus, GlAccount, JournalEntry,
                                JournalEntryLine, PeriodStatus)
from ledger_core.services import (close_period, draft_entry, post_draft,
                                  post_entry, post_incoming_payment,
                                  reconcile_payment, validate_period)

from .helpers import (cash_sale, make_bank, make_business_unit, make_january,
                      make_member)

JAN_15 = datetime.date(2025, 1, 15)


class ValidatePeriodTests(TestCase):

    def setUp(self):
        self.bu = make_business_unit()
        self.period = make_january(self.bu)

    def test_empty_open_period_can_close(self):
        validation = validate_period(self.period.pk)
        self.assertTrue(validation.is_valid)
        self.assertTrue(validation.can_close)
        self.assertEqual(validation.errors, [])
        self.assertEqual(validation.warnings, [])

    def test_validation_changes_nothing(self):
        draft_entry(self.bu, JAN_15, cash_sale())
        validate_period(self.period.pk)

        self.period.refresh_from_db()
        self.assertEqual(self.period.status, PeriodStatus.OPEN)
        self.assertFalse(AuditLog.objects.filter(action="close").exists())

    def test_drafts_are_errors(self):
        draft_entry(self.bu, JAN_15, cash_sale())
        draft_entry(self.bu, datetime.date(2025, 1, 20), cash_sale())

        validation = validate_period(self.period.pk)
        self.assertFalse(validation.is_valid)
        self.assertIn("Found 2 unposted (draft) journal entries in this period.", validation.errors)

    def test_unreconciled_payments_are_warnings(self):
        bank = make_bank(self.bu)
        payment = post_incoming_payment(self.bu, "C001", JAN_15, Decimal("25.00"), bank)

        validation = validate_period(self.period.pk)
        self.assertTrue(validation.can_close)
        self.assertEqual(len(validation.warnings), 1)
        self.assertIn("incoming", validation.warnings[0])

        reconcile_payment(payment)
        self.assertEqual(validate_period(self.period.pk).warnings, [])

    def test_unbalanced_posted_entry_is_an_error(self):
        # written around the posting engine
        entry = JournalEntry.objects.create(
            business_unit=self.bu, doc_num="X-1", posting_date=JAN_15,
            status=EntryStatus.POSTED, accounting_period=self.period,
        )
        JournalEntryLine.objects.bulk_create([
            JournalEntryLine(entry=entry, line_no=1, account=GlAccount.objects.get(code="1000"),
                             debit=Decimal("100.00")),
            JournalEntryLine(entry=entry, line_no=2, account=GlAccount.objects.get(code="4000"),
                             credit=Decimal("90.00")),
        ])

        validation = validate_period(self.period.pk)
        self.assertFalse(validation.can_close)
        self.assertTrue(any("X-1" in error for error in validation.errors))
        self.assertTrue(any("do not balance" in error for error in validation.errors))

    def test_as_dict(self):
        payload = validate_period(self.period.pk).as_dict()
        self.assertEqual(payload["period_id"], self.period.pk)
        self.assertTrue(payload["can_close"])


class ClosePeriodTests(TestCase):

    def setUp(self):
        self.bu = make_business_unit()
        self.period = make_january(self.bu)
        self.user = make_member(self.bu)

    def test_close_open_period(self):
        post_entry(self.bu, JAN_15, cash_sale("500.00"))

        result = close_period(self.period.pk, user=self.user)

        self.assertTrue(result.success)
        self.period.refresh_from_db()
        self.assertEqual(self.period.status, PeriodStatus.CLOSED)
        self.assertIsNotNone(self.period.closed_at)
        self.assertEqual(self.period.closed_by, self.user)
        log = AuditLog.objects.get(action="close")
        self.assertEqual(log.object_id, str(self.period.pk))

    def test_close_is_idempotent(self):
        first = close_period(self.period.pk)
        second = close_period(self.period.pk)

        self.assertTrue(first.success)
        self.assertTrue(second.success)
        self.assertIn("already closed", second.message)
        # only one real close happened
        self.assertEqual(AuditLog.objects.filter(action="close").count(), 1)

    def test_drafts_block_close(self):
        draft = draft_entry(self.bu, JAN_15, cash_sale())

        result = close_period(self.period.pk)

        self.assertFalse(result.success)
        self.assertEqual(result.code, PeriodNotCloseable.code)
        self.assertIn("unposted (draft)", result.error)
        self.period.refresh_from_db()
        self.assertEqual(self.period.status, PeriodStatus.OPEN)

        # post the draft and try again
        post_draft(draft.pk)
        self.assertTrue(close_period(self.period.pk).success)

    def test_unreconciled_payment_does_not_block_close(self):
        bank = make_bank(self.bu)
        post_incoming_payment(self.bu, "C001", JAN_15, Decimal("25.00"), bank)

        result = close_period(self.period.pk)
        self.assertTrue(result.success)

    def test_posting_after_close_fails(self):
        close_period(self.period.pk)
        with self.assertRaises(PeriodClosedOrMissing):
            post_entry(self.bu, datetime.date(2025, 1, 20), cash_sale())

    def test_result_as_dict(self):
        draft_entry(self.bu, JAN_15, cash_sale())
        payload = close_period(self.period.pk).as_dict()
        self.assertEqual(payload["success"], False)
        self.assertEqual(payload["code"], "period_not_closeable")
