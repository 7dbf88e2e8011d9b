import logging
from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal
from django.db import transaction
from django.db.models import F
from ..exceptions import (EntryHasPayments, InsufficientLines,
                          InvalidLineAmount, InvalidLineInput,
                          InvalidPaymentAmount, UnknownAccount)
from ..models import (AccountType, ApInvoice, ApInvoiceLine, ArInvoice,
                      ArInvoiceLine, DocumentType, GlAccount, IncomingPayment,
                      OutgoingPayment)
from .audit_helper import log_action
from .numbering import next_doc_number
from .posting import LineInput, delete_entry, post_entry, retry_on_conflict, to_amount

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")


@dataclass
class InvoiceItem:
    account_code: str
    amount: Decimal
    description: str = ""


def _coerce_item(item) -> InvoiceItem:
    if isinstance(item, Mapping):
        item = InvoiceItem(
            account_code=item.get("account_code"),
            amount=item.get("amount"),
            description=item.get("description") or "",
        )
    elif not isinstance(item, InvoiceItem):
        raise InvalidLineInput(f"Invoice item must be an object, got {type(item).__name__}.")
    amount = to_amount(item.amount)
    if amount <= 0:
        raise InvalidLineAmount(f"Invoice item for account {item.account_code} must be positive.")
    return InvoiceItem(str(item.account_code), amount, item.description or "")


def _control_account(business_unit, account_type, name_hint):
    """
    AR / AP control account of a business unit: an account of the right
    type whose name mentions Receivable / Payable, control accounts first.
    """
    account = (
        GlAccount.objects.for_business_unit(business_unit)
        .filter(account_type=account_type, name__icontains=name_hint)
        .order_by("-is_control_account", "code")
        .first()
    )
    if account is None:
        raise UnknownAccount(
            f"No {account_type} account named '{name_hint}' configured for {business_unit}."
        )
    return account


def receivable_account(business_unit):
    return _control_account(business_unit, AccountType.ASSET, "Receivable")


def payable_account(business_unit):
    return _control_account(business_unit, AccountType.LIABILITY, "Payable")


def _prepare_items(business_unit, items):
    items = [_coerce_item(item) for item in items]
    if not items:
        raise InsufficientLines("Invoice must have at least one item.")
    codes = {item.account_code for item in items}
    accounts = {
        a.code: a for a in GlAccount.objects.for_business_unit(business_unit).filter(code__in=codes)
    }
    for item in items:
        if item.account_code not in accounts:
            raise UnknownAccount(f"GL account {item.account_code} not found.")
    return [(item, accounts[item.account_code]) for item in items]


# ----------------------------
# Invoices
# ----------------------------
@retry_on_conflict
def post_ar_invoice(
    business_unit, bp_code, posting_date, items, author=None, due_date=None, remarks=None
):
    """
    Sales invoice. Produces:
      Debit: Accounts Receivable = invoice total
      Credit: Revenue accounts = amount per item
    """
    prepared = _prepare_items(business_unit, items)
    total = sum((item.amount for item, _ in prepared), ZERO)

    with transaction.atomic():
        ar_account = receivable_account(business_unit)
        doc_num = next_doc_number(business_unit, DocumentType.AR_INVOICE)
        invoice = ArInvoice.objects.create(
            business_unit=business_unit,
            doc_num=doc_num,
            bp_code=bp_code,
            posting_date=posting_date,
            due_date=due_date,
            remarks=remarks,
            total_amount=total,
        )
        ArInvoiceLine.objects.bulk_create(
            ArInvoiceLine(invoice=invoice, account=account, amount=item.amount,
                          description=item.description or None)
            for item, account in prepared
        )

        lines = [LineInput(ar_account.code, debit=total, description=f"A/R {bp_code}")]
        lines += [
            LineInput(item.account_code, credit=item.amount, description=item.description)
            for item, _ in prepared
        ]
        invoice.journal_entry = post_entry(
            business_unit,
            posting_date,
            lines,
            author=author,
            remarks=f"A/R Invoice {doc_num}",
            source_type="ar_invoice",
            source_id=invoice.pk,
        )
        invoice.save(update_fields=["journal_entry"])
        log_action(action="post", instance=invoice, user=author, changes={"total": str(total)})

    logger.info("Posted A/R invoice %s for %s (%s)", doc_num, bp_code, total,
                extra={"business_unit_id": business_unit.pk, "invoice_id": invoice.pk})
    return invoice


@retry_on_conflict
def post_ap_invoice(
    business_unit, bp_code, posting_date, items, author=None, due_date=None, remarks=None
):
    """
    Supplier invoice. Produces:
      Debit: Expense / asset accounts = amount per item
      Credit: Accounts Payable = invoice total
    """
    prepared = _prepare_items(business_unit, items)
    total = sum((item.amount for item, _ in prepared), ZERO)

    with transaction.atomic():
        ap_account = payable_account(business_unit)
        doc_num = next_doc_number(business_unit, DocumentType.AP_INVOICE)
        invoice = ApInvoice.objects.create(
            business_unit=business_unit,
            doc_num=doc_num,
            bp_code=bp_code,
            posting_date=posting_date,
            due_date=due_date,
            remarks=remarks,
            total_amount=total,
        )
        ApInvoiceLine.objects.bulk_create(
            ApInvoiceLine(invoice=invoice, account=account, amount=item.amount,
                          description=item.description or None)
            for item, account in prepared
        )

        lines = [
            LineInput(item.account_code, debit=item.amount, description=item.description)
            for item, _ in prepared
        ]
        lines.append(LineInput(ap_account.code, credit=total, description=f"A/P {bp_code}"))
        invoice.journal_entry = post_entry(
            business_unit,
            posting_date,
            lines,
            author=author,
            remarks=f"A/P Invoice {doc_num}",
            source_type="ap_invoice",
            source_id=invoice.pk,
        )
        invoice.save(update_fields=["journal_entry"])
        log_action(action="post", instance=invoice, user=author, changes={"total": str(total)})

    logger.info("Posted A/P invoice %s for %s (%s)", doc_num, bp_code, total,
                extra={"business_unit_id": business_unit.pk, "invoice_id": invoice.pk})
    return invoice


# ----------------------------
# Payments
# ----------------------------
def _payment_amount(amount, invoice_model, invoice, business_unit):
    """Validate the amount and lock the invoice it settles, if any."""
    try:
        amount = to_amount(amount)
    except InvalidLineAmount:
        raise InvalidPaymentAmount(f"'{amount}' is not a valid payment amount.")
    if amount <= 0:
        raise InvalidPaymentAmount("Payment amount must be positive.")
    if invoice is None:
        return amount, None

    locked = invoice_model.objects.select_for_update().get(pk=invoice.pk)
    if locked.business_unit_id != business_unit.pk:
        raise InvalidPaymentAmount("Invoice belongs to another business unit.")
    if amount > locked.outstanding_amount:
        raise InvalidPaymentAmount(
            f"Payment {amount} exceeds outstanding amount {locked.outstanding_amount} "
            f"of invoice {locked.doc_num}."
        )
    return amount, locked


def _check_bank_account(business_unit, bank_account):
    if bank_account.business_unit_id != business_unit.pk:
        raise UnknownAccount("Bank account not found for this business unit.")
    return bank_account.gl_account


@retry_on_conflict
def post_incoming_payment(
    business_unit, bp_code, payment_date, amount, bank_account, author=None, ar_invoice=None
):
    """Customer payment: Dr bank GL account, Cr Accounts Receivable."""
    bank_gl = _check_bank_account(business_unit, bank_account)

    with transaction.atomic():
        amount, invoice = _payment_amount(amount, ArInvoice, ar_invoice, business_unit)
        ar_account = receivable_account(business_unit)
        doc_num = next_doc_number(business_unit, DocumentType.INCOMING_PAYMENT)
        payment = IncomingPayment.objects.create(
            business_unit=business_unit,
            doc_num=doc_num,
            bp_code=bp_code,
            payment_date=payment_date,
            amount=amount,
            bank_account=bank_account,
            ar_invoice=invoice,
        )
        payment.journal_entry = post_entry(
            business_unit,
            payment_date,
            [
                LineInput(bank_gl.code, debit=amount, description=f"Receipt {bp_code}"),
                LineInput(ar_account.code, credit=amount, description=f"A/R {bp_code}"),
            ],
            author=author,
            remarks=f"Incoming Payment {doc_num}",
            source_type="incoming_payment",
            source_id=payment.pk,
        )
        payment.save(update_fields=["journal_entry"])
        if invoice is not None:
            ArInvoice.objects.filter(pk=invoice.pk).update(amount_paid=F("amount_paid") + amount)
        log_action(action="post", instance=payment, user=author, changes={"amount": str(amount)})

    logger.info("Recorded incoming payment %s from %s (%s)", doc_num, bp_code, amount,
                extra={"business_unit_id": business_unit.pk, "payment_id": payment.pk})
    return payment


@retry_on_conflict
def post_outgoing_payment(
    business_unit, bp_code, payment_date, amount, bank_account, author=None, ap_invoice=None
):
    """Supplier payment: Dr Accounts Payable, Cr bank GL account."""
    bank_gl = _check_bank_account(business_unit, bank_account)

    with transaction.atomic():
        amount, invoice = _payment_amount(amount, ApInvoice, ap_invoice, business_unit)
        ap_account = payable_account(business_unit)
        doc_num = next_doc_number(business_unit, DocumentType.OUTGOING_PAYMENT)
        payment = OutgoingPayment.objects.create(
            business_unit=business_unit,
            doc_num=doc_num,
            bp_code=bp_code,
            payment_date=payment_date,
            amount=amount,
            bank_account=bank_account,
            ap_invoice=invoice,
        )
        payment.journal_entry = post_entry(
            business_unit,
            payment_date,
            [
                LineInput(ap_account.code, debit=amount, description=f"A/P {bp_code}"),
                LineInput(bank_gl.code, credit=amount, description=f"Payment {bp_code}"),
            ],
            author=author,
            remarks=f"Outgoing Payment {doc_num}",
            source_type="outgoing_payment",
            source_id=payment.pk,
        )
        payment.save(update_fields=["journal_entry"])
        if invoice is not None:
            ApInvoice.objects.filter(pk=invoice.pk).update(amount_paid=F("amount_paid") + amount)
        log_action(action="post", instance=payment, user=author, changes={"amount": str(amount)})

    logger.info("Recorded outgoing payment %s to %s (%s)", doc_num, bp_code, amount,
                extra={"business_unit_id": business_unit.pk, "payment_id": payment.pk})
    return payment


def reconcile_payment(payment, user=None):
    """Tick a payment off against the bank statement."""
    if payment.is_reconciled:
        return payment
    payment.is_reconciled = True
    payment.save(update_fields=["is_reconciled"])
    log_action(action="reconcile", instance=payment, user=user)
    return payment


# ----------------------------
# Deletion
# ----------------------------
@retry_on_conflict
def delete_document(document, user=None):
    """
    Delete an invoice or payment together with its journal entry.
    Invoices with recorded payments stay; deleting a payment gives
    its amount back to the invoice it settled.
    """
    model = type(document)
    with transaction.atomic():
        document = model.objects.select_for_update().get(pk=document.pk)
        entry_id = document.journal_entry_id

        if isinstance(document, (ArInvoice, ApInvoice)) and document.has_payments:
            raise EntryHasPayments(f"Cannot delete invoice {document.doc_num} with payments.")

        invoice_field = {IncomingPayment: "ar_invoice", OutgoingPayment: "ap_invoice"}.get(model)
        if invoice_field and getattr(document, f"{invoice_field}_id"):
            invoice = getattr(document, invoice_field)
            type(invoice).objects.filter(pk=invoice.pk).update(
                amount_paid=F("amount_paid") - document.amount
            )

        log_action(action="delete", instance=document, user=user,
                   changes={"doc_num": document.doc_num})
        doc_num = document.doc_num
        business_unit_id = document.business_unit_id
        document.delete()  # invoice lines cascade
        if entry_id:
            delete_entry(entry_id, user=user)

    logger.info("Deleted %s %s", model.__name__, doc_num,
                extra={"business_unit_id": business_unit_id})
