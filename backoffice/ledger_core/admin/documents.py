from django.contrib import admin
from ..models import ApInvoice, ArInvoice, BankAccount, IncomingPayment, OutgoingPayment
from ..services import delete_document
from .actions import reconcile_payments
from .inlines import ApInvoiceLineInline, ArInvoiceLineInline
from .mixins import TenantAdminMixin


class PostedDocumentAdmin(TenantAdminMixin, admin.ModelAdmin):
    """Invoices and payments are created by the document posters only."""

    def get_readonly_fields(self, request, obj=None):
        return [f.name for f in self.model._meta.concrete_fields]

    def has_add_permission(self, request):
        return False

    # deleting also reverses the journal entry
    def delete_model(self, request, obj):
        delete_document(obj, user=request.user)

    def delete_queryset(self, request, queryset):
        for document in queryset:
            delete_document(document, user=request.user)


@admin.register(ArInvoice)
class ArInvoiceAdmin(PostedDocumentAdmin):
    list_display = ("doc_num", "bp_code", "posting_date", "due_date", "total_amount", "amount_paid")
    search_fields = ("doc_num", "bp_code")
    inlines = [ArInvoiceLineInline]


@admin.register(ApInvoice)
class ApInvoiceAdmin(PostedDocumentAdmin):
    list_display = ("doc_num", "bp_code", "posting_date", "due_date", "total_amount", "amount_paid")
    search_fields = ("doc_num", "bp_code")
    inlines = [ApInvoiceLineInline]


@admin.register(IncomingPayment)
class IncomingPaymentAdmin(PostedDocumentAdmin):
    list_display = ("doc_num", "bp_code", "payment_date", "amount", "bank_account", "is_reconciled")
    list_filter = ("is_reconciled",)
    actions = [reconcile_payments]


@admin.register(OutgoingPayment)
class OutgoingPaymentAdmin(PostedDocumentAdmin):
    list_display = ("doc_num", "bp_code", "payment_date", "amount", "bank_account", "is_reconciled")
    list_filter = ("is_reconciled",)
    actions = [reconcile_payments]


@admin.register(BankAccount)
class BankAccountAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = ("name", "account_number", "gl_account", "business_unit")
    search_fields = ("name", "account_number")
