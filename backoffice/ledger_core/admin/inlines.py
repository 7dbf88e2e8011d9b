from django.contrib import admin
from ..models import ApInvoiceLine, ArInvoiceLine, JournalEntryLine

# ---------- Read-only inline admin classes ----------


class ReadOnlyInline(admin.TabularInline):
    """Lines are written by the posting services only; admin just shows them."""

    extra = 0
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False

    def has_change_permission(self, request, obj=None):
        return False


class JournalEntryLineInline(ReadOnlyInline):
    model = JournalEntryLine
    fields = ("line_no", "account", "description", "debit", "credit")
    readonly_fields = fields
    ordering = ("line_no",)

    def get_queryset(self, request):
        return super().get_queryset(request).select_related("account")


class ArInvoiceLineInline(ReadOnlyInline):
    model = ArInvoiceLine
    fields = ("account", "description", "amount")
    readonly_fields = fields


class ApInvoiceLineInline(ReadOnlyInline):
    model = ApInvoiceLine
    fields = ("account", "description", "amount")
    readonly_fields = fields
