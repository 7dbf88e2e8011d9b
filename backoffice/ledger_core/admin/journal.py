from decimal import Decimal
from django.contrib import admin
from django.utils.html import format_html
from ..models import JournalEntry
from ..services import delete_entry
from .actions import post_draft_entries
from .inlines import JournalEntryLineInline
from .mixins import TenantAdminMixin


@admin.register(JournalEntry)
class JournalEntryAdmin(TenantAdminMixin, admin.ModelAdmin):
    """
    Journal entries come in through the posting engine (API, document
    posters); admin lists them, posts drafts and deletes through
    services.delete_entry so balances are reversed.
    """

    list_display = (
        "doc_num",
        "business_unit",
        "posting_date",
        "status",
        "accounting_period",
        "source_type",
        "author",
        "balanced",
    )
    list_filter = ("status", "posting_date", "source_type")
    search_fields = ("doc_num", "remarks")
    inlines = [JournalEntryLineInline]
    actions = [post_draft_entries]

    def get_readonly_fields(self, request, obj=None):
        return [f.name for f in self.model._meta.concrete_fields]

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        return qs.select_related("business_unit", "author", "accounting_period")

    # Show total debits / total credits for each entry
    @admin.display(description="Debits / Credits")
    def balanced(self, obj):
        d, c = obj.compute_totals()
        return format_html("<b>{}</b> / <small>{}</small>", d or Decimal("0.00"), c or Decimal("0.00"))

    def has_add_permission(self, request):
        return False

    def delete_model(self, request, obj):
        delete_entry(obj.pk, user=request.user)

    def delete_queryset(self, request, queryset):
        for entry in queryset:
            delete_entry(entry.pk, user=request.user)
