from django.contrib import admin
from ..models import GlAccount, NumberingSeries
from ..services import create_account, delete_account
from .mixins import TenantAdminMixin


@admin.register(GlAccount)
class GlAccountAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = ("code", "name", "account_type", "is_control_account", "balance", "business_unit")
    list_filter = ("account_type", "is_control_account")
    search_fields = ("code", "name")
    # balance moves only through postings
    readonly_fields = ("balance", "created_at")

    def get_readonly_fields(self, request, obj=None):
        # code and type drive the sign of every posting already made
        if obj and obj.journal_lines.exists():
            return self.readonly_fields + ("code", "account_type")
        return self.readonly_fields

    def save_model(self, request, obj, form, change):
        if change:
            super().save_model(request, obj, form, change)
            return
        if not request.user.is_superuser:
            obj.business_unit = self._get_request_business_unit(request)
        created = create_account(
            obj.business_unit,
            obj.code,
            obj.name,
            obj.account_type,
            is_control_account=obj.is_control_account,
            user=request.user,
        )
        obj.pk = created.pk

    def delete_model(self, request, obj):
        delete_account(obj.pk, user=request.user)

    def delete_queryset(self, request, queryset):
        for account in queryset:
            delete_account(account.pk, user=request.user)


@admin.register(NumberingSeries)
class NumberingSeriesAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = ("business_unit", "document_type", "prefix", "next_number")
    list_filter = ("document_type",)

    # the counter is advanced by postings, only the prefix is editable
    def get_readonly_fields(self, request, obj=None):
        if obj:
            return ("business_unit", "document_type", "next_number")
        return ()
