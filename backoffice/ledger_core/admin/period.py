from django.contrib import admin
from ..models import AccountingPeriod
from ..services import create_period, delete_period, update_period
from .actions import close_periods
from .mixins import TenantAdminMixin


@admin.register(AccountingPeriod)
class AccountingPeriodAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = ("id", "business_unit", "name", "start_date", "end_date", "status", "closed_at")
    list_filter = ("status",)
    search_fields = ("name",)
    actions = [close_periods]
    # status changes only through the close action
    readonly_fields = ("status", "closed_at", "closed_by")

    def get_readonly_fields(self, request, obj=None):
        if obj and obj.is_closed:
            return [f.name for f in self.model._meta.concrete_fields]
        return self.readonly_fields

    def save_model(self, request, obj, form, change):
        # route through the registry so overlap rules apply here too
        if change:
            update_period(
                obj.pk,
                name=obj.name,
                start_date=obj.start_date,
                end_date=obj.end_date,
                user=request.user,
            )
            return
        if not request.user.is_superuser:
            obj.business_unit = self._get_request_business_unit(request)
        created = create_period(
            obj.business_unit, obj.name, obj.start_date, obj.end_date, user=request.user
        )
        obj.pk = created.pk

    def delete_model(self, request, obj):
        delete_period(obj.pk, user=request.user)

    def delete_queryset(self, request, queryset):
        for period in queryset:
            delete_period(period.pk, user=request.user)
