from django.contrib import admin, messages
from django.core.exceptions import ValidationError
from django.utils.translation import gettext_lazy as _
from ..models import EntryStatus
from ..services import close_period, post_draft, reconcile_payment

# ---------- Admin actions ----------


@admin.action(description=_("Post selected draft journal entries"))
def post_draft_entries(modeladmin, request, queryset):
    """
    Post each selected draft through the posting engine.
    Each entry is its own transaction; one failure does not stop the batch.
    """
    candidates = queryset.filter(status=EntryStatus.DRAFT)
    total = candidates.count()
    success = 0
    for entry in candidates:
        try:
            post_draft(entry.pk, user=request.user)
            success += 1
        except ValidationError as exc:
            modeladmin.message_user(
                request,
                _("Could not post %(doc)s: %(err)s") % {"doc": entry.doc_num, "err": exc},
                level=messages.ERROR,
            )

    modeladmin.message_user(
        request,
        _("Posted %(success)d of %(total)d journal entries.") % {"success": success, "total": total},
        level=messages.SUCCESS if success == total else messages.WARNING,
    )


@admin.action(description=_("Close selected accounting periods"))
def close_periods(modeladmin, request, queryset):
    for period in queryset:
        result = close_period(period.pk, user=request.user)
        if result.success:
            modeladmin.message_user(request, result.message, level=messages.SUCCESS)
        else:
            modeladmin.message_user(
                request,
                _("Could not close %(name)s: %(err)s") % {"name": period.name, "err": result.error},
                level=messages.ERROR,
            )


@admin.action(description=_("Mark selected payments as reconciled"))
def reconcile_payments(modeladmin, request, queryset):
    count = 0
    for payment in queryset.filter(is_reconciled=False):
        reconcile_payment(payment, user=request.user)
        count += 1
    modeladmin.message_user(
        request, _("Reconciled %(count)d payment(s).") % {"count": count}, level=messages.SUCCESS
    )
