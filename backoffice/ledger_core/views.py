import functools
import json
from django.core.exceptions import ValidationError
from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.utils.dateparse import parse_date
from django.views.decorators.http import require_http_methods
from .models import AccountingPeriod, JournalEntry
from .services import (close_period, create_period, delete_entry,
                       delete_period, list_entries, post_entry, trial_balance,
                       validate_period)


def _error(message, code=None, status=400):
    return JsonResponse({"ok": False, "error": message, "code": code}, status=status)


def _validation_error(exc):
    # ledger errors carry a stable code, plain ValidationErrors might not
    return _error("; ".join(exc.messages), code=getattr(exc, "code", None))


def business_unit_required(view):
    """Authenticated user with an active business unit, else 401/403."""

    @functools.wraps(view)
    def wrapper(request, *args, **kwargs):
        if not request.user.is_authenticated:
            return _error("Unauthenticated", code="unauthenticated", status=401)
        if getattr(request, "business_unit", None) is None:
            return _error("No active business unit", code="no_business_unit", status=403)
        return view(request, *args, **kwargs)

    return wrapper


def _json_body(request):
    try:
        data = json.loads(request.body or b"{}")
    except ValueError:
        raise ValidationError("Request body must be valid JSON.", code="invalid_json")
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object.", code="invalid_json")
    return data


def _date_field(data, key):
    raw = data.get(key)
    try:
        value = parse_date(raw) if isinstance(raw, str) else None
    except ValueError:
        value = None
    if value is None:
        raise ValidationError(f"'{key}' must be a date (YYYY-MM-DD).", code="invalid_date")
    return value


def _query_date(request, key):
    try:
        return parse_date(request.GET.get(key) or "")
    except ValueError:
        return None


def _entry_payload(entry):
    return {
        "id": entry.pk,
        "doc_num": entry.doc_num,
        "posting_date": entry.posting_date.isoformat(),
        "status": entry.status,
        "remarks": entry.remarks,
        "period_id": entry.accounting_period_id,
        "lines": [
            {
                "line_no": line.line_no,
                "account_code": line.account.code,
                "description": line.description,
                "debit": str(line.debit),
                "credit": str(line.credit),
            }
            for line in entry.lines.all()
        ],
    }


def _period_payload(period):
    return {
        "id": period.pk,
        "name": period.name,
        "start_date": period.start_date.isoformat(),
        "end_date": period.end_date.isoformat(),
        "status": period.status,
    }


# ---------- Journal entries ----------
@require_http_methods(["GET", "POST"])
@business_unit_required
def journal_entry_list_view(request):
    if request.method == "GET":
        entries = list_entries(
            request.business_unit,
            date_from=_query_date(request, "from"),
            date_to=_query_date(request, "to"),
            status=request.GET.get("status"),
        )
        return JsonResponse({"results": [_entry_payload(e) for e in entries]})

    try:
        data = _json_body(request)
        entry = post_entry(
            request.business_unit,
            _date_field(data, "posting_date"),
            data.get("lines") or [],
            author=request.user,
            remarks=data.get("remarks"),
        )
    except ValidationError as e:
        return _validation_error(e)
    return JsonResponse(_entry_payload(entry), status=201)


@require_http_methods(["GET", "DELETE"])
@business_unit_required
def journal_entry_detail_view(request, entry_id):
    # 404 for entries of other business units as well
    entry = get_object_or_404(
        JournalEntry.objects.for_business_unit(request.business_unit), pk=entry_id
    )
    if request.method == "GET":
        return JsonResponse(_entry_payload(entry))
    try:
        delete_entry(entry.pk, user=request.user)
    except ValidationError as e:
        return _validation_error(e)
    return JsonResponse({"ok": True, "message": "Journal entry deleted successfully"})


# ---------- Accounting periods ----------
@require_http_methods(["GET", "POST"])
@business_unit_required
def period_list_view(request):
    if request.method == "GET":
        periods = AccountingPeriod.objects.for_business_unit(request.business_unit)
        return JsonResponse({"results": [_period_payload(p) for p in periods]})

    try:
        data = _json_body(request)
        period = create_period(
            request.business_unit,
            (data.get("name") or "").strip(),
            _date_field(data, "start_date"),
            _date_field(data, "end_date"),
            user=request.user,
        )
    except ValidationError as e:
        return _validation_error(e)
    return JsonResponse(_period_payload(period), status=201)


@require_http_methods(["GET", "DELETE"])
@business_unit_required
def period_detail_view(request, period_id):
    period = get_object_or_404(
        AccountingPeriod.objects.for_business_unit(request.business_unit), pk=period_id
    )
    if request.method == "GET":
        return JsonResponse(_period_payload(period))
    try:
        delete_period(period.pk, user=request.user)
    except ValidationError as e:
        return _validation_error(e)
    return JsonResponse({"ok": True, "message": "Accounting period deleted"})


@require_http_methods(["GET", "POST"])
@business_unit_required
def period_close_view(request, period_id):
    """GET previews the close checks, POST closes the period."""
    period = get_object_or_404(
        AccountingPeriod.objects.for_business_unit(request.business_unit), pk=period_id
    )
    if request.method == "GET":
        return JsonResponse(validate_period(period.pk).as_dict())

    result = close_period(period.pk, user=request.user)
    return JsonResponse(result.as_dict(), status=200 if result.success else 400)


# ---------- Reports ----------
@require_http_methods(["GET"])
@business_unit_required
def trial_balance_view(request):
    rows, total_debit, total_credit = trial_balance(request.business_unit)
    return JsonResponse(
        {
            "rows": [row.as_dict() for row in rows],
            "total_debit": str(total_debit),
            "total_credit": str(total_credit),
        }
    )
