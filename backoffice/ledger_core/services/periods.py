import logging
from django.db import transaction
from ..exceptions import (AmbiguousPeriod, InvalidRange, OverlappingPeriod,
                          PeriodHasEntries, PeriodLocked)
from ..models import AccountingPeriod, JournalEntry, PeriodStatus
from .audit_helper import log_action

logger = logging.getLogger(__name__)

"""
    Posting date determines the period.
    Changing the date before posting should affect the period.
"""


def _check_range(business_unit, start_date, end_date, exclude_pk=None):
    if not start_date < end_date:
        raise InvalidRange(f"start_date {start_date} must be before end_date {end_date}.")
    clashes = AccountingPeriod.objects.overlapping(business_unit, start_date, end_date)
    if exclude_pk is not None:
        clashes = clashes.exclude(pk=exclude_pk)
    clash = clashes.first()
    if clash is not None:
        # inclusive endpoints: sharing a single day counts as overlap
        raise OverlappingPeriod(
            f"Period {start_date} - {end_date} overlaps existing period '{clash.name}'."
        )


def _entries_in_range(business_unit, start_date, end_date):
    return JournalEntry.objects.for_business_unit(business_unit).filter(
        posting_date__gte=start_date, posting_date__lte=end_date
    )


def create_period(business_unit, name, start_date, end_date, user=None):
    with transaction.atomic():
        _check_range(business_unit, start_date, end_date)
        period = AccountingPeriod.objects.create(
            business_unit=business_unit,
            name=name,
            start_date=start_date,
            end_date=end_date,
            status=PeriodStatus.OPEN,
        )
        log_action(
            action="create",
            instance=period,
            user=user,
            changes={"start_date": str(start_date), "end_date": str(end_date)},
        )
    logger.info(
        "Created accounting period %s [%s - %s] for %s",
        name, start_date, end_date, business_unit,
        extra={"business_unit_id": business_unit.pk, "period_id": period.pk},
    )
    return period


def find_period_containing(business_unit, date):
    """Period whose range holds `date`, whatever its status."""
    periods = list(AccountingPeriod.objects.containing(business_unit, date)[:2])
    if len(periods) > 1:
        logger.error(
            "Integrity defect: more than one accounting period contains %s for %s",
            date, business_unit,
            extra={"business_unit_id": business_unit.pk},
        )
        raise AmbiguousPeriod(f"More than one accounting period contains {date}.")
    return periods[0] if periods else None


def resolve_active_period(business_unit, date):
    """The OPEN period containing `date`, or None."""
    period = find_period_containing(business_unit, date)
    if period is None or period.status != PeriodStatus.OPEN:
        return None
    return period


def update_period(period_id, name=None, start_date=None, end_date=None, user=None):
    with transaction.atomic():
        period = AccountingPeriod.objects.select_for_update().get(pk=period_id)
        if period.is_closed:
            raise PeriodLocked(f"Accounting period '{period.name}' is closed.")

        new_start = start_date or period.start_date
        new_end = end_date or period.end_date
        if (new_start, new_end) != (period.start_date, period.end_date):
            _check_range(period.business_unit, new_start, new_end, exclude_pk=period.pk)
            # entries inside the old range must stay inside the new one
            orphaned = _entries_in_range(
                period.business_unit, period.start_date, period.end_date
            ).exclude(posting_date__gte=new_start, posting_date__lte=new_end)
            if orphaned.exists():
                raise PeriodHasEntries(
                    "New date range would leave existing journal entries outside the period."
                )

        changes = {}
        if name and name != period.name:
            changes["name"] = [period.name, name]
            period.name = name
        if new_start != period.start_date:
            changes["start_date"] = [str(period.start_date), str(new_start)]
            period.start_date = new_start
        if new_end != period.end_date:
            changes["end_date"] = [str(period.end_date), str(new_end)]
            period.end_date = new_end

        if changes:
            period.save()
            log_action(action="update", instance=period, user=user, changes=changes)
    return period


def delete_period(period_id, user=None):
    with transaction.atomic():
        period = AccountingPeriod.objects.select_for_update().get(pk=period_id)
        if _entries_in_range(period.business_unit, period.start_date, period.end_date).exists():
            raise PeriodHasEntries(
                f"Cannot delete period '{period.name}' with existing journal entries."
            )
        log_action(
            action="delete",
            instance=period,
            user=user,
            changes={"name": period.name},
        )
        business_unit = period.business_unit
        period.delete()
    logger.info(
        "Deleted accounting period %s for %s", period.name, business_unit,
        extra={"business_unit_id": business_unit.pk},
    )
