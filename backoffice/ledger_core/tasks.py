import logging
from celery import shared_task

logger = logging.getLogger(__name__)


@shared_task  # register this function as a Celery task
def reconcile_account_balances(business_unit_id, repair=False):
    """
    Nightly audit: recompute every account balance of a business unit
    from its posted lines and report (optionally repair) drift.
    """
    # import lazily to avoid circular imports at module import time
    from .models import BusinessUnit
    from .services import reconcile_balances

    business_unit = BusinessUnit.objects.get(pk=business_unit_id)
    drifts = reconcile_balances(business_unit, repair=repair)
    logger.info(
        "Balance audit for %s: %s drifted account(s)", business_unit, len(drifts),
        extra={"business_unit_id": business_unit_id},
    )
    return {
        "business_unit_id": business_unit_id,
        "repaired": repair,
        "drifted": [
            {
                "code": drift.code,
                "cached": str(drift.cached),
                "expected": str(drift.expected),
            }
            for drift in drifts
        ],
    }


@shared_task
def reconcile_all_business_units(repair=False):
    """Fan out one audit task per business unit."""
    from .models import BusinessUnit

    ids = list(BusinessUnit.objects.values_list("pk", flat=True))
    for business_unit_id in ids:
        reconcile_account_balances.delay(business_unit_id, repair=repair)
    return len(ids)
